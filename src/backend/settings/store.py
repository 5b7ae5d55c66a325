from __future__ import annotations

import json
import logging
import threading
from dataclasses import fields
from pathlib import Path
from typing import Any, Callable

from src.shared.subscriptions import ListenerRegistry, Subscription

from .models import GlobalSettings


logger = logging.getLogger(__name__)

_SETTING_NAMES = frozenset(f.name for f in fields(GlobalSettings))


class ConfigurationUnavailableError(RuntimeError):
    pass


class SettingsStore:
    """
    JSON-file settings store with per-setting change subscriptions.

    Change callbacks run synchronously on the thread that performed the update,
    after the file has been written and the store lock released. Updates and
    their notifications are serialized by a separate delivery lock, so each
    subscriber sees changes in the order they were written while other threads
    can still read the store from inside a callback.
    """

    def __init__(self, *, path: Path) -> None:
        self._path = path
        self._lock = threading.RLock()
        # Held across write + notify; never taken while holding `_lock`.
        self._delivery_lock = threading.RLock()
        self._listeners: ListenerRegistry[str] = ListenerRegistry()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> GlobalSettings:
        with self._lock:
            try:
                return self.load_strict()
            except ConfigurationUnavailableError:
                return GlobalSettings()

    def load_strict(self) -> GlobalSettings:
        """Like `load`, but a present-yet-unreadable file raises instead of yielding defaults."""
        with self._lock:
            if not self._path.exists():
                return GlobalSettings()

            try:
                raw = json.loads(self._path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                raise ConfigurationUnavailableError(f"cannot read settings from {self._path}: {exc}") from exc

            if not isinstance(raw, dict):
                raise ConfigurationUnavailableError(f"settings file {self._path} does not contain an object")

            return GlobalSettings.from_persist_dict(raw)

    def save(self, settings: GlobalSettings) -> None:
        payload = settings.to_persist_dict()

        with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
            tmp_path.replace(self._path)

    def update(self, *, mutator: Callable[[GlobalSettings], GlobalSettings]) -> GlobalSettings:
        with self._delivery_lock:
            with self._lock:
                current = self.load()
                before = current.to_persist_dict()
                updated = mutator(current)
                if not isinstance(updated, GlobalSettings):
                    raise TypeError("mutator must return GlobalSettings")
                self.save(updated)
                changes = _changed_settings(before, updated)
            for name, value in changes:
                self._listeners.dispatch(name, value)
            return updated

    def set_value(self, *, key: str, value: Any) -> GlobalSettings:
        def mutate(settings: GlobalSettings) -> GlobalSettings:
            if key not in _SETTING_NAMES:
                raise KeyError(key)
            setattr(settings, key, value)
            return settings

        return self.update(mutator=mutate)

    # ------------------------------------------------------------------
    # Preference access
    # ------------------------------------------------------------------

    def get_bool(self, name: str) -> bool:
        if name not in _SETTING_NAMES:
            raise KeyError(name)
        value = getattr(self.load_strict(), name)
        if not isinstance(value, bool):
            raise TypeError(f"setting {name!r} is not a boolean")
        return value

    def set_bool(self, name: str, value: bool) -> GlobalSettings:
        return self.set_value(key=name, value=bool(value))

    def subscribe(self, name: str, callback: Callable[[Any], None]) -> Subscription:
        """Register `callback(new_value)` for changes of setting `name`."""
        if name not in _SETTING_NAMES:
            raise KeyError(name)
        return self._listeners.add(name, callback)

    def subscriber_count(self, name: str | None = None) -> int:
        return self._listeners.count(name)


def _changed_settings(before: dict[str, Any], updated: GlobalSettings) -> list[tuple[str, Any]]:
    after = updated.to_persist_dict()
    changes = []
    for name in sorted(_SETTING_NAMES):
        if before.get(name) == after.get(name):
            continue
        logger.debug("Setting %s changed: %r -> %r", name, before.get(name), after.get(name))
        changes.append((name, getattr(updated, name)))
    return changes
