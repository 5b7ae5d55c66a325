"""
Explicit subscription handles for callback-style publishers.

Publishers keep a ListenerRegistry per topic and hand out Subscription objects;
subscribers hold on to the handles and call `unsubscribe()` during teardown.
"""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Any, Callable, Generic, Hashable, Optional, TypeVar

K = TypeVar("K", bound=Hashable)
Callback = Callable[[Any], None]

logger = logging.getLogger(__name__)


class Subscription:
    """Handle returned by `subscribe`. Unsubscribing twice is a no-op."""

    def __init__(self, *, topic: Hashable, release: Callable[[], None]) -> None:
        self._topic = topic
        self._release: Optional[Callable[[], None]] = release
        self._lock = threading.Lock()

    @property
    def topic(self) -> Hashable:
        return self._topic

    @property
    def active(self) -> bool:
        return self._release is not None

    def unsubscribe(self) -> None:
        with self._lock:
            release, self._release = self._release, None
        if release is not None:
            release()

    def __repr__(self) -> str:
        state = "active" if self.active else "released"
        return f"<Subscription topic={self._topic!r} {state}>"


class ListenerRegistry(Generic[K]):
    """
    Thread-safe topic -> callbacks registry.

    Callbacks are invoked in registration order. A failing callback is logged
    and does not stop delivery to the remaining listeners.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._listeners: dict[K, dict[int, Callback]] = {}

    def add(self, topic: K, callback: Callback) -> Subscription:
        if not callable(callback):
            raise TypeError("callback must be callable")

        with self._lock:
            listener_id = next(self._ids)
            self._listeners.setdefault(topic, {})[listener_id] = callback

        def release() -> None:
            with self._lock:
                bucket = self._listeners.get(topic)
                if bucket is None:
                    return
                bucket.pop(listener_id, None)
                if not bucket:
                    self._listeners.pop(topic, None)

        return Subscription(topic=topic, release=release)

    def listeners(self, topic: K) -> list[Callback]:
        with self._lock:
            return list(self._listeners.get(topic, {}).values())

    def count(self, topic: Optional[K] = None) -> int:
        with self._lock:
            if topic is not None:
                return len(self._listeners.get(topic, {}))
            return sum(len(bucket) for bucket in self._listeners.values())

    def dispatch(self, topic: K, payload: Any) -> int:
        delivered = 0
        for callback in self.listeners(topic):
            try:
                callback(payload)
            except Exception:
                logger.exception("Listener for %r failed", topic)
                continue
            delivered += 1
        return delivered
