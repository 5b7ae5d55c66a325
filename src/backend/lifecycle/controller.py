from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional, Protocol

from src.backend.network.status import NetworkEvent, NetworkSnapshot
from src.backend.settings.models import DISCOVERABLE_PREF
from src.backend.settings.store import ConfigurationUnavailableError
from src.shared.service_state import OfflineStatus, ServiceState
from src.shared.subscriptions import Subscription

from .models import ControllerSnapshot, running_intent
from .service import ManagedService, ManagedServiceError, invoke_service


logger = logging.getLogger(__name__)


class PreferenceSource(Protocol):
    def get_bool(self, name: str) -> bool: ...
    def subscribe(self, name: str, callback: Callable[[Any], None]) -> Subscription: ...


class NetworkSource(Protocol):
    def subscribe(self, event: NetworkEvent, callback: Callable[[Any], None]) -> Subscription: ...


class LifecycleController:
    """
    Keeps a discoverable service running iff it is enabled and the network is usable.

    - Preference changes re-read the preference and start or stop.
    - Losing the active interface or going offline always stops.
    - Gaining an interface or coming online starts only when the rest of the
      intent holds; otherwise nothing is called.

    Every handler runs under one re-entrant lock, so events delivered from
    several threads are applied one at a time. The controller does not skip
    calls based on what it thinks the service is doing; the service must
    tolerate redundant `start()` / `stop()`.

    Services that apply transitions later (see `AsyncServiceDriver`) may expose
    `state` and `last_error`; the controller reports those as the observed
    state, so a failure after the call returned still counts as `Unknown`.
    """

    def __init__(
        self,
        *,
        preferences: PreferenceSource,
        service: ManagedService,
        network: Optional[NetworkSource] = None,
        pref_name: str = DISCOVERABLE_PREF,
    ) -> None:
        self._preferences = preferences
        self._service = service
        self._network = network
        self._pref_name = pref_name

        self._lock = threading.RLock()
        self._subscriptions: list[Subscription] = []
        self._closed = False

        self._has_active_interface: Optional[bool] = None
        self._is_offline: Optional[bool] = None
        self._desired = False
        self._observed = ServiceState.UNKNOWN
        self._last_error: Optional[str] = None
        self._start_calls = 0
        self._stop_calls = 0

        with self._lock:
            if network is not None:
                self._seed_network_facts(network)
                self._subscriptions.append(
                    network.subscribe(NetworkEvent.ACTIVE_INTERFACE_CHANGED, self._on_active_interface_changed)
                )
                self._subscriptions.append(
                    network.subscribe(NetworkEvent.OFFLINE_STATUS_CHANGED, self._on_offline_status_changed)
                )
            self._subscriptions.append(preferences.subscribe(pref_name, self._on_preference_changed))

            self._apply(self._intent(self._read_enabled()), reason="startup")

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------

    @property
    def network_aware(self) -> bool:
        return self._network is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def snapshot(self) -> ControllerSnapshot:
        with self._lock:
            enabled = self._read_enabled(quiet=True)
            return ControllerSnapshot(
                enabled=enabled,
                has_active_interface=self._has_active_interface,
                is_offline=self._is_offline,
                network_aware=self.network_aware,
                desired_running=self._desired,
                observed=self._effective_observed(),
                closed=self._closed,
                last_error=self._effective_last_error(),
                start_calls=self._start_calls,
                stop_calls=self._stop_calls,
            )

    def reconcile(self) -> bool:
        """Re-apply the current intent once. Returns False if the service call failed."""
        with self._lock:
            if self._closed:
                return False
            return self._apply(self._intent(self._read_enabled()), reason="reconcile")

    def shutdown(self) -> None:
        """Release all subscriptions and force the service to stop. Safe to call twice."""
        with self._lock:
            if self._closed:
                return
            subscriptions, self._subscriptions = self._subscriptions, []
            for subscription in subscriptions:
                subscription.unsubscribe()
            self._apply(False, reason="shutdown")
            self._closed = True

    # ---------------------------------------------------------------------
    # Event handlers
    # ---------------------------------------------------------------------

    def _on_preference_changed(self, _value: Any) -> None:
        # Re-read the store; the pushed value may already be stale.
        with self._lock:
            if self._closed:
                return
            enabled = self._read_enabled()
            self._apply(self._intent(enabled), reason=f"{self._pref_name}={enabled}")

    def _on_active_interface_changed(self, payload: Any) -> None:
        present = bool(payload)
        with self._lock:
            if self._closed:
                return
            self._has_active_interface = present
            if not present:
                self._apply(False, reason="no active interface")
                return
            self._apply_if_possible(reason="active interface up")

    def _on_offline_status_changed(self, payload: Any) -> None:
        status = OfflineStatus.parse(payload)
        with self._lock:
            if self._closed:
                return
            self._is_offline = status == OfflineStatus.OFFLINE
            if self._is_offline:
                self._apply(False, reason="offline")
                return
            self._apply_if_possible(reason="online")

    # ---------------------------------------------------------------------
    # Internals (call with lock held)
    # ---------------------------------------------------------------------

    def _seed_network_facts(self, network: NetworkSource) -> None:
        last_known = getattr(network, "last_known", None)
        if last_known is None:
            return
        snapshot = last_known()
        if isinstance(snapshot, NetworkSnapshot):
            self._has_active_interface = snapshot.has_active_interface
            self._is_offline = snapshot.is_offline

    def _read_enabled(self, *, quiet: bool = False) -> bool:
        try:
            return self._preferences.get_bool(self._pref_name)
        except ConfigurationUnavailableError as exc:
            if not quiet:
                logger.warning("Preference %s unavailable, treating as disabled: %s", self._pref_name, exc)
            return False

    def _intent(self, enabled: bool) -> bool:
        return running_intent(
            enabled=enabled,
            has_active_interface=self._has_active_interface,
            is_offline=self._is_offline,
        )

    def _effective_observed(self) -> ServiceState:
        if self._observed == ServiceState.UNKNOWN:
            return self._observed
        reported = getattr(self._service, "state", None)
        if isinstance(reported, ServiceState):
            return reported
        return self._observed

    def _effective_last_error(self) -> Optional[str]:
        if self._last_error is not None:
            return self._last_error
        reported = getattr(self._service, "last_error", None)
        return reported if isinstance(reported, str) else None

    def _apply_if_possible(self, *, reason: str) -> None:
        if self._intent(self._read_enabled()):
            self._apply(True, reason=reason)
        elif not self._effective_observed().is_settled():
            # A previous call failed; use this event to converge to stopped.
            self._apply(False, reason=reason)
        else:
            logger.debug("Ignoring %s: discoverable service stays stopped", reason)

    def _apply(self, running: bool, *, reason: str) -> bool:
        self._desired = running
        if running:
            action, call = "start", self._service.start
            self._start_calls += 1
        else:
            action, call = "stop", self._service.stop
            self._stop_calls += 1

        try:
            invoke_service(action, call)
        except ManagedServiceError as exc:
            self._observed = ServiceState.UNKNOWN
            self._last_error = str(exc)
            logger.warning("Discoverable service %s (trigger: %s); will retry on next event", exc, reason)
            return False

        self._observed = ServiceState.RUNNING if running else ServiceState.STOPPED
        self._last_error = None
        logger.debug("Discoverable service %s (trigger: %s)", "started" if running else "stopped", reason)
        return True
