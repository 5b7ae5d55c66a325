"""
Network status publisher.

Carries two independent signals:
- `active-interface-changed`: payload is True when a default-route-capable
  interface exists, False when none does.
- `offline-status-changed`: payload is "offline" or "online".

Subscribers receive events in the order they were published. Redundant
publications (same value as the last known one) are dropped unless forced.
Callbacks run after the state lock is released, so a subscriber blocked on
another thread never stalls `last_known()`.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from src.shared.service_state import OfflineStatus
from src.shared.subscriptions import ListenerRegistry, Subscription


logger = logging.getLogger(__name__)


class NetworkEvent(str, Enum):
    ACTIVE_INTERFACE_CHANGED = "active-interface-changed"
    OFFLINE_STATUS_CHANGED = "offline-status-changed"


@dataclass(frozen=True)
class NetworkSnapshot:
    """Last known network facts. None means no signal has been seen yet."""
    has_active_interface: Optional[bool] = None
    is_offline: Optional[bool] = None
    active_address: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "has_active_interface": self.has_active_interface,
            "is_offline": self.is_offline,
            "active_address": self.active_address,
        }


class NetworkStatusSource:
    def __init__(self) -> None:
        self._lock = threading.RLock()
        # Orders publish + dispatch per source; never taken while holding `_lock`.
        self._delivery_lock = threading.RLock()
        self._listeners: ListenerRegistry[NetworkEvent] = ListenerRegistry()
        self._has_active_interface: Optional[bool] = None
        self._is_offline: Optional[bool] = None
        self._active_address: Optional[str] = None

    def subscribe(self, event: NetworkEvent | str, callback: Callable[[Any], None]) -> Subscription:
        return self._listeners.add(NetworkEvent(event), callback)

    def subscriber_count(self, event: NetworkEvent | str | None = None) -> int:
        return self._listeners.count(NetworkEvent(event) if event is not None else None)

    def last_known(self) -> NetworkSnapshot:
        with self._lock:
            return NetworkSnapshot(
                has_active_interface=self._has_active_interface,
                is_offline=self._is_offline,
                active_address=self._active_address,
            )

    def publish_active_interface(self, address: Optional[str], *, force: bool = False) -> bool:
        """
        Report the current active interface address (None when there is none).

        Returns True when an event was dispatched.
        """
        present = address is not None
        with self._delivery_lock:
            with self._lock:
                changed = present != self._has_active_interface
                self._active_address = address
                if not changed and not force:
                    return False
                self._has_active_interface = present
            logger.info("Active network interface %s", f"up ({address})" if present else "down")
            self._listeners.dispatch(NetworkEvent.ACTIVE_INTERFACE_CHANGED, present)
            return True

    def publish_offline_status(self, status: OfflineStatus | str, *, force: bool = False) -> bool:
        parsed = OfflineStatus.parse(status)
        offline = parsed == OfflineStatus.OFFLINE
        with self._delivery_lock:
            with self._lock:
                if offline == self._is_offline and not force:
                    return False
                self._is_offline = offline
            logger.info("Network status is now %s", parsed.value)
            self._listeners.dispatch(NetworkEvent.OFFLINE_STATUS_CHANGED, parsed.value)
            return True

    def set_offline(self, offline: bool) -> bool:
        return self.publish_offline_status(OfflineStatus.OFFLINE if offline else OfflineStatus.ONLINE)
