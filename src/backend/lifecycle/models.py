"""
Models for the discoverable-service lifecycle.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from src.shared.service_state import ServiceState


@dataclass(frozen=True)
class ControllerSnapshot:
    """
    Point-in-time view of the controller's inputs and outputs.

    Network facts are None while unknown (no signal yet, or no network source).
    """
    enabled: bool
    has_active_interface: Optional[bool]
    is_offline: Optional[bool]
    network_aware: bool
    desired_running: bool
    observed: ServiceState
    closed: bool
    last_error: Optional[str] = None
    start_calls: int = 0
    stop_calls: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "has_active_interface": self.has_active_interface,
            "is_offline": self.is_offline,
            "network_aware": self.network_aware,
            "desired_running": self.desired_running,
            "observed": self.observed.value,
            "closed": self.closed,
            "last_error": self.last_error,
            "start_calls": self.start_calls,
            "stop_calls": self.stop_calls,
        }


def running_intent(
    *,
    enabled: bool,
    has_active_interface: Optional[bool],
    is_offline: Optional[bool],
) -> bool:
    """`enabled AND has_active_interface AND NOT is_offline`, with unknown facts counted as available."""
    if not enabled:
        return False
    if has_active_interface is False:
        return False
    if is_offline is True:
        return False
    return True
