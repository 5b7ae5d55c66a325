from __future__ import annotations

from dataclasses import dataclass
from typing import Any


DISCOVERABLE_PREF = "discoverable"

DEFAULT_NETWORK_POLL_INTERVAL_S = 5.0
MIN_NETWORK_POLL_INTERVAL_S = 0.5
DEFAULT_PROBE_ADDRESS = "8.8.8.8"
DEFAULT_SERVICE_NAME = "discovery-lifecycle-local"


def _parse_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off"):
            return False
    return default


@dataclass
class GlobalSettings:
    discoverable: bool = False
    network_poll_interval_s: float = DEFAULT_NETWORK_POLL_INTERVAL_S
    probe_address: str = DEFAULT_PROBE_ADDRESS
    service_name: str = DEFAULT_SERVICE_NAME

    def to_persist_dict(self) -> dict[str, Any]:
        return {
            "version": 1,
            "discoverable": self.discoverable,
            "network_poll_interval_s": self.network_poll_interval_s,
            "probe_address": self.probe_address,
            "service_name": self.service_name,
        }

    @classmethod
    def from_persist_dict(cls, data: dict[str, Any]) -> "GlobalSettings":
        discoverable = _parse_bool(data.get("discoverable"), False)

        try:
            interval = float(data.get("network_poll_interval_s", DEFAULT_NETWORK_POLL_INTERVAL_S))
        except (TypeError, ValueError):
            interval = DEFAULT_NETWORK_POLL_INTERVAL_S

        probe_address = str(data.get("probe_address", DEFAULT_PROBE_ADDRESS) or DEFAULT_PROBE_ADDRESS).strip()
        service_name = str(data.get("service_name", DEFAULT_SERVICE_NAME) or DEFAULT_SERVICE_NAME).strip()

        return cls(
            discoverable=discoverable,
            network_poll_interval_s=max(MIN_NETWORK_POLL_INTERVAL_S, interval),
            probe_address=probe_address or DEFAULT_PROBE_ADDRESS,
            service_name=service_name or DEFAULT_SERVICE_NAME,
        )
