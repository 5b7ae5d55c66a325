"""
Service state enums shared across backend modules and tests.

Contract:
    Stopped / Running / Unknown
    offline / online
"""

from __future__ import annotations

from enum import Enum


class ServiceState(str, Enum):
    STOPPED = "Stopped"
    RUNNING = "Running"
    UNKNOWN = "Unknown"

    def is_settled(self) -> bool:
        return self in (ServiceState.STOPPED, ServiceState.RUNNING)


class OfflineStatus(str, Enum):
    OFFLINE = "offline"
    ONLINE = "online"

    @classmethod
    def parse(cls, value: object) -> "OfflineStatus":
        # Anything that is not literally "offline" counts as online.
        if isinstance(value, OfflineStatus):
            return value
        if str(value).strip().lower() == cls.OFFLINE.value:
            return cls.OFFLINE
        return cls.ONLINE
