"""
Network status: publisher for interface/offline events and a polling monitor.
"""

from .monitor import NetworkMonitor, detect_active_address
from .status import NetworkEvent, NetworkSnapshot, NetworkStatusSource

__all__ = [
    "NetworkEvent",
    "NetworkMonitor",
    "NetworkSnapshot",
    "NetworkStatusSource",
    "detect_active_address",
]
