"""
Polling monitor for the active network interface.

The default probe asks the routing table which local address would be used to
reach `probe_address` by connecting a UDP socket. Connecting a datagram socket
sends no packets, so the probe is cheap and works without connectivity to the
probe host itself.
"""

from __future__ import annotations

import asyncio
import ipaddress
import logging
import socket
from typing import Callable, Optional

from src.backend.settings.models import DEFAULT_NETWORK_POLL_INTERVAL_S, DEFAULT_PROBE_ADDRESS, MIN_NETWORK_POLL_INTERVAL_S

from .status import NetworkStatusSource


logger = logging.getLogger(__name__)

InterfaceProbe = Callable[[], Optional[str]]


def detect_active_address(probe_address: str = DEFAULT_PROBE_ADDRESS, *, port: int = 80) -> Optional[str]:
    """
    Return the local IP address of the default-route interface, or None.

    Loopback and unspecified addresses count as "no active interface".
    """
    family = socket.AF_INET6 if ":" in probe_address else socket.AF_INET
    try:
        with socket.socket(family, socket.SOCK_DGRAM) as sock:
            sock.connect((probe_address, port))
            local = sock.getsockname()[0]
    except OSError as exc:
        logger.debug("Interface probe towards %s failed: %s", probe_address, exc)
        return None

    try:
        parsed = ipaddress.ip_address(local)
    except ValueError:
        return None
    if parsed.is_loopback or parsed.is_unspecified:
        return None
    return local


class NetworkMonitor:
    """
    Periodically probes the active interface and publishes changes.

    Usage:
        monitor = NetworkMonitor(source=source, interval_s=5.0)
        await monitor.start()
        ...
        await monitor.stop()
    """

    def __init__(
        self,
        *,
        source: NetworkStatusSource,
        interval_s: float = DEFAULT_NETWORK_POLL_INTERVAL_S,
        probe: Optional[InterfaceProbe] = None,
        probe_address: str = DEFAULT_PROBE_ADDRESS,
    ) -> None:
        self._source = source
        self._interval_s = max(MIN_NETWORK_POLL_INTERVAL_S, float(interval_s))
        self._probe: InterfaceProbe = probe or (lambda: detect_active_address(probe_address))
        self._task: Optional[asyncio.Task[None]] = None
        self._wakeup = asyncio.Event()

    @property
    def interval_s(self) -> float:
        return self._interval_s

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def set_interval(self, interval_s: float) -> None:
        self._interval_s = max(MIN_NETWORK_POLL_INTERVAL_S, float(interval_s))
        self._wakeup.set()

    async def poll_once(self) -> bool:
        """Run the probe once; returns True if a change was published."""
        address = await asyncio.to_thread(self._probe)
        return self._source.publish_active_interface(address)

    async def start(self) -> None:
        if self.running:
            return
        # Publish the initial state before returning so consumers start from known facts.
        await self.poll_once()
        self._task = asyncio.create_task(self._loop(), name="network-monitor")

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _loop(self) -> None:
        while True:
            self._wakeup.clear()
            try:
                await asyncio.wait_for(self._wakeup.wait(), timeout=self._interval_s)
            except asyncio.TimeoutError:
                pass
            try:
                await self.poll_once()
            except Exception:
                logger.exception("Network poll failed")
