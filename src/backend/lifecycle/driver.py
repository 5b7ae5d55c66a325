"""
Adapter that lets the controller drive a service whose start/stop are coroutines.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Optional

from src.shared.service_state import ServiceState

from .service import AsyncManagedService, ManagedServiceError, invoke_service_async


logger = logging.getLogger(__name__)


class AsyncServiceDriver:
    """
    Single-slot "latest desired state" in front of an async service.

    `start()` / `stop()` only record the desired state and wake one worker task
    on `loop`; they never block and may be called from any thread. The worker
    applies the most recent desired value, so at most one transition is in
    flight and rapid toggles collapse into the final one. A failed transition
    leaves the applied state unknown; the next request tries again.
    """

    def __init__(self, *, service: AsyncManagedService, loop: asyncio.AbstractEventLoop) -> None:
        self._service = service
        self._loop = loop
        self._lock = threading.Lock()
        self._desired: Optional[bool] = None
        self._applied: Optional[bool] = False
        self._worker: Optional[asyncio.Task[None]] = None
        self._last_error: Optional[str] = None

    @property
    def state(self) -> ServiceState:
        if self._applied is None:
            return ServiceState.UNKNOWN
        return ServiceState.RUNNING if self._applied else ServiceState.STOPPED

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    def start(self) -> None:
        self._request(True)

    def stop(self) -> None:
        self._request(False)

    async def wait_idle(self) -> None:
        """Wait until the worker has nothing left to apply. Must run on `loop`."""
        # Let pending call_soon_threadsafe callbacks schedule the worker first.
        await asyncio.sleep(0)
        while self._worker is not None and not self._worker.done():
            await asyncio.shield(self._worker)
            await asyncio.sleep(0)

    def _request(self, running: bool) -> None:
        with self._lock:
            self._desired = running
        if self._loop.is_closed():
            logger.warning("Event loop closed; dropping %s request", "start" if running else "stop")
            return
        self._loop.call_soon_threadsafe(self._ensure_worker)

    def _ensure_worker(self) -> None:
        if self._worker is None or self._worker.done():
            self._worker = self._loop.create_task(self._drain())

    async def _drain(self) -> None:
        while True:
            with self._lock:
                target = self._desired
            if target is None or target == self._applied:
                return

            action = "start" if target else "stop"
            call = self._service.start if target else self._service.stop
            try:
                await invoke_service_async(action, call)
            except ManagedServiceError as exc:
                self._applied = None
                self._last_error = str(exc)
                logger.warning("Async discoverable service %s", exc)
                with self._lock:
                    # Forget the request so the worker stops here; a new request re-arms it.
                    if self._desired == target:
                        self._desired = None
                return

            self._applied = target
            self._last_error = None
