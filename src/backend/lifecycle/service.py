"""
Managed-service contract and the default placeholder implementation.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Awaitable, Callable, Protocol

from src.shared.service_state import ServiceState


logger = logging.getLogger(__name__)


class ManagedServiceError(RuntimeError):
    """A managed service failed to start or stop."""

    def __init__(self, action: str, message: str) -> None:
        super().__init__(f"{action} failed: {message}")
        self.action = action


class ManagedService(Protocol):
    """
    Anything with idempotent `start()` / `stop()`.

    Both must be safe to call when already in the target state. Either may
    signal failure by raising or by returning False; any other return value
    counts as success.
    """

    def start(self) -> Any: ...
    def stop(self) -> Any: ...


class AsyncManagedService(Protocol):
    async def start(self) -> Any: ...
    async def stop(self) -> Any: ...


def invoke_service(action: str, call: Callable[[], Any]) -> None:
    """Run one start/stop call, normalising every failure into ManagedServiceError."""
    try:
        result = call()
    except ManagedServiceError:
        raise
    except Exception as exc:
        raise ManagedServiceError(action, f"{type(exc).__name__}: {exc}") from exc
    if result is False:
        raise ManagedServiceError(action, "service reported failure")


async def invoke_service_async(action: str, call: Callable[[], Awaitable[Any]]) -> None:
    try:
        result = await call()
    except ManagedServiceError:
        raise
    except Exception as exc:
        raise ManagedServiceError(action, f"{type(exc).__name__}: {exc}") from exc
    if result is False:
        raise ManagedServiceError(action, "service reported failure")


class PlaceholderDiscoverableService:
    """
    Placeholder service used until a real advertiser is wired in.

    It only records whether it is advertising, which keeps the HTTP surface
    and the lifecycle observable end-to-end.
    """

    def __init__(self, *, name: str) -> None:
        self._name = name
        self._lock = threading.Lock()
        self._state = ServiceState.STOPPED

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> ServiceState:
        return self._state

    def start(self) -> bool:
        with self._lock:
            if self._state == ServiceState.RUNNING:
                return True
            self._state = ServiceState.RUNNING
        logger.info("Advertising %s", self._name)
        return True

    def stop(self) -> bool:
        with self._lock:
            if self._state == ServiceState.STOPPED:
                return True
            self._state = ServiceState.STOPPED
        logger.info("Stopped advertising %s", self._name)
        return True
