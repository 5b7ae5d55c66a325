"""
Discoverable-service lifecycle.

Provides:
- LifecycleController: starts/stops the managed service from preference and network events
- AsyncServiceDriver: coalescing adapter for services with async start/stop
- ManagedService contract and the placeholder service
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .controller import LifecycleController
from .driver import AsyncServiceDriver
from .models import ControllerSnapshot, running_intent
from .service import (
    AsyncManagedService,
    ManagedService,
    ManagedServiceError,
    PlaceholderDiscoverableService,
)

if TYPE_CHECKING:
    from fastapi import APIRouter  # pragma: no cover


def create_lifecycle_router(*, controller: LifecycleController) -> "APIRouter":
    """
    Lazily import FastAPI router to keep non-web imports lightweight.
    """
    from .api import create_lifecycle_router as _create_lifecycle_router

    return _create_lifecycle_router(controller=controller)

__all__ = [
    "LifecycleController",
    "AsyncServiceDriver",
    "ControllerSnapshot",
    "running_intent",
    "AsyncManagedService",
    "ManagedService",
    "ManagedServiceError",
    "PlaceholderDiscoverableService",
    "create_lifecycle_router",
]
