from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from .controller import LifecycleController


class ControllerStateOut(BaseModel):
    enabled: bool
    has_active_interface: Optional[bool] = None
    is_offline: Optional[bool] = None
    network_aware: bool
    desired_running: bool
    observed: str
    closed: bool
    last_error: Optional[str] = None
    start_calls: int
    stop_calls: int


def _state_out(controller: LifecycleController) -> ControllerStateOut:
    return ControllerStateOut(**controller.snapshot().to_dict())


def create_lifecycle_router(*, controller: LifecycleController) -> APIRouter:
    router = APIRouter(prefix="/api/discovery", tags=["discovery"])

    @router.get("/state", response_model=ControllerStateOut)
    def get_state() -> ControllerStateOut:
        return _state_out(controller)

    @router.post("/reconcile", response_model=ControllerStateOut)
    def reconcile() -> ControllerStateOut:
        if controller.closed:
            raise HTTPException(status_code=409, detail="controller is shut down")
        controller.reconcile()
        return _state_out(controller)

    return router
