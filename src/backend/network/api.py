from __future__ import annotations

from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel

from .status import NetworkStatusSource


class OfflineIn(BaseModel):
    offline: bool


class NetworkStateOut(BaseModel):
    has_active_interface: Optional[bool] = None
    is_offline: Optional[bool] = None
    active_address: Optional[str] = None


def _state_out(source: NetworkStatusSource) -> NetworkStateOut:
    return NetworkStateOut(**source.last_known().to_dict())


def create_network_router(*, source: NetworkStatusSource) -> APIRouter:
    router = APIRouter(prefix="/api/network", tags=["network"])

    @router.get("", response_model=NetworkStateOut)
    def get_network() -> NetworkStateOut:
        return _state_out(source)

    @router.post("/offline", response_model=NetworkStateOut)
    def set_offline(body: OfflineIn) -> NetworkStateOut:
        source.set_offline(body.offline)
        return _state_out(source)

    return router
