from __future__ import annotations

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from .models import DISCOVERABLE_PREF, GlobalSettings
from .store import SettingsStore


class DiscoverableIn(BaseModel):
    enabled: bool


class NetworkPollIntervalIn(BaseModel):
    network_poll_interval_s: float = Field(ge=0.5, le=3600.0)


class SettingsOut(BaseModel):
    discoverable: bool
    network_poll_interval_s: float
    probe_address: str
    service_name: str


def _public_settings(settings: GlobalSettings) -> SettingsOut:
    return SettingsOut(
        discoverable=settings.discoverable,
        network_poll_interval_s=settings.network_poll_interval_s,
        probe_address=settings.probe_address,
        service_name=settings.service_name,
    )


def create_settings_router(*, store: SettingsStore) -> APIRouter:
    router = APIRouter(prefix="/api/settings", tags=["settings"])

    @router.get("", response_model=SettingsOut)
    def get_settings() -> SettingsOut:
        return _public_settings(store.load())

    @router.post("/discoverable", response_model=SettingsOut)
    def set_discoverable(body: DiscoverableIn) -> SettingsOut:
        updated = store.set_bool(DISCOVERABLE_PREF, body.enabled)
        return _public_settings(updated)

    @router.post("/network-poll-interval", response_model=SettingsOut)
    def set_network_poll_interval(body: NetworkPollIntervalIn) -> SettingsOut:
        try:
            updated = store.set_value(key="network_poll_interval_s", value=float(body.network_poll_interval_s))
        except (KeyError, ValueError) as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _public_settings(updated)

    return router
