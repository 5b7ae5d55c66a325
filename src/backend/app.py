from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Optional

from fastapi import FastAPI

from .lifecycle import LifecycleController, ManagedService, PlaceholderDiscoverableService, create_lifecycle_router
from .network.api import create_network_router
from .network.monitor import InterfaceProbe, NetworkMonitor
from .network.status import NetworkStatusSource
from .settings.api import create_settings_router
from .settings.store import SettingsStore


logger = logging.getLogger(__name__)


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[2]


def create_app(
    *,
    data_dir: Optional[Path] = None,
    service: Optional[ManagedService] = None,
    probe: Optional[InterfaceProbe] = None,
    monitor_network: bool = True,
) -> FastAPI:
    repo_root = _repo_root()
    data_dir = Path(data_dir) if data_dir is not None else repo_root / "data"
    config_path = data_dir / "config.json"

    store = SettingsStore(path=config_path)
    settings = store.load()

    network: Optional[NetworkStatusSource] = NetworkStatusSource() if monitor_network else None
    monitor: Optional[NetworkMonitor] = None
    if network is not None:
        monitor = NetworkMonitor(
            source=network,
            interval_s=settings.network_poll_interval_s,
            probe=probe,
            probe_address=settings.probe_address,
        )

    managed = service or PlaceholderDiscoverableService(name=settings.service_name)
    controller = LifecycleController(preferences=store, service=managed, network=network)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        interval_subscription = None
        if monitor is not None:
            loop = asyncio.get_running_loop()

            def on_interval_changed(value: Any) -> None:
                loop.call_soon_threadsafe(monitor.set_interval, value)

            interval_subscription = store.subscribe("network_poll_interval_s", on_interval_changed)
            await monitor.start()
        try:
            yield
        finally:
            if monitor is not None:
                await monitor.stop()
            if interval_subscription is not None:
                interval_subscription.unsubscribe()
            controller.shutdown()
            logger.info("Discovery lifecycle shut down")

    app = FastAPI(title="discovery-lifecycle-local", lifespan=lifespan)
    app.include_router(create_settings_router(store=store))
    app.include_router(create_lifecycle_router(controller=controller))
    if network is not None:
        app.include_router(create_network_router(source=network))

    app.state.settings_store = store
    app.state.network = network
    app.state.monitor = monitor
    app.state.controller = controller
    app.state.service = managed
    app.state.repo_root = repo_root

    return app


app = create_app()
