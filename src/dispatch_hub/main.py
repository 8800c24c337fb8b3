"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from .api.routes import health, realtime, relay, reports
from .config import Settings, settings
from .errors import DispatchError
from .persistence import RecordStore, create_record_store
from .persistence.filesystem import FileStorage
from .realtime import RealtimeHub
from .services.couriers import CourierService, get_credential_verifier
from .services.customers import CustomerService
from .services.deliveries import DeliveryService
from .services.messaging import MessagingRelay, create_messaging_relay

logger = logging.getLogger(__name__)


def create_app(
    config: Settings | None = None,
    *,
    store: RecordStore | None = None,
    messaging_relay: MessagingRelay | None = None,
    storage: FileStorage | None = None,
) -> FastAPI:
    config = config or settings
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    store = store or create_record_store(config)
    if messaging_relay is None:
        messaging_relay = create_messaging_relay(config)
    hub = RealtimeHub(
        deliveries=DeliveryService(store),
        customers=CustomerService(store),
        couriers=CourierService(store, get_credential_verifier(config.courier_auth_mode)),
        relay=messaging_relay,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if messaging_relay is not None and config.relay_autostart:
            try:
                await messaging_relay.initialize()
                logger.info("Messaging relay initialized at startup")
            except DispatchError as exc:
                logger.error(f"Messaging relay failed to start: {exc.detail}")
        yield
        if messaging_relay is not None:
            await messaging_relay.close()

    app = FastAPI(title=config.app_name, lifespan=lifespan)
    app.state.store = store
    app.state.hub = hub
    app.state.storage = storage or FileStorage(config.data_root)

    if config.frontend_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(config.frontend_allowed_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(health.router, prefix=config.api_prefix)
    app.include_router(reports.router, prefix=config.api_prefix)
    app.include_router(relay.router, prefix=config.api_prefix)
    app.add_api_websocket_route(config.websocket_path, realtime.realtime_endpoint)

    if config.static_root.is_dir():
        app.mount("/", StaticFiles(directory=str(config.static_root), html=True), name="static")
    else:
        # Root endpoint for diagnostics
        @app.get("/")
        def root():
            return {
                "service": config.app_name,
                "status": "running",
                "api_prefix": config.api_prefix,
                "health": f"{config.api_prefix}/health",
                "websocket": config.websocket_path,
                "docs": "/docs",
            }

    return app


app = create_app()
