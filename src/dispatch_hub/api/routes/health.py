"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Request, status

from ...errors import UpstreamError

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/store", status_code=status.HTTP_200_OK)
async def health_store(request: Request) -> dict:
    """Round-trip to the record store."""
    store = request.app.state.store
    backend = type(store).__name__
    try:
        healthy = await store.ping()
        return {"service": "record_store", "backend": backend, "healthy": healthy}
    except UpstreamError as exc:
        return {"service": "record_store", "backend": backend, "healthy": False, "error": exc.detail}


@router.get("/health/realtime", status_code=status.HTTP_200_OK)
def health_realtime(request: Request) -> dict:
    hub = request.app.state.hub
    relay = hub.relay
    return {
        "service": "realtime",
        "connections": hub.connection_count,
        "relay": {
            "configured": relay is not None,
            "session": relay.session if relay else None,
            "authenticated": relay.is_authenticated() if relay else False,
        },
    }
