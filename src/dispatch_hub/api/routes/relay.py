"""Webhook receiving session events from the WhatsApp gateway."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, HTTPException, Request, status

from ...errors import RelayError
from ...services.messaging import GatewayRelay

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/relay", tags=["relay"])


@router.post("/webhook", status_code=status.HTTP_200_OK)
async def relay_webhook(request: Request, body: dict[str, Any] = Body(...)) -> dict:
    relay = request.app.state.hub.relay
    if not isinstance(relay, GatewayRelay):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Messaging relay is not configured")

    logger.debug(f"Gateway webhook: {body.get('event')}")
    try:
        await relay.handle_webhook(body)
    except RelayError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.detail) from exc
    return {"status": "ok"}
