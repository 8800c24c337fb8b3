"""WebSocket endpoint feeding the realtime hub.

Frames are JSON objects ``{"event": <name>, "data": <payload>}`` in both
directions.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from fastapi import WebSocket

logger = logging.getLogger(__name__)


def parse_frame(raw: str | bytes | None) -> Optional[tuple[str, Any]]:
    """Return ``(event, data)`` or None when the frame is not a valid command."""
    if raw is None:
        return None
    try:
        frame = json.loads(raw)
    except (TypeError, ValueError):
        return None
    if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
        return None
    return frame["event"], frame.get("data")


async def realtime_endpoint(websocket: WebSocket) -> None:
    hub = websocket.app.state.hub
    await websocket.accept()
    connection = hub.connect(websocket)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            parsed = parse_frame(message.get("text") or message.get("bytes"))
            if parsed is None:
                logger.warning(f"Skipping malformed frame from {connection.connection_id}")
                continue
            name, data = parsed
            hub.submit(connection, name, data)
    finally:
        hub.disconnect(connection)
