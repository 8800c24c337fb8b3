"""Outbound messaging relay."""

from __future__ import annotations

from ...config import Settings
from .gateway import GatewayRelay
from .relay import MessagingRelay, RelayEvent, RelayEventKind, format_address


def create_messaging_relay(config: Settings) -> MessagingRelay | None:
    """Build the gateway relay, or None when no gateway URL is configured."""
    if not config.relay_base_url:
        return None
    return GatewayRelay(base_url=config.relay_base_url, session=config.relay_session)


__all__ = [
    "GatewayRelay",
    "MessagingRelay",
    "RelayEvent",
    "RelayEventKind",
    "create_messaging_relay",
    "format_address",
]
