"""Messaging relay contract and address formatting."""

from __future__ import annotations

import asyncio
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

COUNTRY_CODE = "55"
ADDRESS_SUFFIX = "@c.us"
_TWO_DIGITS = re.compile(r"[0-9]{2}")


class RelayEventKind(str, Enum):
    QR = "qr"
    READY = "ready"
    DISCONNECTED = "disconnected"
    AUTH_FAILURE = "auth_failure"


@dataclass(slots=True)
class RelayEvent:
    session: str
    kind: RelayEventKind
    data: dict[str, Any] = field(default_factory=dict)


RelayListener = Callable[[RelayEvent], Awaitable[None]]


def format_address(contact: str, country_code: str = COUNTRY_CODE, suffix: str = ADDRESS_SUFFIX) -> Optional[str]:
    """Turn a phone number into a relay chat address.

    Returns None when the first two characters are not decimal digits.
    """
    prefix = contact[:2]
    if not _TWO_DIGITS.fullmatch(prefix):
        return None
    address = contact if prefix == country_code else country_code + contact
    if not address.endswith(suffix):
        address += suffix
    return address


class MessagingRelay(ABC):
    """One external messaging session.

    Session transitions arrive asynchronously and are published to the
    registered listeners as :class:`RelayEvent` values.
    """

    def __init__(self, session: str) -> None:
        self.session = session
        self._authenticated = False
        self._listeners: list[RelayListener] = []

    def add_listener(self, listener: RelayListener) -> None:
        self._listeners.append(listener)

    def is_authenticated(self) -> bool:
        return self._authenticated

    @abstractmethod
    async def initialize(self) -> None:
        """Start the session; raises RelayError with the underlying cause on failure."""
        raise NotImplementedError

    @abstractmethod
    async def force_re_pairing(self) -> None:
        """Tear the session down and start it again so a fresh pairing code is issued."""
        raise NotImplementedError

    @abstractmethod
    async def send(self, address: str, text: str) -> Optional[dict[str, Any]]:
        """Send ``text``; None when the address is malformed or the session is not authenticated."""
        raise NotImplementedError

    async def close(self) -> None:
        return None

    async def publish(self, kind: RelayEventKind, data: dict[str, Any] | None = None) -> None:
        if kind is RelayEventKind.READY:
            self._authenticated = True
        elif kind in (RelayEventKind.DISCONNECTED, RelayEventKind.AUTH_FAILURE):
            self._authenticated = False

        event = RelayEvent(session=self.session, kind=kind, data=data or {})
        results = await asyncio.gather(*(listener(event) for listener in self._listeners), return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logger.error(f"Relay listener failed for {kind.value}: {result}")
