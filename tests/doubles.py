"""Test doubles shared across the suite."""

from datetime import date
from typing import Any, Optional

from dispatch_hub.errors import RelayError
from dispatch_hub.services.messaging import MessagingRelay, RelayEventKind, format_address

TODAY = date(2024, 3, 15)


class FakeSocket:
    """Collects every frame the hub sends to one connection."""

    def __init__(self) -> None:
        self.frames: list[dict] = []

    async def send_json(self, data: Any) -> None:
        self.frames.append(data)

    def events(self) -> list[str]:
        return [frame["event"] for frame in self.frames]

    def payloads(self, event: str) -> list[Any]:
        return [frame["data"] for frame in self.frames if frame["event"] == event]

    def last(self, event: str) -> Any:
        return self.payloads(event)[-1]


class ClosedSocket:
    async def send_json(self, data: Any) -> None:
        raise RuntimeError("Cannot call send once a close message has been sent.")


class FakeRelay(MessagingRelay):
    """In-memory relay that pairs on demand and records sent messages."""

    def __init__(self, session: str = "default") -> None:
        super().__init__(session)
        self.initialize_calls = 0
        self.repairing_calls = 0
        self.fail_with: Optional[str] = None
        self.sent: list[tuple[str, str]] = []

    async def initialize(self) -> None:
        self.initialize_calls += 1
        if self.fail_with:
            raise RelayError(self.fail_with)
        await self.publish(RelayEventKind.QR, {"qr": f"qr-{self.initialize_calls}"})

    async def force_re_pairing(self) -> None:
        self.repairing_calls += 1
        if self.fail_with:
            raise RelayError(self.fail_with)
        self._authenticated = False
        await self.publish(RelayEventKind.QR, {"qr": f"qr-repair-{self.repairing_calls}"})

    async def send(self, address: str, text: str) -> Optional[dict]:
        chat_id = format_address(address)
        if chat_id is None or not self._authenticated:
            return None
        if self.fail_with:
            raise RelayError(self.fail_with)
        self.sent.append((chat_id, text))
        return {"id": f"msg-{len(self.sent)}", "chatId": chat_id}
