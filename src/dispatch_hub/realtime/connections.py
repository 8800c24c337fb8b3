"""Live connection registry and the relay-interest binding."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol
from uuid import uuid4


class Transport(Protocol):
    async def send_json(self, data: Any) -> None: ...


@dataclass
class Connection:
    """One connected observer; process-local and never persisted."""

    transport: Transport
    connection_id: str = field(default_factory=lambda: uuid4().hex)
    connected_at: float = field(default_factory=time.time)

    async def send(self, event: str, data: Any) -> None:
        await self.transport.send_json({"event": event, "data": data})


class ConnectionRegistry:
    def __init__(self) -> None:
        self._connections: dict[str, Connection] = {}

    def add(self, connection: Connection) -> None:
        self._connections[connection.connection_id] = connection

    def remove(self, connection_id: str) -> Optional[Connection]:
        return self._connections.pop(connection_id, None)

    def get(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    def all(self) -> list[Connection]:
        return list(self._connections.values())

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._connections


class RelayInterest:
    """Maps a relay session to the connection that last registered for its events.

    A binding outlives its connection; lookups for a departed connection
    simply miss in the registry.
    """

    def __init__(self) -> None:
        self._bindings: dict[str, str] = {}

    def register(self, session: str, connection_id: str) -> None:
        self._bindings[session] = connection_id

    def connection_for(self, session: str) -> Optional[str]:
        return self._bindings.get(session)
