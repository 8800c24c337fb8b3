"""Courier ("entregador") records keyed by userName."""

from __future__ import annotations

import logging
from typing import Any

from ...models.domain import Courier
from ...persistence.store import Collection, RecordStore
from ..records import RecordService
from .credentials import CredentialVerifier, UsernameOnlyVerifier

logger = logging.getLogger(__name__)


class CourierService(RecordService[Courier]):
    collection = Collection.COURIERS
    model = Courier

    def __init__(self, store: RecordStore, verifier: CredentialVerifier | None = None) -> None:
        super().__init__(store)
        self.verifier = verifier or UsernameOnlyVerifier()

    async def find_by_username(self, username: str) -> Courier | None:
        return await self._find_one({"userName": username})

    async def update_by_username(self, data: dict[str, Any]) -> Courier | None:
        """Update the courier identified by ``data['userName']``.

        Returns:
            The updated courier, or None when no courier has that userName.
        """
        username = data.get("userName")
        if not username:
            return None
        existing = await self.find_by_username(username)
        if existing is None:
            return None
        return await self.update_by_id(existing.id, data)

    async def authenticate(self, username: str, secret: str | None = None) -> Courier | None:
        courier = await self.find_by_username(username)
        if courier is None:
            return None
        if not self.verifier.verify(courier, secret):
            logger.info(f"Credential check rejected courier '{username}'")
            return None
        return courier
