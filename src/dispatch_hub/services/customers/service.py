"""Customer records, looked up and upserted by name."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from ...models.domain import Customer
from ...persistence.store import Collection, RecordStore
from ..records import RecordService

logger = logging.getLogger(__name__)


class CustomerService(RecordService[Customer]):
    collection = Collection.CUSTOMERS
    model = Customer

    def __init__(self, store: RecordStore) -> None:
        super().__init__(store)
        self._name_locks: dict[str, asyncio.Lock] = {}

    async def find_by_name(self, name: str) -> Customer | None:
        return await self._find_one({"nome": name})

    async def upsert_by_name(self, data: dict[str, Any]) -> Customer:
        """Update the customer named ``data['nome']`` or create it when absent.

        Upserts for the same name run one at a time, so concurrent commands
        never create the customer twice.
        """
        name = data.get("nome")
        if not name:
            raise ValueError("Customer name is required for upsert.")

        async with self._name_locks.setdefault(name, asyncio.Lock()):
            return await self._upsert(name, data)

    async def _upsert(self, name: str, data: dict[str, Any]) -> Customer:
        existing = await self.find_by_name(name)
        if existing is None:
            logger.info(f"Customer '{name}' not found, creating")
            return await self.create(data)

        updated = await self.update_by_id(existing.id, data)
        if updated is None:
            # Removed between lookup and update.
            logger.warning(f"Customer '{name}' disappeared during update, creating")
            return await self.create(data)
        return updated
