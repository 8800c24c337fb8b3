"""Delivery records and the "today's deliveries" view."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Callable
from zoneinfo import ZoneInfo

from ...config import settings
from ...models.domain import Delivery, date_marker, is_date_marker
from ...persistence.store import Collection, RecordStore
from ..records import RecordService

logger = logging.getLogger(__name__)


def local_today() -> date:
    """Today's date in the configured timezone, or server local time."""
    if settings.timezone:
        return datetime.now(ZoneInfo(settings.timezone)).date()
    return date.today()


class DeliveryService(RecordService[Delivery]):
    collection = Collection.DELIVERIES
    model = Delivery

    def __init__(self, store: RecordStore, today: Callable[[], date] = local_today) -> None:
        super().__init__(store)
        self.today = today

    async def find_today(self) -> list[Delivery]:
        """Deliveries whose ``dia`` marker equals today's ``[day, month, year]``."""
        documents = await self.store.find(self.collection, {"dia": date_marker(self.today())})
        return [self._to_record(document) for document in documents]

    async def find_by_name(self, name: str) -> list[Delivery]:
        documents = await self.store.find(self.collection, {"nome": name})
        return [self._to_record(document) for document in documents]

    async def find_by_day(self, day: date) -> list[Delivery]:
        documents = await self.store.find(self.collection, {"dia": date_marker(day)})
        return [self._to_record(document) for document in documents]

    async def create(self, data: dict[str, Any]) -> Delivery:
        """Create a delivery, stamping today's date when ``dia`` is absent or malformed."""
        payload = dict(data)
        if not is_date_marker(payload.get("dia")):
            payload["dia"] = date_marker(self.today())
        return await super().create(payload)

    async def delete_by_id(self, record_id: str) -> bool:
        deleted = await self.store.delete_by_id(self.collection, record_id)
        if deleted:
            logger.info(f"Deleted delivery {record_id}")
        return deleted
