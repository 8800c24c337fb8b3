"""Shared translation between store documents and domain records."""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from ..models.domain import Record
from ..persistence.store import Collection, RecordStore

RecordT = TypeVar("RecordT", bound=Record)


class RecordService(Generic[RecordT]):
    """Find/create/update operations common to every record kind."""

    collection: Collection
    model: type[RecordT]

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    async def find_all(self) -> list[RecordT]:
        documents = await self.store.find(self.collection)
        return [self._to_record(document) for document in documents]

    async def create(self, data: dict[str, Any]) -> RecordT:
        document = await self.store.insert(self.collection, without_id(data))
        return self._to_record(document)

    async def update_by_id(self, record_id: str, data: dict[str, Any]) -> RecordT | None:
        """Update the record and return it, or ``None`` when ``record_id`` is unknown."""
        document = await self.store.update_by_id(self.collection, record_id, without_id(data))
        if document is None:
            return None
        return self._to_record(document)

    async def _find_one(self, filters: dict[str, Any]) -> RecordT | None:
        document = await self.store.find_one(self.collection, filters)
        if document is None:
            return None
        return self._to_record(document)

    def _to_record(self, document: dict[str, Any]) -> RecordT:
        public = {key: value for key, value in document.items() if not key.startswith("_")}
        if "_id" in document:
            public["id"] = str(document["_id"])
        return self.model.model_validate(public)


def without_id(data: dict[str, Any]) -> dict[str, Any]:
    """Copy of ``data`` without the ``id`` field; ids are routing keys, never persisted."""
    return {key: value for key, value in data.items() if key != "id"}
