"""Record store contract and the in-process backend.

Documents returned by a store carry the store-assigned identifier under
``_id``; every other key starting with ``_`` is store bookkeeping.
"""

from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import ValidationError

from ..errors import RecordValidationError
from ..models.domain import Courier, Customer, Delivery, Record

logger = logging.getLogger(__name__)


class Collection(str, Enum):
    CUSTOMERS = "Clientes"
    DELIVERIES = "Entregas"
    COURIERS = "Usuarios"


COLLECTION_MODELS: dict[Collection, type[Record]] = {
    Collection.CUSTOMERS: Customer,
    Collection.DELIVERIES: Delivery,
    Collection.COURIERS: Courier,
}


def validate_document(collection: Collection, document: dict[str, Any]) -> dict[str, Any]:
    """Check ``document`` against the collection schema and return the fields to write.

    Only the fields present in ``document`` are returned, so the result is
    usable both for inserts and for partial updates. Unknown fields and ``id``
    are dropped.
    """
    model = COLLECTION_MODELS[collection]
    try:
        record = model.model_validate(document)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        raise RecordValidationError(f"{collection.value} validation failed: {problems}") from exc
    return record.model_dump(mode="json", by_alias=True, exclude_unset=True, exclude={"id"})


class RecordStore(ABC):
    """Asynchronous document store holding one collection per record kind."""

    @abstractmethod
    async def find(self, collection: Collection, filters: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        raise NotImplementedError

    @abstractmethod
    async def find_one(self, collection: Collection, filters: dict[str, Any]) -> dict[str, Any] | None:
        raise NotImplementedError

    @abstractmethod
    async def insert(self, collection: Collection, document: dict[str, Any]) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    async def update_by_id(
        self, collection: Collection, record_id: str, changes: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Apply ``changes`` to the record and return it, or ``None`` when the id is unknown."""
        raise NotImplementedError

    @abstractmethod
    async def delete_by_id(self, collection: Collection, record_id: str) -> bool:
        raise NotImplementedError

    async def ping(self) -> bool:
        await self.find_one(Collection.COURIERS, {})
        return True


class MemoryRecordStore(RecordStore):
    """Keeps every collection in process memory, in insertion order."""

    def __init__(self) -> None:
        self._collections: dict[Collection, dict[str, dict[str, Any]]] = {
            collection: {} for collection in Collection
        }

    async def find(self, collection: Collection, filters: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        filters = filters or {}
        return [
            copy.deepcopy(document)
            for document in self._collections[collection].values()
            if _matches(document, filters)
        ]

    async def find_one(self, collection: Collection, filters: dict[str, Any]) -> dict[str, Any] | None:
        for document in self._collections[collection].values():
            if _matches(document, filters):
                return copy.deepcopy(document)
        return None

    async def insert(self, collection: Collection, document: dict[str, Any]) -> dict[str, Any]:
        fields = validate_document(collection, document)
        now = _now()
        stored = {"_id": uuid4().hex, **fields, "_created_at": now, "_updated_at": now}
        self._collections[collection][stored["_id"]] = stored
        logger.debug(f"Inserted {collection.value} record {stored['_id']}")
        return copy.deepcopy(stored)

    async def update_by_id(
        self, collection: Collection, record_id: str, changes: dict[str, Any]
    ) -> dict[str, Any] | None:
        existing = self._collections[collection].get(record_id)
        if existing is None:
            return None
        fields = validate_document(collection, changes)
        existing.update(fields)
        existing["_updated_at"] = _now()
        return copy.deepcopy(existing)

    async def delete_by_id(self, collection: Collection, record_id: str) -> bool:
        return self._collections[collection].pop(record_id, None) is not None


def _matches(document: dict[str, Any], filters: dict[str, Any]) -> bool:
    return all(document.get(key) == value for key, value in filters.items())


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()
