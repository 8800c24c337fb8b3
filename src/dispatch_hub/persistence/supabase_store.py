"""Record store backed by Supabase tables."""

from __future__ import annotations

import logging
from typing import Any, Callable

from fastapi.concurrency import run_in_threadpool
from postgrest.exceptions import APIError
from supabase import Client

from ..db.supabase import get_supabase_client
from ..errors import UpstreamError
from .store import Collection, RecordStore, validate_document

logger = logging.getLogger(__name__)

_BOOKKEEPING_COLUMNS = ("created_at", "updated_at")

# Postgres invalid_text_representation, raised when an id is not a valid uuid.
_INVALID_ID_CODE = "22P02"


class SupabaseRecordStore(RecordStore):
    """Maps each collection onto a table of the same name.

    The synchronous Supabase client runs in the threadpool so the event loop
    keeps serving other connections while a query is in flight.
    """

    def __init__(self, client: Client | None = None) -> None:
        self.client = client or get_supabase_client()
        if self.client is None:
            raise ValueError("Supabase is not configured. Set DISPATCH_SUPABASE_URL and DISPATCH_SUPABASE_KEY.")

    async def find(self, collection: Collection, filters: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        def query():
            builder = self._apply_filters(self.client.table(collection.value).select("*"), filters or {})
            return builder.execute()

        response = await self._execute(collection, "find", query)
        return [_to_document(row) for row in (response.data or [])]

    async def find_one(self, collection: Collection, filters: dict[str, Any]) -> dict[str, Any] | None:
        def query():
            builder = self._apply_filters(self.client.table(collection.value).select("*"), filters)
            return builder.limit(1).execute()

        response = await self._execute(collection, "find_one", query)
        rows = response.data or []
        return _to_document(rows[0]) if rows else None

    async def insert(self, collection: Collection, document: dict[str, Any]) -> dict[str, Any]:
        fields = validate_document(collection, document)
        response = await self._execute(
            collection, "insert", lambda: self.client.table(collection.value).insert(fields).execute()
        )
        rows = response.data or []
        if not rows:
            raise UpstreamError(f"Insert into {collection.value} returned no rows")
        return _to_document(rows[0])

    async def update_by_id(
        self, collection: Collection, record_id: str, changes: dict[str, Any]
    ) -> dict[str, Any] | None:
        fields = validate_document(collection, changes)
        if not fields:
            response = await self._execute(
                collection,
                "find_one",
                lambda: self.client.table(collection.value).select("*").eq("id", record_id).limit(1).execute(),
                by_id=True,
            )
        else:
            response = await self._execute(
                collection,
                "update",
                lambda: self.client.table(collection.value).update(fields).eq("id", record_id).execute(),
                by_id=True,
            )
        rows = response.data if response is not None else []
        return _to_document(rows[0]) if rows else None

    async def delete_by_id(self, collection: Collection, record_id: str) -> bool:
        response = await self._execute(
            collection,
            "delete",
            lambda: self.client.table(collection.value).delete().eq("id", record_id).execute(),
            by_id=True,
        )
        return response is not None and bool(response.data)

    @staticmethod
    def _apply_filters(builder, filters: dict[str, Any]):
        for key, value in filters.items():
            if isinstance(value, list):
                # Postgres array literal, e.g. {19,10,2026}
                value = "{" + ",".join(str(item) for item in value) + "}"
            builder = builder.eq(key, value)
        return builder

    @staticmethod
    async def _execute(
        collection: Collection, operation: str, call: Callable[[], Any], *, by_id: bool = False
    ) -> Any:
        """Run ``call`` in the threadpool.

        With ``by_id`` an id the table cannot parse matches no row and None is
        returned instead of raising.
        """
        try:
            return await run_in_threadpool(call)
        except Exception as e:
            if by_id and isinstance(e, APIError) and e.code == _INVALID_ID_CODE:
                logger.info(f"Supabase {operation} on {collection.value}: malformed id, no match")
                return None
            logger.error(f"Supabase {operation} on {collection.value} failed: {e}")
            raise UpstreamError(f"Falha no banco de dados ({operation} {collection.value}): {e}") from e


def _to_document(row: dict[str, Any]) -> dict[str, Any]:
    document = dict(row)
    if "id" in document:
        document["_id"] = str(document.pop("id"))
    for column in _BOOKKEEPING_COLUMNS:
        if column in document:
            document[f"_{column}"] = document.pop(column)
    return document
