"""Record store backends and file storage."""

from __future__ import annotations

from ..config import Settings
from .store import Collection, MemoryRecordStore, RecordStore, validate_document


def create_record_store(config: Settings) -> RecordStore:
    """Build the record store selected by ``config.record_store``."""
    if config.record_store == "supabase":
        from .supabase_store import SupabaseRecordStore

        return SupabaseRecordStore()
    return MemoryRecordStore()


__all__ = [
    "Collection",
    "MemoryRecordStore",
    "RecordStore",
    "create_record_store",
    "validate_document",
]
