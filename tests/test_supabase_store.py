from types import SimpleNamespace

import pytest
from postgrest.exceptions import APIError

from dispatch_hub.errors import RecordValidationError, UpstreamError
from dispatch_hub.persistence import Collection
from dispatch_hub.persistence.supabase_store import SupabaseRecordStore


def _cell(value) -> str:
    if isinstance(value, list):
        return "{" + ",".join(str(item) for item in value) + "}"
    return str(value)


class FakeQuery:
    def __init__(self, table: "FakeTable", action: str, payload: dict | None = None) -> None:
        self.table = table
        self.action = action
        self.payload = payload
        self.filters: list[tuple[str, str]] = []
        self.row_limit: int | None = None

    def eq(self, column: str, value):
        self.filters.append((column, _cell(value)))
        return self

    def limit(self, count: int):
        self.row_limit = count
        return self

    def execute(self):
        self.table.executed.append((self.action, list(self.filters), self.payload))
        for column, value in self.filters:
            if column == "id" and not value.isdigit():
                raise APIError({"code": "22P02", "message": f'invalid input syntax for type uuid: "{value}"'})
        if self.action == "insert":
            row = {"id": len(self.table.rows) + 1, **self.payload, "created_at": "2024-03-15T10:00:00+00:00"}
            self.table.rows.append(row)
            return SimpleNamespace(data=[dict(row)])

        matched = [row for row in self.table.rows if all(_cell(row.get(c)) == v for c, v in self.filters)]
        if self.action == "update":
            for row in matched:
                row.update(self.payload)
        elif self.action == "delete":
            self.table.rows[:] = [row for row in self.table.rows if row not in matched]
        if self.row_limit is not None:
            matched = matched[: self.row_limit]
        return SimpleNamespace(data=[dict(row) for row in matched])


class FakeTable:
    def __init__(self) -> None:
        self.rows: list[dict] = []
        self.executed: list[tuple] = []

    def select(self, columns: str) -> FakeQuery:
        return FakeQuery(self, "select")

    def insert(self, payload: dict) -> FakeQuery:
        return FakeQuery(self, "insert", payload)

    def update(self, payload: dict) -> FakeQuery:
        return FakeQuery(self, "update", payload)

    def delete(self) -> FakeQuery:
        return FakeQuery(self, "delete")


class FakeClient:
    def __init__(self) -> None:
        self.tables: dict[str, FakeTable] = {}

    def table(self, name: str) -> FakeTable:
        return self.tables.setdefault(name, FakeTable())


class BrokenClient:
    def table(self, name: str):
        raise ConnectionError("network unreachable")


@pytest.mark.asyncio
async def test_insert_maps_identifier_and_bookkeeping() -> None:
    store = SupabaseRecordStore(FakeClient())

    document = await store.insert(Collection.CUSTOMERS, {"nome": "Ana", "id": "ignored"})

    assert document == {"_id": "1", "nome": "Ana", "_created_at": "2024-03-15T10:00:00+00:00"}


@pytest.mark.asyncio
async def test_array_filters_use_postgres_literals() -> None:
    client = FakeClient()
    store = SupabaseRecordStore(client)
    await store.insert(Collection.DELIVERIES, {"nome": "Ana", "dia": [15, 3, 2024]})
    await store.insert(Collection.DELIVERIES, {"nome": "Bia", "dia": [16, 3, 2024]})

    found = await store.find(Collection.DELIVERIES, {"dia": [15, 3, 2024]})

    assert [document["nome"] for document in found] == ["Ana"]
    assert client.tables["Entregas"].executed[-1][1] == [("dia", "{15,3,2024}")]


@pytest.mark.asyncio
async def test_update_and_delete_by_id() -> None:
    store = SupabaseRecordStore(FakeClient())
    document = await store.insert(Collection.COURIERS, {"userName": "joao"})

    updated = await store.update_by_id(Collection.COURIERS, document["_id"], {"status": "ocupado"})
    missing = await store.update_by_id(Collection.COURIERS, "99", {"status": "ocupado"})

    assert updated["status"] == "ocupado"
    assert missing is None
    assert await store.delete_by_id(Collection.COURIERS, document["_id"]) is True
    assert await store.find(Collection.COURIERS) == []


@pytest.mark.asyncio
async def test_schema_is_checked_before_the_round_trip() -> None:
    client = FakeClient()
    store = SupabaseRecordStore(client)

    with pytest.raises(RecordValidationError):
        await store.insert(Collection.DELIVERIES, {"horario": [1, 2, 3]})
    assert "Entregas" not in client.tables


@pytest.mark.asyncio
async def test_client_failures_become_upstream_errors() -> None:
    store = SupabaseRecordStore(BrokenClient())

    with pytest.raises(UpstreamError) as excinfo:
        await store.find(Collection.CUSTOMERS)
    assert "network unreachable" in excinfo.value.detail


def test_requires_configured_client(monkeypatch: pytest.MonkeyPatch) -> None:
    from dispatch_hub.persistence import supabase_store

    monkeypatch.setattr(supabase_store, "get_supabase_client", lambda: None)
    with pytest.raises(ValueError):
        SupabaseRecordStore()


@pytest.mark.asyncio
async def test_malformed_ids_match_nothing() -> None:
    store = SupabaseRecordStore(FakeClient())
    await store.insert(Collection.DELIVERIES, {"nome": "Ana"})

    assert await store.update_by_id(Collection.DELIVERIES, "<nonexistent>", {"status": "entregue"}) is None
    assert await store.update_by_id(Collection.DELIVERIES, "<nonexistent>", {}) is None
    assert await store.delete_by_id(Collection.DELIVERIES, "<nonexistent>") is False


@pytest.mark.asyncio
async def test_other_database_errors_still_fail() -> None:
    class RejectingTable(FakeTable):
        def update(self, payload: dict):
            raise APIError({"code": "42501", "message": "permission denied for table Entregas"})

    client = FakeClient()
    client.tables["Entregas"] = RejectingTable()
    store = SupabaseRecordStore(client)

    with pytest.raises(UpstreamError) as excinfo:
        await store.update_by_id(Collection.DELIVERIES, "1", {"status": "entregue"})
    assert "permission denied" in excinfo.value.detail
