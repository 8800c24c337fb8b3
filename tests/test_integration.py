from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

from dispatch_hub.config import Settings
from dispatch_hub.main import create_app
from dispatch_hub.models.domain import date_marker
from dispatch_hub.persistence import MemoryRecordStore
from dispatch_hub.services.deliveries import local_today
from dispatch_hub.services.messaging import GatewayRelay


def _settings(tmp_path: Path, **overrides) -> Settings:
    options = {
        "data_root": tmp_path / "data",
        "static_root": tmp_path / "missing",
        "relay_base_url": None,
        "relay_autostart": False,
    }
    options.update(overrides)
    return Settings(**options)


@pytest.fixture
def client(tmp_path: Path):
    app = create_app(_settings(tmp_path), store=MemoryRecordStore())
    with TestClient(app) as test_client:
        yield test_client


def _ping(websocket) -> None:
    websocket.send_json({"event": "message", "data": "ping"})
    assert websocket.receive_json()["event"] == "response"


def test_root_diagnostics(client: TestClient) -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["websocket"] == "/ws"


def test_health_endpoints(client: TestClient) -> None:
    assert client.get("/api/health").json() == {"status": "ok"}
    assert client.get("/api/health/store").json() == {
        "service": "record_store",
        "backend": "MemoryRecordStore",
        "healthy": True,
    }
    realtime = client.get("/api/health/realtime").json()
    assert realtime["connections"] == 0
    assert realtime["relay"] == {"configured": False, "session": None, "authenticated": False}


def test_new_delivery_reaches_every_client(client: TestClient) -> None:
    with client.websocket_connect("/ws") as first, client.websocket_connect("/ws") as second:
        _ping(first)
        _ping(second)

        first.send_json({"event": "Adicionar Entrega", "data": {"nome": "Ana", "valor": "R$ 12,00"}})

        for websocket in (first, second):
            frame = websocket.receive_json()
            assert frame["event"] == "Entregas do Dia"
            [delivery] = frame["data"]
            assert delivery["nome"] == "Ana"
            assert delivery["dia"] == date_marker(local_today())


def test_malformed_frames_keep_the_connection_open(client: TestClient) -> None:
    with client.websocket_connect("/ws") as websocket:
        websocket.send_text("not json")
        websocket.send_json({"data": {"missing": "event"}})
        websocket.send_json({"event": "Buscar Clientes"})

        assert websocket.receive_json() == {"event": "Buscar Clientes", "data": []}


def test_command_errors_return_an_envelope(client: TestClient) -> None:
    with client.websocket_connect("/ws") as websocket:
        websocket.send_json({"event": "Atualizar Entrega", "data": {"id": "404", "status": "entregue"}})

        frame = websocket.receive_json()
        assert frame["event"] == "error"
        assert frame["data"]["message"] == "Erro ao atualizar entrega"


def test_delivery_report_lifecycle(client: TestClient) -> None:
    with client.websocket_connect("/ws") as websocket:
        websocket.send_json({"event": "Adicionar Entrega", "data": {"nome": "Ana", "valor": "R$ 12,00"}})
        websocket.receive_json()

    created = client.post("/api/reports/deliveries")
    assert created.status_code == 201
    run = created.json()
    assert run["deliveryCount"] == 1
    assert run["totalValue"] == 12.0
    assert sorted(item["fileName"] for item in run["files"]) == [
        "deliveries.csv",
        "deliveries.xlsx",
        "summary.json",
    ]

    runs = client.get("/api/reports/runs").json()
    assert [item["id"] for item in runs] == [run["id"]]

    csv_file = next(item for item in run["files"] if item["fileName"] == "deliveries.csv")
    download = client.get(csv_file["downloadPath"])
    assert download.status_code == 200
    assert "Ana" in download.text

    assert client.get(f"/api/reports/exports/{run['id']}/missing.csv").status_code == 404


def test_report_requires_a_complete_date(client: TestClient) -> None:
    assert client.post("/api/reports/deliveries", params={"day": 15}).status_code == 422
    assert client.post("/api/reports/deliveries", params={"day": 31, "month": 2, "year": 2024}).status_code == 422

    filtered = client.post("/api/reports/deliveries", params={"day": 15, "month": 3, "year": 2024})
    assert filtered.status_code == 201
    assert filtered.json()["filter"] == {"dia": [15, 3, 2024]}


def test_webhook_without_relay(client: TestClient) -> None:
    response = client.post("/api/relay/webhook", json={"event": "session.status"})

    assert response.status_code == 404


def test_webhook_updates_relay_status(tmp_path: Path) -> None:
    relay = GatewayRelay(
        base_url="http://gateway.test",
        session="default",
        transport=httpx.MockTransport(lambda request: httpx.Response(404)),
    )
    app = create_app(_settings(tmp_path), store=MemoryRecordStore(), messaging_relay=relay)

    with TestClient(app) as client:
        response = client.post(
            "/api/relay/webhook",
            json={"event": "session.status", "session": "default", "payload": {"status": "WORKING"}},
        )

        assert response.json() == {"status": "ok"}
        assert client.get("/api/health/realtime").json()["relay"] == {
            "configured": True,
            "session": "default",
            "authenticated": True,
        }
