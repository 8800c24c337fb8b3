import csv
import io
import json
from datetime import date
from pathlib import Path

import pytest
from openpyxl import load_workbook

from dispatch_hub.models.domain import Delivery
from dispatch_hub.persistence.filesystem import FileStorage
from dispatch_hub.services.deliveries import DeliveryService
from dispatch_hub.services.reports import (
    REPORT_COLUMNS,
    deliveries_to_csv,
    deliveries_to_xlsx,
    delivery_rows,
    describe_run,
    export_delivery_report,
    list_runs,
    parse_value,
)

from doubles import TODAY


def _delivery(**fields) -> Delivery:
    return Delivery.model_validate(fields)


def test_delivery_rows_flatten_dates_and_coordinates() -> None:
    delivery = _delivery(
        id="7",
        dia=[5, 3, 2024],
        horario=[9, 5.5],
        nome="Ana",
        valor="R$ 25,00",
        coordenadas={"latitude": -8.05, "longitude": -34.9},
    )

    [row] = delivery_rows([delivery])

    assert list(row) == REPORT_COLUMNS
    assert row["dia"] == "05/03/2024"
    assert row["horario"] == "09:05"
    assert row["latitude"] == -8.05
    assert row["longitude"] == -34.9
    assert row["entregador"] is None


def test_delivery_rows_without_schedule() -> None:
    [row] = delivery_rows([_delivery(nome="Bia")])

    assert row["dia"] == ""
    assert row["horario"] == ""
    assert row["latitude"] is None


@pytest.mark.parametrize(
    "text, expected",
    [
        ("R$ 1.234,50", 1234.5),
        ("25,00", 25.0),
        ("25.5", 25.5),
        ("", None),
        (None, None),
        ("a combinar", None),
    ],
)
def test_parse_value(text, expected) -> None:
    assert parse_value(text) == expected


def test_csv_and_xlsx_share_columns() -> None:
    rows = delivery_rows([_delivery(id="1", nome="Ana", valor="R$ 10,00")])

    parsed = list(csv.DictReader(io.StringIO(deliveries_to_csv(rows))))
    sheet = load_workbook(io.BytesIO(deliveries_to_xlsx(rows))).active

    assert parsed[0]["nome"] == "Ana"
    assert parsed[0]["entregador"] == ""
    assert sheet.title == "Entregas"
    assert [cell.value for cell in sheet[1]] == REPORT_COLUMNS
    assert sheet.cell(row=2, column=REPORT_COLUMNS.index("valor") + 1).value == "R$ 10,00"


@pytest.mark.asyncio
async def test_export_writes_run_artifacts(tmp_path: Path, deliveries: DeliveryService) -> None:
    await deliveries.create({"nome": "Ana", "valor": "R$ 10,00", "status": "entregue"})
    await deliveries.create({"nome": "Bia", "valor": "R$ 5,50"})
    await deliveries.create({"nome": "Caio", "valor": "a combinar", "dia": [1, 1, 2024]})
    storage = FileStorage(root=tmp_path)

    run_id = await export_delivery_report(deliveries, storage, day=TODAY)

    run_dir = storage.output_root / run_id
    assert sorted(path.name for path in run_dir.iterdir()) == ["deliveries.csv", "deliveries.xlsx", "summary.json"]
    summary = json.loads((run_dir / "summary.json").read_text(encoding="utf-8"))
    assert summary["delivery_count"] == 2
    assert summary["total_value"] == 15.5
    assert summary["filter"] == {"dia": [TODAY.day, TODAY.month, TODAY.year]}
    assert summary["status_counts"] == {"entregue": 1, "sem status": 1}


@pytest.mark.asyncio
async def test_full_history_export_counts_unparsed_values(tmp_path: Path, deliveries: DeliveryService) -> None:
    await deliveries.create({"nome": "Ana", "valor": "a combinar", "dia": [1, 1, 2024]})
    await deliveries.create({"nome": "Bia", "valor": "R$ 3,00"})
    storage = FileStorage(root=tmp_path)

    run_id = await export_delivery_report(deliveries, storage)

    run = describe_run(storage.output_root / run_id)
    assert run["delivery_count"] == 2
    assert run["total_value"] == 3.0
    assert run["filter"] is None
    assert run["status"] == "complete"
    assert run["created_at"] is not None


def test_list_runs_reads_manifest(tmp_path: Path) -> None:
    storage = FileStorage(root=tmp_path)
    first = storage.output_root / "deliveries_20240314T100000000000Z"
    second = storage.output_root / "deliveries_20240315T100000000000Z"
    first.mkdir()
    second.mkdir()
    storage.write_json(second / "summary.json", {"run_type": "deliveries", "delivery_count": 4, "total_value": 80.0})
    storage.write_text(second / "deliveries.csv", "id\n")

    runs = list_runs(storage)
    limited = list_runs(storage, limit=1)

    assert [run["id"] for run in runs] == [second.name, first.name]
    assert [run["id"] for run in limited] == [second.name]
    assert runs[0]["created_at"].date() == date(2024, 3, 15)
    assert runs[0]["files"] == [
        {
            "file_name": "deliveries.csv",
            "file_type": "CSV",
            "size_bytes": 3,
            "download_path": f"/api/reports/exports/{second.name}/deliveries.csv",
        }
    ]
    assert runs[1]["delivery_count"] == 0
    assert runs[1]["files"] == []


def test_describe_run_accepts_unknown_date() -> None:
    run = describe_run(Path("/nonexistent/deliveries_garbage"))

    assert run["created_at"] is None
    assert run["run_type"] == "deliveries"
