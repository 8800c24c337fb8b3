"""Delivery history export to JSON/CSV/XLSX artifacts."""

from __future__ import annotations

import csv
import io
import logging
from collections import Counter
from datetime import date, datetime, timezone
from typing import Optional, Sequence

from openpyxl import Workbook

from ...models.domain import Delivery, date_marker
from ...persistence.filesystem import FileStorage
from ..deliveries import DeliveryService

logger = logging.getLogger(__name__)

RUN_TYPE = "deliveries"

REPORT_COLUMNS = [
    "id",
    "dia",
    "horario",
    "nome",
    "status",
    "telefone",
    "cidade",
    "bairro",
    "rua",
    "numero",
    "valor",
    "pagamento",
    "statusPagamento",
    "entregador",
    "volume",
    "observacoes",
    "statusMensagem",
    "latitude",
    "longitude",
]


def delivery_rows(deliveries: Sequence[Delivery]) -> list[dict]:
    """Flatten deliveries into one row per delivery with printable date and time."""
    rows = []
    for delivery in deliveries:
        wire = delivery.to_wire()
        coordinates = wire.pop("coordenadas", None) or {}
        day = wire.get("dia")
        time = wire.get("horario")
        wire["dia"] = "{:02d}/{:02d}/{:04d}".format(*day) if day else ""
        wire["horario"] = "{:02d}:{:02d}".format(int(time[0]), int(time[1])) if time else ""
        wire["latitude"] = coordinates.get("latitude")
        wire["longitude"] = coordinates.get("longitude")
        rows.append({column: wire.get(column) for column in REPORT_COLUMNS})
    return rows


def deliveries_to_csv(rows: Sequence[dict]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=REPORT_COLUMNS)
    writer.writeheader()
    for row in rows:
        writer.writerow({key: "" if value is None else value for key, value in row.items()})
    return buffer.getvalue()


def deliveries_to_xlsx(rows: Sequence[dict]) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Entregas"
    sheet.append(REPORT_COLUMNS)
    for row in rows:
        sheet.append([row.get(column) for column in REPORT_COLUMNS])
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def parse_value(text: Optional[str]) -> Optional[float]:
    """Parse a monetary text such as ``"R$ 1.234,50"`` or ``"25.5"``."""
    if not text:
        return None
    cleaned = text.replace("R$", "").replace(" ", "").strip()
    if "," in cleaned:
        cleaned = cleaned.replace(".", "").replace(",", ".")
    try:
        return float(cleaned)
    except ValueError:
        return None


def summarize(deliveries: Sequence[Delivery], day: Optional[date]) -> dict:
    values = [parse_value(delivery.value) for delivery in deliveries]
    return {
        "run_type": RUN_TYPE,
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "filter": {"dia": date_marker(day)} if day else None,
        "delivery_count": len(deliveries),
        "total_value": round(sum(value for value in values if value is not None), 2),
        "unparsed_values": sum(1 for delivery, value in zip(deliveries, values) if delivery.value and value is None),
        "status_counts": dict(Counter(delivery.status or "sem status" for delivery in deliveries)),
        "payment_status_counts": dict(
            Counter(delivery.payment_status or "sem status" for delivery in deliveries)
        ),
        "courier_counts": dict(Counter(delivery.courier or "sem entregador" for delivery in deliveries)),
        "metadata": {"status": "complete"},
    }


async def export_delivery_report(
    service: DeliveryService,
    storage: FileStorage,
    *,
    day: Optional[date] = None,
) -> str:
    """Write summary.json, deliveries.csv and deliveries.xlsx into a new run directory.

    Args:
        service: Source of delivery records.
        storage: Output location.
        day: Restrict the report to one date; the full history when omitted.

    Returns:
        The run identifier (run directory name).
    """
    deliveries = await (service.find_by_day(day) if day else service.find_all())
    rows = delivery_rows(deliveries)

    run_dir = storage.make_run_directory(RUN_TYPE)
    storage.write_json(run_dir / "summary.json", summarize(deliveries, day))
    storage.write_text(run_dir / "deliveries.csv", deliveries_to_csv(rows))
    storage.write_bytes(run_dir / "deliveries.xlsx", deliveries_to_xlsx(rows))

    logger.info(f"Exported {len(rows)} deliveries to {run_dir}")
    return run_dir.name
