"""Delivery report exports and run manifest."""

from .export import (
    REPORT_COLUMNS,
    deliveries_to_csv,
    deliveries_to_xlsx,
    delivery_rows,
    export_delivery_report,
    parse_value,
)
from .manifest import describe_run, list_runs, resolve_export_file

__all__ = [
    "REPORT_COLUMNS",
    "deliveries_to_csv",
    "deliveries_to_xlsx",
    "delivery_rows",
    "describe_run",
    "export_delivery_report",
    "list_runs",
    "parse_value",
    "resolve_export_file",
]
