"""Report run manifest helpers."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional

from ...config import settings
from ...persistence.filesystem import RUN_TIMESTAMP_FORMAT, FileStorage


def list_runs(storage: FileStorage, *, limit: Optional[int] = None) -> List[dict]:
    runs: List[dict] = []
    for run_dir in storage.run_directories():
        runs.append(describe_run(run_dir))
        if limit and len(runs) >= limit:
            break
    return runs


def describe_run(run_dir: Path) -> dict:
    name_parts = run_dir.name.split("_")
    summary_data = _load_summary(run_dir / "summary.json") or {}
    metadata = summary_data.get("metadata") if isinstance(summary_data.get("metadata"), dict) else {}

    return {
        "id": run_dir.name,
        "run_type": summary_data.get("run_type") or name_parts[0],
        "created_at": _parse_timestamp(name_parts[-1]),
        "status": _coerce_status(metadata),
        "delivery_count": summary_data.get("delivery_count") or 0,
        "total_value": summary_data.get("total_value"),
        "filter": summary_data.get("filter"),
        "files": [_build_file_record(path, run_dir) for path in sorted(run_dir.glob("*")) if path.is_file()],
    }


def resolve_export_file(storage: FileStorage, run_id: str, filename: str) -> Path:
    return storage.resolve(run_id, filename)


def _build_file_record(file_path: Path, run_dir: Path) -> dict:
    return {
        "file_name": file_path.name,
        "file_type": file_path.suffix[1:].upper() if file_path.suffix else "FILE",
        "size_bytes": file_path.stat().st_size,
        "download_path": f"{settings.api_prefix}/reports/exports/{run_dir.name}/{file_path.name}",
    }


def _load_summary(path: Path) -> Optional[dict]:
    if not path.exists():
        return None
    try:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except json.JSONDecodeError:
        return None


def _parse_timestamp(value: str) -> Optional[datetime]:
    try:
        return datetime.strptime(value, RUN_TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        return None


def _coerce_status(metadata: Any) -> str:
    if isinstance(metadata, dict):
        status = metadata.get("status")
        if isinstance(status, str) and status.strip():
            return status
    return "complete"
