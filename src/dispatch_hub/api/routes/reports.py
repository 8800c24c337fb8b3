"""Delivery report endpoints."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, HTTPException, Path, Query, Request, status
from fastapi.responses import FileResponse

from ...errors import UpstreamError
from ...persistence.filesystem import FileStorage
from ...schemas.reports import ReportRunModel
from ...services.reports import describe_run, export_delivery_report, list_runs, resolve_export_file

router = APIRouter(prefix="/reports", tags=["reports"])


def _storage(request: Request) -> FileStorage:
  return request.app.state.storage


@router.post("/deliveries", response_model=ReportRunModel, status_code=status.HTTP_201_CREATED)
async def create_delivery_report(
  request: Request,
  day: int | None = Query(default=None, ge=1, le=31, description="Day of month to report on"),
  month: int | None = Query(default=None, ge=1, le=12, description="Month to report on"),
  year: int | None = Query(default=None, ge=2000, description="Year to report on"),
) -> ReportRunModel:
  report_day = None
  provided = [value is not None for value in (day, month, year)]
  if any(provided):
    if not all(provided):
      raise HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail="day, month and year must be given together",
      )
    try:
      report_day = date(year, month, day)
    except ValueError as exc:
      raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc

  storage = _storage(request)
  try:
    run_id = await export_delivery_report(request.app.state.hub.deliveries, storage, day=report_day)
  except UpstreamError as exc:
    raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.detail) from exc
  return ReportRunModel.model_validate(describe_run(storage.output_root / run_id))


@router.get("/runs", response_model=list[ReportRunModel])
def get_report_runs(
  request: Request,
  limit: int | None = Query(default=None, gt=0, description="Maximum number of runs to return"),
) -> list[ReportRunModel]:
  runs = list_runs(_storage(request), limit=limit)
  return [ReportRunModel.model_validate(item) for item in runs]


@router.get(
  "/exports/{run_id}/{file_name:path}",
  response_class=FileResponse,
  status_code=status.HTTP_200_OK,
)
def download_export_file(
  request: Request,
  run_id: str = Path(..., description="Run directory identifier"),
  file_name: str = Path(..., description="File name within the run directory"),
) -> FileResponse:
  try:
    file_path = resolve_export_file(_storage(request), run_id, file_name)
  except FileNotFoundError as exc:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

  media_type = _get_media_type(file_path)

  return FileResponse(
    path=file_path,
    filename=file_path.name,
    media_type=media_type,
    headers={"Content-Disposition": f'attachment; filename="{file_path.name}"'},
  )


def _get_media_type(file_path) -> str:
  """Determine MIME type based on file extension."""
  suffix = file_path.suffix.lower()
  mime_types = {
    ".csv": "text/csv",
    ".json": "application/json",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
  }
  return mime_types.get(suffix, "application/octet-stream")
