"""Delivery report API schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class ReportFileModel(BaseModel):
  file_name: str = Field(..., alias='fileName')
  file_type: str = Field(..., alias='fileType')
  size_bytes: int = Field(..., alias='sizeBytes')
  download_path: str = Field(..., alias='downloadPath')

  class Config:
    populate_by_name = True


class ReportRunModel(BaseModel):
  id: str
  run_type: str = Field(..., alias='runType')
  created_at: Optional[datetime] = Field(None, alias='createdAt')
  status: str
  delivery_count: int = Field(0, alias='deliveryCount')
  total_value: Optional[float] = Field(None, alias='totalValue')
  filter: Optional[dict] = None
  files: List[ReportFileModel] = Field(default_factory=list)

  class Config:
    populate_by_name = True
