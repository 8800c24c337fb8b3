"""Envelopes sent over the realtime channel."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field


def utc_timestamp() -> str:
  """Current time as ISO-8601 UTC with a ``Z`` suffix."""
  return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


class ErrorEnvelope(BaseModel):
  message: str
  details: Optional[str] = Field(None, alias='detalhes')
  timestamp: str = Field(default_factory=utc_timestamp)

  class Config:
    populate_by_name = True

  def to_wire(self) -> dict[str, Any]:
    return self.model_dump(by_alias=True, exclude_none=True)


class RelayStatus(BaseModel):
  is_authenticated: bool = Field(..., alias='isAuthenticated')
  error: Optional[str] = None

  class Config:
    populate_by_name = True

  def to_wire(self) -> dict[str, Any]:
    return self.model_dump(by_alias=True, exclude_none=True)
