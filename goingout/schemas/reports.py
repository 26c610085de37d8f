"""Schemas for content and user reports."""
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ReportCreate(BaseModel):
    reason: str = Field(..., min_length=1, max_length=200)
    details: str | None = Field(default=None, max_length=2000)


class ReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    type: str
    target_id: UUID
    reporter_id: UUID
    reason: str
    details: str | None = None
    status: str
    created_at: datetime


__all__ = ["ReportCreate", "ReportResponse"]
