"""Schemas for notifications."""
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    recipient_id: UUID
    from_user_id: UUID | None = None
    type: str
    message: str
    post_id: UUID | None = None
    comment_id: UUID | None = None
    group_id: UUID | None = None
    from_user_name: str | None = None
    from_user_username: str | None = None
    from_user_avatar: str | None = None
    read: bool
    read_at: datetime | None = None
    created_at: datetime


class NotificationListResponse(BaseModel):
    items: list[NotificationResponse]


class NotificationSummaryResponse(BaseModel):
    unread_count: int = 0


__all__ = ["NotificationResponse", "NotificationListResponse", "NotificationSummaryResponse"]
