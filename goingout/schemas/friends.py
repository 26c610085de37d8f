"""Schemas for friend requests and friend lists."""
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .users import UserSummary


class FriendRequestPayload(BaseModel):
    username: str = Field(..., min_length=1, max_length=150)


class FriendRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    from_user_id: UUID
    to_user_id: UUID
    from_username: str | None = None
    to_username: str | None = None
    status: str
    created_at: datetime
    responded_at: datetime | None = None


class FriendsOverviewResponse(BaseModel):
    friends: list[UserSummary]
    incoming_requests: list[FriendRequestResponse]
    outgoing_requests: list[FriendRequestResponse]


class FriendStatusResponse(BaseModel):
    username: str
    is_friend: bool


class FriendSyncResponse(BaseModel):
    added: list[str]


class FriendListResponse(BaseModel):
    friends: list[str]


__all__ = [
    "FriendRequestPayload",
    "FriendRequestResponse",
    "FriendsOverviewResponse",
    "FriendStatusResponse",
    "FriendSyncResponse",
    "FriendListResponse",
]
