"""Schemas for user profiles and directory search."""
from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    name: str | None = None
    avatar_url: str | None = None


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    name: str | None = None
    email: str | None = None
    avatar_url: str | None = None
    bio: str | None = None
    location: str | None = None
    friends: list[str] = Field(default_factory=list)
    created_at: datetime


class ProfileUpdateRequest(BaseModel):
    username: str | None = Field(default=None, min_length=3, max_length=32, pattern=r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")
    name: str | None = Field(default=None, max_length=150)
    bio: str | None = Field(default=None, max_length=500)
    location: str | None = Field(default=None, max_length=255)
    avatar_url: str | None = Field(default=None, max_length=1024)


class PushTokenRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=255)


RelationshipStatus = Literal["self", "friend", "incoming", "outgoing", "blocked", "available"]


class UserSearchResult(UserSummary):
    status: RelationshipStatus


class UserSearchResponse(BaseModel):
    query: str
    results: list[UserSearchResult]


__all__ = [
    "UserSummary",
    "ProfileResponse",
    "ProfileUpdateRequest",
    "PushTokenRequest",
    "RelationshipStatus",
    "UserSearchResult",
    "UserSearchResponse",
]
