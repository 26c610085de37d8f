"""Schemas for groups, group chat, polls, shared locations and albums."""
from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .users import UserSummary


class GroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    description: str | None = Field(default=None, max_length=2000)
    members: list[str] = Field(default_factory=list, description="Usernames to invite")
    start_time: datetime | None = None
    end_time: datetime | None = None


class GroupResponse(BaseModel):
    id: UUID
    name: str
    description: str | None = None
    creator_id: UUID
    members: list[UserSummary]
    member_count: int
    start_time: datetime | None = None
    end_time: datetime | None = None
    profile_picture: str | None = None
    cover_photo: str | None = None
    is_active: bool
    created_at: datetime


class GroupMemberPayload(BaseModel):
    username: str = Field(..., min_length=1, max_length=150)


class GroupInvitationPayload(BaseModel):
    usernames: list[str] = Field(..., min_length=1)


class GroupMessageCreate(BaseModel):
    text: str = Field(..., max_length=4000)


class GroupMediaMessageCreate(BaseModel):
    type: Literal["image", "video"]
    url: str = Field(..., min_length=1, max_length=1024)
    text: str = Field(default="", max_length=4000)


class GroupMessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    group_id: UUID
    user_id: UUID
    user_name: str | None = None
    user_username: str
    user_avatar: str | None = None
    text: str
    type: str
    image: str | None = None
    video: str | None = None
    poll_id: UUID | None = None
    created_at: datetime


class GroupMessageListResponse(BaseModel):
    items: list[GroupMessageResponse]


class PollCreate(BaseModel):
    question: str = Field(..., min_length=1, max_length=500)
    options: list[str]


class PollOption(BaseModel):
    id: str
    text: str
    votes: int = 0
    voters: list[str] = Field(default_factory=list)


class PollResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    group_id: UUID
    creator_id: UUID
    creator_username: str
    question: str
    options: list[PollOption]
    total_votes: int
    created_at: datetime


class PollVotePayload(BaseModel):
    option_id: str = Field(..., min_length=1)


class LocationSharePayload(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class GroupLocationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    username: str
    name: str | None = None
    avatar: str | None = None
    lat: float
    lng: float
    updated_at: datetime


class GroupPhotoCreate(BaseModel):
    url: str = Field(..., min_length=1, max_length=1024)
    media_type: Literal["image", "video"] = "image"


class GroupPhotoResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    group_id: UUID
    user_id: UUID
    user_username: str
    url: str
    media_type: str
    created_at: datetime


__all__ = [
    "GroupCreate",
    "GroupResponse",
    "GroupMemberPayload",
    "GroupInvitationPayload",
    "GroupMessageCreate",
    "GroupMediaMessageCreate",
    "GroupMessageResponse",
    "GroupMessageListResponse",
    "PollCreate",
    "PollOption",
    "PollResponse",
    "PollVotePayload",
    "LocationSharePayload",
    "GroupLocationResponse",
    "GroupPhotoCreate",
    "GroupPhotoResponse",
]
