"""Schemas for posts, likes and comments."""
from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PostCreate(BaseModel):
    text: str = Field(default="", max_length=2000)
    image: str | None = Field(default=None, max_length=1024)
    images: list[str] = Field(default_factory=list)
    location: str | None = Field(default=None, max_length=255)
    lat: float | None = Field(default=None, ge=-90, le=90)
    lng: float | None = Field(default=None, ge=-180, le=180)
    bar: str | None = Field(default=None, max_length=255)
    visibility: Literal["location", "friends"] = "location"


class PostResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    name: str | None = None
    username: str
    avatar: str | None = None
    text: str
    location: str
    lat: float | None = None
    lng: float | None = None
    image: str | None = None
    images: list[str] = Field(default_factory=list)
    bar: str | None = None
    likes: int = 0
    replies: int = 0
    retweets: int = 0
    visibility: str
    created_at: datetime
    expires_at: datetime | None = None
    time_ago: str = ""
    liked_by_me: bool = False


class PostFeedResponse(BaseModel):
    items: list[PostResponse]


class PostLikeResponse(BaseModel):
    post_id: UUID
    likes: int
    liked: bool


class CommentCreate(BaseModel):
    text: str = Field(..., max_length=1000)


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    post_id: UUID
    user_id: UUID
    username: str
    name: str | None = None
    avatar: str | None = None
    text: str
    created_at: datetime


class CommentListResponse(BaseModel):
    items: list[CommentResponse]


class MediaUploadResponse(BaseModel):
    url: str
    key: str
    content_type: str


__all__ = [
    "PostCreate",
    "PostResponse",
    "PostFeedResponse",
    "PostLikeResponse",
    "CommentCreate",
    "CommentResponse",
    "CommentListResponse",
    "MediaUploadResponse",
]
