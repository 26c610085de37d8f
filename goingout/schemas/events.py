"""Schemas for events."""
from __future__ import annotations

from datetime import date, datetime, time
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=4000)
    location: str | None = Field(default=None, max_length=255)
    host: str | None = Field(default=None, max_length=150)
    image: str | None = Field(default=None, max_length=1024)
    start_date: date
    start_time: time
    end_date: date
    end_time: time
    friends_only: bool = False


class EventUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=4000)
    location: str | None = Field(default=None, max_length=255)
    host: str | None = Field(default=None, max_length=150)
    image: str | None = Field(default=None, max_length=1024)
    start_date: date | None = None
    start_time: time | None = None
    end_date: date | None = None
    end_time: time | None = None
    friends_only: bool | None = None


class EventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    creator_id: UUID
    creator_name: str | None = None
    creator_username: str
    creator_avatar: str | None = None
    title: str
    description: str | None = None
    location: str | None = None
    host: str | None = None
    image: str | None = None
    start_date: date
    end_date: date
    start_time: datetime
    end_time: datetime
    friends_only: bool
    group_id: UUID | None = None
    created_at: datetime


class EventListResponse(BaseModel):
    items: list[EventResponse]


class EventJoinResponse(BaseModel):
    event_id: UUID
    group_id: UUID | None = None
    joined: bool


__all__ = ["EventCreate", "EventUpdate", "EventResponse", "EventListResponse", "EventJoinResponse"]
