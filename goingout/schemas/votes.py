"""Schemas for the nightly location poll."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class VoteRequest(BaseModel):
    location: str = Field(..., min_length=1, max_length=255)
    option: str = Field(..., min_length=1, max_length=255)


class VoteActionResponse(BaseModel):
    action: Literal["created", "updated", "removed"]
    option: str | None = None


class VoteCount(BaseModel):
    option: str
    count: int


class VoteCountsResponse(BaseModel):
    location: str
    counts: list[VoteCount]
    total: int


class UserVoteResponse(BaseModel):
    location: str
    option: str | None = None


__all__ = ["VoteRequest", "VoteActionResponse", "VoteCount", "VoteCountsResponse", "UserVoteResponse"]
