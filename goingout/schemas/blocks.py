"""Schemas for the block list."""
from __future__ import annotations

from pydantic import BaseModel


class BlockedUserResponse(BaseModel):
    username: str
    name: str | None = None
    avatar_url: str | None = None


class BlockListResponse(BaseModel):
    items: list[BlockedUserResponse]


class BlockStatusResponse(BaseModel):
    username: str
    blocked: bool


__all__ = ["BlockedUserResponse", "BlockListResponse", "BlockStatusResponse"]
