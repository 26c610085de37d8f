"""Expo push token registration and fire-and-forget delivery."""
from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, cast
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..clients.expo_push import PushDeliveryError, send_push_message
from ..config import get_settings
from ..models import User

logger = logging.getLogger(__name__)

_EXPO_TOKEN_PATTERN = re.compile(r"^Expo(nent)?PushToken\[[^\]]+\]$")


def is_expo_push_token(token: str | None) -> bool:
    return bool(token) and bool(_EXPO_TOKEN_PATTERN.match(token.strip()))


def register_push_token(db: Session, *, user: User, token: str) -> User:
    """Store the device's Expo push token on the user's row."""

    candidate = token.strip()
    if not is_expo_push_token(candidate):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Invalid Expo push token")

    record = db.get(User, cast(UUID, user.id))
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    record.push_token = candidate
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to save push token") from exc
    db.refresh(record)
    return record


def clear_push_token(db: Session, *, user: User) -> None:
    record = db.get(User, cast(UUID, user.id))
    if record is None or record.push_token is None:
        return
    record.push_token = None
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to clear push token") from exc


async def _deliver(token: str, title: str, body: str, data: dict[str, Any]) -> None:
    try:
        await send_push_message(token, title, body, data)
    except PushDeliveryError as exc:
        logger.warning("Push delivery failed: %s", exc)


def schedule_push(token: str | None, *, title: str, body: str, data: dict[str, Any] | None = None) -> bool:
    """Queue a push on the running loop; returns whether one was queued."""

    if not token or not get_settings().expo_push_enabled:
        return False
    if not is_expo_push_token(token):
        logger.warning("Skipping push to malformed token")
        return False
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return False
    loop.create_task(_deliver(token, title, body, data or {}))
    return True


__all__ = ["is_expo_push_token", "register_push_token", "clear_push_token", "schedule_push"]
