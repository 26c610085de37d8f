"""One-way block lists stored on the blocker's row."""
from __future__ import annotations

import logging
from typing import Iterable, cast
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import User
from .streams import friend_stream_manager, schedule_broadcast
from .user_service import (
    array_remove,
    array_union,
    get_user_by_username,
    get_users_by_keys,
    lock_user,
    normalize_username,
    reload_user,
    user_key,
)

logger = logging.getLogger(__name__)


def block_user(db: Session, *, blocker: User, username: str) -> User:
    """Add ``username`` to the blocker's list and drop them from the blocker's friends.

    The blocked user's row is left untouched.
    """

    target_key = normalize_username(username)
    if not target_key:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username required")
    if target_key == user_key(blocker):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot block yourself")
    if get_user_by_username(db, target_key) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User to block not found")

    record = lock_user(db, blocker)
    record.blocked = array_union(record.blocked, target_key)
    record.friends = array_remove(record.friends, target_key)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to block user") from exc
    db.refresh(record)

    logger.info("User %s blocked a user", record.id)
    schedule_broadcast(friend_stream_manager, str(record.id), {"type": "friends.updated", "friends": list(record.friends)})
    return record


def unblock_user(db: Session, *, blocker: User, username: str) -> User:
    target_key = normalize_username(username)
    record = lock_user(db, blocker)
    if target_key not in (record.blocked or []):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User is not blocked")
    record.blocked = array_remove(record.blocked, target_key)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to unblock user") from exc
    db.refresh(record)
    return record


def get_blocked_users(db: Session, *, user: User) -> list[User]:
    """Profiles of everyone ``user`` blocked, in block order; deleted accounts are skipped."""

    record = reload_user(db, user)
    keys = list(record.blocked or [])
    found = get_users_by_keys(db, keys)
    return [found[key] for key in keys if key in found]


def is_user_blocked(db: Session, *, user: User, username: str) -> bool:
    """Return whether ``user`` has blocked ``username``."""

    record = reload_user(db, user)
    return normalize_username(username) in (record.blocked or [])


def is_blocked_between(first: User, second: User) -> bool:
    """True when either user has blocked the other."""

    return user_key(second) in (first.blocked or []) or user_key(first) in (second.blocked or [])


def hidden_user_ids(db: Session, *, viewer: User, candidate_ids: Iterable[UUID]) -> set[UUID]:
    """Subset of ``candidate_ids`` that ``viewer`` blocked or that blocked ``viewer``."""

    wanted = {candidate for candidate in candidate_ids if candidate != viewer.id}
    if not wanted:
        return set()
    others = db.scalars(select(User).where(User.id.in_(wanted)))
    return {cast(UUID, other.id) for other in others if is_blocked_between(viewer, other)}


__all__ = [
    "block_user",
    "unblock_user",
    "get_blocked_users",
    "is_user_blocked",
    "is_blocked_between",
    "hidden_user_ids",
]
