"""User lookup, profile edits and directory search."""
from __future__ import annotations

import logging
from typing import Iterable, cast
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import String, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..constants import FRIEND_REQUEST_PENDING, USER_SEARCH_LIMIT
from ..models import FriendRequest, User
from ..schemas import ProfileUpdateRequest

logger = logging.getLogger(__name__)


def normalize_username(username: str | None) -> str:
    return (username or "").strip().lower()


def user_key(user: User) -> str:
    """Return the lowercase username that other users' arrays store for ``user``."""

    return cast(str, user.username_lowercase) or normalize_username(user.username)


def array_union(values: Iterable[str] | None, item: str) -> list[str]:
    current = list(values or [])
    if item not in current:
        current.append(item)
    return current


def array_remove(values: Iterable[str] | None, item: str) -> list[str]:
    return [value for value in (values or []) if value != item]


def array_replace(values: Iterable[str] | None, old: str, new: str) -> list[str]:
    replaced: list[str] = []
    for value in values or []:
        value = new if value == old else value
        if value not in replaced:
            replaced.append(value)
    return replaced


def get_user_or_404(db: Session, user_id: UUID) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def get_user_by_username(db: Session, username: str) -> User | None:
    candidate = normalize_username(username)
    if not candidate:
        return None
    return db.scalar(select(User).where(User.username_lowercase == candidate))


def get_user_by_username_or_404(db: Session, username: str) -> User:
    user = get_user_by_username(db, username)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def lock_user(db: Session, user: User) -> User:
    """Re-read ``user`` inside the current transaction, row-locked where supported.

    Callers may hold a copy loaded by another session; array mutations must
    always start from the committed row.
    """

    record = db.get(User, cast(UUID, user.id), populate_existing=True, with_for_update=True)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return record


def reload_user(db: Session, user: User) -> User:
    """Return a fresh copy of ``user`` bound to ``db``."""

    record = db.get(User, cast(UUID, user.id), populate_existing=True)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return record


def get_users_by_keys(db: Session, keys: Iterable[str]) -> dict[str, User]:
    wanted = {key for key in keys if key}
    if not wanted:
        return {}
    stmt = select(User).where(User.username_lowercase.in_(wanted))
    return {cast(str, user.username_lowercase): user for user in db.scalars(stmt)}


def _rekey_references(db: Session, *, renamed_id: UUID, old_key: str, new_key: str) -> int:
    """Rewrite ``old_key`` to ``new_key`` in every other user's ``friends`` and ``blocked`` arrays.

    Arrays store lowercase usernames, so a rename must carry the relationships
    that point at the old name. Returns the number of rows rewritten.
    """

    stmt = select(User).where(User.id != renamed_id)
    if old_key.isascii() and not any(char in old_key for char in '"\\'):
        # JSON text holds the key verbatim, quoted.
        pattern = f'%"{old_key}"%'
        stmt = stmt.where(or_(User.friends.cast(String).like(pattern), User.blocked.cast(String).like(pattern)))
    rewritten = 0
    for other in db.scalars(stmt.with_for_update()):
        friends, blocked = list(other.friends or []), list(other.blocked or [])
        if old_key not in friends and old_key not in blocked:
            continue
        other.friends = array_replace(friends, old_key, new_key)
        other.blocked = array_replace(blocked, old_key, new_key)
        rewritten += 1
    return rewritten


def update_profile(db: Session, *, user: User, payload: ProfileUpdateRequest) -> User:
    """Apply profile edits.

    A new username rewrites ``username_lowercase`` and, in the same transaction,
    every friends/blocked entry other users hold for the old name.
    """

    record = lock_user(db, user)
    changes = payload.model_dump(exclude_unset=True)

    new_username = changes.pop("username", None)
    if new_username is not None:
        new_username = new_username.strip()
        new_key = new_username.lower()
        old_key = user_key(record)
        if new_key != record.username_lowercase:
            taken = db.scalar(select(User.id).where(User.username_lowercase == new_key))
            if taken is not None:
                raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already in use")
            _rekey_references(db, renamed_id=cast(UUID, record.id), old_key=old_key, new_key=new_key)
        record.username = new_username
        record.username_lowercase = new_key

    for field, value in changes.items():
        if isinstance(value, str):
            value = value.strip() or None
        setattr(record, field, value)

    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update profile") from exc
    db.refresh(record)
    return record


def _search_rank(candidate: User, needle: str) -> tuple[int, str]:
    key = user_key(candidate)
    if key == needle:
        return (0, key)
    if key.startswith(needle):
        return (1, key)
    return (2, key)


def search_users(db: Session, *, query: str, limit: int = USER_SEARCH_LIMIT) -> list[User]:
    """Exact match first, then prefix matches, then anything containing ``query``."""

    needle = normalize_username(query)
    if not needle:
        return []
    pattern = f"%{needle}%"
    stmt = (
        select(User)
        .where(func.lower(User.username).like(pattern) | func.lower(func.coalesce(User.name, "")).like(pattern))
        .limit(limit * 5)
    )
    candidates = list(db.scalars(stmt))
    candidates.sort(key=lambda candidate: _search_rank(candidate, needle))
    return candidates[:limit]


def relationship_status(db: Session, *, viewer: User, candidate: User) -> str:
    if candidate.id == viewer.id:
        return "self"
    key = user_key(candidate)
    if key in (viewer.blocked or []):
        return "blocked"
    if key in (viewer.friends or []):
        return "friend"
    pending = db.scalar(
        select(FriendRequest).where(
            FriendRequest.status == FRIEND_REQUEST_PENDING,
            (
                (FriendRequest.from_user_id == viewer.id) & (FriendRequest.to_user_id == candidate.id)
            )
            | ((FriendRequest.from_user_id == candidate.id) & (FriendRequest.to_user_id == viewer.id)),
        )
    )
    if pending is None:
        return "available"
    return "outgoing" if pending.from_user_id == viewer.id else "incoming"


__all__ = [
    "normalize_username",
    "user_key",
    "array_union",
    "array_remove",
    "array_replace",
    "get_user_or_404",
    "get_user_by_username",
    "get_user_by_username_or_404",
    "lock_user",
    "reload_user",
    "get_users_by_keys",
    "update_profile",
    "search_users",
    "relationship_status",
]
