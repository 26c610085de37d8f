"""Tonight's poll: one vote per user, location and UTC day."""
from __future__ import annotations

import logging
from datetime import date
from typing import cast
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import User, Vote
from ..utils import utcnow

logger = logging.getLogger(__name__)


def location_key(location: str) -> str:
    return " ".join((location or "").split()).lower()


def today() -> date:
    return utcnow().date()


def _current_vote(db: Session, *, user_id: UUID, key: str, day: date) -> Vote | None:
    return db.scalar(
        select(Vote).where(Vote.user_id == user_id, Vote.location_key == key, Vote.vote_date == day)
    )


def vote_for_option(db: Session, *, user: User, location: str, option: str) -> tuple[str, str | None]:
    """Cast, move or withdraw a vote and return ``(action, option)``.

    Voting for the option already chosen withdraws the vote.
    """

    key = location_key(location)
    choice = option.strip()
    if not key or not choice:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Location and option are required")

    day = today()
    vote = _current_vote(db, user_id=cast(UUID, user.id), key=key, day=day)
    if vote is None:
        db.add(Vote(user_id=user.id, location=location.strip(), location_key=key, option=choice, vote_date=day))
        action, result = "created", choice
    elif vote.option == choice:
        db.delete(vote)
        action, result = "removed", None
    else:
        vote.option = choice
        vote.updated_at = utcnow()
        action, result = "updated", choice

    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to record vote") from exc
    return action, result


def get_vote_counts(db: Session, *, location: str) -> list[tuple[str, int]]:
    stmt = (
        select(Vote.option, func.count(Vote.id))
        .where(Vote.location_key == location_key(location), Vote.vote_date == today())
        .group_by(Vote.option)
    )
    counts = [(option, int(count)) for option, count in db.execute(stmt)]
    counts.sort(key=lambda item: (-item[1], item[0]))
    return counts


def get_user_vote(db: Session, *, user: User, location: str) -> str | None:
    vote = _current_vote(db, user_id=cast(UUID, user.id), key=location_key(location), day=today())
    return vote.option if vote else None


def delete_old_votes(db: Session, *, before: date | None = None) -> int:
    """Drop votes cast before ``before`` (today by default). Caller commits."""

    cutoff = before or today()
    result = db.execute(delete(Vote).where(Vote.vote_date < cutoff))
    return int(result.rowcount or 0)


__all__ = [
    "location_key",
    "today",
    "vote_for_option",
    "get_vote_counts",
    "get_user_vote",
    "delete_old_votes",
]
