"""Automated cleanup utilities for pruning expired social data."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .notification_service import delete_old_notifications
from .post_service import delete_expired_posts
from .vote_service import delete_old_votes

logger = logging.getLogger(__name__)

DEFAULT_RETENTION: timedelta = timedelta(days=2)


class CleanupError(RuntimeError):
    """Raised when the cleanup task cannot complete successfully."""


@dataclass(frozen=True, slots=True)
class CleanupSummary:
    """Represents the number of records deleted during a cleanup run."""

    posts: int
    notifications: int
    votes: int

    @property
    def total(self) -> int:
        return self.posts + self.notifications + self.votes


def perform_cleanup(session: Session, *, retention: timedelta = DEFAULT_RETENTION) -> CleanupSummary:
    """Delete aged records from the database using the provided session.

    Posts are removed once they have been expired for longer than
    ``retention``; read notifications once they are older than ``retention``;
    tonight votes as soon as their day has passed.

    Raises
    ------
    CleanupError
        If the cleanup fails; the transaction is rolled back first.
    """

    if retention <= timedelta(0):
        raise ValueError("retention must be a positive duration")

    try:
        posts_deleted = delete_expired_posts(session, grace=retention)
        notifications_deleted = delete_old_notifications(session, older_than=retention)
        votes_deleted = delete_old_votes(session)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Cleanup failed; transaction rolled back")
        raise CleanupError("database cleanup failed") from exc

    summary = CleanupSummary(posts=posts_deleted, notifications=notifications_deleted, votes=votes_deleted)
    logger.info(
        "Cleanup finished (posts=%d, notifications=%d, votes=%d, total=%d)",
        summary.posts,
        summary.notifications,
        summary.votes,
        summary.total,
    )
    return summary


def run_cleanup(session_factory: Callable[[], Session], *, retention: timedelta = DEFAULT_RETENTION) -> CleanupSummary:
    """Run cleanup with a session scoped to this call."""

    session = session_factory()
    try:
        return perform_cleanup(session, retention=retention)
    finally:
        session.close()


__all__ = [
    "CleanupError",
    "CleanupSummary",
    "DEFAULT_RETENTION",
    "perform_cleanup",
    "run_cleanup",
]
