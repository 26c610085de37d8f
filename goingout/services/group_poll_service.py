"""Polls inside a group, with one movable vote per member."""
from __future__ import annotations

import logging
from typing import Any, cast
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..constants import MIN_POLL_OPTIONS
from ..models import GroupPoll, User
from ..schemas import PollCreate, PollResponse
from ..utils import utcnow
from .group_chat_service import send_poll_message
from .group_service import require_member
from .streams import group_stream_manager, schedule_broadcast

logger = logging.getLogger(__name__)


def _broadcast_poll(poll: GroupPoll, event: str) -> None:
    schedule_broadcast(
        group_stream_manager,
        str(poll.group_id),
        {"type": event, "poll": PollResponse.model_validate(poll).model_dump(mode="json")},
    )


def _commit(db: Session, failure: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=failure) from exc


def create_poll(db: Session, *, group_id: UUID, creator: User, payload: PollCreate) -> GroupPoll:
    options = [option.strip() for option in payload.options if option and option.strip()]
    if len(options) < MIN_POLL_OPTIONS:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="A poll needs at least 2 options")
    require_member(db, group_id=group_id, user=creator)

    poll = GroupPoll(
        group_id=group_id,
        creator_id=cast(UUID, creator.id),
        creator_username=creator.username,
        question=payload.question.strip(),
        options=[{"id": f"option_{index}", "text": text, "votes": 0, "voters": []} for index, text in enumerate(options)],
        total_votes=0,
        created_at=utcnow(),
    )
    db.add(poll)
    _commit(db, "Failed to create poll")
    db.refresh(poll)
    _broadcast_poll(poll, "group.poll_created")

    # The chat announcement is secondary; the poll stands without it.
    try:
        send_poll_message(db, group_id=group_id, author=creator, poll_id=cast(UUID, poll.id), question=poll.question)
    except HTTPException as exc:
        logger.warning("Poll %s created without chat message: %s", poll.id, exc.detail)
    return poll


def _get_poll(db: Session, *, group_id: UUID, poll_id: UUID) -> GroupPoll:
    poll = db.get(GroupPoll, poll_id, populate_existing=True, with_for_update=True)
    if poll is None or poll.group_id != group_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Poll not found")
    return poll


def apply_vote(options: list[dict[str, Any]], *, voter_id: str, option_id: str) -> list[dict[str, Any]]:
    """Return new options after ``voter_id`` votes for ``option_id``.

    Voting for the option already chosen withdraws the vote; voting for a
    different option moves it.
    """

    if not any(option["id"] == option_id for option in options):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Option not found")

    previous = next((option["id"] for option in options if voter_id in option.get("voters", [])), None)
    updated: list[dict[str, Any]] = []
    for option in options:
        voters = [voter for voter in option.get("voters", []) if voter != voter_id]
        if option["id"] == option_id and previous != option_id:
            voters.append(voter_id)
        updated.append({**option, "voters": voters, "votes": len(voters)})
    return updated


def vote_on_poll(db: Session, *, group_id: UUID, poll_id: UUID, voter: User, option_id: str) -> GroupPoll:
    require_member(db, group_id=group_id, user=voter)
    poll = _get_poll(db, group_id=group_id, poll_id=poll_id)
    options = apply_vote(list(poll.options or []), voter_id=str(voter.id), option_id=option_id)
    poll.options = options
    poll.total_votes = sum(option["votes"] for option in options)
    _commit(db, "Failed to record vote")
    db.refresh(poll)
    _broadcast_poll(poll, "group.poll_updated")
    return poll


def list_polls(db: Session, *, group_id: UUID, viewer: User) -> list[GroupPoll]:
    require_member(db, group_id=group_id, user=viewer)
    stmt = select(GroupPoll).where(GroupPoll.group_id == group_id).order_by(GroupPoll.created_at.desc())
    return list(db.scalars(stmt))


def delete_poll(db: Session, *, group_id: UUID, poll_id: UUID, user: User) -> None:
    poll = _get_poll(db, group_id=group_id, poll_id=poll_id)
    if poll.creator_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the poll creator can delete this poll")
    db.delete(poll)
    _commit(db, "Failed to delete poll")
    schedule_broadcast(group_stream_manager, str(group_id), {"type": "group.poll_deleted", "poll_id": str(poll_id)})


__all__ = ["create_poll", "apply_vote", "vote_on_poll", "list_polls", "delete_poll"]
