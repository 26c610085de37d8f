"""Group chat messages."""
from __future__ import annotations

from typing import Any, cast
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..constants import GROUP_MESSAGE_LIMIT
from ..models import GroupMessage, User
from ..schemas import GroupMessageResponse
from ..utils import utcnow
from .group_service import require_member
from .streams import group_stream_manager, schedule_broadcast


def _store_message(db: Session, message: GroupMessage) -> GroupMessage:
    try:
        db.add(message)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to send message") from exc
    db.refresh(message)
    schedule_broadcast(
        group_stream_manager,
        str(message.group_id),
        {"type": "group.message", "message": GroupMessageResponse.model_validate(message).model_dump(mode="json")},
    )
    return message


def _new_message(group_id: UUID, author: User, **fields: Any) -> GroupMessage:
    return GroupMessage(
        group_id=group_id,
        user_id=cast(UUID, author.id),
        user_name=author.display_name,
        user_username=author.username,
        user_avatar=author.avatar_url,
        created_at=utcnow(),
        **fields,
    )


def send_message(db: Session, *, group_id: UUID, author: User, text: str) -> GroupMessage:
    content = (text or "").strip()
    if not content:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Message text is required")
    require_member(db, group_id=group_id, user=author)
    return _store_message(db, _new_message(group_id, author, text=content, type="text"))


def send_media_message(db: Session, *, group_id: UUID, author: User, media_type: str, url: str, text: str = "") -> GroupMessage:
    if media_type not in {"image", "video"}:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Unsupported message type")
    require_member(db, group_id=group_id, user=author)
    media = {"image": url} if media_type == "image" else {"video": url}
    return _store_message(db, _new_message(group_id, author, text=(text or "").strip(), type=media_type, **media))


def send_poll_message(db: Session, *, group_id: UUID, author: User, poll_id: UUID, question: str) -> GroupMessage:
    return _store_message(db, _new_message(group_id, author, text=question, type="poll", poll_id=poll_id))


def list_messages(db: Session, *, group_id: UUID, viewer: User, limit: int = GROUP_MESSAGE_LIMIT) -> list[GroupMessage]:
    """The latest ``limit`` messages in chronological order."""

    require_member(db, group_id=group_id, user=viewer)
    stmt = (
        select(GroupMessage)
        .where(GroupMessage.group_id == group_id)
        .order_by(GroupMessage.created_at.desc())
        .limit(limit)
    )
    return list(reversed(list(db.scalars(stmt))))


__all__ = ["send_message", "send_media_message", "send_poll_message", "list_messages"]
