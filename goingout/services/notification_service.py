"""Notification storage, live fan-out and push hand-off."""
from __future__ import annotations

import logging
from datetime import timedelta
from enum import StrEnum
from typing import Any, cast
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..constants import NOTIFICATION_LIMIT
from ..models import Notification, User
from ..schemas import NotificationResponse
from ..utils import extract_mentions, utcnow
from .push_service import schedule_push
from .streams import notification_stream_manager, schedule_broadcast
from .user_service import get_user_by_username, user_key

logger = logging.getLogger(__name__)


class NotificationType(StrEnum):
    GENERIC = "generic"
    LIKE = "like"
    COMMENT = "comment"
    MENTION = "mention"
    FRIEND_REQUEST = "friend_request"
    FRIEND_ACCEPTED = "friend_accepted"
    GROUP_INVITATION = "group_invitation"
    EVENT_JOIN = "event_join"


_PUSH_TITLES: dict[str, str] = {
    NotificationType.LIKE: "New like",
    NotificationType.COMMENT: "New comment",
    NotificationType.MENTION: "You were mentioned",
    NotificationType.FRIEND_REQUEST: "Friend request",
    NotificationType.FRIEND_ACCEPTED: "Friend request accepted",
    NotificationType.GROUP_INVITATION: "Group invitation",
    NotificationType.EVENT_JOIN: "New attendee",
}


def create_notification(
    db: Session,
    *,
    recipient_id: UUID,
    sender: User | None,
    type_: NotificationType | str,
    message: str,
    post_id: UUID | None = None,
    comment_id: UUID | None = None,
    group_id: UUID | None = None,
) -> Notification | None:
    """Persist a notification for ``recipient_id`` and push it to their devices.

    Returns ``None`` without writing when the recipient is the sender or has
    blocked the sender.
    """

    recipient = db.get(User, recipient_id)
    if recipient is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recipient not found")

    if sender is not None:
        if cast(UUID, sender.id) == recipient_id:
            return None
        if user_key(sender) in (recipient.blocked or []):
            logger.info("Suppressed %s notification from a blocked sender", type_)
            return None

    notification = Notification(
        recipient_id=recipient_id,
        from_user_id=cast(UUID, sender.id) if sender is not None else None,
        type=str(type_),
        message=message,
        post_id=post_id,
        comment_id=comment_id,
        group_id=group_id,
        from_user_name=sender.display_name if sender is not None else None,
        from_user_username=sender.username if sender is not None else None,
        from_user_avatar=sender.avatar_url if sender is not None else None,
        read=False,
        created_at=utcnow(),
    )
    try:
        db.add(notification)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create notification") from exc
    db.refresh(notification)

    _broadcast_notification(notification)
    _push_notification(recipient, notification)
    return notification


def notify_safely(db: Session, **kwargs: Any) -> Notification | None:
    """Best-effort :func:`create_notification` for secondary effects.

    The primary write has already committed; a failure here is logged and
    swallowed so it never surfaces to the caller.
    """

    try:
        return create_notification(db, **kwargs)
    except HTTPException as exc:
        logger.warning("Notification (%s) not delivered: %s", kwargs.get("type_"), exc.detail)
        return None


def notify_mentions(
    db: Session,
    *,
    author: User,
    text: str | None,
    message: str,
    post_id: UUID | None = None,
    comment_id: UUID | None = None,
) -> list[Notification]:
    """Send a ``mention`` notification to every existing user named in ``text``."""

    delivered: list[Notification] = []
    for username in extract_mentions(text):
        target = get_user_by_username(db, username)
        if target is None:
            continue
        notification = notify_safely(
            db,
            recipient_id=cast(UUID, target.id),
            sender=author,
            type_=NotificationType.MENTION,
            message=message,
            post_id=post_id,
            comment_id=comment_id,
        )
        if notification is not None:
            delivered.append(notification)
    return delivered


def list_notifications(db: Session, user_id: UUID, *, limit: int = NOTIFICATION_LIMIT) -> list[Notification]:
    stmt = (
        select(Notification)
        .where(Notification.recipient_id == user_id)
        .order_by(Notification.created_at.desc())
        .limit(limit)
    )
    return list(db.scalars(stmt))


def count_unread_notifications(db: Session, user_id: UUID) -> int:
    stmt = (
        select(func.count())
        .select_from(Notification)
        .where(Notification.recipient_id == user_id, Notification.read.is_(False))
    )
    return int(db.scalar(stmt) or 0)


def get_notification_for_recipient(db: Session, *, notification_id: UUID, recipient_id: UUID) -> Notification:
    notification = db.get(Notification, notification_id)
    if notification is None or notification.recipient_id != recipient_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return notification


def mark_notification_read(db: Session, *, notification_id: UUID, recipient_id: UUID) -> Notification:
    notification = get_notification_for_recipient(db, notification_id=notification_id, recipient_id=recipient_id)
    if notification.read:
        return notification
    notification.read = True
    notification.read_at = utcnow()
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update notification") from exc
    db.refresh(notification)
    schedule_broadcast(
        notification_stream_manager,
        str(recipient_id),
        {"type": "notification.read", "notification_id": str(notification_id)},
    )
    return notification


def mark_all_read(db: Session, recipient_id: UUID) -> int:
    """Mark every unread notification read; returns how many changed."""

    stmt = (
        update(Notification)
        .where(Notification.recipient_id == recipient_id, Notification.read.is_(False))
        .values(read=True, read_at=utcnow())
    )
    try:
        result = db.execute(stmt)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update notifications") from exc
    schedule_broadcast(notification_stream_manager, str(recipient_id), {"type": "notification.read_all"})
    return int(result.rowcount or 0)


def delete_notification(db: Session, *, notification_id: UUID, recipient_id: UUID) -> None:
    notification = get_notification_for_recipient(db, notification_id=notification_id, recipient_id=recipient_id)
    try:
        db.delete(notification)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete notification") from exc
    schedule_broadcast(
        notification_stream_manager,
        str(recipient_id),
        {"type": "notification.deleted", "notification_id": str(notification_id)},
    )


def delete_old_notifications(db: Session, *, older_than: timedelta) -> int:
    """Remove read notifications created before ``now - older_than``.

    The caller owns the transaction.
    """

    cutoff = utcnow() - older_than
    stmt = delete(Notification).where(Notification.created_at < cutoff, Notification.read.is_(True))
    return int(db.execute(stmt).rowcount or 0)


def _broadcast_notification(notification: Notification) -> None:
    payload = {
        "type": "notification.created",
        "notification": NotificationResponse.model_validate(notification).model_dump(mode="json"),
    }
    schedule_broadcast(notification_stream_manager, str(notification.recipient_id), payload)


def _push_notification(recipient: User, notification: Notification) -> None:
    title = _PUSH_TITLES.get(notification.type, "GoingOut")
    sender_name = notification.from_user_username or notification.from_user_name
    body = f"{sender_name} {notification.message}" if sender_name else notification.message
    data = {
        "type": notification.type,
        "notification_id": str(notification.id),
        "post_id": str(notification.post_id) if notification.post_id else None,
        "group_id": str(notification.group_id) if notification.group_id else None,
    }
    schedule_push(recipient.push_token, title=title, body=body, data=data)


__all__ = [
    "NotificationType",
    "create_notification",
    "notify_safely",
    "notify_mentions",
    "list_notifications",
    "count_unread_notifications",
    "get_notification_for_recipient",
    "mark_notification_read",
    "mark_all_read",
    "delete_notification",
    "delete_old_notifications",
]
