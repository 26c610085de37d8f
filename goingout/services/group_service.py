"""Time-boxed groups: membership, invitations and group pictures."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, cast
from uuid import UUID

from fastapi import HTTPException, UploadFile, status
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Event, Group, Notification, User, group_members
from ..schemas import GroupCreate
from ..utils import ensure_utc, utcnow
from .notification_service import NotificationType, get_notification_for_recipient, notify_safely
from .storage_service import group_picture_key, upload_or_raise_http
from .streams import group_stream_manager, schedule_broadcast
from .user_service import get_user_by_username, get_user_or_404, normalize_username, user_key

logger = logging.getLogger(__name__)


def get_group_or_404(db: Session, group_id: UUID) -> Group:
    group = db.get(Group, group_id)
    if group is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Group not found")
    return group


def is_member(group: Group, user_id: UUID) -> bool:
    return any(member.id == user_id for member in group.members)


def is_group_active(group: Group, *, now: datetime | None = None) -> bool:
    """A group without ``end_time`` never expires."""

    end_time = ensure_utc(group.end_time)
    return end_time is None or end_time > (now or utcnow())


def require_member(db: Session, *, group_id: UUID, user: User) -> Group:
    group = get_group_or_404(db, group_id)
    if not is_member(group, cast(UUID, user.id)):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only group members can do that")
    return group


def _commit(db: Session, failure: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=failure) from exc


def _broadcast(group_id: UUID, payload: dict[str, object]) -> None:
    schedule_broadcast(group_stream_manager, str(group_id), payload)


def create_group_record(
    db: Session,
    *,
    creator: User,
    name: str,
    description: str | None = None,
    start_time: datetime | None = None,
    end_time: datetime | None = None,
) -> Group:
    """Persist a group whose only member is ``creator``."""

    start = ensure_utc(start_time)
    end = ensure_utc(end_time)
    if start is not None and end is not None and end <= start:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="end_time must be after start_time")

    member = db.get(User, cast(UUID, creator.id))
    if member is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    group = Group(
        name=name.strip(),
        description=(description or "").strip() or None,
        creator_id=cast(UUID, member.id),
        start_time=start,
        end_time=end,
        member_count=1,
    )
    group.members.append(member)
    db.add(group)
    _commit(db, "Failed to create group")
    db.refresh(group)
    return group


def _resolve_invitees(db: Session, *, inviter: User, usernames: Iterable[str], group: Group) -> list[User]:
    """Unique existing users named in ``usernames``, skipping the inviter and current members."""

    seen: set[str] = {user_key(inviter)}
    invitees: list[User] = []
    for raw in usernames:
        key = normalize_username(raw)
        if not key or key in seen:
            continue
        seen.add(key)
        candidate = get_user_by_username(db, key)
        if candidate is None:
            logger.info("Skipping invitation to unknown user")
            continue
        if is_member(group, cast(UUID, candidate.id)):
            continue
        invitees.append(candidate)
    return invitees


def _invite(db: Session, *, group: Group, inviter: User, invitees: Iterable[User]) -> list[Notification]:
    sent: list[Notification] = []
    for invitee in invitees:
        notification = notify_safely(
            db,
            recipient_id=cast(UUID, invitee.id),
            sender=inviter,
            type_=NotificationType.GROUP_INVITATION,
            message=f'invited you to join "{group.name}"',
            group_id=cast(UUID, group.id),
        )
        if notification is not None:
            sent.append(notification)
    return sent


def create_group(db: Session, *, creator: User, payload: GroupCreate) -> Group:
    group = create_group_record(
        db,
        creator=creator,
        name=payload.name,
        description=payload.description,
        start_time=payload.start_time,
        end_time=payload.end_time,
    )
    invitees = _resolve_invitees(db, inviter=creator, usernames=payload.members, group=group)
    _invite(db, group=group, inviter=creator, invitees=invitees)
    logger.info("Group %s created with %d invitations", group.id, len(invitees))
    return group


def list_user_groups(db: Session, *, user: User, include_expired: bool = False) -> list[Group]:
    stmt = (
        select(Group)
        .join(group_members, group_members.c.group_id == Group.id)
        .where(group_members.c.user_id == cast(UUID, user.id))
        .order_by(Group.created_at.desc())
    )
    groups = list(db.scalars(stmt))
    if include_expired:
        return groups
    now = utcnow()
    return [group for group in groups if is_group_active(group, now=now)]


def add_member(db: Session, *, group_id: UUID, user_id: UUID) -> Group:
    group = get_group_or_404(db, group_id)
    if is_member(group, user_id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User is already a member")
    member = get_user_or_404(db, user_id)
    group.members.append(member)
    group.member_count = len(group.members)
    _commit(db, "Failed to add member")
    db.refresh(group)
    _broadcast(group_id, {"type": "group.member_added", "user_id": str(user_id), "member_count": group.member_count})
    return group


def add_member_by_username(db: Session, *, group_id: UUID, actor: User, username: str) -> Group:
    require_member(db, group_id=group_id, user=actor)
    target = get_user_by_username(db, username)
    if target is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return add_member(db, group_id=group_id, user_id=cast(UUID, target.id))


def remove_member(db: Session, *, group_id: UUID, actor: User, user_id: UUID) -> Group:
    """Members may leave; only the creator may remove someone else."""

    group = get_group_or_404(db, group_id)
    actor_id = cast(UUID, actor.id)
    if actor_id != user_id and group.creator_id != actor_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the group creator can remove members")
    member = next((candidate for candidate in group.members if candidate.id == user_id), None)
    if member is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User is not a member")
    group.members.remove(member)
    group.member_count = len(group.members)
    _commit(db, "Failed to remove member")
    db.refresh(group)
    _broadcast(group_id, {"type": "group.member_removed", "user_id": str(user_id), "member_count": group.member_count})
    return group


def send_group_invitation(db: Session, *, group_id: UUID, inviter: User, usernames: Iterable[str]) -> list[Notification]:
    group = require_member(db, group_id=group_id, user=inviter)
    invitees = _resolve_invitees(db, inviter=inviter, usernames=usernames, group=group)
    return _invite(db, group=group, inviter=inviter, invitees=invitees)


def _get_invitation(db: Session, *, notification_id: UUID, user: User) -> Notification:
    notification = get_notification_for_recipient(db, notification_id=notification_id, recipient_id=cast(UUID, user.id))
    if notification.type != NotificationType.GROUP_INVITATION or notification.group_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Notification is not a group invitation")
    return notification


def accept_group_invitation(db: Session, *, notification_id: UUID, user: User) -> Group:
    """Join the invited group and consume the invitation in one transaction."""

    notification = _get_invitation(db, notification_id=notification_id, user=user)
    group = db.get(Group, notification.group_id)
    if group is None:
        db.delete(notification)
        _commit(db, "Failed to update invitation")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Group no longer exists")

    user_id = cast(UUID, user.id)
    if not is_member(group, user_id):
        group.members.append(get_user_or_404(db, user_id))
        group.member_count = len(group.members)
    db.delete(notification)
    _commit(db, "Failed to accept invitation")
    db.refresh(group)
    _broadcast(cast(UUID, group.id), {"type": "group.member_added", "user_id": str(user_id), "member_count": group.member_count})
    return group


def decline_group_invitation(db: Session, *, notification_id: UUID, user: User) -> None:
    notification = _get_invitation(db, notification_id=notification_id, user=user)
    db.delete(notification)
    _commit(db, "Failed to decline invitation")


def delete_group(db: Session, *, group_id: UUID, user: User) -> None:
    """Creator-only; chat, album, locations and polls go with the group."""

    group = get_group_or_404(db, group_id)
    if group.creator_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the group creator can delete the group")
    db.execute(update(Event).where(Event.group_id == group_id).values(group_id=None))
    db.delete(group)
    _commit(db, "Failed to delete group")
    logger.info("Group %s deleted", group_id)
    _broadcast(group_id, {"type": "group.deleted", "group_id": str(group_id)})


async def update_group_picture(db: Session, *, group_id: UUID, user: User, kind: str, file: UploadFile) -> Group:
    """Upload the group's ``profile`` or ``cover`` image to its fixed storage key."""

    if kind not in {"profile", "cover"}:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown picture type")
    group = require_member(db, group_id=group_id, user=user)
    result = await upload_or_raise_http(file, key=group_picture_key(group_id, kind))
    if kind == "profile":
        group.profile_picture = result.url
    else:
        group.cover_photo = result.url
    _commit(db, "Failed to update group picture")
    db.refresh(group)
    _broadcast(group_id, {"type": "group.updated", "group_id": str(group_id), "field": kind})
    return group


__all__ = [
    "get_group_or_404",
    "is_member",
    "is_group_active",
    "require_member",
    "create_group_record",
    "create_group",
    "list_user_groups",
    "add_member",
    "add_member_by_username",
    "remove_member",
    "send_group_invitation",
    "accept_group_invitation",
    "decline_group_invitation",
    "delete_group",
    "update_group_picture",
]
