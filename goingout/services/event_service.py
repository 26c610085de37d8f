"""Events, each paired with an auto-created group for attendees."""
from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone
from typing import cast
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..constants import EVENT_LIMIT
from ..models import Event, Group, User
from ..schemas import EventCreate, EventUpdate
from ..utils import ensure_utc, utcnow
from .group_service import add_member, create_group_record, delete_group, is_member
from .notification_service import NotificationType, notify_safely
from .user_service import reload_user, user_key

logger = logging.getLogger(__name__)

FRIENDS_ONLY_DETAIL = "This event is for friends only. You must be friends with the event creator to join."


def combine_date_time(day: date, moment: time) -> datetime:
    """Calendar day from ``day`` plus clock time from ``moment``; naive times are UTC."""

    combined = datetime.combine(day, moment.replace(tzinfo=None))
    tzinfo = moment.tzinfo or timezone.utc
    return combined.replace(tzinfo=tzinfo).astimezone(timezone.utc)


def _validate_window(start: datetime, end: datetime) -> None:
    if end <= start:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Event must end after it starts")


def _commit(db: Session, failure: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=failure) from exc


def _create_event_group(db: Session, *, event: Event, creator: User) -> Group | None:
    """Create the companion group; failures are logged and leave ``group_id`` unset."""

    try:
        group = create_group_record(
            db,
            creator=creator,
            name=event.title,
            description=f"Group for {event.title}",
            start_time=event.start_time,
            end_time=event.end_time,
        )
        event.group_id = group.id
        _commit(db, "Failed to link event group")
    except HTTPException as exc:
        logger.warning("Event %s saved without a group: %s", event.id, exc.detail)
        return None
    return group


def create_event(db: Session, *, creator: User, payload: EventCreate) -> Event:
    me = reload_user(db, creator)
    start = combine_date_time(payload.start_date, payload.start_time)
    end = combine_date_time(payload.end_date, payload.end_time)
    _validate_window(start, end)

    event = Event(
        creator_id=cast(UUID, me.id),
        creator_name=me.display_name,
        creator_username=me.username,
        creator_avatar=me.avatar_url,
        title=payload.title.strip(),
        description=(payload.description or "").strip() or None,
        location=(payload.location or "").strip() or None,
        host=(payload.host or "").strip() or None,
        image=payload.image,
        start_date=payload.start_date,
        end_date=payload.end_date,
        start_time=start,
        end_time=end,
        friends_only=payload.friends_only,
    )
    db.add(event)
    _commit(db, "Failed to create event")
    db.refresh(event)

    _create_event_group(db, event=event, creator=me)
    db.refresh(event)
    return event


def list_upcoming_events(db: Session, *, limit: int = EVENT_LIMIT) -> list[Event]:
    stmt = select(Event).where(Event.end_time > utcnow()).order_by(Event.start_time.asc()).limit(limit)
    return list(db.scalars(stmt))


def get_event_or_404(db: Session, event_id: UUID) -> Event:
    event = db.get(Event, event_id)
    if event is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return event


def join_event(db: Session, *, event_id: UUID, user: User) -> Event:
    """Add ``user`` to the event's group, creating the group if it is missing."""

    me = reload_user(db, user)
    event = get_event_or_404(db, event_id)
    if event.friends_only and event.creator_id != me.id:
        creator = db.get(User, event.creator_id)
        if creator is None or user_key(creator) not in (me.friends or []):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=FRIENDS_ONLY_DETAIL)

    group = db.get(Group, event.group_id) if event.group_id else None
    if group is None:
        creator = db.get(User, event.creator_id)
        if creator is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event creator not found")
        group = _create_event_group(db, event=event, creator=creator)
        if group is None:
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create event group")

    user_id = cast(UUID, me.id)
    if not is_member(group, user_id):
        try:
            add_member(db, group_id=cast(UUID, group.id), user_id=user_id)
        except HTTPException as exc:
            if exc.status_code != status.HTTP_409_CONFLICT:
                raise
        notify_safely(
            db,
            recipient_id=cast(UUID, event.creator_id),
            sender=me,
            type_=NotificationType.EVENT_JOIN,
            message=f'joined "{event.title}"',
            group_id=cast(UUID, group.id),
        )
    db.refresh(event)
    return event


def check_event_join_status(db: Session, *, event_id: UUID, user: User) -> bool:
    event = get_event_or_404(db, event_id)
    if event.group_id is None:
        return False
    group = db.get(Group, event.group_id)
    return group is not None and is_member(group, cast(UUID, user.id))


def _updated_instant(changes: dict, prefix: str, current: datetime) -> datetime:
    """Rebuild ``<prefix>_date`` + ``<prefix>_time`` from ``changes``, or keep ``current``.

    The clock time carries the client's offset, so a date is only meaningful
    together with its time.
    """

    day = changes.get(f"{prefix}_date")
    clock = changes.get(f"{prefix}_time")
    if day is None and clock is None:
        return current
    if day is None or clock is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"{prefix}_date and {prefix}_time must be sent together",
        )
    return combine_date_time(day, clock)


def update_event(db: Session, *, event_id: UUID, user: User, payload: EventUpdate) -> Event:
    """Owner-only edit; new start/end instants are copied onto the event's group."""

    event = get_event_or_404(db, event_id)
    if event.creator_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only edit your own events")

    changes = payload.model_dump(exclude_unset=True)
    for field in ("title", "description", "location", "host", "image", "friends_only"):
        if field in changes:
            value = changes[field]
            setattr(event, field, value.strip() if isinstance(value, str) else value)

    start = _updated_instant(changes, "start", ensure_utc(event.start_time))
    end = _updated_instant(changes, "end", ensure_utc(event.end_time))
    _validate_window(start, end)
    if changes.get("start_date"):
        event.start_date = changes["start_date"]
    if changes.get("end_date"):
        event.end_date = changes["end_date"]
    event.start_time, event.end_time = start, end

    if event.group_id is not None:
        group = db.get(Group, event.group_id)
        if group is not None:
            group.start_time = start
            group.end_time = end
            if "title" in changes:
                group.name = event.title
    _commit(db, "Failed to update event")
    db.refresh(event)
    return event


def delete_event(db: Session, *, event_id: UUID, user: User) -> None:
    event = get_event_or_404(db, event_id)
    if event.creator_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only delete your own events")
    group_id = event.group_id
    db.delete(event)
    _commit(db, "Failed to delete event")

    if group_id is not None:
        try:
            delete_group(db, group_id=group_id, user=user)
        except HTTPException as exc:
            logger.warning("Event %s deleted but its group was kept: %s", event_id, exc.detail)


__all__ = [
    "FRIENDS_ONLY_DETAIL",
    "combine_date_time",
    "create_event",
    "list_upcoming_events",
    "get_event_or_404",
    "join_event",
    "check_event_join_status",
    "update_event",
    "delete_event",
]
