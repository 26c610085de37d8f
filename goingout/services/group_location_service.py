"""Live location sharing among group members, one row per member."""
from __future__ import annotations

from typing import cast
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import GroupLocation, User
from ..utils import utcnow
from .group_service import require_member
from .streams import group_stream_manager, schedule_broadcast


def share_location(db: Session, *, group_id: UUID, user: User, lat: float, lng: float) -> GroupLocation:
    """Create or overwrite the caller's shared position."""

    require_member(db, group_id=group_id, user=user)
    user_id = cast(UUID, user.id)
    record = db.scalar(
        select(GroupLocation).where(GroupLocation.group_id == group_id, GroupLocation.user_id == user_id)
    )
    if record is None:
        record = GroupLocation(group_id=group_id, user_id=user_id)
        db.add(record)
    record.username = user.username
    record.name = user.display_name
    record.avatar = user.avatar_url
    record.lat = lat
    record.lng = lng
    record.updated_at = utcnow()
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to share location") from exc
    db.refresh(record)
    schedule_broadcast(
        group_stream_manager,
        str(group_id),
        {"type": "group.location", "user_id": str(user_id), "username": record.username, "lat": lat, "lng": lng},
    )
    return record


def stop_sharing_location(db: Session, *, group_id: UUID, user: User) -> bool:
    """Remove the caller's position; returns whether one was shared."""

    user_id = cast(UUID, user.id)
    record = db.scalar(
        select(GroupLocation).where(GroupLocation.group_id == group_id, GroupLocation.user_id == user_id)
    )
    if record is None:
        return False
    try:
        db.delete(record)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to stop sharing") from exc
    schedule_broadcast(group_stream_manager, str(group_id), {"type": "group.location_removed", "user_id": str(user_id)})
    return True


def list_locations(db: Session, *, group_id: UUID, viewer: User) -> list[GroupLocation]:
    require_member(db, group_id=group_id, user=viewer)
    stmt = select(GroupLocation).where(GroupLocation.group_id == group_id).order_by(GroupLocation.updated_at.desc())
    return list(db.scalars(stmt))


__all__ = ["share_location", "stop_sharing_location", "list_locations"]
