"""Shared photo/video album for a group."""
from __future__ import annotations

from typing import cast
from uuid import UUID

from fastapi import HTTPException, UploadFile, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import GroupPhoto, User
from ..schemas import GroupPhotoResponse
from ..utils import utcnow
from .group_service import require_member
from .storage_service import upload_or_raise_http
from .streams import group_stream_manager, schedule_broadcast


def add_to_album(db: Session, *, group_id: UUID, user: User, url: str, media_type: str = "image") -> GroupPhoto:
    if media_type not in {"image", "video"}:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Unsupported media type")
    require_member(db, group_id=group_id, user=user)
    photo = GroupPhoto(
        group_id=group_id,
        user_id=cast(UUID, user.id),
        user_username=user.username,
        url=url,
        media_type=media_type,
        created_at=utcnow(),
    )
    try:
        db.add(photo)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to add to album") from exc
    db.refresh(photo)
    schedule_broadcast(
        group_stream_manager,
        str(group_id),
        {"type": "group.photo", "photo": GroupPhotoResponse.model_validate(photo).model_dump(mode="json")},
    )
    return photo


def add_photo(db: Session, *, group_id: UUID, user: User, url: str) -> GroupPhoto:
    return add_to_album(db, group_id=group_id, user=user, url=url, media_type="image")


def add_video(db: Session, *, group_id: UUID, user: User, url: str) -> GroupPhoto:
    return add_to_album(db, group_id=group_id, user=user, url=url, media_type="video")


async def upload_to_album(db: Session, *, group_id: UUID, user: User, file: UploadFile) -> GroupPhoto:
    require_member(db, group_id=group_id, user=user)
    result = await upload_or_raise_http(file, folder=f"groups/{group_id}/photos")
    media_type = "video" if result.content_type.startswith("video/") else "image"
    return add_to_album(db, group_id=group_id, user=user, url=result.url, media_type=media_type)


def list_photos(db: Session, *, group_id: UUID, viewer: User) -> list[GroupPhoto]:
    require_member(db, group_id=group_id, user=viewer)
    stmt = select(GroupPhoto).where(GroupPhoto.group_id == group_id).order_by(GroupPhoto.created_at.desc())
    return list(db.scalars(stmt))


__all__ = ["add_to_album", "add_photo", "add_video", "upload_to_album", "list_photos"]
