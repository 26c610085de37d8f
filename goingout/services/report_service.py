"""Moderation reports against posts and users."""
from __future__ import annotations

import logging
from typing import cast
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Post, Report, User
from ..schemas import ReportCreate

logger = logging.getLogger(__name__)

REPORT_TYPE_POST = "post"
REPORT_TYPE_USER = "user"


def _create_report(db: Session, *, type_: str, target_id: UUID, reporter: User, payload: ReportCreate) -> Report:
    reporter_id = cast(UUID, reporter.id)
    duplicate_detail = f"You have already reported this {type_}"
    existing = db.scalar(
        select(Report.id).where(
            Report.type == type_,
            Report.target_id == target_id,
            Report.reporter_id == reporter_id,
        )
    )
    if existing is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=duplicate_detail)

    report = Report(
        type=type_,
        target_id=target_id,
        reporter_id=reporter_id,
        reason=payload.reason.strip(),
        details=(payload.details or "").strip() or None,
    )
    db.add(report)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=duplicate_detail) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to submit report") from exc
    db.refresh(report)
    logger.info("Report %s filed against %s %s", report.id, type_, target_id)
    return report


def report_post(db: Session, *, post_id: UUID, reporter: User, payload: ReportCreate) -> Report:
    if db.get(Post, post_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return _create_report(db, type_=REPORT_TYPE_POST, target_id=post_id, reporter=reporter, payload=payload)


def report_user(db: Session, *, user_id: UUID, reporter: User, payload: ReportCreate) -> Report:
    if user_id == reporter.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot report yourself")
    if db.get(User, user_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return _create_report(db, type_=REPORT_TYPE_USER, target_id=user_id, reporter=reporter, payload=payload)


__all__ = ["REPORT_TYPE_POST", "REPORT_TYPE_USER", "report_post", "report_user"]
