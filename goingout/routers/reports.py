"""Report submission endpoints."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import User
from ..schemas import ReportCreate, ReportResponse
from ..services import get_current_user, report_post, report_user

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("/posts/{post_id}", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def report_post_endpoint(
    post_id: UUID,
    payload: ReportCreate,
    db: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> ReportResponse:
    return ReportResponse.model_validate(report_post(db, post_id=post_id, reporter=current_user, payload=payload))


@router.post("/users/{user_id}", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def report_user_endpoint(
    user_id: UUID,
    payload: ReportCreate,
    db: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> ReportResponse:
    return ReportResponse.model_validate(report_user(db, user_id=user_id, reporter=current_user, payload=payload))


__all__ = ["router"]
