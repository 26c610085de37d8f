"""Block list routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import User
from ..schemas import BlockedUserResponse, BlockListResponse, BlockStatusResponse
from ..services import block_user, get_blocked_users, get_current_user, is_user_blocked, unblock_user

router = APIRouter(prefix="/blocks", tags=["blocks"])


@router.get("/", response_model=BlockListResponse)
async def list_blocked_users(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> BlockListResponse:
    return BlockListResponse(
        items=[
            BlockedUserResponse(username=user.username, name=user.name, avatar_url=user.avatar_url)
            for user in get_blocked_users(db, user=current_user)
        ]
    )


@router.get("/{username}", response_model=BlockStatusResponse)
async def block_status(
    username: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> BlockStatusResponse:
    return BlockStatusResponse(username=username, blocked=is_user_blocked(db, user=current_user, username=username))


@router.post("/{username}", response_model=BlockStatusResponse)
async def block_user_endpoint(
    username: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> BlockStatusResponse:
    block_user(db, blocker=current_user, username=username)
    return BlockStatusResponse(username=username, blocked=True)


@router.delete("/{username}", response_model=BlockStatusResponse)
async def unblock_user_endpoint(
    username: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> BlockStatusResponse:
    unblock_user(db, blocker=current_user, username=username)
    return BlockStatusResponse(username=username, blocked=False)


__all__ = ["router"]
