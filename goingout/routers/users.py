"""Profile and user directory routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import User
from ..schemas import (
    ProfileResponse,
    ProfileUpdateRequest,
    PushTokenRequest,
    UserSearchResponse,
    UserSearchResult,
)
from ..services import (
    clear_push_token,
    get_current_user,
    get_user_by_username_or_404,
    register_push_token,
    relationship_status,
    reload_user,
    search_users,
    update_profile,
)
from .auth import _to_profile_response

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/search", response_model=UserSearchResponse)
async def search_users_endpoint(
    q: str = Query(..., min_length=1, max_length=150, alias="query"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> UserSearchResponse:
    query = q.strip()
    if not query:
        return UserSearchResponse(query="", results=[])

    viewer = reload_user(db, current_user)
    results = [
        UserSearchResult(
            id=candidate.id,
            username=candidate.username,
            name=candidate.name,
            avatar_url=candidate.avatar_url,
            status=relationship_status(db, viewer=viewer, candidate=candidate),
        )
        for candidate in search_users(db, query=query)
    ]
    return UserSearchResponse(query=query, results=results)


@router.patch("/me", response_model=ProfileResponse)
async def update_my_profile(
    payload: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> ProfileResponse:
    user = update_profile(db, user=current_user, payload=payload)
    return _to_profile_response(user)


@router.put("/me/push-token", status_code=status.HTTP_204_NO_CONTENT)
async def register_push_token_endpoint(
    payload: PushTokenRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> None:
    register_push_token(db, user=current_user, token=payload.token)


@router.delete("/me/push-token", status_code=status.HTTP_204_NO_CONTENT)
async def clear_push_token_endpoint(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> None:
    clear_push_token(db, user=current_user)


@router.get("/{username}", response_model=ProfileResponse)
async def get_profile_endpoint(
    username: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> ProfileResponse:
    return _to_profile_response(get_user_by_username_or_404(db, username))


__all__ = ["router"]
