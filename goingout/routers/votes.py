"""Tonight's poll endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import User
from ..schemas import UserVoteResponse, VoteActionResponse, VoteCount, VoteCountsResponse, VoteRequest
from ..services import get_current_user, get_user_vote, get_vote_counts, vote_for_option

router = APIRouter(prefix="/votes", tags=["votes"])


@router.post("/", response_model=VoteActionResponse)
async def vote_endpoint(
    payload: VoteRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> VoteActionResponse:
    action, option = vote_for_option(db, user=current_user, location=payload.location, option=payload.option)
    return VoteActionResponse(action=action, option=option)


@router.get("/counts", response_model=VoteCountsResponse)
async def vote_counts_endpoint(
    location: str = Query(..., min_length=1, max_length=255),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> VoteCountsResponse:
    counts = [VoteCount(option=option, count=count) for option, count in get_vote_counts(db, location=location)]
    return VoteCountsResponse(location=location, counts=counts, total=sum(item.count for item in counts))


@router.get("/me", response_model=UserVoteResponse)
async def my_vote_endpoint(
    location: str = Query(..., min_length=1, max_length=255),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> UserVoteResponse:
    return UserVoteResponse(location=location, option=get_user_vote(db, user=current_user, location=location))


__all__ = ["router"]
