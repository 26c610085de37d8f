"""Event API routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import Event, User
from ..schemas import EventCreate, EventJoinResponse, EventListResponse, EventResponse, EventUpdate
from ..services import (
    check_event_join_status,
    create_event,
    delete_event,
    get_current_user,
    get_event_or_404,
    join_event,
    list_upcoming_events,
    update_event,
)

router = APIRouter(prefix="/events", tags=["events"])


def _to_event_response(event: Event) -> EventResponse:
    return EventResponse.model_validate(event)


@router.get("/", response_model=EventListResponse)
async def list_events_endpoint(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> EventListResponse:
    return EventListResponse(items=[_to_event_response(event) for event in list_upcoming_events(db)])


@router.post("/", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    payload: EventCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> EventResponse:
    return _to_event_response(create_event(db, creator=current_user, payload=payload))


@router.get("/{event_id}", response_model=EventResponse)
async def get_event_endpoint(
    event_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> EventResponse:
    return _to_event_response(get_event_or_404(db, event_id))


@router.patch("/{event_id}", response_model=EventResponse)
async def update_event_endpoint(
    event_id: UUID,
    payload: EventUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> EventResponse:
    return _to_event_response(update_event(db, event_id=event_id, user=current_user, payload=payload))


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event_endpoint(
    event_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> None:
    delete_event(db, event_id=event_id, user=current_user)


@router.post("/{event_id}/join", response_model=EventJoinResponse)
async def join_event_endpoint(
    event_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> EventJoinResponse:
    event = join_event(db, event_id=event_id, user=current_user)
    return EventJoinResponse(event_id=event.id, group_id=event.group_id, joined=True)


@router.get("/{event_id}/join", response_model=EventJoinResponse)
async def event_join_status_endpoint(
    event_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> EventJoinResponse:
    event = get_event_or_404(db, event_id)
    joined = check_event_join_status(db, event_id=event_id, user=current_user)
    return EventJoinResponse(event_id=event.id, group_id=event.group_id, joined=joined)


__all__ = ["router"]
