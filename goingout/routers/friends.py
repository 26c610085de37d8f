"""Friend request and friend list API routes."""
from __future__ import annotations

import json
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import Session

from ..database import create_session, get_session
from ..models import FriendRequest, User
from ..schemas import (
    FriendListResponse,
    FriendRequestPayload,
    FriendRequestResponse,
    FriendsOverviewResponse,
    FriendStatusResponse,
    FriendSyncResponse,
    UserSummary,
)
from ..services import (
    accept_friend_request,
    add_friend,
    cancel_friend_request,
    check_friendship,
    decline_friend_request,
    decode_access_token,
    friends_snapshot,
    get_current_user,
    get_friends,
    list_friend_requests,
    remove_friend,
    send_friend_request,
    serialize_request,
    sync_accepted_requests,
)
from ..services.streams import friend_stream_manager

router = APIRouter(prefix="/friends", tags=["friends"])
logger = logging.getLogger(__name__)


def _request_response(request: FriendRequest) -> FriendRequestResponse:
    return FriendRequestResponse(**serialize_request(request), responded_at=request.responded_at)


def _overview(db: Session, user: User) -> FriendsOverviewResponse:
    incoming, outgoing = list_friend_requests(db, user=user)
    return FriendsOverviewResponse(
        friends=[UserSummary.model_validate(friend) for friend in get_friends(db, user=user)],
        incoming_requests=[_request_response(item) for item in incoming],
        outgoing_requests=[_request_response(item) for item in outgoing],
    )


@router.get("/", response_model=FriendsOverviewResponse)
async def friends_overview(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> FriendsOverviewResponse:
    sync_accepted_requests(db, user=current_user)
    return _overview(db, current_user)


@router.get("/list", response_model=FriendListResponse)
async def friend_usernames(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> FriendListResponse:
    return FriendListResponse(friends=[friend.username for friend in get_friends(db, user=current_user)])


@router.post("/sync", response_model=FriendSyncResponse)
async def sync_friends(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> FriendSyncResponse:
    return FriendSyncResponse(added=sync_accepted_requests(db, user=current_user))


@router.post("/requests", response_model=FriendRequestResponse, status_code=status.HTTP_201_CREATED)
async def send_friend_request_endpoint(
    payload: FriendRequestPayload,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> FriendRequestResponse:
    request = send_friend_request(db, sender=current_user, recipient_username=payload.username)
    return _request_response(request)


@router.post("/requests/{request_id}/accept", response_model=FriendRequestResponse)
async def accept_friend_request_endpoint(
    request_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> FriendRequestResponse:
    request = accept_friend_request(db, request_id=request_id, recipient=current_user)
    return _request_response(request)


@router.post("/requests/{request_id}/decline", status_code=status.HTTP_204_NO_CONTENT)
async def decline_friend_request_endpoint(
    request_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> None:
    decline_friend_request(db, request_id=request_id, recipient=current_user)


@router.delete("/requests/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_friend_request_endpoint(
    request_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> None:
    cancel_friend_request(db, request_id=request_id, sender=current_user)


@router.get("/{username}/status", response_model=FriendStatusResponse)
async def friendship_status(
    username: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> FriendStatusResponse:
    return FriendStatusResponse(username=username, is_friend=check_friendship(db, user=current_user, username=username))


@router.post("/{username}", response_model=FriendListResponse)
async def add_friend_endpoint(
    username: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> FriendListResponse:
    user = add_friend(db, user=current_user, username=username)
    return FriendListResponse(friends=list(user.friends or []))


@router.delete("/{username}", response_model=FriendListResponse)
async def remove_friend_endpoint(
    username: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> FriendListResponse:
    user = remove_friend(db, user=current_user, username=username)
    return FriendListResponse(friends=list(user.friends or []))


@router.websocket("/ws")
async def friends_socket(
    websocket: WebSocket,
    token: str = Query(..., alias="token"),
) -> None:
    """Stream friend list changes; the client receives a fresh snapshot on connect."""

    try:
        user_id = decode_access_token(token)
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    db = create_session()
    try:
        user = db.get(User, user_id)
        if user is None:
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return

        await friend_stream_manager.connect(str(user_id), websocket)
        try:
            sync_accepted_requests(db, user=user)
            await websocket.send_text(json.dumps(friends_snapshot(db, user=user), default=str))
            while True:
                try:
                    raw = await websocket.receive_text()
                except WebSocketDisconnect:
                    break
                message = raw.strip().lower()
                if message == "ping":
                    await websocket.send_text(json.dumps({"type": "pong"}))
                elif message == "sync":
                    sync_accepted_requests(db, user=user)
                    await websocket.send_text(json.dumps(friends_snapshot(db, user=user), default=str))
        finally:
            await friend_stream_manager.disconnect(websocket)
    finally:
        db.close()


__all__ = ["router"]
