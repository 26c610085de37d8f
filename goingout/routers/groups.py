"""Group, group chat, poll, location and album API routes."""
from __future__ import annotations

import json
from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import Session

from ..database import create_session, get_session
from ..models import Group, User
from ..schemas import (
    GroupCreate,
    GroupInvitationPayload,
    GroupLocationResponse,
    GroupMediaMessageCreate,
    GroupMemberPayload,
    GroupMessageCreate,
    GroupMessageListResponse,
    GroupMessageResponse,
    GroupPhotoCreate,
    GroupPhotoResponse,
    GroupResponse,
    LocationSharePayload,
    PollCreate,
    PollResponse,
    PollVotePayload,
    UserSummary,
)
from ..services import (
    accept_group_invitation,
    add_member_by_username,
    add_photo,
    add_video,
    create_group,
    create_poll,
    decline_group_invitation,
    decode_access_token,
    delete_group,
    delete_poll,
    get_current_user,
    is_group_active,
    list_locations,
    list_messages,
    list_photos,
    list_polls,
    list_user_groups,
    remove_member,
    require_member,
    send_group_invitation,
    send_media_message,
    send_message,
    share_location,
    stop_sharing_location,
    update_group_picture,
    upload_to_album,
    vote_on_poll,
)
from ..services.group_service import is_member
from ..services.streams import group_stream_manager

router = APIRouter(prefix="/groups", tags=["groups"])


def _to_group_response(group: Group) -> GroupResponse:
    return GroupResponse(
        id=group.id,
        name=group.name,
        description=group.description,
        creator_id=group.creator_id,
        members=[UserSummary.model_validate(member) for member in group.members],
        member_count=group.member_count,
        start_time=group.start_time,
        end_time=group.end_time,
        profile_picture=group.profile_picture,
        cover_photo=group.cover_photo,
        is_active=is_group_active(group),
        created_at=group.created_at,
    )


@router.get("/", response_model=list[GroupResponse])
async def list_my_groups(
    include_expired: bool = False,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> list[GroupResponse]:
    groups = list_user_groups(db, user=current_user, include_expired=include_expired)
    return [_to_group_response(group) for group in groups]


@router.post("/", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
async def create_group_endpoint(
    payload: GroupCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> GroupResponse:
    return _to_group_response(create_group(db, creator=current_user, payload=payload))


@router.post("/invitations/{notification_id}/accept", response_model=GroupResponse)
async def accept_invitation_endpoint(
    notification_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> GroupResponse:
    group = accept_group_invitation(db, notification_id=notification_id, user=current_user)
    return _to_group_response(group)


@router.post("/invitations/{notification_id}/decline", status_code=status.HTTP_204_NO_CONTENT)
async def decline_invitation_endpoint(
    notification_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> None:
    decline_group_invitation(db, notification_id=notification_id, user=current_user)


@router.get("/{group_id}", response_model=GroupResponse)
async def get_group_endpoint(
    group_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> GroupResponse:
    return _to_group_response(require_member(db, group_id=group_id, user=current_user))


@router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_group_endpoint(
    group_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> None:
    delete_group(db, group_id=group_id, user=current_user)


@router.post("/{group_id}/members", response_model=GroupResponse)
async def add_member_endpoint(
    group_id: UUID,
    payload: GroupMemberPayload,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> GroupResponse:
    group = add_member_by_username(db, group_id=group_id, actor=current_user, username=payload.username)
    return _to_group_response(group)


@router.delete("/{group_id}/members/{user_id}", response_model=GroupResponse)
async def remove_member_endpoint(
    group_id: UUID,
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> GroupResponse:
    group = remove_member(db, group_id=group_id, actor=current_user, user_id=user_id)
    return _to_group_response(group)


@router.post("/{group_id}/invitations", status_code=status.HTTP_202_ACCEPTED)
async def invite_members_endpoint(
    group_id: UUID,
    payload: GroupInvitationPayload,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> dict[str, int]:
    sent = send_group_invitation(db, group_id=group_id, inviter=current_user, usernames=payload.usernames)
    return {"invited": len(sent)}


@router.put("/{group_id}/pictures/{kind}", response_model=GroupResponse)
async def update_group_picture_endpoint(
    group_id: UUID,
    kind: str,
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> GroupResponse:
    group = await update_group_picture(db, group_id=group_id, user=current_user, kind=kind, file=file)
    return _to_group_response(group)


@router.get("/{group_id}/messages", response_model=GroupMessageListResponse)
async def list_messages_endpoint(
    group_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> GroupMessageListResponse:
    messages = list_messages(db, group_id=group_id, viewer=current_user)
    return GroupMessageListResponse(items=[GroupMessageResponse.model_validate(item) for item in messages])


@router.post("/{group_id}/messages", response_model=GroupMessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message_endpoint(
    group_id: UUID,
    payload: GroupMessageCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> GroupMessageResponse:
    message = send_message(db, group_id=group_id, author=current_user, text=payload.text)
    return GroupMessageResponse.model_validate(message)


@router.post("/{group_id}/messages/media", response_model=GroupMessageResponse, status_code=status.HTTP_201_CREATED)
async def send_media_message_endpoint(
    group_id: UUID,
    payload: GroupMediaMessageCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> GroupMessageResponse:
    message = send_media_message(
        db, group_id=group_id, author=current_user, media_type=payload.type, url=payload.url, text=payload.text
    )
    return GroupMessageResponse.model_validate(message)


@router.get("/{group_id}/photos", response_model=list[GroupPhotoResponse])
async def list_photos_endpoint(
    group_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> list[GroupPhotoResponse]:
    return [GroupPhotoResponse.model_validate(item) for item in list_photos(db, group_id=group_id, viewer=current_user)]


@router.post("/{group_id}/photos", response_model=GroupPhotoResponse, status_code=status.HTTP_201_CREATED)
async def add_photo_endpoint(
    group_id: UUID,
    payload: GroupPhotoCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> GroupPhotoResponse:
    add = add_video if payload.media_type == "video" else add_photo
    photo = add(db, group_id=group_id, user=current_user, url=payload.url)
    return GroupPhotoResponse.model_validate(photo)


@router.post("/{group_id}/photos/upload", response_model=GroupPhotoResponse, status_code=status.HTTP_201_CREATED)
async def upload_photo_endpoint(
    group_id: UUID,
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> GroupPhotoResponse:
    photo = await upload_to_album(db, group_id=group_id, user=current_user, file=file)
    return GroupPhotoResponse.model_validate(photo)


@router.get("/{group_id}/locations", response_model=list[GroupLocationResponse])
async def list_locations_endpoint(
    group_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> list[GroupLocationResponse]:
    return [
        GroupLocationResponse.model_validate(item) for item in list_locations(db, group_id=group_id, viewer=current_user)
    ]


@router.put("/{group_id}/locations", response_model=GroupLocationResponse)
async def share_location_endpoint(
    group_id: UUID,
    payload: LocationSharePayload,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> GroupLocationResponse:
    location = share_location(db, group_id=group_id, user=current_user, lat=payload.lat, lng=payload.lng)
    return GroupLocationResponse.model_validate(location)


@router.delete("/{group_id}/locations", status_code=status.HTTP_204_NO_CONTENT)
async def stop_sharing_location_endpoint(
    group_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> None:
    stop_sharing_location(db, group_id=group_id, user=current_user)


@router.get("/{group_id}/polls", response_model=list[PollResponse])
async def list_polls_endpoint(
    group_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> list[PollResponse]:
    return [PollResponse.model_validate(poll) for poll in list_polls(db, group_id=group_id, viewer=current_user)]


@router.post("/{group_id}/polls", response_model=PollResponse, status_code=status.HTTP_201_CREATED)
async def create_poll_endpoint(
    group_id: UUID,
    payload: PollCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> PollResponse:
    return PollResponse.model_validate(create_poll(db, group_id=group_id, creator=current_user, payload=payload))


@router.post("/{group_id}/polls/{poll_id}/vote", response_model=PollResponse)
async def vote_on_poll_endpoint(
    group_id: UUID,
    poll_id: UUID,
    payload: PollVotePayload,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> PollResponse:
    poll = vote_on_poll(db, group_id=group_id, poll_id=poll_id, voter=current_user, option_id=payload.option_id)
    return PollResponse.model_validate(poll)


@router.delete("/{group_id}/polls/{poll_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_poll_endpoint(
    group_id: UUID,
    poll_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> None:
    delete_poll(db, group_id=group_id, poll_id=poll_id, user=current_user)


@router.websocket("/{group_id}/ws")
async def group_socket(
    websocket: WebSocket,
    group_id: UUID,
    token: str = Query(..., alias="token"),
) -> None:
    """Stream chat, poll, location and album events for one group to its members."""

    try:
        user_id = decode_access_token(token)
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    db = create_session()
    try:
        group = db.get(Group, group_id)
        allowed = group is not None and is_member(group, user_id)
    finally:
        db.close()
    if not allowed:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await group_stream_manager.connect(str(group_id), websocket)
    await websocket.send_text(json.dumps({"type": "ready", "group_id": str(group_id)}))
    try:
        while True:
            try:
                payload = await websocket.receive_text()
            except WebSocketDisconnect:
                break
            if payload.strip().lower() == "ping":
                await websocket.send_text(json.dumps({"type": "pong"}))
    finally:
        await group_stream_manager.disconnect(websocket)


__all__ = ["router"]
