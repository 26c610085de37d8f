"""Notification API routes."""
from __future__ import annotations

import json
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import Notification, User
from ..schemas import NotificationListResponse, NotificationResponse, NotificationSummaryResponse
from ..services import (
    count_unread_notifications,
    decode_access_token,
    delete_notification,
    get_current_user,
    list_notifications,
    mark_all_read,
    mark_notification_read,
)
from ..services.streams import notification_stream_manager

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _to_notification_response(record: Notification) -> NotificationResponse:
    return NotificationResponse.model_validate(record)


@router.get("/", response_model=NotificationListResponse)
async def list_my_notifications(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> NotificationListResponse:
    records = list_notifications(db, current_user.id)
    return NotificationListResponse(items=[_to_notification_response(item) for item in records])


@router.get("/summary", response_model=NotificationSummaryResponse)
async def notification_summary_endpoint(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> NotificationSummaryResponse:
    return NotificationSummaryResponse(unread_count=count_unread_notifications(db, current_user.id))


@router.post("/mark-read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_notifications_read(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> None:
    mark_all_read(db, current_user.id)


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read_endpoint(
    notification_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> NotificationResponse:
    record = mark_notification_read(db, notification_id=notification_id, recipient_id=current_user.id)
    return _to_notification_response(record)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification_endpoint(
    notification_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> None:
    delete_notification(db, notification_id=notification_id, recipient_id=current_user.id)


@router.websocket("/ws")
async def notifications_socket(
    websocket: WebSocket,
    token: str = Query(..., alias="token"),
) -> None:
    try:
        user_id = decode_access_token(token)
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await notification_stream_manager.connect(str(user_id), websocket)
    await websocket.send_text(json.dumps({"type": "ready"}))
    try:
        while True:
            try:
                payload = await websocket.receive_text()
            except WebSocketDisconnect:
                break
            if payload.strip().lower() == "ping":
                await websocket.send_text(json.dumps({"type": "pong"}))
    finally:
        await notification_stream_manager.disconnect(websocket)


__all__ = ["router"]
