"""WebSocket endpoint that emits realtime feed events."""
from __future__ import annotations

import json
import logging

from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect, status

from ..database import create_session
from ..models import User
from ..services import decode_access_token, get_feed
from ..services.streams import FEED_CHANNEL, feed_stream_manager

router = APIRouter()
logger = logging.getLogger(__name__)


def _feed_snapshot(user_id) -> dict:
    db = create_session()
    try:
        user = db.get(User, user_id)
        if user is None:
            return {"type": "feed.snapshot", "post_ids": []}
        return {"type": "feed.snapshot", "post_ids": [str(post.id) for post in get_feed(db, viewer=user)]}
    finally:
        db.close()


@router.websocket("/ws/feed")
async def feed_updates(
    websocket: WebSocket,
    token: str = Query(..., alias="token"),
) -> None:
    """Maintain a long-lived connection that pushes feed refresh events."""

    try:
        user_id = decode_access_token(token)
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await feed_stream_manager.connect(FEED_CHANNEL, websocket)
    logger.info("Feed socket connected from %s", websocket.client)
    try:
        while True:
            try:
                raw = await websocket.receive_text()
            except WebSocketDisconnect:
                break

            try:
                payload = json.loads(raw)
            except json.JSONDecodeError:
                payload = {"type": raw}
            if not isinstance(payload, dict):
                payload = {}

            message_type = str(payload.get("type") or "").strip().lower()
            if message_type == "ping":
                await websocket.send_text(json.dumps({"type": "pong"}))
            elif message_type == "hello":
                await websocket.send_text(json.dumps({"type": "ready"}))
            elif message_type == "refresh":
                await websocket.send_text(json.dumps(_feed_snapshot(user_id)))
    finally:
        await feed_stream_manager.disconnect(websocket)
        logger.info("Feed socket disconnected from %s", websocket.client)


__all__ = ["router"]
