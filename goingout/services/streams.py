"""WebSocket fan-out keyed by user id or group id.

Each manager stands in for a family of live queries: a client connects to a
channel and receives every payload broadcast to that channel until it
disconnects.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Iterable

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class StreamManager:
    """Tracks per-channel WebSocket connections and broadcasts payloads."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._channels: dict[str, set[WebSocket]] = {}
        self._connections: dict[WebSocket, str] = {}
        self._lock = asyncio.Lock()

    async def connect(self, channel: str, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._channels.setdefault(channel, set()).add(websocket)
            self._connections[websocket] = channel
        logger.info("%s stream connected on channel %s", self.name, channel)

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            channel = self._connections.pop(websocket, None)
            if not channel:
                return
            group = self._channels.get(channel)
            if group is None:
                return
            group.discard(websocket)
            if not group:
                self._channels.pop(channel, None)

    def connection_count(self, channel: str) -> int:
        return len(self._channels.get(channel, ()))

    async def broadcast(self, channels: str | Iterable[str], payload: dict[str, Any]) -> None:
        if not channels:
            return
        if isinstance(channels, str):
            targets_ids = [channels]
        else:
            targets_ids = [channel for channel in channels if channel]
        if not targets_ids:
            return
        serialized = json.dumps(payload, default=str)
        async with self._lock:
            targets: list[WebSocket] = []
            for channel in targets_ids:
                targets.extend(self._channels.get(channel, ()))
        for ws in targets:
            try:
                await ws.send_text(serialized)
            except Exception:
                logger.warning("Dropping unreachable %s stream connection", self.name)
                await self.disconnect(ws)


def schedule_broadcast(manager: StreamManager, channels: str | Iterable[str], payload: dict[str, Any]) -> None:
    """Fire-and-forget ``manager.broadcast`` on the running loop.

    Service functions are synchronous; outside an event loop (scripts, worker
    threads) there are no sockets to reach, so the event is dropped.
    """

    if isinstance(channels, str):
        targets: str | list[str] = channels
    else:
        targets = [str(channel) for channel in channels]
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.debug("No running loop; dropping %s event", manager.name)
        return
    loop.create_task(manager.broadcast(targets, payload))


notification_stream_manager = StreamManager("notifications")
friend_stream_manager = StreamManager("friends")
group_stream_manager = StreamManager("groups")
feed_stream_manager = StreamManager("feed")

# Every feed socket joins the same channel.
FEED_CHANNEL = "feed"


__all__ = [
    "StreamManager",
    "schedule_broadcast",
    "notification_stream_manager",
    "friend_stream_manager",
    "group_stream_manager",
    "feed_stream_manager",
    "FEED_CHANNEL",
]
