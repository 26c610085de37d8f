from __future__ import annotations

import logging
from typing import Any

import httpx

from ..config import get_settings

logger = logging.getLogger(__name__)


class PushDeliveryError(RuntimeError):
    """Raised when Expo rejects or cannot receive a push message."""


def build_push_message(token: str, title: str, body: str, data: dict[str, Any] | None = None) -> dict[str, Any]:
    return {
        "to": token,
        "sound": "default",
        "title": title,
        "body": body,
        "data": data or {},
    }


async def send_push_message(token: str, title: str, body: str, data: dict[str, Any] | None = None) -> dict[str, Any]:
    """Post a single message to the Expo push API and return its ticket.

    Raises PushDeliveryError on transport failures, non-2xx responses or an
    ``error`` ticket.
    """

    settings = get_settings()
    payload = build_push_message(token, title, body, data)
    try:
        async with httpx.AsyncClient(timeout=settings.expo_push_timeout) as client:
            response = await client.post(
                settings.expo_push_url,
                json=payload,
                headers={"Accept": "application/json", "Content-Type": "application/json"},
            )
            response.raise_for_status()
            body_json = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        raise PushDeliveryError("Expo push request failed") from exc

    ticket = body_json.get("data") if isinstance(body_json, dict) else None
    if isinstance(ticket, list):
        ticket = ticket[0] if ticket else None
    if not isinstance(ticket, dict):
        raise PushDeliveryError("Invalid Expo push response")
    if ticket.get("status") == "error":
        raise PushDeliveryError(str(ticket.get("message") or "Expo rejected the push message"))
    return ticket


__all__ = ["PushDeliveryError", "build_push_message", "send_push_message"]
