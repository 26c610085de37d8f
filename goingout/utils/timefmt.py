"""Timestamp helpers.

SQLite hands back naive datetimes for ``DateTime(timezone=True)`` columns, so
every comparison against "now" goes through :func:`ensure_utc` first.
"""
from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_time_ago(value: datetime | None, *, now: datetime | None = None) -> str:
    """Render a compact relative age such as ``5m ago`` or ``3w ago``."""

    moment = ensure_utc(value)
    if moment is None:
        return ""
    reference = ensure_utc(now) or utcnow()
    seconds = max(int((reference - moment).total_seconds()), 0)

    if seconds < 60:
        return f"{seconds}s ago"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes}m ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    days = hours // 24
    if days < 7:
        return f"{days}d ago"
    if days < 30:
        return f"{days // 7}w ago"
    if days < 365:
        return f"{days // 30}mo ago"
    return f"{days // 365}y ago"


__all__ = ["utcnow", "ensure_utc", "format_time_ago"]
