"""Parsing of ``@username`` mentions inside post and comment text."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

MENTION_PATTERN = re.compile(r"@([a-zA-Z0-9][a-zA-Z0-9_.-]*)")


@dataclass(frozen=True, slots=True)
class MentionSegment:
    """A run of plain text or a single mention, in reading order."""

    kind: Literal["text", "mention"]
    value: str


def extract_mentions(text: str | None) -> list[str]:
    """Return unique lowercase usernames mentioned in ``text`` in first-seen order."""

    if not text:
        return []
    seen: dict[str, None] = {}
    for match in MENTION_PATTERN.finditer(text):
        seen.setdefault(match.group(1).lower(), None)
    return list(seen)


def parse_mentions(text: str | None) -> list[MentionSegment]:
    if not text:
        return []

    segments: list[MentionSegment] = []
    cursor = 0
    for match in MENTION_PATTERN.finditer(text):
        if match.start() > cursor:
            segments.append(MentionSegment("text", text[cursor:match.start()]))
        segments.append(MentionSegment("mention", match.group(1)))
        cursor = match.end()
    if cursor < len(text):
        segments.append(MentionSegment("text", text[cursor:]))
    return segments


__all__ = ["MENTION_PATTERN", "MentionSegment", "extract_mentions", "parse_mentions"]
