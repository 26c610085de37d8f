from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from goingout.utils import calculate_distance, ensure_utc, extract_mentions, format_time_ago, is_within_radius, parse_mentions

NOW = datetime(2026, 10, 18, 22, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("hey @Bob and @bob", ["bob"]),
        ("@alice.smith, @carol_9!", ["alice.smith", "carol_9"]),
        ("mail me at nobody@", []),
        (None, []),
    ],
)
def test_extract_mentions(text, expected):
    assert extract_mentions(text) == expected


def test_parse_mentions_keeps_surrounding_text():
    segments = parse_mentions("meet @Bob at 9")
    assert [(segment.kind, segment.value) for segment in segments] == [
        ("text", "meet "),
        ("mention", "Bob"),
        ("text", " at 9"),
    ]


@pytest.mark.parametrize(
    ("age", "expected"),
    [
        (timedelta(seconds=12), "12s ago"),
        (timedelta(minutes=5), "5m ago"),
        (timedelta(hours=3), "3h ago"),
        (timedelta(days=2), "2d ago"),
        (timedelta(days=15), "2w ago"),
        (timedelta(days=65), "2mo ago"),
        (timedelta(days=800), "2y ago"),
    ],
)
def test_format_time_ago(age, expected):
    assert format_time_ago(NOW - age, now=NOW) == expected


def test_format_time_ago_handles_naive_and_future_values():
    assert format_time_ago(None) == ""
    assert format_time_ago((NOW - timedelta(minutes=1)).replace(tzinfo=None), now=NOW) == "1m ago"
    assert format_time_ago(NOW + timedelta(minutes=5), now=NOW) == "0s ago"


def test_ensure_utc_converts_offsets():
    local = datetime(2026, 10, 18, 23, 0, tzinfo=timezone(timedelta(hours=2)))
    assert ensure_utc(local) == datetime(2026, 10, 18, 21, 0, tzinfo=timezone.utc)


def test_distance_and_radius():
    berlin, munich = (52.5200, 13.4050), (48.1351, 11.5820)
    assert calculate_distance(*berlin, *berlin) == pytest.approx(0.0)
    assert calculate_distance(*berlin, *munich) == pytest.approx(504, rel=0.01)
    assert is_within_radius(*berlin, 52.5300, 13.4050, 5)
    assert not is_within_radius(*berlin, *munich, 100)
