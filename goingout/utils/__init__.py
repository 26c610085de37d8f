"""Small pure helpers shared by the service layer."""
from .geo import DEFAULT_RADIUS_KM, EARTH_RADIUS_KM, calculate_distance, is_within_radius
from .mentions import MentionSegment, extract_mentions, parse_mentions
from .timefmt import ensure_utc, format_time_ago, utcnow

__all__ = [
    "DEFAULT_RADIUS_KM",
    "EARTH_RADIUS_KM",
    "calculate_distance",
    "is_within_radius",
    "MentionSegment",
    "extract_mentions",
    "parse_mentions",
    "ensure_utc",
    "format_time_ago",
    "utcnow",
]
