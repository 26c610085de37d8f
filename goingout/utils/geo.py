"""Great-circle distance helpers used for radius filtering."""
from __future__ import annotations

import math

EARTH_RADIUS_KM = 6371.0
DEFAULT_RADIUS_KM = 10.0


def calculate_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Return the haversine distance between two coordinates in kilometres."""

    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def is_within_radius(
    lat1: float,
    lng1: float,
    lat2: float,
    lng2: float,
    radius_km: float = DEFAULT_RADIUS_KM,
) -> bool:
    return calculate_distance(lat1, lng1, lat2, lng2) <= radius_km


__all__ = ["EARTH_RADIUS_KM", "DEFAULT_RADIUS_KM", "calculate_distance", "is_within_radius"]
