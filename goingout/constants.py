"""Project-wide constant values."""
from __future__ import annotations

FRIEND_REQUEST_PENDING = "pending"
FRIEND_REQUEST_ACCEPTED = "accepted"
FRIEND_REQUEST_DECLINED = "declined"
FRIEND_REQUEST_CANCELLED = "cancelled"
FRIEND_REQUEST_STATUSES = (
    FRIEND_REQUEST_PENDING,
    FRIEND_REQUEST_ACCEPTED,
    FRIEND_REQUEST_DECLINED,
    FRIEND_REQUEST_CANCELLED,
)

POST_VISIBILITY_LOCATION = "location"
POST_VISIBILITY_FRIENDS = "friends"
POST_VISIBILITIES = (POST_VISIBILITY_LOCATION, POST_VISIBILITY_FRIENDS)
UNKNOWN_LOCATION = "Unknown Location"

# Query limits carried over from the mobile client
FRIEND_REQUEST_LIMIT = 50
COMMENT_LIMIT = 50
NOTIFICATION_LIMIT = 50
EVENT_LIMIT = 50
GROUP_MESSAGE_LIMIT = 100
USER_SEARCH_LIMIT = 20

MIN_POLL_OPTIONS = 2

__all__ = [
    "FRIEND_REQUEST_PENDING",
    "FRIEND_REQUEST_ACCEPTED",
    "FRIEND_REQUEST_DECLINED",
    "FRIEND_REQUEST_CANCELLED",
    "FRIEND_REQUEST_STATUSES",
    "POST_VISIBILITY_LOCATION",
    "POST_VISIBILITY_FRIENDS",
    "POST_VISIBILITIES",
    "UNKNOWN_LOCATION",
    "FRIEND_REQUEST_LIMIT",
    "COMMENT_LIMIT",
    "NOTIFICATION_LIMIT",
    "EVENT_LIMIT",
    "GROUP_MESSAGE_LIMIT",
    "USER_SEARCH_LIMIT",
    "MIN_POLL_OPTIONS",
]
