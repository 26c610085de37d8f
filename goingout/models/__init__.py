"""Convenience exports for ORM models."""
from .associations import group_members
from .event import Event
from .friend_request import FriendRequest
from .group import Group, GroupLocation, GroupMessage, GroupPhoto, GroupPoll
from .notification import Notification
from .post import Post, PostComment, PostLike
from .report import Report
from .user import User
from .vote import Vote

__all__ = [
    "group_members",
    "Event",
    "FriendRequest",
    "Group",
    "GroupLocation",
    "GroupMessage",
    "GroupPhoto",
    "GroupPoll",
    "Notification",
    "Post",
    "PostComment",
    "PostLike",
    "Report",
    "User",
    "Vote",
]
