"""Aggregate router exports."""
from .auth import router as auth_router
from .blocks import router as blocks_router
from .events import router as events_router
from .friends import router as friends_router
from .groups import router as groups_router
from .notifications import router as notifications_router
from .posts import router as posts_router
from .realtime import router as realtime_router
from .reports import router as reports_router
from .users import router as users_router
from .votes import router as votes_router

__all__ = [
    "auth_router",
    "blocks_router",
    "events_router",
    "friends_router",
    "groups_router",
    "notifications_router",
    "posts_router",
    "realtime_router",
    "reports_router",
    "users_router",
    "votes_router",
]
