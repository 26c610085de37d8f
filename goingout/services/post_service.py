"""Expiring location posts: creation, the visibility-filtered feed and likes."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterable, cast
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import and_, case, delete, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import get_settings
from ..constants import POST_VISIBILITY_FRIENDS, UNKNOWN_LOCATION
from ..models import Post, PostComment, PostLike, User
from ..schemas import PostCreate
from ..utils import ensure_utc, is_within_radius, utcnow
from .block_service import hidden_user_ids, is_blocked_between
from .notification_service import NotificationType, notify_mentions, notify_safely
from .streams import FEED_CHANNEL, feed_stream_manager, schedule_broadcast
from .user_service import reload_user, user_key

logger = logging.getLogger(__name__)


def normalize_location(location: str | None) -> str:
    return (location or "").strip().lower()


def is_expired(post: Post, *, now: datetime | None = None) -> bool:
    """Posts without ``expires_at`` predate expiry and never expire."""

    expires_at = ensure_utc(post.expires_at)
    if expires_at is None:
        return False
    return expires_at <= (now or utcnow())


def _unexpired_clause(now: datetime):
    return or_(Post.expires_at.is_(None), Post.expires_at > now)


def _normalize_images(payload: PostCreate) -> tuple[str | None, list[str]]:
    images = [image.strip() for image in payload.images if image and image.strip()]
    single = (payload.image or "").strip() or None
    if single and single not in images:
        images.insert(0, single)
    return (single or (images[0] if images else None)), images


def create_post(db: Session, *, author: User, payload: PostCreate) -> Post:
    me = reload_user(db, author)
    image, images = _normalize_images(payload)
    text = payload.text.strip()
    if not text and not images:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Post must include text or an image")

    now = utcnow()
    post = Post(
        user_id=cast(UUID, me.id),
        name=me.display_name,
        username=me.username,
        avatar=me.avatar_url,
        text=text,
        location=(payload.location or "").strip() or UNKNOWN_LOCATION,
        lat=payload.lat,
        lng=payload.lng,
        image=image,
        images=images,
        bar=(payload.bar or "").strip() or None,
        likes=0,
        replies=0,
        retweets=0,
        visibility=payload.visibility,
        created_at=now,
        expires_at=now + timedelta(hours=get_settings().post_ttl_hours),
    )
    try:
        db.add(post)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create post") from exc
    db.refresh(post)

    notify_mentions(db, author=me, text=text, message="mentioned you in a post", post_id=cast(UUID, post.id))
    schedule_broadcast(
        feed_stream_manager,
        FEED_CHANNEL,
        {"type": "post.created", "post_id": str(post.id), "visibility": post.visibility},
    )
    return post


def get_post_or_404(db: Session, post_id: UUID) -> Post:
    post = db.get(Post, post_id)
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return post


def can_view_post(viewer: User, post: Post, *, now: datetime | None = None) -> bool:
    if is_expired(post, now=now):
        return False
    if post.user_id == viewer.id:
        return True
    author = post.author
    if author is not None and is_blocked_between(viewer, author):
        return False
    if post.visibility == POST_VISIBILITY_FRIENDS:
        return author is not None and user_key(author) in (viewer.friends or [])
    return True


def get_visible_post(db: Session, *, post_id: UUID, viewer: User) -> Post:
    me = reload_user(db, viewer)
    post = get_post_or_404(db, post_id)
    if not can_view_post(me, post):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return post


def get_feed(
    db: Session,
    *,
    viewer: User,
    location: str | None = None,
    lat: float | None = None,
    lng: float | None = None,
    radius_km: float | None = None,
    before: datetime | None = None,
    page_size: int | None = None,
) -> list[Post]:
    """Unexpired posts the viewer may see, newest first.

    Friends-only posts are shown to their author and to viewers whose friend
    list holds the author, and ignore the location filter. Location posts must
    share the viewer's normalized location when both sides have one, and fall
    within ``radius_km`` when coordinates are given on both sides.
    """

    me = reload_user(db, viewer)
    settings = get_settings()
    limit = page_size or settings.feed_page_size
    now = utcnow()
    wanted_location = normalize_location(location if location is not None else me.location)

    friends_clause = and_(
        Post.visibility == POST_VISIBILITY_FRIENDS,
        or_(Post.user_id == me.id, User.username_lowercase.in_(list(me.friends or []))),
    )
    location_clause = Post.visibility != POST_VISIBILITY_FRIENDS
    if wanted_location:
        location_clause = and_(
            location_clause,
            or_(
                func.coalesce(Post.location, "") == "",
                func.lower(func.trim(Post.location)) == wanted_location,
            ),
        )

    stmt = (
        select(Post)
        .join(User, User.id == Post.user_id)
        .where(_unexpired_clause(now), or_(friends_clause, location_clause))
        .order_by(Post.created_at.desc(), Post.id.desc())
        .limit(limit * 3)
    )
    if before is not None:
        stmt = stmt.where(Post.created_at < before)

    candidates = list(db.scalars(stmt))
    hidden = hidden_user_ids(db, viewer=me, candidate_ids={cast(UUID, post.user_id) for post in candidates})
    radius = radius_km if radius_km is not None else settings.default_radius_km

    posts: list[Post] = []
    seen: set[UUID] = set()
    for post in candidates:
        post_id = cast(UUID, post.id)
        if post_id in seen or post.user_id in hidden:
            continue
        if (
            post.visibility != POST_VISIBILITY_FRIENDS
            and lat is not None
            and lng is not None
            and post.lat is not None
            and post.lng is not None
            and not is_within_radius(lat, lng, post.lat, post.lng, radius)
        ):
            continue
        seen.add(post_id)
        posts.append(post)
        if len(posts) >= limit:
            break
    return posts


def get_posts_by_location(db: Session, *, viewer: User, location: str, page_size: int | None = None) -> list[Post]:
    me = reload_user(db, viewer)
    wanted = normalize_location(location)
    if not wanted:
        return []
    limit = page_size or get_settings().feed_page_size
    stmt = (
        select(Post)
        .where(
            _unexpired_clause(utcnow()),
            Post.visibility != POST_VISIBILITY_FRIENDS,
            func.lower(func.trim(Post.location)) == wanted,
        )
        .order_by(Post.created_at.desc())
        .limit(limit)
    )
    posts = list(db.scalars(stmt))
    hidden = hidden_user_ids(db, viewer=me, candidate_ids={cast(UUID, post.user_id) for post in posts})
    return [post for post in posts if post.user_id not in hidden]


def liked_post_ids(db: Session, *, user_id: UUID, post_ids: Iterable[UUID]) -> set[UUID]:
    ids = list(post_ids)
    if not ids:
        return set()
    stmt = select(PostLike.post_id).where(PostLike.user_id == user_id, PostLike.post_id.in_(ids))
    return set(db.scalars(stmt))


def set_post_like_state(db: Session, *, post_id: UUID, user: User, liked: bool) -> Post:
    """Idempotently like or unlike; ``post.likes`` follows the like rows."""

    me = reload_user(db, user)
    post = get_post_or_404(db, post_id)
    if post.author is not None and is_blocked_between(me, post.author):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You cannot interact with this post")

    user_id = cast(UUID, me.id)
    existing = db.scalar(select(PostLike).where(PostLike.post_id == post_id, PostLike.user_id == user_id))
    changed = False
    if liked and existing is None:
        db.add(PostLike(post_id=post_id, user_id=user_id))
        post.likes = Post.likes + 1
        changed = True
    elif not liked and existing is not None:
        db.delete(existing)
        post.likes = case((Post.likes > 0, Post.likes - 1), else_=0)
        changed = True

    if changed:
        try:
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update like") from exc
        db.refresh(post)
        schedule_broadcast(
            feed_stream_manager,
            FEED_CHANNEL,
            {"type": "post.liked", "post_id": str(post.id), "likes": post.likes},
        )
        if liked:
            notify_safely(
                db,
                recipient_id=cast(UUID, post.user_id),
                sender=me,
                type_=NotificationType.LIKE,
                message="liked your post",
                post_id=cast(UUID, post.id),
            )
    return post


def delete_post(db: Session, *, post_id: UUID, user: User) -> None:
    post = get_post_or_404(db, post_id)
    if post.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only delete your own posts")
    try:
        db.delete(post)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to delete post %s", post_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete post") from exc
    schedule_broadcast(feed_stream_manager, FEED_CHANNEL, {"type": "post.deleted", "post_id": str(post_id)})


def delete_expired_posts(db: Session, *, grace: timedelta) -> int:
    """Hard-delete posts whose expiry passed more than ``grace`` ago. Caller commits."""

    cutoff = utcnow() - grace
    expired_ids = list(db.scalars(select(Post.id).where(Post.expires_at.is_not(None), Post.expires_at < cutoff)))
    if not expired_ids:
        return 0
    db.execute(delete(PostLike).where(PostLike.post_id.in_(expired_ids)))
    db.execute(delete(PostComment).where(PostComment.post_id.in_(expired_ids)))
    db.execute(delete(Post).where(Post.id.in_(expired_ids)))
    return len(expired_ids)


__all__ = [
    "normalize_location",
    "is_expired",
    "create_post",
    "get_post_or_404",
    "can_view_post",
    "get_visible_post",
    "get_feed",
    "get_posts_by_location",
    "liked_post_ids",
    "set_post_like_state",
    "delete_post",
    "delete_expired_posts",
]
