"""Comments on posts; ``post.replies`` tracks the live count."""
from __future__ import annotations

import logging
from typing import cast
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import case, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..constants import COMMENT_LIMIT
from ..models import Post, PostComment, User
from ..utils import utcnow
from .block_service import hidden_user_ids, is_blocked_between
from .notification_service import NotificationType, notify_mentions, notify_safely
from .post_service import get_post_or_404
from .streams import FEED_CHANNEL, feed_stream_manager, schedule_broadcast
from .user_service import reload_user

logger = logging.getLogger(__name__)


def add_comment(db: Session, *, post_id: UUID, author: User, text: str) -> PostComment:
    content = (text or "").strip()
    if not content:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Comment text is required")

    me = reload_user(db, author)
    post = get_post_or_404(db, post_id)
    if post.author is not None and is_blocked_between(me, post.author):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You cannot interact with this post")

    comment = PostComment(
        post_id=post_id,
        user_id=cast(UUID, me.id),
        username=me.username,
        name=me.display_name,
        avatar=me.avatar_url,
        text=content,
        created_at=utcnow(),
    )
    post.replies = Post.replies + 1
    try:
        db.add(comment)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to add comment") from exc
    db.refresh(comment)
    db.refresh(post)

    schedule_broadcast(
        feed_stream_manager,
        FEED_CHANNEL,
        {"type": "post.commented", "post_id": str(post_id), "replies": post.replies},
    )
    # The post owner hears about it unless they wrote the comment.
    if post.user_id != me.id:
        notify_safely(
            db,
            recipient_id=cast(UUID, post.user_id),
            sender=me,
            type_=NotificationType.COMMENT,
            message="commented on your post",
            post_id=post_id,
            comment_id=cast(UUID, comment.id),
        )
    notify_mentions(
        db,
        author=me,
        text=content,
        message="mentioned you in a comment",
        post_id=post_id,
        comment_id=cast(UUID, comment.id),
    )
    return comment


def list_comments(db: Session, *, post_id: UUID, viewer: User, limit: int = COMMENT_LIMIT) -> list[PostComment]:
    """Newest comments first, hiding authors in a block relationship with the viewer."""

    me = reload_user(db, viewer)
    get_post_or_404(db, post_id)
    stmt = (
        select(PostComment)
        .where(PostComment.post_id == post_id)
        .order_by(PostComment.created_at.desc())
        .limit(limit)
    )
    comments = list(db.scalars(stmt))
    hidden = hidden_user_ids(db, viewer=me, candidate_ids={cast(UUID, comment.user_id) for comment in comments})
    return [comment for comment in comments if comment.user_id not in hidden]


def delete_comment(db: Session, *, post_id: UUID, comment_id: UUID, user: User) -> None:
    comment = db.get(PostComment, comment_id)
    if comment is None or comment.post_id != post_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")
    if comment.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to delete this comment")

    post = db.get(Post, post_id)
    try:
        db.delete(comment)
        if post is not None:
            post.replies = case((Post.replies > 0, Post.replies - 1), else_=0)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete comment") from exc
    if post is not None:
        db.refresh(post)
        schedule_broadcast(
            feed_stream_manager,
            FEED_CHANNEL,
            {"type": "post.comment_deleted", "post_id": str(post_id), "replies": post.replies},
        )


__all__ = ["add_comment", "list_comments", "delete_comment"]
