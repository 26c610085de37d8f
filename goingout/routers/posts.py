"""Post, like and comment API routes."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, cast
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.orm import Session

from ..constants import UNKNOWN_LOCATION
from ..database import get_session
from ..models import Post, PostComment, User
from ..schemas import (
    CommentCreate,
    CommentListResponse,
    CommentResponse,
    MediaUploadResponse,
    PostCreate,
    PostFeedResponse,
    PostLikeResponse,
    PostResponse,
)
from ..services import (
    add_comment,
    create_post,
    delete_comment,
    delete_post,
    get_current_user,
    get_feed,
    get_posts_by_location,
    get_visible_post,
    liked_post_ids,
    list_comments,
    set_post_like_state,
    upload_or_raise_http,
)
from ..utils import format_time_ago

router = APIRouter(prefix="/posts", tags=["posts"])

logger = logging.getLogger(__name__)


def _to_post_response(post: Post, *, liked: bool = False) -> PostResponse:
    return PostResponse(
        id=post.id,
        user_id=post.user_id,
        name=post.name,
        username=post.username,
        avatar=post.avatar,
        text=post.text or "",
        location=post.location or UNKNOWN_LOCATION,
        lat=post.lat,
        lng=post.lng,
        image=post.image,
        images=list(post.images or []),
        bar=post.bar,
        likes=post.likes or 0,
        replies=post.replies or 0,
        retweets=post.retweets or 0,
        visibility=post.visibility,
        created_at=post.created_at,
        expires_at=post.expires_at,
        time_ago=format_time_ago(post.created_at),
        liked_by_me=liked,
    )


def _to_feed_response(db: Session, posts: Iterable[Post], viewer: User) -> PostFeedResponse:
    posts = list(posts)
    liked = liked_post_ids(db, user_id=cast(UUID, viewer.id), post_ids=[cast(UUID, post.id) for post in posts])
    return PostFeedResponse(items=[_to_post_response(post, liked=post.id in liked) for post in posts])


def _to_comment_response(comment: PostComment) -> CommentResponse:
    return CommentResponse.model_validate(comment)


@router.post("/", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post_endpoint(
    payload: PostCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> PostResponse:
    post = create_post(db, author=current_user, payload=payload)
    return _to_post_response(post)


@router.post("/media", response_model=MediaUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_post_media(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
) -> MediaUploadResponse:
    result = await upload_or_raise_http(file, folder="posts")
    logger.info("User %s uploaded post media %s", current_user.id, result.key)
    return MediaUploadResponse(url=result.url, key=result.key, content_type=result.content_type)


@router.get("/feed", response_model=PostFeedResponse)
async def feed_endpoint(
    location: str | None = Query(None, max_length=255),
    lat: float | None = Query(None, ge=-90, le=90),
    lng: float | None = Query(None, ge=-180, le=180),
    radius_km: float | None = Query(None, gt=0, le=500),
    before: datetime | None = None,
    limit: int | None = Query(None, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> PostFeedResponse:
    posts = get_feed(
        db,
        viewer=current_user,
        location=location,
        lat=lat,
        lng=lng,
        radius_km=radius_km,
        before=before,
        page_size=limit,
    )
    return _to_feed_response(db, posts, current_user)


@router.get("/by-location", response_model=PostFeedResponse)
async def posts_by_location_endpoint(
    location: str = Query(..., min_length=1, max_length=255),
    limit: int | None = Query(None, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> PostFeedResponse:
    posts = get_posts_by_location(db, viewer=current_user, location=location, page_size=limit)
    return _to_feed_response(db, posts, current_user)


@router.get("/{post_id}", response_model=PostResponse)
async def get_post_endpoint(
    post_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> PostResponse:
    post = get_visible_post(db, post_id=post_id, viewer=current_user)
    liked = liked_post_ids(db, user_id=cast(UUID, current_user.id), post_ids=[post_id])
    return _to_post_response(post, liked=post_id in liked)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post_endpoint(
    post_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> None:
    delete_post(db, post_id=post_id, user=current_user)


@router.post("/{post_id}/like", response_model=PostLikeResponse)
async def like_post_endpoint(
    post_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> PostLikeResponse:
    post = set_post_like_state(db, post_id=post_id, user=current_user, liked=True)
    return PostLikeResponse(post_id=post_id, likes=post.likes or 0, liked=True)


@router.delete("/{post_id}/like", response_model=PostLikeResponse)
async def unlike_post_endpoint(
    post_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> PostLikeResponse:
    post = set_post_like_state(db, post_id=post_id, user=current_user, liked=False)
    return PostLikeResponse(post_id=post_id, likes=post.likes or 0, liked=False)


@router.get("/{post_id}/comments", response_model=CommentListResponse)
async def list_comments_endpoint(
    post_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> CommentListResponse:
    comments = list_comments(db, post_id=post_id, viewer=current_user)
    return CommentListResponse(items=[_to_comment_response(comment) for comment in comments])


@router.post("/{post_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment_endpoint(
    post_id: UUID,
    payload: CommentCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> CommentResponse:
    comment = add_comment(db, post_id=post_id, author=current_user, text=payload.text)
    return _to_comment_response(comment)


@router.delete("/{post_id}/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment_endpoint(
    post_id: UUID,
    comment_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> None:
    delete_comment(db, post_id=post_id, comment_id=comment_id, user=current_user)


__all__ = ["router"]
