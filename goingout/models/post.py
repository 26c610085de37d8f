"""SQLAlchemy ORM models for posts, likes and comments."""
from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from goingout.constants import POST_VISIBILITY_LOCATION, UNKNOWN_LOCATION
from goingout.database import Base
from .base import JSONType


class Post(Base):
    __tablename__ = "posts"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # Author snapshot taken at creation time
    name = Column(String(150), nullable=True)
    username = Column(String(150), nullable=False)
    avatar = Column(String(1024), nullable=True)
    text = Column(Text, nullable=False, default="")
    location = Column(String(255), nullable=False, default=UNKNOWN_LOCATION)
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)
    image = Column(String(1024), nullable=True)
    images = Column(JSONType, nullable=False, default=list, server_default="[]")
    bar = Column(String(255), nullable=True)
    likes = Column(Integer, nullable=False, default=0, server_default="0")
    replies = Column(Integer, nullable=False, default=0, server_default="0")
    retweets = Column(Integer, nullable=False, default=0, server_default="0")
    visibility = Column(String(16), nullable=False, default=POST_VISIBILITY_LOCATION, server_default=POST_VISIBILITY_LOCATION)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=True, index=True)

    author = relationship("User", back_populates="posts")
    like_records = relationship("PostLike", back_populates="post", cascade="all, delete-orphan")
    comments = relationship("PostComment", back_populates="post", cascade="all, delete-orphan")


class PostLike(Base):
    __tablename__ = "post_likes"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    post_id = Column(UUID(as_uuid=True), ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    post = relationship("Post", back_populates="like_records")
    user = relationship("User", back_populates="post_likes")

    __table_args__ = (UniqueConstraint("post_id", "user_id", name="uq_post_likes_post_user"),)


class PostComment(Base):
    __tablename__ = "post_comments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    post_id = Column(UUID(as_uuid=True), ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    username = Column(String(150), nullable=False)
    name = Column(String(150), nullable=True)
    avatar = Column(String(1024), nullable=True)
    text = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    post = relationship("Post", back_populates="comments")
    user = relationship("User", back_populates="comments")


__all__ = ["Post", "PostLike", "PostComment"]
