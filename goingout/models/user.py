"""SQLAlchemy ORM model for application users."""
from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from goingout.database import Base
from .associations import group_members
from .base import JSONType


class User(Base):
    """A GoingOut account.

    ``friends`` and ``blocked`` hold lowercase usernames and belong to this row.
    Friendship operations never write another user's arrays; only a username
    change rewrites the old name wherever other users reference it.
    """

    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    username = Column(String(150), nullable=False)
    username_lowercase = Column(String(150), unique=True, nullable=True, index=True)
    name = Column(String(150), nullable=True)
    email = Column(String(255), unique=True, nullable=True)
    hashed_password = Column(String(255), nullable=False)
    avatar_url = Column(String(1024), nullable=True)
    bio = Column(String(500), nullable=True)
    location = Column(String(255), nullable=True)
    friends = Column(JSONType, nullable=False, default=list, server_default="[]")
    blocked = Column(JSONType, nullable=False, default=list, server_default="[]")
    push_token = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    posts = relationship("Post", back_populates="author", cascade="all, delete-orphan")
    post_likes = relationship("PostLike", back_populates="user", cascade="all, delete-orphan")
    comments = relationship("PostComment", back_populates="user", cascade="all, delete-orphan")
    friend_requests_sent = relationship(
        "FriendRequest",
        foreign_keys="FriendRequest.from_user_id",
        back_populates="from_user",
        cascade="all, delete-orphan",
    )
    friend_requests_received = relationship(
        "FriendRequest",
        foreign_keys="FriendRequest.to_user_id",
        back_populates="to_user",
        cascade="all, delete-orphan",
    )
    notifications_received = relationship(
        "Notification",
        foreign_keys="Notification.recipient_id",
        back_populates="recipient",
        cascade="all, delete-orphan",
    )
    groups = relationship("Group", secondary=group_members, back_populates="members")

    @property
    def display_name(self) -> str:
        return self.name or self.username


__all__ = ["User"]
