"""SQLAlchemy ORM models for time-boxed groups and their shared content."""
from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from goingout.database import Base
from .associations import group_members
from .base import JSONType, TimestampMixin


class Group(TimestampMixin, Base):
    __tablename__ = "groups"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(120), nullable=False)
    description = Column(Text, nullable=True)
    creator_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    member_count = Column(Integer, nullable=False, default=1, server_default="1")
    start_time = Column(DateTime(timezone=True), nullable=True)
    end_time = Column(DateTime(timezone=True), nullable=True, index=True)
    profile_picture = Column(String(1024), nullable=True)
    cover_photo = Column(String(1024), nullable=True)

    creator = relationship("User", foreign_keys=[creator_id])
    members = relationship("User", secondary=group_members, back_populates="groups")
    messages = relationship("GroupMessage", back_populates="group", cascade="all, delete-orphan")
    photos = relationship("GroupPhoto", back_populates="group", cascade="all, delete-orphan")
    locations = relationship("GroupLocation", back_populates="group", cascade="all, delete-orphan")
    polls = relationship("GroupPoll", back_populates="group", cascade="all, delete-orphan")


class GroupMessage(Base):
    __tablename__ = "group_messages"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    group_id = Column(UUID(as_uuid=True), ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    user_name = Column(String(150), nullable=True)
    user_username = Column(String(150), nullable=False)
    user_avatar = Column(String(1024), nullable=True)
    text = Column(Text, nullable=False, default="")
    type = Column(String(16), nullable=False, default="text")
    image = Column(String(1024), nullable=True)
    video = Column(String(1024), nullable=True)
    poll_id = Column(UUID(as_uuid=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    group = relationship("Group", back_populates="messages")


class GroupPhoto(Base):
    __tablename__ = "group_photos"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    group_id = Column(UUID(as_uuid=True), ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    user_username = Column(String(150), nullable=False)
    url = Column(String(1024), nullable=False)
    media_type = Column(String(16), nullable=False, default="image")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    group = relationship("Group", back_populates="photos")


class GroupLocation(Base):
    __tablename__ = "group_locations"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    group_id = Column(UUID(as_uuid=True), ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    username = Column(String(150), nullable=False)
    name = Column(String(150), nullable=True)
    avatar = Column(String(1024), nullable=True)
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    group = relationship("Group", back_populates="locations")

    __table_args__ = (UniqueConstraint("group_id", "user_id", name="uq_group_locations_group_user"),)


class GroupPoll(Base):
    __tablename__ = "group_polls"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    group_id = Column(UUID(as_uuid=True), ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    creator_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    creator_username = Column(String(150), nullable=False)
    question = Column(String(500), nullable=False)
    # [{"id": "option_0", "text": ..., "votes": int, "voters": [user_id, ...]}, ...]
    options = Column(JSONType, nullable=False, default=list)
    total_votes = Column(Integer, nullable=False, default=0, server_default="0")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    group = relationship("Group", back_populates="polls")


__all__ = ["Group", "GroupMessage", "GroupPhoto", "GroupLocation", "GroupPoll"]
