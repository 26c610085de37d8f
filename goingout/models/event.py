"""SQLAlchemy ORM model for events and their companion groups."""
from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import expression

from goingout.database import Base
from .base import TimestampMixin


class Event(TimestampMixin, Base):
    __tablename__ = "events"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    creator_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    creator_name = Column(String(150), nullable=True)
    creator_username = Column(String(150), nullable=False)
    creator_avatar = Column(String(1024), nullable=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    host = Column(String(150), nullable=True)
    image = Column(String(1024), nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False, index=True)
    friends_only = Column(Boolean, nullable=False, server_default=expression.false(), default=False)
    group_id = Column(UUID(as_uuid=True), ForeignKey("groups.id", ondelete="SET NULL"), nullable=True)

    creator = relationship("User", foreign_keys=[creator_id])
    group = relationship("Group", foreign_keys=[group_id])


__all__ = ["Event"]
