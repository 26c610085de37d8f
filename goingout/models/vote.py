"""SQLAlchemy ORM model for the nightly "where are you going" poll."""
from __future__ import annotations

import uuid

from sqlalchemy import Column, Date, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from goingout.database import Base


class Vote(Base):
    __tablename__ = "votes"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    location = Column(String(255), nullable=False)
    location_key = Column(String(255), nullable=False, index=True)
    option = Column(String(255), nullable=False)
    vote_date = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (UniqueConstraint("user_id", "location_key", "vote_date", name="uq_votes_user_location_day"),)


__all__ = ["Vote"]
