"""SQLAlchemy ORM model for user-submitted reports."""
from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from goingout.database import Base


class Report(Base):
    __tablename__ = "reports"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    type = Column(String(16), nullable=False)
    target_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    reporter_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    reason = Column(String(200), nullable=False)
    details = Column(Text, nullable=True)
    status = Column(String(16), nullable=False, default="pending", server_default="pending")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    reporter = relationship("User", foreign_keys=[reporter_id])

    __table_args__ = (UniqueConstraint("type", "target_id", "reporter_id", name="uq_reports_target_reporter"),)


__all__ = ["Report"]
