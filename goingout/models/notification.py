"""SQLAlchemy ORM model for notifications."""
from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import expression, func

from goingout.database import Base


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    recipient_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    from_user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    type = Column(String(64), nullable=False)
    message = Column(Text, nullable=False)
    # Loose references; the target may be deleted before the notification is read.
    post_id = Column(UUID(as_uuid=True), nullable=True)
    comment_id = Column(UUID(as_uuid=True), nullable=True)
    group_id = Column(UUID(as_uuid=True), nullable=True)
    from_user_name = Column(String(150), nullable=True)
    from_user_username = Column(String(150), nullable=True)
    from_user_avatar = Column(String(1024), nullable=True)
    read = Column(Boolean, nullable=False, server_default=expression.false(), default=False)
    read_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    recipient = relationship("User", foreign_keys=[recipient_id], back_populates="notifications_received")
    from_user = relationship("User", foreign_keys=[from_user_id])


__all__ = ["Notification"]
