"""ORM model for friend invitations between users."""
from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from goingout.constants import FRIEND_REQUEST_PENDING, FRIEND_REQUEST_STATUSES
from goingout.database import Base


class FriendRequest(Base):
    __tablename__ = "friend_requests"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    from_user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    to_user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(
        Enum(*FRIEND_REQUEST_STATUSES, name="friend_request_status"),
        nullable=False,
        default=FRIEND_REQUEST_PENDING,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    responded_at = Column(DateTime(timezone=True), nullable=True)

    from_user = relationship("User", foreign_keys=[from_user_id], back_populates="friend_requests_sent")
    to_user = relationship("User", foreign_keys=[to_user_id], back_populates="friend_requests_received")

    # One row per ordered pair; the reverse direction is a separate request.
    __table_args__ = (UniqueConstraint("from_user_id", "to_user_id", name="uq_friend_request_pair"),)


__all__ = ["FriendRequest"]
