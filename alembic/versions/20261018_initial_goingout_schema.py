"""Initial GoingOut schema.

Revision ID: 20261018_initial_goingout_schema
Revises:
Create Date: 2026-10-18

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "20261018_initial_goingout_schema"
down_revision: str | None = None
branch_labels = None
depends_on = None

_UUID = postgresql.UUID(as_uuid=True)
_NOW = sa.text("NOW()")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", _UUID, nullable=False),
        sa.Column("username", sa.String(length=150), nullable=False),
        sa.Column("username_lowercase", sa.String(length=150), nullable=True),
        sa.Column("name", sa.String(length=150), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("avatar_url", sa.String(length=1024), nullable=True),
        sa.Column("bio", sa.String(length=500), nullable=True),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("friends", postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("blocked", postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("push_token", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_NOW, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=_NOW, nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_users_username_lowercase", "users", ["username_lowercase"], unique=True)

    friend_request_status = postgresql.ENUM(
        "pending", "accepted", "declined", "cancelled", name="friend_request_status", create_type=False
    )
    friend_request_status.create(op.get_bind(), checkfirst=True)
    op.create_table(
        "friend_requests",
        sa.Column("id", _UUID, nullable=False),
        sa.Column("from_user_id", _UUID, nullable=False),
        sa.Column("to_user_id", _UUID, nullable=False),
        sa.Column("status", friend_request_status, nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_NOW, nullable=False),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["from_user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["to_user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("from_user_id", "to_user_id", name="uq_friend_request_pair"),
    )
    op.create_index("ix_friend_requests_from_user_id", "friend_requests", ["from_user_id"])
    op.create_index("ix_friend_requests_to_user_id", "friend_requests", ["to_user_id"])

    op.create_table(
        "posts",
        sa.Column("id", _UUID, nullable=False),
        sa.Column("user_id", _UUID, nullable=False),
        sa.Column("name", sa.String(length=150), nullable=True),
        sa.Column("username", sa.String(length=150), nullable=False),
        sa.Column("avatar", sa.String(length=1024), nullable=True),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=False),
        sa.Column("lat", sa.Float(), nullable=True),
        sa.Column("lng", sa.Float(), nullable=True),
        sa.Column("image", sa.String(length=1024), nullable=True),
        sa.Column("images", postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("bar", sa.String(length=255), nullable=True),
        sa.Column("likes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("replies", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("retweets", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("visibility", sa.String(length=16), nullable=False, server_default="location"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_NOW, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=_NOW, nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_posts_user_id", "posts", ["user_id"])
    op.create_index("ix_posts_created_at", "posts", ["created_at"])
    op.create_index("ix_posts_expires_at", "posts", ["expires_at"])

    op.create_table(
        "post_likes",
        sa.Column("id", _UUID, nullable=False),
        sa.Column("post_id", _UUID, nullable=False),
        sa.Column("user_id", _UUID, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_NOW, nullable=False),
        sa.ForeignKeyConstraint(["post_id"], ["posts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("post_id", "user_id", name="uq_post_likes_post_user"),
    )
    op.create_index("ix_post_likes_post_id", "post_likes", ["post_id"])
    op.create_index("ix_post_likes_user_id", "post_likes", ["user_id"])

    op.create_table(
        "post_comments",
        sa.Column("id", _UUID, nullable=False),
        sa.Column("post_id", _UUID, nullable=False),
        sa.Column("user_id", _UUID, nullable=False),
        sa.Column("username", sa.String(length=150), nullable=False),
        sa.Column("name", sa.String(length=150), nullable=True),
        sa.Column("avatar", sa.String(length=1024), nullable=True),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_NOW, nullable=False),
        sa.ForeignKeyConstraint(["post_id"], ["posts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_post_comments_post_id", "post_comments", ["post_id"])
    op.create_index("ix_post_comments_user_id", "post_comments", ["user_id"])

    op.create_table(
        "notifications",
        sa.Column("id", _UUID, nullable=False),
        sa.Column("recipient_id", _UUID, nullable=False),
        sa.Column("from_user_id", _UUID, nullable=True),
        sa.Column("type", sa.String(length=64), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("post_id", _UUID, nullable=True),
        sa.Column("comment_id", _UUID, nullable=True),
        sa.Column("group_id", _UUID, nullable=True),
        sa.Column("from_user_name", sa.String(length=150), nullable=True),
        sa.Column("from_user_username", sa.String(length=150), nullable=True),
        sa.Column("from_user_avatar", sa.String(length=1024), nullable=True),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_NOW, nullable=False),
        sa.ForeignKeyConstraint(["recipient_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["from_user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_recipient_id", "notifications", ["recipient_id"])
    op.create_index("ix_notifications_from_user_id", "notifications", ["from_user_id"])
    op.create_index("ix_notifications_created_at", "notifications", ["created_at"])

    op.create_table(
        "groups",
        sa.Column("id", _UUID, nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("creator_id", _UUID, nullable=False),
        sa.Column("member_count", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("profile_picture", sa.String(length=1024), nullable=True),
        sa.Column("cover_photo", sa.String(length=1024), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_NOW, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=_NOW, nullable=False),
        sa.ForeignKeyConstraint(["creator_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_groups_creator_id", "groups", ["creator_id"])
    op.create_index("ix_groups_end_time", "groups", ["end_time"])

    op.create_table(
        "group_members",
        sa.Column("group_id", _UUID, nullable=False),
        sa.Column("user_id", _UUID, nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=_NOW, nullable=False),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("group_id", "user_id"),
    )

    op.create_table(
        "group_messages",
        sa.Column("id", _UUID, nullable=False),
        sa.Column("group_id", _UUID, nullable=False),
        sa.Column("user_id", _UUID, nullable=False),
        sa.Column("user_name", sa.String(length=150), nullable=True),
        sa.Column("user_username", sa.String(length=150), nullable=False),
        sa.Column("user_avatar", sa.String(length=1024), nullable=True),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("image", sa.String(length=1024), nullable=True),
        sa.Column("video", sa.String(length=1024), nullable=True),
        sa.Column("poll_id", _UUID, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_NOW, nullable=False),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_group_messages_group_id", "group_messages", ["group_id"])
    op.create_index("ix_group_messages_created_at", "group_messages", ["created_at"])

    op.create_table(
        "group_photos",
        sa.Column("id", _UUID, nullable=False),
        sa.Column("group_id", _UUID, nullable=False),
        sa.Column("user_id", _UUID, nullable=False),
        sa.Column("user_username", sa.String(length=150), nullable=False),
        sa.Column("url", sa.String(length=1024), nullable=False),
        sa.Column("media_type", sa.String(length=16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_NOW, nullable=False),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_group_photos_group_id", "group_photos", ["group_id"])

    op.create_table(
        "group_locations",
        sa.Column("id", _UUID, nullable=False),
        sa.Column("group_id", _UUID, nullable=False),
        sa.Column("user_id", _UUID, nullable=False),
        sa.Column("username", sa.String(length=150), nullable=False),
        sa.Column("name", sa.String(length=150), nullable=True),
        sa.Column("avatar", sa.String(length=1024), nullable=True),
        sa.Column("lat", sa.Float(), nullable=False),
        sa.Column("lng", sa.Float(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=_NOW, nullable=False),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("group_id", "user_id", name="uq_group_locations_group_user"),
    )
    op.create_index("ix_group_locations_group_id", "group_locations", ["group_id"])

    op.create_table(
        "group_polls",
        sa.Column("id", _UUID, nullable=False),
        sa.Column("group_id", _UUID, nullable=False),
        sa.Column("creator_id", _UUID, nullable=False),
        sa.Column("creator_username", sa.String(length=150), nullable=False),
        sa.Column("question", sa.String(length=500), nullable=False),
        sa.Column("options", postgresql.JSONB(), nullable=False),
        sa.Column("total_votes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_NOW, nullable=False),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["creator_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_group_polls_group_id", "group_polls", ["group_id"])

    op.create_table(
        "events",
        sa.Column("id", _UUID, nullable=False),
        sa.Column("creator_id", _UUID, nullable=False),
        sa.Column("creator_name", sa.String(length=150), nullable=True),
        sa.Column("creator_username", sa.String(length=150), nullable=False),
        sa.Column("creator_avatar", sa.String(length=1024), nullable=True),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("host", sa.String(length=150), nullable=True),
        sa.Column("image", sa.String(length=1024), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("friends_only", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("group_id", _UUID, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_NOW, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=_NOW, nullable=False),
        sa.ForeignKeyConstraint(["creator_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_events_creator_id", "events", ["creator_id"])
    op.create_index("ix_events_end_time", "events", ["end_time"])

    op.create_table(
        "reports",
        sa.Column("id", _UUID, nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("target_id", _UUID, nullable=False),
        sa.Column("reporter_id", _UUID, nullable=False),
        sa.Column("reason", sa.String(length=200), nullable=False),
        sa.Column("details", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_NOW, nullable=False),
        sa.ForeignKeyConstraint(["reporter_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("type", "target_id", "reporter_id", name="uq_reports_target_reporter"),
    )
    op.create_index("ix_reports_target_id", "reports", ["target_id"])
    op.create_index("ix_reports_reporter_id", "reports", ["reporter_id"])

    op.create_table(
        "votes",
        sa.Column("id", _UUID, nullable=False),
        sa.Column("user_id", _UUID, nullable=False),
        sa.Column("location", sa.String(length=255), nullable=False),
        sa.Column("location_key", sa.String(length=255), nullable=False),
        sa.Column("option", sa.String(length=255), nullable=False),
        sa.Column("vote_date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_NOW, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=_NOW, nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "location_key", "vote_date", name="uq_votes_user_location_day"),
    )
    op.create_index("ix_votes_user_id", "votes", ["user_id"])
    op.create_index("ix_votes_location_key", "votes", ["location_key"])
    op.create_index("ix_votes_vote_date", "votes", ["vote_date"])


def downgrade() -> None:
    op.drop_table("votes")
    op.drop_table("reports")
    op.drop_table("events")
    op.drop_table("group_polls")
    op.drop_table("group_locations")
    op.drop_table("group_photos")
    op.drop_table("group_messages")
    op.drop_table("group_members")
    op.drop_table("groups")
    op.drop_table("notifications")
    op.drop_table("post_comments")
    op.drop_table("post_likes")
    op.drop_table("posts")
    op.drop_table("friend_requests")
    sa.Enum(name="friend_request_status").drop(op.get_bind(), checkfirst=True)
    op.drop_table("users")
