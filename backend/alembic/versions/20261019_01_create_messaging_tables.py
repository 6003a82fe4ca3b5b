"""create messaging and notification tables

Revision ID: 20261019_01
Revises: 
Create Date: 2026-10-19 00:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_01"
down_revision = None
branch_labels = None
depends_on = None


USER_ROLE = sa.Enum("USER", "ADMIN", "SUPER_ADMIN", name="user_role")
ROOM_ROLE = sa.Enum("owner", "member", name="room_role")
NOTIFICATION_KIND = sa.Enum("info", "warning", "success", "error", name="notification_kind")
NOTIFICATION_TARGET_KIND = sa.Enum("all", "group", "individual", name="notification_target_kind")


def _timestamp(name: str, *, on_update: bool = False) -> sa.Column:
    kwargs = {"onupdate": sa.func.now()} if on_update else {}
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
        **kwargs,
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("role", USER_ROLE, nullable=False, server_default="USER"),
        _timestamp("created_at"),
        _timestamp("updated_at", on_update=True),
        sa.UniqueConstraint("email", name="uq_users_email"),
        mysql_charset="utf8mb4",
    )

    op.create_table(
        "chat_rooms",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("display_name", sa.String(length=120), nullable=False),
        sa.Column("is_group", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("direct_user_low_id", sa.Integer(), nullable=True),
        sa.Column("direct_user_high_id", sa.Integer(), nullable=True),
        sa.Column("created_by_id", sa.Integer(), nullable=True),
        _timestamp("created_at"),
        sa.Column("last_message_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["direct_user_low_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["direct_user_high_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by_id"], ["users.id"], ondelete="SET NULL"),
        sa.UniqueConstraint(
            "direct_user_low_id", "direct_user_high_id", name="uq_chat_room_direct_pair"
        ),
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_chat_rooms_last_message_at", "chat_rooms", ["last_message_at"])

    op.create_table(
        "chat_room_members",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("room_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("role", ROOM_ROLE, nullable=False, server_default="member"),
        _timestamp("joined_at"),
        sa.ForeignKeyConstraint(["room_id"], ["chat_rooms.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("room_id", "user_id", name="uq_chat_room_member"),
        mysql_charset="utf8mb4",
    )

    op.create_table(
        "chat_messages",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("room_id", sa.Integer(), nullable=False),
        sa.Column("sender_id", sa.Integer(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["room_id"], ["chat_rooms.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["sender_id"], ["users.id"], ondelete="SET NULL"),
        mysql_charset="utf8mb4",
    )
    op.create_index(
        "ix_chat_messages_room_created_at", "chat_messages", ["room_id", "created_at", "id"]
    )

    op.create_table(
        "user_groups",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at", on_update=True),
        mysql_charset="utf8mb4",
    )

    op.create_table(
        "user_group_members",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("group_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["group_id"], ["user_groups.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("group_id", "user_id", name="uq_user_group_member"),
        mysql_charset="utf8mb4",
    )

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("kind", NOTIFICATION_KIND, nullable=False, server_default="info"),
        sa.Column("target_kind", NOTIFICATION_TARGET_KIND, nullable=False),
        sa.Column("target_group_id", sa.Integer(), nullable=True),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["target_group_id"], ["user_groups.id"], ondelete="SET NULL"),
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_notifications_created_at", "notifications", ["created_at"])

    op.create_table(
        "notification_recipients",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("notification_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["notification_id"], ["notifications.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("notification_id", "user_id", name="uq_notification_recipient"),
        mysql_charset="utf8mb4",
    )
    op.create_index(
        "ix_notification_recipients_user", "notification_recipients", ["user_id", "is_read"]
    )


def downgrade() -> None:
    op.drop_index("ix_notification_recipients_user", table_name="notification_recipients")
    op.drop_table("notification_recipients")
    op.drop_index("ix_notifications_created_at", table_name="notifications")
    op.drop_table("notifications")
    op.drop_table("user_group_members")
    op.drop_table("user_groups")
    op.drop_index("ix_chat_messages_room_created_at", table_name="chat_messages")
    op.drop_table("chat_messages")
    op.drop_table("chat_room_members")
    op.drop_index("ix_chat_rooms_last_message_at", table_name="chat_rooms")
    op.drop_table("chat_rooms")
    op.drop_table("users")

    bind = op.get_bind()
    NOTIFICATION_TARGET_KIND.drop(bind, checkfirst=True)
    NOTIFICATION_KIND.drop(bind, checkfirst=True)
    ROOM_ROLE.drop(bind, checkfirst=True)
    USER_ROLE.drop(bind, checkfirst=True)
