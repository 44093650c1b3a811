"""Initial social schema: users, follows, notifications

Revision ID: 001
Revises:
Create Date: 2026-10-18

Tables created:
  - users           Accounts (owned by the auth service; privacy + preferences owned here)
  - follows         Directed follow edges (follower → target) with request status
  - notifications   Per-recipient notification inbox

PostgreSQL ENUM types created:
  - userrole           user / admin
  - followstatus       PENDING / ACCEPTED / REJECTED
  - notificationtype   FOLLOW_REQUEST / FOLLOW_ACCEPTED / FOLLOW / LIKE / COMMENT /
                       MESSAGE / STORY_LIKE / REPORT / ADMIN_WARNING
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


_ENUMS = {
    "userrole": ("user", "admin"),
    "followstatus": ("PENDING", "ACCEPTED", "REJECTED"),
    "notificationtype": (
        "FOLLOW_REQUEST",
        "FOLLOW_ACCEPTED",
        "FOLLOW",
        "LIKE",
        "COMMENT",
        "MESSAGE",
        "STORY_LIKE",
        "REPORT",
        "ADMIN_WARNING",
    ),
}


# ─────────────────────────────────────────────────────────────────────────────
#  UPGRADE
# ─────────────────────────────────────────────────────────────────────────────

def upgrade() -> None:
    # ── 1. PostgreSQL ENUM types ──────────────────────────────────────────────
    for name, values in _ENUMS.items():
        labels = ", ".join(f"'{v}'" for v in values)
        op.execute(
            f"""
            DO $$ BEGIN
                CREATE TYPE {name} AS ENUM ({labels});
            EXCEPTION WHEN duplicate_object THEN NULL;
            END $$;
            """
        )

    # ── 2. users ──────────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            nullable=False,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("username", sa.String(50), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("profile_name", sa.String(100), nullable=True),
        sa.Column("profile_picture", sa.String(500), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("is_private", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "role",
            postgresql.ENUM(name="userrole", create_type=False),
            nullable=False,
            server_default=sa.text("'user'"),
        ),
        sa.Column("is_banned", sa.Boolean(), nullable=False, server_default=sa.false()),
        # NULL = receive every notification type
        sa.Column("notification_types", postgresql.JSONB(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    # ── 3. follows ────────────────────────────────────────────────────────────
    op.create_table(
        "follows",
        sa.Column(
            "follow_id",
            postgresql.UUID(as_uuid=True),
            nullable=False,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("target_user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("follower_user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "status",
            postgresql.ENUM(name="followstatus", create_type=False),
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("follow_id", name="pk_follows"),
        sa.ForeignKeyConstraint(
            ["target_user_id"],
            ["users.id"],
            name="fk_follows_target_user_id",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["follower_user_id"],
            ["users.id"],
            name="fk_follows_follower_user_id",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("target_user_id", "follower_user_id", name="uq_follows_pair"),
        sa.CheckConstraint("target_user_id != follower_user_id", name="ck_follows_no_self"),
    )
    op.create_index("idx_follows_target_status", "follows", ["target_user_id", "status"])
    op.create_index("idx_follows_follower_status", "follows", ["follower_user_id", "status"])

    # ── 4. notifications ──────────────────────────────────────────────────────
    op.create_table(
        "notifications",
        sa.Column(
            "notification_id",
            postgresql.UUID(as_uuid=True),
            nullable=False,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("actor_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column(
            "type",
            postgresql.ENUM(name="notificationtype", create_type=False),
            nullable=False,
        ),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("metadata", postgresql.JSONB(), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("notification_id", name="pk_notifications"),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_notifications_user_id",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["actor_id"],
            ["users.id"],
            name="fk_notifications_actor_id",
            ondelete="SET NULL",
        ),
    )
    op.create_index(
        "ix_notifications_user_created_at", "notifications", ["user_id", "created_at"]
    )
    op.create_index("ix_notifications_user_is_read", "notifications", ["user_id", "is_read"])


# ─────────────────────────────────────────────────────────────────────────────
#  DOWNGRADE
# ─────────────────────────────────────────────────────────────────────────────

def downgrade() -> None:
    op.drop_index("ix_notifications_user_is_read", table_name="notifications")
    op.drop_index("ix_notifications_user_created_at", table_name="notifications")
    op.drop_table("notifications")

    op.drop_index("idx_follows_follower_status", table_name="follows")
    op.drop_index("idx_follows_target_status", table_name="follows")
    op.drop_table("follows")

    op.drop_index("ix_users_role", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")

    for name in reversed(list(_ENUMS)):
        op.execute(f"DROP TYPE IF EXISTS {name}")
