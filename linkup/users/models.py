"""
Users domain — SQLAlchemy ORM model.

Accounts are created and authenticated by the LinkUp auth service; this
service reads them for privacy checks and fan-out, and owns only the
``is_private`` flag and the notification preferences.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from linkup.core.constants import Role
from linkup.core.database.postgres import Base


def _now() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(), primary_key=True, default=uuid.uuid4)
    username: Mapped[str] = mapped_column(sa.String(50), unique=True, nullable=False, index=True)
    email: Mapped[str] = mapped_column(sa.String(255), unique=True, nullable=False, index=True)
    # nullable: owned by the auth service, never read here
    password_hash: Mapped[str | None] = mapped_column(sa.String(255), nullable=True)

    profile_name: Mapped[str | None] = mapped_column(sa.String(100), nullable=True)
    profile_picture: Mapped[str | None] = mapped_column(sa.String(500), nullable=True)
    bio: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)

    is_private: Mapped[bool] = mapped_column(
        sa.Boolean(), nullable=False, default=False, server_default=sa.false()
    )
    role: Mapped[Role] = mapped_column(
        sa.Enum(
            Role,
            name="userrole",
            values_callable=lambda e: [x.value for x in e],
        ),
        nullable=False,
        default=Role.USER,
        index=True,
    )
    is_banned: Mapped[bool] = mapped_column(
        sa.Boolean(), nullable=False, default=False, server_default=sa.false()
    )

    # Notification types this user wants to receive; NULL means all of them
    notification_types: Mapped[list[str] | None] = mapped_column(
        sa.JSON().with_variant(JSONB(), "postgresql"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_now, onupdate=_now
    )
