"""
Social graph domain — SQLAlchemy ORM models.

Tables:
  follows  — directed follow edges (follower → target) carrying a request status
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from linkup.core.database.postgres import Base
from linkup.social_graph.constants import FollowStatus


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Follow(Base):
    __tablename__ = "follows"

    follow_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(), primary_key=True, default=uuid.uuid4)
    # The account being followed; owns the request and decides on it
    target_user_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid(),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    follower_user_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid(),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[FollowStatus] = mapped_column(
        sa.Enum(
            FollowStatus,
            name="followstatus",
            values_callable=lambda e: [x.value for x in e],
        ),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_now
    )

    target = relationship("User", foreign_keys=[target_user_id], lazy="raise")
    follower = relationship("User", foreign_keys=[follower_user_id], lazy="raise")

    __table_args__ = (
        # Concurrent duplicate requests are stopped here, not by the service's existence check
        sa.UniqueConstraint("target_user_id", "follower_user_id", name="uq_follows_pair"),
        sa.CheckConstraint("target_user_id != follower_user_id", name="ck_follows_no_self"),
        sa.Index("idx_follows_target_status", "target_user_id", "status"),
        sa.Index("idx_follows_follower_status", "follower_user_id", "status"),
    )
