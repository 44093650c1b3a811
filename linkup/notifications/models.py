import uuid
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from linkup.core.database.postgres import Base
from linkup.notifications.constants import NotificationType


class Notification(Base):
    __tablename__ = "notifications"

    notification_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid(), primary_key=True, default=uuid.uuid4
    )
    # Recipient
    user_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    # Actor who performed the action (nullable for system events)
    actor_id: Mapped[uuid.UUID | None] = mapped_column(
        sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    type: Mapped[NotificationType] = mapped_column(
        sa.Enum(
            NotificationType,
            name="notificationtype",
            values_callable=lambda e: [x.value for x in e],
        ),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(sa.Text(), nullable=False)
    # ``metadata`` is reserved on declarative classes, hence the attribute name
    payload: Mapped[dict | None] = mapped_column(
        "metadata", sa.JSON().with_variant(JSONB(), "postgresql"), nullable=True
    )
    is_read: Mapped[bool] = mapped_column(
        sa.Boolean(), nullable=False, default=False, server_default=sa.false()
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        sa.Index("ix_notifications_user_created_at", "user_id", "created_at"),
        sa.Index("ix_notifications_user_is_read", "user_id", "is_read"),
    )
