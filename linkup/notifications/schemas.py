from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from linkup.notifications.constants import NotificationType


class _Base(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class NotificationItem(BaseModel):
    """Single notification in the inbox."""

    model_config = ConfigDict(from_attributes=True)

    notification_id: UUID
    type: NotificationType
    content: str
    actor_id: UUID | None = None
    metadata: dict[str, Any] | None = Field(default=None, validation_alias="payload")
    is_read: bool
    created_at: datetime


class NotificationListResponse(BaseModel):
    """Offset-paginated notifications for the current user, newest first."""

    items: list[NotificationItem]
    total: int = Field(description="Total notifications matching the read filter.")
    page: int
    limit: int
    total_pages: int


class MessageResponse(BaseModel):
    message: str


class NotificationPreferences(_Base):
    """``None`` means every notification type is delivered."""

    notification_types: list[NotificationType] | None = None


# ── Internal (service-to-service) intake ─────────────────────────────────────

class InternalNotificationRequest(_Base):
    user_id: UUID
    actor_id: UUID | None = None
    type: NotificationType
    content: str = Field(min_length=1, max_length=1000)
    metadata: dict[str, Any] | None = None


class InternalReportRequest(_Base):
    reporter_id: UUID
    post_id: UUID
    reason: str = Field(min_length=1, max_length=255)


class FanoutResponse(BaseModel):
    recipients: int
