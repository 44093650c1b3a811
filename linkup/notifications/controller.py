from __future__ import annotations

import math
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from linkup.notifications import fanout, service
from linkup.notifications.constants import ReadStatus
from linkup.notifications.schemas import (
    FanoutResponse,
    InternalNotificationRequest,
    InternalReportRequest,
    MessageResponse,
    NotificationItem,
    NotificationListResponse,
    NotificationPreferences,
)
from linkup.rate_limit import WindowRateLimiter
from linkup.users import service as users_svc


async def get_notifications(
    user_id: UUID,
    db: AsyncSession,
    page: int,
    limit: int,
    read_status: ReadStatus,
) -> NotificationListResponse:
    items, total = await service.list_notifications(
        user_id,
        db,
        limit=limit,
        offset=(page - 1) * limit,
        read_status=read_status,
    )
    return NotificationListResponse(
        items=[NotificationItem.model_validate(n) for n in items],
        total=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit) if total else 0,
    )


async def mark_read(user_id: UUID, notification_id: UUID, db: AsyncSession) -> MessageResponse:
    await service.mark_read(user_id, notification_id, db)
    return MessageResponse(message="Notification marked as read")


async def mark_all_read(user_id: UUID, db: AsyncSession) -> MessageResponse:
    await service.mark_all_read(user_id, db)
    return MessageResponse(message="All notifications marked as read")


async def delete_notification(user_id: UUID, notification_id: UUID, db: AsyncSession) -> MessageResponse:
    await service.delete_notification(user_id, notification_id, db)
    return MessageResponse(message="Notification deleted")


async def get_preferences(user_id: UUID, db: AsyncSession) -> NotificationPreferences:
    types = await users_svc.get_notification_types(db, user_id)
    return NotificationPreferences(notification_types=types)


async def update_preferences(
    user_id: UUID,
    body: NotificationPreferences,
    db: AsyncSession,
) -> NotificationPreferences:
    values = None
    if body.notification_types is not None:
        # de-duplicate, keep the caller's order
        values = list(dict.fromkeys(t.value for t in body.notification_types))
    stored = await users_svc.set_notification_types(db, user_id, values)
    return NotificationPreferences(notification_types=stored)


# ── Internal intake ────────────────────────────────────────────────────────────

async def ingest_event(
    body: InternalNotificationRequest,
    db: AsyncSession,
    throttle: WindowRateLimiter,
) -> FanoutResponse:
    notification = await fanout.notify(
        db,
        recipient_id=body.user_id,
        type_=body.type,
        content=body.content,
        actor_id=body.actor_id,
        metadata=body.metadata,
        throttle=throttle,
    )
    return FanoutResponse(recipients=1 if notification is not None else 0)


async def ingest_report(
    body: InternalReportRequest,
    db: AsyncSession,
    throttle: WindowRateLimiter,
) -> FanoutResponse:
    delivered = await fanout.notify_admins_of_report(
        db,
        reporter_id=body.reporter_id,
        post_id=body.post_id,
        reason=body.reason,
        throttle=throttle,
    )
    return FanoutResponse(recipients=delivered)
