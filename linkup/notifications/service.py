"""
Notifications domain — inbox persistence (zero FastAPI imports beyond the
domain exceptions).
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from linkup.exceptions import NotificationForbidden, NotificationNotFound
from linkup.notifications.constants import NotificationType, ReadStatus
from linkup.notifications.models import Notification


async def list_notifications(
    user_id: UUID,
    db: AsyncSession,
    *,
    limit: int,
    offset: int,
    read_status: ReadStatus,
) -> tuple[list[Notification], int]:
    base = select(Notification).where(Notification.user_id == user_id)
    if read_status is ReadStatus.READ:
        base = base.where(Notification.is_read.is_(True))
    elif read_status is ReadStatus.UNREAD:
        base = base.where(Notification.is_read.is_(False))

    count_query = select(func.count()).select_from(base.subquery())
    total = (await db.execute(count_query)).scalar_one()

    rows = await db.execute(
        base.order_by(Notification.created_at.desc()).offset(offset).limit(limit)
    )
    return list(rows.scalars().all()), total


async def _get_owned(user_id: UUID, notification_id: UUID, db: AsyncSession) -> Notification:
    notification = await db.get(Notification, notification_id)
    if notification is None:
        raise NotificationNotFound()
    if notification.user_id != user_id:
        raise NotificationForbidden()
    return notification


async def mark_read(user_id: UUID, notification_id: UUID, db: AsyncSession) -> None:
    notification = await _get_owned(user_id, notification_id, db)
    notification.is_read = True
    await db.flush()


async def mark_all_read(user_id: UUID, db: AsyncSession) -> int:
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True)
    )
    return result.rowcount or 0


async def delete_notification(user_id: UUID, notification_id: UUID, db: AsyncSession) -> None:
    notification = await _get_owned(user_id, notification_id, db)
    await db.delete(notification)
    await db.flush()


async def create_notification(
    user_id: UUID,
    actor_id: UUID | None,
    type_: NotificationType,
    content: str,
    payload: dict[str, Any] | None,
    db: AsyncSession,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        actor_id=actor_id,
        type=type_,
        content=content,
        payload=payload or {},
        is_read=False,
        created_at=datetime.now(timezone.utc),
    )
    db.add(notification)
    await db.flush()
    return notification
