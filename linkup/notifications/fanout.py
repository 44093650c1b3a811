"""
Notification fan-out.

Social actions (follow, follow request, acceptance, like, comment, report)
persist one notification row per recipient as a side effect.  Delivery is
best effort: every failure is logged and swallowed so the primary action is
never failed or rolled back by it.  Each insert runs in its own SAVEPOINT so a
failed insert leaves the caller's transaction usable.  There is no retry
queue; real-time push to connected clients happens elsewhere.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from linkup.notifications import service
from linkup.notifications.constants import NotificationType
from linkup.notifications.models import Notification
from linkup.rate_limit import WindowRateLimiter
from linkup.users import service as users_svc
from linkup.users.models import User

logger = logging.getLogger(__name__)


def _wants(recipient: User, type_: NotificationType) -> bool:
    if recipient.notification_types is None:
        return True
    return type_.value in recipient.notification_types


async def notify(
    session: AsyncSession,
    *,
    recipient_id: uuid.UUID,
    type_: NotificationType,
    content: str,
    actor_id: uuid.UUID | None = None,
    metadata: dict[str, Any] | None = None,
    throttle: WindowRateLimiter | None = None,
) -> Notification | None:
    """Persist one notification; return it, or None when skipped or failed."""
    if actor_id is not None and actor_id == recipient_id:
        return None
    try:
        recipient = await users_svc.get_user(session, recipient_id)
        if recipient is None:
            logger.warning("Skipping %s notification: user %s does not exist", type_.value, recipient_id)
            return None
        if recipient.is_banned:
            logger.info("Skipping %s notification: user %s is banned", type_.value, recipient_id)
            return None
        if not _wants(recipient, type_):
            return None
        if throttle is not None:
            verdict = await throttle.hit(f"{recipient_id}:{type_.value}")
            if not verdict.allowed:
                logger.warning("Rate limit exceeded for %s notifications to user %s", type_.value, recipient_id)
                return None

        async with session.begin_nested():
            notification = await service.create_notification(
                user_id=recipient_id,
                actor_id=actor_id,
                type_=type_,
                content=content,
                payload=metadata,
                db=session,
            )
        logger.info("Notification %s sent to user %s", type_.value, recipient_id)
        return notification
    except Exception:
        logger.exception("Failed to create %s notification for user %s", type_.value, recipient_id)
        return None


# ── Follow workflow ────────────────────────────────────────────────────────────

async def notify_follow(
    session: AsyncSession,
    *,
    target_id: uuid.UUID,
    follower: User,
    throttle: WindowRateLimiter | None = None,
) -> Notification | None:
    return await notify(
        session,
        recipient_id=target_id,
        type_=NotificationType.FOLLOW,
        content=f"{follower.username} started following you",
        actor_id=follower.id,
        metadata={"follower_id": str(follower.id), "follower_username": follower.username},
        throttle=throttle,
    )


async def notify_follow_request(
    session: AsyncSession,
    *,
    target_id: uuid.UUID,
    requester: User,
    request_id: uuid.UUID,
    throttle: WindowRateLimiter | None = None,
) -> Notification | None:
    return await notify(
        session,
        recipient_id=target_id,
        type_=NotificationType.FOLLOW_REQUEST,
        content=f"{requester.username} wants to follow you",
        actor_id=requester.id,
        metadata={
            "request_id": str(request_id),
            "requester_id": str(requester.id),
            "requester_username": requester.username,
        },
        throttle=throttle,
    )


async def notify_follow_accepted(
    session: AsyncSession,
    *,
    follower_id: uuid.UUID,
    owner: User,
    automatic: bool = False,
    throttle: WindowRateLimiter | None = None,
) -> Notification | None:
    content = (
        f"Your follow request to {owner.username} has been automatically approved."
        if automatic
        else f"{owner.username} accepted your follow request"
    )
    return await notify(
        session,
        recipient_id=follower_id,
        type_=NotificationType.FOLLOW_ACCEPTED,
        content=content,
        actor_id=owner.id,
        metadata={"followed_user_id": str(owner.id), "followed_username": owner.username},
        throttle=throttle,
    )


# ── Content events ─────────────────────────────────────────────────────────────

async def notify_admins_of_report(
    session: AsyncSession,
    *,
    reporter_id: uuid.UUID,
    post_id: uuid.UUID,
    reason: str,
    throttle: WindowRateLimiter | None = None,
) -> int:
    """Fan a REPORT notification out to every admin; return how many rows were written."""
    try:
        admin_ids = await users_svc.list_admin_ids(session)
    except Exception:
        logger.exception("Failed to load admins for report on post %s", post_id)
        return 0

    delivered = 0
    for admin_id in admin_ids:
        notification = await notify(
            session,
            recipient_id=admin_id,
            type_=NotificationType.REPORT,
            content=f"A post was reported: {reason}",
            actor_id=reporter_id,
            metadata={"post_id": str(post_id), "reporter_id": str(reporter_id), "reason": reason},
            throttle=throttle,
        )
        if notification is not None:
            delivered += 1
    return delivered
