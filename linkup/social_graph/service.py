"""
Social graph domain — pure business logic (zero FastAPI imports).

State rules:
  follow:   cannot follow self; public target → ACCEPTED, private target → PENDING
  accept:   only the target may accept, and only while PENDING
  reject:   only the target may reject, and only while PENDING; the edge is deleted
  unfollow: deletes the edge whatever its status (also withdraws a request)
  lists:    private accounts are visible to the owner and accepted followers only
  privacy:  private → public auto-accepts every pending request

Notification fan-out after each transition is best effort and never raises.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from linkup.exceptions import (
    CannotFollowSelf,
    CannotUnfollowSelf,
    FollowAlreadyExists,
    FollowerNotFound,
    FollowNotFound,
    FollowRequestNotFound,
    PrivateAccount,
)
from linkup.notifications import fanout
from linkup.rate_limit import WindowRateLimiter
from linkup.social_graph.constants import FOLLOW_LIST_LIMIT, FollowStatus
from linkup.social_graph.models import Follow
from linkup.users import service as users_svc
from linkup.users.models import User


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ── Internal helpers ───────────────────────────────────────────────────────────

async def _find_edge(
    session: AsyncSession, target_id: uuid.UUID, follower_id: uuid.UUID
) -> Follow | None:
    result = await session.execute(
        sa.select(Follow).where(
            Follow.target_user_id == target_id,
            Follow.follower_user_id == follower_id,
        )
    )
    return result.scalar_one_or_none()


async def _is_accepted_follower(
    session: AsyncSession, target_id: uuid.UUID, follower_id: uuid.UUID
) -> bool:
    result = await session.execute(
        sa.select(sa.exists().where(
            Follow.target_user_id == target_id,
            Follow.follower_user_id == follower_id,
            Follow.status == FollowStatus.ACCEPTED,
        ))
    )
    return result.scalar_one()


async def _get_pending_request(
    session: AsyncSession, owner_id: uuid.UUID, request_id: uuid.UUID
) -> Follow:
    edge = await session.get(Follow, request_id)
    if edge is None or edge.target_user_id != owner_id or edge.status != FollowStatus.PENDING:
        raise FollowRequestNotFound()
    return edge


async def _ensure_list_visible(
    session: AsyncSession, subject: User, requester_id: uuid.UUID
) -> None:
    if not subject.is_private or subject.id == requester_id:
        return
    if not await _is_accepted_follower(session, subject.id, requester_id):
        raise PrivateAccount(subject.username)


async def _accepted_followers(
    session: AsyncSession, user_id: uuid.UUID, *, limit: int | None
) -> list[User]:
    query = (
        sa.select(User)
        .join(Follow, Follow.follower_user_id == User.id)
        .where(Follow.target_user_id == user_id, Follow.status == FollowStatus.ACCEPTED)
        .order_by(Follow.created_at.desc())
    )
    if limit is not None:
        query = query.limit(limit)
    result = await session.execute(query)
    return list(result.scalars().all())


# ── Follow workflow ────────────────────────────────────────────────────────────

async def request_follow(
    session: AsyncSession,
    follower_id: uuid.UUID,
    target_id: uuid.UUID,
    *,
    throttle: WindowRateLimiter | None = None,
) -> Follow:
    if follower_id == target_id:
        raise CannotFollowSelf()
    target = await users_svc.get_user_or_404(session, target_id)
    follower = await users_svc.get_user_or_404(session, follower_id)

    existing = await _find_edge(session, target_id, follower_id)
    if existing is not None:
        raise FollowAlreadyExists(existing.status.value)

    status = FollowStatus.PENDING if target.is_private else FollowStatus.ACCEPTED
    now = _now()
    edge = Follow(
        target_user_id=target_id,
        follower_user_id=follower_id,
        status=status,
        created_at=now,
        updated_at=now,
    )
    try:
        async with session.begin_nested():
            session.add(edge)
            await session.flush()
    except IntegrityError:
        # A concurrent request for the same pair won the unique constraint
        result = await session.execute(
            sa.select(Follow.status).where(
                Follow.target_user_id == target_id,
                Follow.follower_user_id == follower_id,
            )
        )
        winner = result.scalar_one_or_none()
        raise FollowAlreadyExists(winner.value if winner is not None else None) from None

    if status is FollowStatus.ACCEPTED:
        await fanout.notify_follow(
            session, target_id=target_id, follower=follower, throttle=throttle
        )
    else:
        await fanout.notify_follow_request(
            session,
            target_id=target_id,
            requester=follower,
            request_id=edge.follow_id,
            throttle=throttle,
        )
    return edge


async def accept_follow_request(
    session: AsyncSession,
    owner_id: uuid.UUID,
    request_id: uuid.UUID,
    *,
    throttle: WindowRateLimiter | None = None,
) -> list[User]:
    """Accept a pending request; return every accepted follower of the owner afterwards."""
    edge = await _get_pending_request(session, owner_id, request_id)
    edge.status = FollowStatus.ACCEPTED
    edge.updated_at = _now()
    await session.flush()

    owner = await users_svc.get_user_or_404(session, owner_id)
    await fanout.notify_follow_accepted(
        session, follower_id=edge.follower_user_id, owner=owner, throttle=throttle
    )
    return await _accepted_followers(session, owner_id, limit=None)


async def reject_follow_request(
    session: AsyncSession,
    owner_id: uuid.UUID,
    request_id: uuid.UUID,
) -> None:
    edge = await _get_pending_request(session, owner_id, request_id)
    await session.delete(edge)
    await session.flush()


async def unfollow(
    session: AsyncSession,
    follower_id: uuid.UUID,
    target_id: uuid.UUID,
) -> None:
    if follower_id == target_id:
        raise CannotUnfollowSelf()
    edge = await _find_edge(session, target_id, follower_id)
    if edge is None:
        raise FollowNotFound()
    await session.delete(edge)
    await session.flush()


async def remove_follower(
    session: AsyncSession,
    owner_id: uuid.UUID,
    follower_id: uuid.UUID,
) -> None:
    edge = await _find_edge(session, owner_id, follower_id)
    if edge is None or edge.status != FollowStatus.ACCEPTED:
        raise FollowerNotFound()
    await session.delete(edge)
    await session.flush()


# ── Lists ──────────────────────────────────────────────────────────────────────

async def list_followers(
    session: AsyncSession,
    user_id: uuid.UUID,
    requester_id: uuid.UUID,
) -> list[User]:
    subject = await users_svc.get_user_or_404(session, user_id)
    await _ensure_list_visible(session, subject, requester_id)
    return await _accepted_followers(session, user_id, limit=FOLLOW_LIST_LIMIT)


async def list_following(
    session: AsyncSession,
    user_id: uuid.UUID,
    requester_id: uuid.UUID,
) -> list[User]:
    subject = await users_svc.get_user_or_404(session, user_id)
    await _ensure_list_visible(session, subject, requester_id)
    result = await session.execute(
        sa.select(User)
        .join(Follow, Follow.target_user_id == User.id)
        .where(Follow.follower_user_id == user_id, Follow.status == FollowStatus.ACCEPTED)
        .order_by(Follow.created_at.desc())
        .limit(FOLLOW_LIST_LIMIT)
    )
    return list(result.scalars().all())


async def list_pending_requests(
    session: AsyncSession,
    owner_id: uuid.UUID,
) -> list[tuple[Follow, User]]:
    result = await session.execute(
        sa.select(Follow, User)
        .join(User, Follow.follower_user_id == User.id)
        .where(Follow.target_user_id == owner_id, Follow.status == FollowStatus.PENDING)
        .order_by(Follow.created_at.desc())
    )
    return [(edge, user) for edge, user in result.all()]


# ── Privacy ────────────────────────────────────────────────────────────────────

async def update_privacy(
    session: AsyncSession,
    user_id: uuid.UUID,
    is_private: bool,
    *,
    throttle: WindowRateLimiter | None = None,
) -> tuple[User, int]:
    """Set the account's privacy; return the user and how many requests were auto-accepted."""
    user = await users_svc.get_user_or_404(session, user_id)
    was_private = user.is_private
    user.is_private = is_private

    approved: list[Follow] = []
    if was_private and not is_private:
        result = await session.execute(
            sa.select(Follow).where(
                Follow.target_user_id == user_id,
                Follow.status == FollowStatus.PENDING,
            )
        )
        approved = list(result.scalars().all())
        now = _now()
        for edge in approved:
            edge.status = FollowStatus.ACCEPTED
            edge.updated_at = now
    await session.flush()

    for edge in approved:
        await fanout.notify_follow_accepted(
            session,
            follower_id=edge.follower_user_id,
            owner=user,
            automatic=True,
            throttle=throttle,
        )
    return user, len(approved)
