"""
Users domain — lookups used by the social graph and notification fan-out.
"""
from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from linkup.core.constants import Role
from linkup.exceptions import UserNotFound
from linkup.users.models import User


async def get_user(session: AsyncSession, user_id: uuid.UUID) -> User | None:
    return await session.get(User, user_id)


async def get_user_or_404(session: AsyncSession, user_id: uuid.UUID) -> User:
    user = await get_user(session, user_id)
    if user is None:
        raise UserNotFound()
    return user


async def list_admin_ids(session: AsyncSession) -> list[uuid.UUID]:
    result = await session.execute(
        sa.select(User.id).where(User.role == Role.ADMIN, User.is_banned.is_(False))
    )
    return list(result.scalars().all())


async def get_notification_types(session: AsyncSession, user_id: uuid.UUID) -> list[str] | None:
    user = await get_user_or_404(session, user_id)
    return user.notification_types


async def set_notification_types(
    session: AsyncSession,
    user_id: uuid.UUID,
    notification_types: list[str] | None,
) -> list[str] | None:
    user = await get_user_or_404(session, user_id)
    user.notification_types = notification_types
    await session.flush()
    return user.notification_types
