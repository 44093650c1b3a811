"""
Social graph domain — request orchestration.
"""
from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from linkup.rate_limit import WindowRateLimiter
from linkup.social_graph import service as svc
from linkup.social_graph.constants import FollowStatus
from linkup.social_graph.schemas import (
    AcceptResponse,
    FollowActionResponse,
    FollowersResponse,
    FollowingResponse,
    MessageResponse,
    PendingRequestItem,
    PendingRequestsResponse,
    PrivacyResponse,
)
from linkup.users.schemas import UserRef


async def follow_user(
    session: AsyncSession,
    follower_id: uuid.UUID,
    target_id: uuid.UUID,
    throttle: WindowRateLimiter,
) -> FollowActionResponse:
    edge = await svc.request_follow(session, follower_id, target_id, throttle=throttle)
    message = (
        "Followed successfully"
        if edge.status is FollowStatus.ACCEPTED
        else "Follow request sent"
    )
    return FollowActionResponse(message=message, status=edge.status)


async def accept_request(
    session: AsyncSession,
    owner_id: uuid.UUID,
    request_id: uuid.UUID,
    throttle: WindowRateLimiter,
) -> AcceptResponse:
    followers = await svc.accept_follow_request(session, owner_id, request_id, throttle=throttle)
    return AcceptResponse(
        message="Follow request accepted",
        accepted_followers=[UserRef.model_validate(u) for u in followers],
    )


async def reject_request(
    session: AsyncSession,
    owner_id: uuid.UUID,
    request_id: uuid.UUID,
) -> MessageResponse:
    await svc.reject_follow_request(session, owner_id, request_id)
    return MessageResponse(message="Follow request rejected")


async def unfollow_user(
    session: AsyncSession,
    follower_id: uuid.UUID,
    target_id: uuid.UUID,
) -> MessageResponse:
    await svc.unfollow(session, follower_id, target_id)
    return MessageResponse(message="Unfollowed successfully")


async def remove_follower(
    session: AsyncSession,
    owner_id: uuid.UUID,
    follower_id: uuid.UUID,
) -> MessageResponse:
    await svc.remove_follower(session, owner_id, follower_id)
    return MessageResponse(message="Follower removed")


async def get_followers(
    session: AsyncSession,
    user_id: uuid.UUID,
    requester_id: uuid.UUID,
) -> FollowersResponse:
    users = await svc.list_followers(session, user_id, requester_id)
    return FollowersResponse(
        count=len(users),
        followers=[UserRef.model_validate(u) for u in users],
    )


async def get_following(
    session: AsyncSession,
    user_id: uuid.UUID,
    requester_id: uuid.UUID,
) -> FollowingResponse:
    users = await svc.list_following(session, user_id, requester_id)
    return FollowingResponse(
        count=len(users),
        following=[UserRef.model_validate(u) for u in users],
    )


async def get_pending_requests(
    session: AsyncSession,
    owner_id: uuid.UUID,
) -> PendingRequestsResponse:
    rows = await svc.list_pending_requests(session, owner_id)
    items = [
        PendingRequestItem(
            request_id=edge.follow_id,
            user=UserRef.model_validate(user),
            created_at=edge.created_at,
        )
        for edge, user in rows
    ]
    return PendingRequestsResponse(count=len(items), pending_requests=items)


async def update_privacy(
    session: AsyncSession,
    user_id: uuid.UUID,
    is_private: bool,
    throttle: WindowRateLimiter,
) -> PrivacyResponse:
    user, approved = await svc.update_privacy(session, user_id, is_private, throttle=throttle)
    return PrivacyResponse(
        message="Privacy settings updated",
        is_private=user.is_private,
        auto_accepted=approved,
    )
