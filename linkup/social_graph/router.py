"""
Social graph domain — user-facing routes.

All routes prefixed /api/v1/profile and require a bearer token.

Routes:
  POST   /follow/{user_id}                        Follow (or request to follow) a user
  GET    /follow-requests/pending                 My incoming pending requests
  PUT    /follow-requests/{request_id}/accept     Accept a request
  DELETE /follow-requests/{request_id}/reject     Reject a request
  DELETE /unfollow/{user_id}                      Unfollow / withdraw a request
  DELETE /followers/{follower_id}                 Remove one of my followers
  GET    /followers/{user_id}                     A user's followers (403 if private)
  GET    /following/{user_id}                     Who a user follows (403 if private)
  PUT    /privacy                                 Make my account public or private

The follow route is additionally limited per source IP by the follow limiter
on app.state (5 per minute by default).
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from linkup.core.auth.dependencies import get_current_user
from linkup.core.models import CurrentUser
from linkup.database import get_db
from linkup.dependencies import enforce_follow_rate_limit, get_notification_throttle
from linkup.rate_limit import WindowRateLimiter
from linkup.social_graph import controller as ctrl
from linkup.social_graph.schemas import (
    AcceptResponse,
    FollowActionResponse,
    FollowersResponse,
    FollowingResponse,
    MessageResponse,
    PendingRequestsResponse,
    PrivacyResponse,
    PrivacyUpdateRequest,
)

router = APIRouter(prefix="/profile", tags=["social-graph"])


# ── Follow ─────────────────────────────────────────────────────────────────────

@router.post(
    "/follow/{user_id}",
    response_model=FollowActionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Follow a user",
    description="Public accounts are followed immediately; private accounts receive a request.",
    dependencies=[Depends(enforce_follow_rate_limit)],
)
async def follow_user(
    user_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
    throttle: WindowRateLimiter = Depends(get_notification_throttle),
) -> FollowActionResponse:
    return await ctrl.follow_user(session, current_user.id, user_id, throttle)


@router.delete(
    "/unfollow/{user_id}",
    response_model=MessageResponse,
    summary="Unfollow a user or withdraw a pending request",
)
async def unfollow_user(
    user_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> MessageResponse:
    return await ctrl.unfollow_user(session, current_user.id, user_id)


# ── Follow requests ────────────────────────────────────────────────────────────

@router.get(
    "/follow-requests/pending",
    response_model=PendingRequestsResponse,
    summary="List my pending follow requests",
)
async def pending_requests(
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> PendingRequestsResponse:
    return await ctrl.get_pending_requests(session, current_user.id)


@router.put(
    "/follow-requests/{request_id}/accept",
    response_model=AcceptResponse,
    summary="Accept a follow request",
)
async def accept_request(
    request_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
    throttle: WindowRateLimiter = Depends(get_notification_throttle),
) -> AcceptResponse:
    return await ctrl.accept_request(session, current_user.id, request_id, throttle)


@router.delete(
    "/follow-requests/{request_id}/reject",
    response_model=MessageResponse,
    summary="Reject a follow request",
)
async def reject_request(
    request_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> MessageResponse:
    return await ctrl.reject_request(session, current_user.id, request_id)


# ── Followers / following ──────────────────────────────────────────────────────

@router.delete(
    "/followers/{follower_id}",
    response_model=MessageResponse,
    summary="Remove one of my followers",
)
async def remove_follower(
    follower_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> MessageResponse:
    return await ctrl.remove_follower(session, current_user.id, follower_id)


@router.get(
    "/followers/{user_id}",
    response_model=FollowersResponse,
    summary="List a user's followers",
    description="Newest first, at most 100. Private accounts: owner and accepted followers only.",
)
async def get_followers(
    user_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> FollowersResponse:
    return await ctrl.get_followers(session, user_id, current_user.id)


@router.get(
    "/following/{user_id}",
    response_model=FollowingResponse,
    summary="List who a user follows",
    description="Newest first, at most 100. Private accounts: owner and accepted followers only.",
)
async def get_following(
    user_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> FollowingResponse:
    return await ctrl.get_following(session, user_id, current_user.id)


# ── Privacy ────────────────────────────────────────────────────────────────────

@router.put(
    "/privacy",
    response_model=PrivacyResponse,
    summary="Make my account public or private",
    description="Going public auto-accepts every pending follow request.",
)
async def update_privacy(
    body: PrivacyUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
    throttle: WindowRateLimiter = Depends(get_notification_throttle),
) -> PrivacyResponse:
    return await ctrl.update_privacy(session, current_user.id, body.is_private, throttle)
