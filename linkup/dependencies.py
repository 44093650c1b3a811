"""
Service-level FastAPI dependencies.

Limiters live on ``app.state`` (created in the lifespan), so routes receive
them through these dependencies and tests can swap them per app instance.
"""
from __future__ import annotations

import hmac

from fastapi import Depends, Header, Request

from linkup.config import Settings
from linkup.core.auth.dependencies import get_app_settings
from linkup.exceptions import FollowRateLimited, InvalidInternalKey
from linkup.rate_limit import WindowRateLimiter, client_ip


def get_follow_limiter(request: Request) -> WindowRateLimiter:
    return request.app.state.follow_limiter


def get_notification_throttle(request: Request) -> WindowRateLimiter:
    return request.app.state.notification_throttle


async def enforce_follow_rate_limit(
    request: Request,
    limiter: WindowRateLimiter = Depends(get_follow_limiter),
) -> None:
    """Raise 429 once the caller's IP has used up its follow allowance for the window."""
    verdict = await limiter.hit(f"follow:{client_ip(request)}")
    if not verdict.allowed:
        raise FollowRateLimited(verdict.retry_after)


def require_internal_key(
    x_internal_key: str | None = Header(default=None),
    settings: Settings = Depends(get_app_settings),
) -> None:
    if not settings.internal_api_key:
        return
    if x_internal_key is None or not hmac.compare_digest(x_internal_key, settings.internal_api_key):
        raise InvalidInternalKey()
