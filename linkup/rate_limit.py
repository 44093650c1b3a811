"""
Rate limiting.

Two layers:

* ``build_api_limiter`` — a coarse slowapi limiter applied to every route by
  SlowAPIMiddleware (per client IP, storage shared with Redis in production).
* ``WindowRateLimiter`` implementations — explicit, injected limiters used by
  the domain for the follow action (per source IP) and for notification
  throttling (per recipient + type).

``RedisWindowRateLimiter`` is a fixed window built on a pipelined INCR +
EXPIRE NX, so every worker shares one counter.  ``InMemoryWindowRateLimiter``
keeps a per-process timestamp log that a background sweep prunes; it is only
correct for a single worker on a single event loop.

Both are created in the app lifespan and stored on ``app.state``.
"""
from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

import redis.asyncio as aioredis
from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded

from linkup.config import Settings
from linkup.core.middleware.request_id import get_request_id

logger = logging.getLogger(__name__)


# ── Coarse API limiter (slowapi) ───────────────────────────────────────────────

def build_api_limiter(settings: Settings) -> Limiter:
    return Limiter(
        key_func=client_ip,
        default_limits=[settings.api_rate_limit],
        storage_uri=settings.api_rate_limit_storage,
        enabled=settings.api_rate_limit_enabled,
    )


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    # slowapi's middleware calls this synchronously; it must stay a plain function.
    return JSONResponse(
        status_code=429,
        content={
            "error": {
                "code": "rate_limited",
                "message": f"Rate limit exceeded: {exc.detail}",
            },
            "request_id": get_request_id(request),
        },
        headers={"Retry-After": str(exc.limit.limit.get_expiry())},
    )


def client_ip(request: Request) -> str:
    """Extract the client IP, honouring the first X-Forwarded-For hop."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    if request.client is not None:
        return request.client.host
    return "unknown"


# ── Domain limiters ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    retry_after: int  # seconds until the caller may retry; 0 when allowed


class WindowRateLimiter(ABC):
    """At most ``limit`` hits per ``window_seconds`` for each key."""

    def __init__(self, *, limit: int, window_seconds: int, prefix: str) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    @abstractmethod
    async def hit(self, key: str) -> RateLimitResult:
        ...

    @abstractmethod
    async def reset(self, key: str) -> None:
        ...

    async def start(self) -> None:
        """Hook for backends that need background work."""

    async def stop(self) -> None:
        """Hook for backends that need background work."""


class RedisWindowRateLimiter(WindowRateLimiter):
    def __init__(
        self,
        redis: aioredis.Redis,
        *,
        limit: int,
        window_seconds: int,
        prefix: str,
    ) -> None:
        super().__init__(limit=limit, window_seconds=window_seconds, prefix=prefix)
        self._redis = redis

    async def hit(self, key: str) -> RateLimitResult:
        redis_key = self._key(key)
        pipe = self._redis.pipeline(transaction=True)
        pipe.incr(redis_key)
        # NX: only the first hit of a window sets the expiry (Redis >= 7)
        pipe.expire(redis_key, self.window_seconds, nx=True)
        count, _ = await pipe.execute()
        count = int(count)
        if count > self.limit:
            ttl = await self._redis.ttl(redis_key)
            return RateLimitResult(
                allowed=False,
                remaining=0,
                retry_after=ttl if ttl and ttl > 0 else self.window_seconds,
            )
        return RateLimitResult(allowed=True, remaining=self.limit - count, retry_after=0)

    async def reset(self, key: str) -> None:
        await self._redis.delete(self._key(key))


class InMemoryWindowRateLimiter(WindowRateLimiter):
    def __init__(
        self,
        *,
        limit: int,
        window_seconds: int,
        prefix: str,
        sweep_interval_seconds: float = 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(limit=limit, window_seconds=window_seconds, prefix=prefix)
        self.sweep_interval_seconds = sweep_interval_seconds
        self._clock = clock
        self._hits: dict[str, list[float]] = {}
        self._sweeper: asyncio.Task | None = None

    async def hit(self, key: str) -> RateLimitResult:
        now = self._clock()
        window_start = now - self.window_seconds
        bucket = self._key(key)
        recent = [t for t in self._hits.get(bucket, []) if t > window_start]

        if len(recent) >= self.limit:
            self._hits[bucket] = recent
            retry_after = int(recent[0] + self.window_seconds - now) + 1
            return RateLimitResult(allowed=False, remaining=0, retry_after=retry_after)

        recent.append(now)
        self._hits[bucket] = recent
        return RateLimitResult(allowed=True, remaining=self.limit - len(recent), retry_after=0)

    async def reset(self, key: str) -> None:
        self._hits.pop(self._key(key), None)

    def sweep(self) -> int:
        """Drop timestamps older than the window; return how many keys were evicted."""
        window_start = self._clock() - self.window_seconds
        evicted = 0
        for bucket in list(self._hits):
            kept = [t for t in self._hits[bucket] if t > window_start]
            if kept:
                self._hits[bucket] = kept
            else:
                del self._hits[bucket]
                evicted += 1
        return evicted

    @property
    def tracked_keys(self) -> int:
        return len(self._hits)

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval_seconds)
            evicted = self.sweep()
            if evicted:
                logger.debug("Rate limiter %s evicted %d idle keys", self.prefix, evicted)

    async def start(self) -> None:
        if self._sweeper is None:
            self._sweeper = asyncio.create_task(self._sweep_forever())

    async def stop(self) -> None:
        if self._sweeper is not None:
            self._sweeper.cancel()
            try:
                await self._sweeper
            except asyncio.CancelledError:
                pass
            self._sweeper = None


def build_window_limiter(
    settings: Settings,
    *,
    limit: int,
    window_seconds: int,
    prefix: str,
    redis: aioredis.Redis | None = None,
) -> WindowRateLimiter:
    if settings.rate_limit_backend == "memory":
        return InMemoryWindowRateLimiter(
            limit=limit,
            window_seconds=window_seconds,
            prefix=prefix,
            sweep_interval_seconds=settings.rate_limit_sweep_seconds,
        )
    if redis is None:
        raise ValueError("Redis rate limiter backend requires a Redis client")
    return RedisWindowRateLimiter(redis, limit=limit, window_seconds=window_seconds, prefix=prefix)
