import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from linkup.config import Settings, get_settings
from linkup.core.database import close_redis_client, get_redis_client
from linkup.core.middleware import (
    error_envelope_middleware,
    register_exception_handlers,
    request_id_middleware,
)
from linkup.database import close_db, init_db
from linkup.notifications.internal_router import router as notifications_internal_router
from linkup.notifications.router import router as notifications_router
from linkup.rate_limit import build_api_limiter, build_window_limiter, rate_limit_exceeded_handler
from linkup.social_graph.router import router as social_router

logger = logging.getLogger(__name__)


# ── OpenAPI metadata ──────────────────────────────────────────────────────────

_DESCRIPTION = """
## LinkUp Social Service

Owns the follow graph and the notifications that social actions produce:

* **Follow workflow** — follow public accounts instantly, request to follow private
  ones; owners accept or reject pending requests; unfollow and remove followers.
* **Follow lists** — followers / following (newest 100), hidden with a 403 for
  private accounts unless you are the owner or an accepted follower.
* **Notifications** — inbox with read / unread filters, per-type preferences, and an
  internal intake for events raised by the content service.

### Authentication
All user endpoints require:
```
Authorization: Bearer <access_token>
```

### Error shape
```json
{ "error": { "code": "conflict", "message": "Human-readable message" }, "request_id": "..." }
```

### Rate limits
Following is limited to 5 actions per minute per IP; every route shares a coarser
per-IP limit. `429 Too Many Requests` carries a `Retry-After` header.
"""

_TAGS_METADATA = [
    {
        "name": "social-graph",
        "description": (
            "Directed follows with PENDING / ACCEPTED status, follow requests for private "
            "accounts, follower / following lists and account privacy."
        ),
    },
    {
        "name": "notifications",
        "description": "The authenticated user's notification inbox and preferences.",
    },
    {
        "name": "notifications-internal",
        "description": (
            "**Service-to-service.** Like, comment, message and report events from the content "
            "service. Guarded by `X-Internal-Key` when one is configured."
        ),
    },
]


# ── Health schema ─────────────────────────────────────────────────────────────

class HealthResponse(BaseModel):
    status: str
    service: str


# ── App factory ───────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    init_db(settings.database_url)

    redis = get_redis_client(settings.redis_url) if settings.rate_limit_backend == "redis" else None
    app.state.follow_limiter = build_window_limiter(
        settings,
        limit=settings.follow_rate_limit,
        window_seconds=settings.follow_rate_window_seconds,
        prefix="rl:follow",
        redis=redis,
    )
    app.state.notification_throttle = build_window_limiter(
        settings,
        limit=settings.notification_rate_limit,
        window_seconds=settings.notification_rate_window_seconds,
        prefix="rl:notify",
        redis=redis,
    )
    await app.state.follow_limiter.start()
    await app.state.notification_throttle.start()
    logger.info("LinkUp social service started (rate limit backend: %s)", settings.rate_limit_backend)
    try:
        yield
    finally:
        await app.state.follow_limiter.stop()
        await app.state.notification_throttle.stop()
        await close_db()
        if redis is not None:
            await close_redis_client()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(levelname)s:%(name)s: %(message)s",
    )

    app = FastAPI(
        title="LinkUp Social Service",
        version="1.0.0",
        description=_DESCRIPTION,
        openapi_tags=_TAGS_METADATA,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Attach rate limiter state before middleware
    app.state.limiter = build_api_limiter(settings)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    register_exception_handlers(app)

    # Middleware is applied in reverse-registration order (last added = outermost).
    # CORS must be outermost so ALL responses (including 429s) carry CORS headers.
    app.add_middleware(SlowAPIMiddleware)
    app.middleware("http")(request_id_middleware)
    app.middleware("http")(error_envelope_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )

    app.include_router(social_router, prefix="/api/v1")
    app.include_router(notifications_router, prefix="/api/v1")
    app.include_router(notifications_internal_router, prefix="/api/v1")

    @app.get("/health", response_model=HealthResponse, tags=["health"], include_in_schema=True)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", service="linkup-social")

    return app


app = create_app()
