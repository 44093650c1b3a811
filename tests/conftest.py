import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from linkup.config import Settings
from linkup.core.constants import Role
from linkup.core.database.postgres import Base, get_async_session_factory
from linkup.database import get_session_factory
from linkup.main import create_app
from linkup.rate_limit import InMemoryWindowRateLimiter
from linkup.users.models import User

UserFactory = Callable[..., Awaitable[User]]


class FakeClock:
    """Manually advanced monotonic clock for rate limiter tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _new_user(username: str, **fields) -> User:
    return User(
        id=uuid.uuid4(),
        username=username,
        email=f"{username}@example.com",
        is_private=fields.pop("is_private", False),
        role=fields.pop("role", Role.USER),
        **fields,
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'linkup-test.db'}",
        rate_limit_backend="memory",
        api_rate_limit_storage_uri="memory://",
        jwt_secret="test-secret",
        internal_api_key="",
        log_level="DEBUG",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def throttle(clock: FakeClock) -> InMemoryWindowRateLimiter:
    return InMemoryWindowRateLimiter(limit=5, window_seconds=60, prefix="rl:notify", clock=clock)


# ── Service-level fixtures (one session, no HTTP) ─────────────────────────────

@pytest_asyncio.fixture
async def db_session(settings: Settings) -> AsyncGenerator[AsyncSession, None]:
    session_factory = get_async_session_factory(settings.database_url)
    engine = session_factory.kw["bind"]
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with session_factory() as session:
        yield session
    await engine.dispose()


@pytest.fixture
def make_user(db_session: AsyncSession) -> UserFactory:
    async def _make(username: str, **fields) -> User:
        user = _new_user(username, **fields)
        db_session.add(user)
        await db_session.flush()
        return user

    return _make


# ── HTTP fixtures (full app with lifespan) ───────────────────────────────────

@pytest_asyncio.fixture
async def app(settings: Settings) -> AsyncGenerator[FastAPI, None]:
    application = create_app(settings)
    async with application.router.lifespan_context(application):
        engine = get_session_factory().kw["bind"]
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        yield application


@pytest.fixture
def app_sessions(app: FastAPI) -> async_sessionmaker[AsyncSession]:
    return get_session_factory()


@pytest.fixture
def seed_user(app_sessions: async_sessionmaker[AsyncSession]) -> UserFactory:
    """Commit a user through the app's own engine, outside any request."""

    async def _seed(username: str, **fields) -> User:
        user = _new_user(username, **fields)
        async with app_sessions() as session:
            session.add(user)
            await session.commit()
        return user

    return _seed


@pytest.fixture
def issue_token(settings: Settings) -> Callable[..., str]:
    """Sign a token carrying the claims the auth service puts in its access tokens."""

    def _issue(
        user_id: uuid.UUID,
        *,
        email: str = "",
        roles: list[Role] | None = None,
        expire_seconds: int = 900,
        secret: str | None = None,
    ) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "email": email,
            "roles": [r.value for r in (roles or [Role.USER])],
            "iss": settings.jwt_issuer,
            "aud": settings.jwt_audience,
            "iat": now,
            "exp": now + timedelta(seconds=expire_seconds),
        }
        return jwt.encode(payload, secret or settings.jwt_secret, algorithm=settings.jwt_algorithm)

    return _issue


@pytest.fixture
def auth_headers(issue_token: Callable[..., str]) -> Callable[..., dict[str, str]]:
    def _headers(user: User, roles: list[Role] | None = None) -> dict[str, str]:
        token = issue_token(user.id, email=user.email, roles=roles)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest_asyncio.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
