"""
Request-scoped database sessions.

The app lifespan calls ``init_db`` once and ``close_db`` on shutdown; each
request gets one session from ``get_db`` that commits when the handler returns
and rolls back when it raises.
"""
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from linkup.core.database.postgres import get_async_session_factory

# Import all models so SQLAlchemy's Base.metadata is populated.
# Required for Alembic autogenerate and create_all().
import linkup.models  # noqa: F401

_session_factory: async_sessionmaker[AsyncSession] | None = None


def init_db(database_url: str) -> None:
    global _session_factory
    _session_factory = get_async_session_factory(database_url, expire_on_commit=False)


async def close_db() -> None:
    global _session_factory
    if _session_factory is not None:
        await _session_factory.kw["bind"].dispose()
        _session_factory = None


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _session_factory is None:
        raise RuntimeError("Database not initialized")
    return _session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
