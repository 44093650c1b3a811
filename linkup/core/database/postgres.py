"""
Async engine and session factory.

PostgreSQL (asyncpg) in every deployed environment; SQLite (aiosqlite) for
tests and quick local runs.  DATABASE_SSL / DATABASE_SSL_CERT switch on TLS to
a managed Postgres instance.
"""
import os
import ssl
from pathlib import Path
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


_POSTGRES_POOL: dict[str, Any] = {
    "pool_pre_ping": True,
    "pool_size": 5,
    "max_overflow": 10,
    "pool_recycle": 3600,
}


def _ssl_connect_args() -> dict[str, Any]:
    mode = os.environ.get("DATABASE_SSL", "").strip().lower()
    if mode in ("", "disable", "false", "0"):
        return {}
    cert = os.environ.get("DATABASE_SSL_CERT", "")
    if cert and Path(cert).is_file():
        return {"ssl": ssl.create_default_context(cafile=cert)}
    # encrypted, server certificate not verified
    return {"ssl": "require"}


def _use_explicit_sqlite_transactions(engine: AsyncEngine) -> None:
    """Make SQLAlchemy own BEGIN on SQLite; the driver's implicit BEGIN breaks SAVEPOINT."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def get_async_engine(database_url: str, **kwargs: Any) -> AsyncEngine:
    if database_url.startswith("sqlite"):
        engine = create_async_engine(database_url, **kwargs)
        _use_explicit_sqlite_transactions(engine)
        return engine

    connect_args = {**_ssl_connect_args(), **kwargs.pop("connect_args", {})}
    options = {**_POSTGRES_POOL, **kwargs}
    if connect_args:
        options["connect_args"] = connect_args
    return create_async_engine(database_url, **options)


def get_async_session_factory(
    database_url: str,
    *,
    expire_on_commit: bool = False,
    **engine_kwargs: Any,
) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        get_async_engine(database_url, **engine_kwargs),
        class_=AsyncSession,
        expire_on_commit=expire_on_commit,
        autoflush=False,
    )
