"""Async database engine and session management.

Holds the process-wide engine and session factory (SQLAlchemy 2.x async,
asyncpg in production, aiosqlite in tests) and a scoped session helper for
CLI commands that run outside a request.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Return the current async engine.

    Raises:
        RuntimeError: If the engine has not been initialized.
    """
    if _engine is None:
        msg = "Database engine not initialized. Call init_engine() first."
        raise RuntimeError(msg)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the current session factory.

    Raises:
        RuntimeError: If the engine has not been initialized.
    """
    if _session_factory is None:
        msg = "Session factory not initialized. Call init_engine() first."
        raise RuntimeError(msg)
    return _session_factory


def init_engine(database_url: str, *, schema: str | None = None, **kwargs: object) -> AsyncEngine:
    """Create and store the async engine and session factory.

    Sessions do not expire objects on commit: the sync and sweep services
    commit per record and keep reading the rows they loaded.

    Args:
        database_url: Async connection string.
        schema: Optional PostgreSQL schema for isolated environments.
        **kwargs: Additional arguments passed to create_async_engine.

    Returns:
        The created async engine.
    """
    global _engine, _session_factory  # noqa: PLW0603
    if schema is not None:
        connect_args = kwargs.pop("connect_args", {})
        if not isinstance(connect_args, dict):
            msg = "connect_args must be a dict"
            raise TypeError(msg)
        connect_args["options"] = f"-c search_path={schema},public"
        kwargs["connect_args"] = connect_args
    # Pool sizing only applies to pooled engines (not SQLite/StaticPool)
    if kwargs.get("poolclass") is not StaticPool and "sqlite" not in database_url:
        kwargs.setdefault("pool_size", 10)
        kwargs.setdefault("max_overflow", 5)
    _engine = create_async_engine(database_url, **kwargs)
    _session_factory = async_sessionmaker(_engine, expire_on_commit=False)
    return _engine


async def dispose_engine() -> None:
    """Dispose of the async engine and release connections."""
    global _engine, _session_factory  # noqa: PLW0603
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None


@asynccontextmanager
async def session_scope(database_url: str, *, schema: str | None = None) -> AsyncGenerator[AsyncSession]:
    """Initialize the engine, yield one session, and dispose the engine afterwards.

    Intended for CLI commands; the API uses the lifespan-managed engine.
    """
    init_engine(database_url, schema=schema)
    try:
        async with get_session_factory()() as session:
            yield session
    finally:
        await dispose_engine()
