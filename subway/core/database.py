"""Database configuration and session management."""

import threading
from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from subway.core.config import settings
from subway.core.utils import is_sqlite_url

# Module-level globals for lazy initialization (fork-safety)
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None

_engine_lock = threading.Lock()
_session_factory_lock = threading.Lock()


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """
    Turn on foreign key enforcement for every new SQLite connection.

    SQLite ignores ON DELETE CASCADE and REFERENCES unless the pragma is set
    per connection.

    Args:
        engine: Async engine bound to a SQLite database
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection: Any, connection_record: Any) -> None:  # noqa: ANN401
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def get_engine() -> AsyncEngine:
    """
    Get or create database engine (lazy initialization).

    Lazy initialization keeps forked uvicorn workers from inheriting an engine
    bound to the parent's event loop. Double-checked locking makes sure only
    one engine is created under concurrent access.

    Returns:
        AsyncEngine: SQLAlchemy async engine
    """
    global _engine  # noqa: PLW0603
    if _engine is None:
        with _engine_lock:
            if _engine is None:
                if settings.DEBUG:
                    # NullPool avoids event loop issues with pytest-asyncio
                    engine = create_async_engine(
                        settings.DATABASE_URL,
                        echo=settings.DATABASE_ECHO,
                        poolclass=NullPool,
                    )
                else:
                    engine = create_async_engine(
                        settings.DATABASE_URL,
                        echo=settings.DATABASE_ECHO,
                        pool_size=settings.DATABASE_POOL_SIZE,
                        max_overflow=settings.DATABASE_MAX_OVERFLOW,
                    )
                if is_sqlite_url(settings.DATABASE_URL):
                    enable_sqlite_foreign_keys(engine)
                _engine = engine
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    Get or create session factory (lazy initialization).

    Returns:
        async_sessionmaker[AsyncSession]: SQLAlchemy async session factory
    """
    global _session_factory  # noqa: PLW0603
    if _session_factory is None:
        with _session_factory_lock:
            if _session_factory is None:
                _session_factory = async_sessionmaker(
                    get_engine(),
                    class_=AsyncSession,
                    expire_on_commit=False,
                    autoflush=False,
                )
    return _session_factory


async def get_db() -> AsyncGenerator[AsyncSession]:
    """
    Dependency for getting async database sessions.

    Yields:
        AsyncSession: Database session
    """
    async with get_session_factory()() as session:
        try:
            yield session
        finally:
            await session.close()
