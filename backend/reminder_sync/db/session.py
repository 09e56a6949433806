"""Database engine and session management.

This module builds async SQLAlchemy engines and session factories. Nothing
is created at import time; callers (bootstrap, alembic, tests) build the
engine they need and pass the session factory into the store.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from reminder_sync.core.config import Settings


def to_async_url(url: str) -> str:
    """Ensure a PostgreSQL URL uses the asyncpg driver.

    Args:
        url: Database URL, possibly with a sync or no driver.

    Returns:
        str: URL with ``postgresql+asyncpg://`` scheme where applicable.
    """
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql+psycopg2://"):
        return url.replace("postgresql+psycopg2://", "postgresql+asyncpg://", 1)
    return url


def build_engine(settings: Settings, url: str | None = None) -> AsyncEngine:
    """Create an async engine from settings.

    Args:
        settings: Application settings.
        url: Explicit URL overriding settings.DATABASE_URL.

    Returns:
        AsyncEngine: Configured engine.

    Raises:
        ValueError: If neither url nor settings.DATABASE_URL is set.
    """
    raw_url = url or (str(settings.DATABASE_URL) if settings.DATABASE_URL else None)
    if raw_url is None:
        raise ValueError("DATABASE_URL is not set. Please configure it in your .env file.")

    database_url = to_async_url(raw_url)

    if database_url.startswith("sqlite"):
        # In-memory SQLite must share one connection across sessions
        return create_async_engine(
            database_url,
            echo=settings.DEBUG,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )

    return create_async_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        echo=settings.DEBUG,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the session factory used by stores and services."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@asynccontextmanager
async def session_scope(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """Yield a session that commits on success and rolls back on error.

    Example:
        async with session_scope(factory) as session:
            session.add(task)
    """
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


__all__ = [
    "build_engine",
    "build_session_factory",
    "session_scope",
    "to_async_url",
]
