"""Tests for engine and session helpers."""

import uuid
from datetime import UTC, datetime

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from reminder_sync.core.config import Settings
from reminder_sync.db.session import (
    build_engine,
    build_session_factory,
    session_scope,
    to_async_url,
)
from reminder_sync.models import ReminderInstance


class TestToAsyncUrl:
    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("postgresql://u:p@db/r", "postgresql+asyncpg://u:p@db/r"),
            ("postgres://u:p@db/r", "postgresql+asyncpg://u:p@db/r"),
            ("postgresql+psycopg2://u:p@db/r", "postgresql+asyncpg://u:p@db/r"),
            ("postgresql+asyncpg://u:p@db/r", "postgresql+asyncpg://u:p@db/r"),
            ("sqlite+aiosqlite:///:memory:", "sqlite+aiosqlite:///:memory:"),
        ],
    )
    def test_driver_rewritten(self, url: str, expected: str) -> None:
        assert to_async_url(url) == expected


class TestBuildEngine:
    def test_requires_url(self, test_settings: Settings) -> None:
        with pytest.raises(ValueError, match="DATABASE_URL is not set"):
            build_engine(test_settings)

    async def test_explicit_url_overrides_settings(self, test_settings: Settings) -> None:
        engine = build_engine(test_settings, url="sqlite+aiosqlite:///:memory:")
        try:
            assert isinstance(engine, AsyncEngine)
            async with engine.connect() as conn:
                result = await conn.execute(text("SELECT 1"))
                assert result.scalar() == 1
        finally:
            await engine.dispose()


class TestSessionScope:
    async def test_commits_on_success(
        self, async_session_maker: async_sessionmaker[AsyncSession]
    ) -> None:
        async with session_scope(async_session_maker) as session:
            await session.execute(text("SELECT 1"))

    async def test_rolls_back_on_error(
        self, async_session_maker: async_sessionmaker[AsyncSession]
    ) -> None:
        with pytest.raises(RuntimeError):
            async with session_scope(async_session_maker) as session:
                session.add(
                    ReminderInstance(
                        id=uuid.uuid4(),
                        template_uuid=uuid.uuid4(),
                        account_uuid=uuid.uuid4(),
                        scheduled_time=datetime(2026, 3, 2, 9, 0, tzinfo=UTC),
                        title="never stored",
                    )
                )
                await session.flush()
                raise RuntimeError("boom")

        async with async_session_maker() as session:
            count = await session.execute(text("SELECT COUNT(*) FROM reminder_instances"))
            assert count.scalar() == 0

    async def test_factory_settings(self, async_engine: AsyncEngine) -> None:
        factory = build_session_factory(async_engine)

        assert factory.kw["expire_on_commit"] is False
        assert factory.kw["autoflush"] is False
