"""pytest configuration and fixtures for the reminder sync engine.

This module provides async database fixtures (SQLite in-memory), a fixed
clock, and fully wired store / bus / synchronizer fixtures, plus factories
for templates and raw events.
"""

import logging
from collections.abc import AsyncGenerator, Callable, Iterator
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from reminder_sync.core.clock import FixedClock
from reminder_sync.core.config import Settings
from reminder_sync.models import Base
from reminder_sync.schemas.template import ReminderTemplate
from reminder_sync.services.event_bus import EventBus
from reminder_sync.services.reminder_instance_service import ReminderInstanceService
from reminder_sync.services.schedule.store import SQLAlchemyScheduleTaskStore
from reminder_sync.services.schedule.synchronizer import ScheduleSynchronizer

# Monday 2026-03-02 08:00 UTC
NOW = datetime(2026, 3, 2, 8, 0, tzinfo=UTC)

# =============================================================================
# PYTEST CONFIGURATION
# =============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests that wire the full event flow",
    )


# =============================================================================
# SETTINGS & CLOCK
# =============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the environment's .env file."""
    return Settings(
        _env_file=None,
        SCHEDULER_TIMEZONE="UTC",
        GENERATION_HORIZON_DAYS=7,
        EVENT_MAX_ATTEMPTS=3,
        EVENT_RETRY_BACKOFF_SECONDS=0.0,
    )


@pytest.fixture
def clock() -> FixedClock:
    """Clock frozen at Monday 2026-03-02 08:00 UTC."""
    return FixedClock(NOW)


# =============================================================================
# ASYNC ENGINE FIXTURES (SQLite In-Memory for Tests)
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """Create an async SQLite in-memory engine for testing.

    All tables are created on setup and dropped on teardown. StaticPool
    keeps every session on the same in-memory database.

    Yields:
        AsyncEngine: SQLAlchemy async engine backed by SQLite in-memory.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield engine
    finally:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def async_session_maker(
    async_engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory bound to the test engine."""
    return async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest_asyncio.fixture
async def store(
    async_session_maker: async_sessionmaker[AsyncSession], clock: FixedClock
) -> SQLAlchemyScheduleTaskStore:
    return SQLAlchemyScheduleTaskStore(async_session_maker, clock)


@pytest.fixture
def bus(test_settings: Settings) -> EventBus:
    return EventBus(test_settings)


@pytest_asyncio.fixture
async def synchronizer(
    store: SQLAlchemyScheduleTaskStore,
    clock: FixedClock,
    test_settings: Settings,
    bus: EventBus,
) -> ScheduleSynchronizer:
    """Synchronizer subscribed to the ``bus`` fixture."""
    sync = ScheduleSynchronizer(store, clock, test_settings)
    sync.register(bus)
    return sync


@pytest_asyncio.fixture
async def instance_service(
    async_session_maker: async_sessionmaker[AsyncSession],
    bus: EventBus,
    clock: FixedClock,
    test_settings: Settings,
) -> ReminderInstanceService:
    return ReminderInstanceService(async_session_maker, bus, clock, test_settings)


# =============================================================================
# DATA FACTORIES
# =============================================================================


@pytest.fixture
def account_uuid() -> UUID:
    return UUID("11111111-1111-4111-8111-111111111111")


@pytest.fixture
def template_uuid() -> UUID:
    return UUID("22222222-2222-4222-8222-222222222222")


@pytest.fixture
def make_template(
    template_uuid: UUID, account_uuid: UUID
) -> Callable[..., ReminderTemplate]:
    """Factory for ReminderTemplate; defaults to DAILY 09:00 UTC."""

    def _make(**overrides: Any) -> ReminderTemplate:
        data: dict[str, Any] = {
            "uuid": template_uuid,
            "account_uuid": account_uuid,
            "name": "Drink water",
            "description": "Stay hydrated",
            "enabled": True,
            "time_config": {"patternType": "DAILY", "times": ["09:00"]},
            "timezone": "UTC",
        }
        data.update(overrides)
        return ReminderTemplate(**data)

    return _make


@pytest.fixture
def make_template_event(
    template_uuid: UUID, account_uuid: UUID
) -> Callable[..., dict[str, Any]]:
    """Factory for raw (wire format) template events."""

    def _make(
        event_type: str = "TemplateCreated",
        *,
        time_config: dict[str, Any] | None = None,
        enabled: bool = True,
        **payload: Any,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "templateUuid": str(template_uuid),
            "accountUuid": str(account_uuid),
            "timeConfig": time_config or {"patternType": "DAILY", "times": ["09:00"]},
            "enabled": enabled,
            "name": "Drink water",
            "description": "Stay hydrated",
        }
        body.update(payload)
        return {
            "type": event_type,
            "eventId": str(uuid4()),
            "aggregateId": str(template_uuid),
            "accountUuid": str(account_uuid),
            "occurredOn": NOW.isoformat(),
            "payload": body,
        }

    return _make


@pytest.fixture
def deleted_event(template_uuid: UUID, account_uuid: UUID) -> dict[str, Any]:
    return {
        "type": "TemplateDeleted",
        "aggregateId": str(template_uuid),
        "accountUuid": str(account_uuid),
        "occurredOn": NOW.isoformat(),
        "payload": {
            "templateUuid": str(template_uuid),
            "accountUuid": str(account_uuid),
        },
    }


@pytest.fixture
def restore_root_logger() -> Iterator[None]:
    """Put the root logger back the way the test found it."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    try:
        yield
    finally:
        for handler in root.handlers:
            if handler not in handlers:
                handler.close()
        root.handlers[:] = handlers
        root.setLevel(level)
