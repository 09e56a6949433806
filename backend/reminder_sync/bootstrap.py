"""Sync engine wiring.

Builds the engine, store, bus, synchronizer and instance service with
explicit constructor injection and hands them back as one ``SyncEngine``.

Logging:
    ``sync_engine_lifespan`` initializes structured logging on startup and
    logs startup and shutdown with configuration details.

Example:
    async with sync_engine_lifespan() as sync:
        await sync.bus.publish(raw_event)
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from reminder_sync import __version__
from reminder_sync.core.clock import Clock, SystemClock
from reminder_sync.core.config import Settings, get_settings
from reminder_sync.core.logging import setup_logging
from reminder_sync.db.session import build_engine, build_session_factory
from reminder_sync.models.base import Base
from reminder_sync.services.event_bus import EventBus
from reminder_sync.services.reminder_instance_service import ReminderInstanceService
from reminder_sync.services.schedule.store import SQLAlchemyScheduleTaskStore
from reminder_sync.services.schedule.synchronizer import ScheduleSynchronizer

logger = logging.getLogger(__name__)


@dataclass
class SyncEngine:
    """Fully wired reminder -> schedule sync components."""

    settings: Settings
    clock: Clock
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    store: SQLAlchemyScheduleTaskStore
    bus: EventBus
    synchronizer: ScheduleSynchronizer
    instance_service: ReminderInstanceService

    async def create_schema(self) -> None:
        """Create all tables directly (tests and local development).

        Production databases are migrated with Alembic instead.
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()


def build_sync_engine(
    settings: Settings | None = None,
    *,
    database_url: str | None = None,
    clock: Clock | None = None,
) -> SyncEngine:
    """Wire a SyncEngine.

    Args:
        settings: Application settings, defaults to ``get_settings()``.
        database_url: Overrides settings.DATABASE_URL (e.g. sqlite for tests).
        clock: Time source, defaults to the system clock.

    Returns:
        SyncEngine: Components with the synchronizer subscribed to the bus.
    """
    settings = settings or get_settings()
    clock = clock or SystemClock()

    engine = build_engine(settings, url=database_url)
    session_factory = build_session_factory(engine)
    store = SQLAlchemyScheduleTaskStore(session_factory, clock)
    bus = EventBus(settings)
    synchronizer = ScheduleSynchronizer(store, clock, settings)
    synchronizer.register(bus)
    instance_service = ReminderInstanceService(session_factory, bus, clock, settings)

    return SyncEngine(
        settings=settings,
        clock=clock,
        engine=engine,
        session_factory=session_factory,
        store=store,
        bus=bus,
        synchronizer=synchronizer,
        instance_service=instance_service,
    )


@asynccontextmanager
async def sync_engine_lifespan(
    settings: Settings | None = None,
    *,
    database_url: str | None = None,
    clock: Clock | None = None,
) -> AsyncGenerator[SyncEngine]:
    """Set up logging, yield a wired SyncEngine, dispose it on exit."""
    settings = settings or get_settings()

    setup_logging(
        log_level=settings.LOG_LEVEL,
        log_file=settings.LOG_FILE,
        service_name=settings.PROJECT_NAME,
        enable_json=settings.LOG_JSON_FORMAT,
    )

    # Startup
    logger.info(
        f"Starting {settings.PROJECT_NAME}",
        extra={
            "context": {
                "action": "sync_engine_startup",
                "version": __version__,
                "debug": settings.DEBUG,
                "horizon_days": settings.GENERATION_HORIZON_DAYS,
                "timezone": settings.SCHEDULER_TIMEZONE,
            }
        },
    )

    sync = build_sync_engine(settings, database_url=database_url, clock=clock)

    logger.info(
        "Sync engine startup completed",
        extra={"context": {"action": "sync_engine_startup", "status": "success"}},
    )

    try:
        yield sync
    finally:
        # Shutdown
        logger.info(
            f"Shutting down {settings.PROJECT_NAME}",
            extra={
                "context": {
                    "action": "sync_engine_shutdown",
                    "dead_letters": len(sync.bus.dead_letters),
                }
            },
        )
        await sync.dispose()


__all__ = ["SyncEngine", "build_sync_engine", "sync_engine_lifespan"]
