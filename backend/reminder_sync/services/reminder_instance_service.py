"""Reminder instance materialization.

Turns a template's upcoming occurrences into ``ReminderInstance`` rows and
announces each new row with an ``InstanceCreated`` event.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from reminder_sync.core.clock import Clock, SystemClock
from reminder_sync.core.config import Settings, settings as default_settings
from reminder_sync.core.logging import LogContext
from reminder_sync.db.session import session_scope
from reminder_sync.models.enums import ReminderInstanceStatus
from reminder_sync.models.reminder_instance import ReminderInstance, instance_uuid_for
from reminder_sync.schemas.events import InstanceCreated, InstancePayload
from reminder_sync.schemas.template import ReminderTemplate
from reminder_sync.services.event_bus import EventPublisher
from reminder_sync.services.schedule.occurrences import (
    GenerationWindow,
    generate_occurrences,
)

logger = logging.getLogger(__name__)


class ReminderInstanceService:
    """Generate reminder instances for a template's upcoming occurrences.

    Attributes:
        session_factory: Factory producing AsyncSession instances
        publisher: Where InstanceCreated events are published
        clock: Time source for the default window and "now" filtering
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        publisher: EventPublisher,
        clock: Clock | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.publisher = publisher
        self.clock = clock or SystemClock()
        self.settings = settings or default_settings

    async def generate_instances(
        self,
        template: ReminderTemplate,
        window: GenerationWindow | None = None,
    ) -> list[InstancePayload]:
        """Insert missing instances in ``window`` and publish them.

        Args:
            template: Template to materialize.
            window: Generation window; defaults to now + GENERATION_HORIZON_DAYS.

        Returns:
            list[InstancePayload]: Newly created instances, ascending by time.
            Existing instances are neither returned nor re-published.
        """
        window = window or GenerationWindow.from_clock(
            self.clock, self.settings.GENERATION_HORIZON_DAYS
        )

        with LogContext(template_uuid=str(template.uuid)):
            occurrences = sorted(
                generate_occurrences(template, window.start, window.end, self.clock)
            )
            if not occurrences:
                logger.debug(f"No occurrences for template {template.uuid} in window")
                return []

            metadata = template.notification_metadata()
            candidates = {
                instance_uuid_for(template.uuid, o.scheduled_time): o for o in occurrences
            }

            created: list[InstancePayload] = []
            async with session_scope(self.session_factory) as session:
                result = await session.execute(
                    select(ReminderInstance.id).where(
                        ReminderInstance.id.in_(list(candidates))
                    )
                )
                existing = set(result.scalars().all())

                for instance_uuid, occurrence in candidates.items():
                    if instance_uuid in existing:
                        continue
                    session.add(
                        ReminderInstance(
                            id=instance_uuid,
                            template_uuid=template.uuid,
                            account_uuid=template.account_uuid,
                            scheduled_time=occurrence.scheduled_time,
                            title=template.name,
                            message=template.message,
                            priority=template.priority,
                            category=template.category,
                            status=ReminderInstanceStatus.PENDING.value,
                            metadata_=dict(metadata),
                        )
                    )
                    created.append(
                        InstancePayload(
                            instance_uuid=instance_uuid,
                            template_uuid=template.uuid,
                            account_uuid=template.account_uuid,
                            scheduled_time=occurrence.scheduled_time,
                            title=template.name,
                            message=template.message,
                            priority=template.priority,
                            category=template.category,
                            metadata=metadata,
                        )
                    )

            logger.info(
                f"Generated {len(created)} new instance(s) for template {template.uuid} "
                f"({len(candidates) - len(created)} already existed)"
            )

        # Published after commit so subscribers can see the rows
        for payload in created:
            await self.publisher.publish(InstanceCreated.for_instance(payload))

        return created

    async def list_instances(self, template_uuid: uuid.UUID) -> list[ReminderInstance]:
        """Stored instances of a template, ascending by scheduled time."""
        async with session_scope(self.session_factory) as session:
            result = await session.execute(
                select(ReminderInstance)
                .where(ReminderInstance.template_uuid == template_uuid)
                .order_by(ReminderInstance.scheduled_time)
            )
            return list(result.scalars().all())


__all__ = ["ReminderInstanceService"]
