"""Reminder -> schedule task synchronizer.

Consumes reminder domain events and keeps the schedule task table in step
with the templates and instances that produced them.

    TemplateCreated  -> recurrence task (cron or once) keyed by the template,
                        or per-occurrence delivery tasks for CUSTOM patterns
    TemplateUpdated  -> reconcile the template's tasks (pause, resume, rewrite)
    TemplateDeleted  -> delete every task owned by the template
    InstanceCreated  -> once delivery task keyed by the instance

Every handler is idempotent: replaying an event leaves the same set of
tasks. Events for the same template are serialized in-process; the source
key unique constraint covers concurrent writers in other processes.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
import weakref
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Protocol

from reminder_sync.core.clock import Clock, SystemClock
from reminder_sync.core.config import Settings, settings as default_settings
from reminder_sync.core.logging import LogContext
from reminder_sync.models.enums import PatternType, TaskRole, TaskStatus, TriggerType
from reminder_sync.models.reminder_instance import instance_uuid_for
from reminder_sync.schemas.events import (
    EVENT_TYPES,
    DomainEvent,
    InstanceCreated,
    TemplateCreated,
    TemplateDeleted,
    TemplateUpdated,
)
from reminder_sync.schemas.schedule_task import ScheduleTaskDraft, ScheduleTaskResponse
from reminder_sync.schemas.template import AlertConfig, ReminderTemplate
from reminder_sync.services.schedule.cron import derive_cron_expression
from reminder_sync.services.schedule.occurrences import (
    GenerationWindow,
    generate_occurrences,
)
from reminder_sync.services.schedule.state_machine import ScheduleTaskStateMachine
from reminder_sync.services.schedule.store import ScheduleTaskStore

logger = logging.getLogger(__name__)

# metadata["generatedBy"] values for delivery tasks
GENERATED_BY_TEMPLATE = "template"
GENERATED_BY_INSTANCE = "instance"


class EventSubscriber(Protocol):
    def subscribe(self, event_type: str, handler: Any) -> None: ...


class ScheduleSynchronizer:
    """Translate reminder events into schedule task writes.

    Attributes:
        store: Schedule task persistence
        clock: Time source for CUSTOM windows and past-task checks
    """

    def __init__(
        self,
        store: ScheduleTaskStore,
        clock: Clock | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.store = store
        self.clock = clock or SystemClock()
        self.settings = settings or default_settings
        self.source_module = self.settings.SOURCE_MODULE
        self._locks: weakref.WeakValueDictionary[uuid.UUID, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def register(self, bus: EventSubscriber) -> None:
        """Subscribe ``handle`` to every reminder event type."""
        for event_type in EVENT_TYPES:
            bus.subscribe(event_type, self.handle)

    async def handle(self, event: DomainEvent) -> None:
        """Dispatch an event to its handler."""
        match event:
            case TemplateCreated():
                await self.on_template_created(event)
            case TemplateUpdated():
                await self.on_template_updated(event)
            case TemplateDeleted():
                await self.on_template_deleted(event)
            case InstanceCreated():
                await self.on_instance_created(event)
            case _:
                raise TypeError(f"Unsupported event: {type(event).__name__}")

    # ==========================================================================
    # Event handlers
    # ==========================================================================

    async def on_template_created(self, event: TemplateCreated) -> None:
        template = self._template_from(event)

        with LogContext(event_type=event.type, template_uuid=str(template.uuid)):
            if not template.enabled:
                logger.info(f"Template {template.uuid} created disabled, no task scheduled")
                return

            async with self._serialized(template.uuid):
                created = 0
                for draft in self._build_drafts(template):
                    _, was_created = await self.store.upsert_by_source(draft)
                    created += was_created

            logger.info(
                f"Synchronized created template {template.uuid}: {created} task(s) created"
            )

    async def on_template_updated(self, event: TemplateUpdated) -> None:
        template_uuid = event.payload.template_uuid

        with LogContext(event_type=event.type, template_uuid=str(template_uuid)):
            async with self._serialized(template_uuid):
                existing = await self.store.find_by_template(template_uuid)
                template = self._template_from(event, existing)
                if not existing:
                    logger.warning(
                        f"No schedule task found for updated template {template.uuid}"
                    )
                    return

                if not template.enabled:
                    await self._pause_all(existing)
                    return

                await self._reconcile(template, existing)

    async def on_template_deleted(self, event: TemplateDeleted) -> None:
        template_uuid = event.payload.template_uuid

        with LogContext(event_type=event.type, template_uuid=str(template_uuid)):
            async with self._serialized(template_uuid):
                tasks = await self.store.find_by_template(template_uuid)
                for task in tasks:
                    await self.store.delete_task(task.id)

            if not tasks:
                logger.warning(f"No schedule task found for deleted template {template_uuid}")
                return
            logger.info(f"Deleted {len(tasks)} schedule task(s) for template {template_uuid}")

    async def on_instance_created(self, event: InstanceCreated) -> None:
        payload = event.payload
        metadata: dict[str, Any] = {
            **payload.metadata,
            "role": TaskRole.DELIVERY.value,
            "generatedBy": GENERATED_BY_INSTANCE,
            "templateUuid": str(payload.template_uuid),
            "instanceUuid": str(payload.instance_uuid),
            "title": payload.title,
            "priority": payload.priority,
        }
        if payload.message:
            metadata["message"] = payload.message
        if payload.category:
            metadata["category"] = payload.category

        draft = ScheduleTaskDraft(
            name=f"Reminder: {payload.title}",
            description=payload.message,
            trigger_type=TriggerType.ONCE,
            scheduled_time=payload.scheduled_time,
            source_module=self.source_module,
            source_entity_id=payload.instance_uuid,
            template_uuid=payload.template_uuid,
            account_uuid=payload.account_uuid,
            metadata=metadata,
            alert_config=AlertConfig.from_metadata(payload.metadata).to_wire(),
        )

        with LogContext(event_type=event.type, instance_uuid=str(payload.instance_uuid)):
            async with self._serialized(payload.template_uuid):
                task, created = await self.store.upsert_by_source(draft)
            if created:
                logger.info(f"Scheduled delivery task {task.id} at {task.scheduled_time}")
            else:
                logger.debug(f"Delivery task for instance {payload.instance_uuid} exists")

    # ==========================================================================
    # Task derivation
    # ==========================================================================

    def _template_from(
        self,
        event: TemplateCreated | TemplateUpdated,
        existing: list[ScheduleTaskResponse] | None = None,
    ) -> ReminderTemplate:
        template = event.payload.to_template()
        is_custom = template.time_config.pattern_type == PatternType.CUSTOM
        if template.anchor_at is not None or not is_custom:
            return template

        # Keep the phase of already scheduled occurrences, else the event time
        anchor = event.occurred_on
        for task in existing or []:
            stored = task.metadata.get("anchorAt")
            if stored:
                anchor = datetime.fromisoformat(stored)
                break
        return template.model_copy(update={"anchor_at": anchor})

    def _build_drafts(self, template: ReminderTemplate) -> list[ScheduleTaskDraft]:
        """Desired tasks for an enabled template."""
        config = template.time_config
        if config.pattern_type == PatternType.ABSOLUTE_ONCE:
            return [
                self._recurrence_draft(
                    template,
                    trigger_type=TriggerType.ONCE,
                    scheduled_time=config.once_at,
                )
            ]

        if not config.pattern_type.is_cron_expressible:
            logger.info(
                f"Pattern {config.pattern_type} is not cron-expressible, "
                "scheduling individual occurrences"
            )
            return self._occurrence_drafts(template)

        return [
            self._recurrence_draft(
                template,
                trigger_type=TriggerType.CRON,
                cron_expression=derive_cron_expression(config),
            )
        ]

    def _recurrence_draft(
        self,
        template: ReminderTemplate,
        *,
        trigger_type: TriggerType,
        cron_expression: str | None = None,
        scheduled_time: datetime | None = None,
    ) -> ScheduleTaskDraft:
        config = template.time_config
        metadata: dict[str, Any] = {
            **template.metadata,
            "role": TaskRole.RECURRENCE.value,
            "templateUuid": str(template.uuid),
            "templateName": template.name,
            "accountUuid": str(template.account_uuid),
            "patternType": config.pattern_type.value,
            "timezone": template.timezone,
            "priority": template.priority,
        }
        if len(config.times) > 1:
            metadata["additionalTimes"] = list(config.times[1:])
        if template.category:
            metadata["category"] = template.category
        if template.notification_settings:
            metadata["notificationSettings"] = template.notification_settings

        return ScheduleTaskDraft(
            name=template.schedule_task_name,
            description=template.schedule_task_description(),
            trigger_type=trigger_type,
            cron_expression=cron_expression,
            scheduled_time=scheduled_time,
            timezone=template.timezone,
            source_module=self.source_module,
            source_entity_id=template.uuid,
            template_uuid=template.uuid,
            account_uuid=template.account_uuid,
            metadata=metadata,
        )

    def _occurrence_drafts(self, template: ReminderTemplate) -> list[ScheduleTaskDraft]:
        window = GenerationWindow.from_clock(self.clock, self.settings.GENERATION_HORIZON_DAYS)
        alert_config = AlertConfig.from_metadata(
            {"notificationSettings": template.notification_settings}
        ).to_wire()

        drafts = []
        for occurrence in generate_occurrences(template, window.start, window.end, self.clock):
            instance_uuid = instance_uuid_for(template.uuid, occurrence.scheduled_time)
            drafts.append(
                ScheduleTaskDraft(
                    name=template.schedule_task_name,
                    description=template.schedule_task_description(),
                    trigger_type=TriggerType.ONCE,
                    scheduled_time=occurrence.scheduled_time,
                    timezone=template.timezone,
                    source_module=self.source_module,
                    source_entity_id=instance_uuid,
                    template_uuid=template.uuid,
                    account_uuid=template.account_uuid,
                    metadata={
                        **template.metadata,
                        "role": TaskRole.DELIVERY.value,
                        "generatedBy": GENERATED_BY_TEMPLATE,
                        "templateUuid": str(template.uuid),
                        "instanceUuid": str(instance_uuid),
                        "title": template.name,
                        "patternType": PatternType.CUSTOM.value,
                        "anchorAt": template.anchor_at.isoformat() if template.anchor_at else None,
                    },
                    alert_config=alert_config,
                )
            )
        return drafts

    # ==========================================================================
    # Reconciliation
    # ==========================================================================

    def _is_template_managed(self, task: ScheduleTaskResponse) -> bool:
        """Tasks rebuilt from the template itself (not from instances)."""
        return (
            task.source_entity_id == task.template_uuid
            or task.metadata.get("generatedBy") == GENERATED_BY_TEMPLATE
        )

    async def _pause_all(self, tasks: list[ScheduleTaskResponse]) -> None:
        fields = ScheduleTaskStateMachine.lifecycle_fields(TaskStatus.PAUSED)
        paused = 0
        for task in tasks:
            if task.status != TaskStatus.PAUSED or task.enabled:
                await self.store.update_task(task.id, fields)
                paused += 1
        logger.info(f"Paused {paused} schedule task(s)")

    async def _reconcile(
        self, template: ReminderTemplate, existing: list[ScheduleTaskResponse]
    ) -> None:
        now = self.clock.now()
        active_fields = ScheduleTaskStateMachine.lifecycle_fields(TaskStatus.ACTIVE)

        desired = {draft.source_entity_id: draft for draft in self._build_drafts(template)}
        managed = {t.source_entity_id: t for t in existing if self._is_template_managed(t)}

        removed = 0
        for key, task in managed.items():
            if key in desired:
                continue
            # Fired delivery tasks are kept as history
            is_delivery = task.source_entity_id != template.uuid
            if is_delivery and task.scheduled_time is not None and task.scheduled_time <= now:
                continue
            await self.store.delete_task(task.id)
            removed += 1

        created = updated = 0
        for key, draft in desired.items():
            task = managed.get(key)
            if task is None:
                _, was_created = await self.store.upsert_by_source(draft)
                created += was_created
            else:
                before = task.version
                after = await self.store.update_task(
                    task.id, {**draft.overwrite_fields(), **active_fields}
                )
                updated += after.version != before

        # Instance-driven delivery tasks only follow the enabled flag
        for task in existing:
            if not self._is_template_managed(task) and task.status == TaskStatus.PAUSED:
                await self.store.update_task(task.id, active_fields)

        logger.info(
            f"Reconciled template {template.uuid}: "
            f"{created} created, {updated} updated, {removed} removed"
        )

    @asynccontextmanager
    async def _serialized(self, template_uuid: uuid.UUID) -> AsyncIterator[None]:
        lock = self._locks.get(template_uuid)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[template_uuid] = lock
        async with lock:
            yield


__all__ = ["ScheduleSynchronizer"]
