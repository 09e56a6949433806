"""Schedule task store.

Persistence boundary between the synchronizer and the database. The store
owns its transactions: every public method runs in its own session scope
and returns detached ``ScheduleTaskResponse`` snapshots.

Idempotency rests on the ``(source_module, source_entity_id)`` unique
constraint. ``upsert_by_source`` reads first and, if a concurrent writer
wins the insert race, re-reads the row it created instead of failing.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, Protocol

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from reminder_sync.core.clock import Clock, SystemClock
from reminder_sync.core.exceptions import InvalidTransitionError, ScheduleTaskNotFoundError
from reminder_sync.db.session import session_scope
from reminder_sync.models.enums import TriggerType
from reminder_sync.models.schedule_task import ScheduleTask
from reminder_sync.schemas.schedule_task import ScheduleTaskDraft, ScheduleTaskResponse
from reminder_sync.services.schedule.state_machine import (
    LifecycleAction,
    ScheduleTaskStateMachine,
)
from reminder_sync.services.schedule.triggers import compute_next_run_at

logger = logging.getLogger(__name__)

# Fields update_task accepts; "metadata" maps onto the metadata_ attribute
UPDATABLE_FIELDS = frozenset(
    {
        "name",
        "description",
        "trigger_type",
        "cron_expression",
        "scheduled_time",
        "timezone",
        "enabled",
        "status",
        "metadata",
        "alert_config",
    }
)


class ScheduleTaskStore(Protocol):
    """Operations the synchronizer needs from task persistence."""

    async def create_task(self, draft: ScheduleTaskDraft) -> uuid.UUID: ...

    async def update_task(
        self, task_id: uuid.UUID, fields: dict[str, Any]
    ) -> ScheduleTaskResponse: ...

    async def delete_task(self, task_id: uuid.UUID) -> None: ...

    async def find_by_source(
        self, source_module: str, source_entity_id: uuid.UUID
    ) -> list[ScheduleTaskResponse]: ...

    async def find_by_template(self, template_uuid: uuid.UUID) -> list[ScheduleTaskResponse]: ...

    async def upsert_by_source(
        self, draft: ScheduleTaskDraft
    ) -> tuple[ScheduleTaskResponse, bool]: ...


class SQLAlchemyScheduleTaskStore:
    """ScheduleTaskStore backed by an async SQLAlchemy session factory.

    Attributes:
        session_factory: Factory producing AsyncSession instances
        clock: Time source for next_run_at computation
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Clock | None = None,
        state_machine: ScheduleTaskStateMachine | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.clock = clock or SystemClock()
        self.state_machine = state_machine or ScheduleTaskStateMachine()

    # ==========================================================================
    # Writes
    # ==========================================================================

    async def create_task(self, draft: ScheduleTaskDraft) -> uuid.UUID:
        """Insert a new task.

        Tasks start ``active``; a disabled draft is not stored.

        Raises:
            InvalidTransitionError: If the draft is disabled.
            TriggerInvariantError: If trigger fields contradict trigger_type.
            IntegrityError: If a task with the same source key exists.
        """
        async with session_scope(self.session_factory) as session:
            task = self._new_task(draft)
            session.add(task)
            await session.flush()
            task_id = task.id

        logger.info(
            f"Created schedule task {task_id} for {draft.source_module}:{draft.source_entity_id}"
        )
        return task_id

    async def upsert_by_source(
        self, draft: ScheduleTaskDraft
    ) -> tuple[ScheduleTaskResponse, bool]:
        """Return the task for the draft's source key, creating it if absent.

        An existing task is returned untouched.

        Returns:
            tuple: (task, created) where created is False for an existing row.
        """
        try:
            return await self._insert_if_absent(draft)
        except IntegrityError:
            # Lost the insert race to a concurrent writer of the same key
            logger.info(
                f"Source key {draft.source_module}:{draft.source_entity_id} "
                "created concurrently, re-reading"
            )
            return await self._insert_if_absent(draft)

    async def update_task(
        self, task_id: uuid.UUID, fields: dict[str, Any]
    ) -> ScheduleTaskResponse:
        """Overwrite the given fields and bump the version.

        Passing ``enabled`` without ``status`` moves the task through the
        matching ENABLE / DISABLE transition. A call that changes nothing
        leaves the version untouched.

        Raises:
            ScheduleTaskNotFoundError: If the task does not exist.
            ValueError: If ``fields`` contains unknown keys.
            TriggerInvariantError: If the result violates the trigger rules.
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")

        async with session_scope(self.session_factory) as session:
            task = await self._get(session, task_id)
            values = dict(fields)

            if "enabled" in values and "status" not in values:
                action = LifecycleAction.ENABLE if values["enabled"] else LifecycleAction.DISABLE
                new_state = self.state_machine.next_state(task.status, action)
                if new_state is not None:
                    values.update(self.state_machine.lifecycle_fields(new_state))

            for key, value in values.items():
                if key in ("trigger_type", "status") and value is not None:
                    value = str(value)
                setattr(task, "metadata_" if key == "metadata" else key, value)

            self.state_machine.check_trigger(
                task.trigger_type, task.cron_expression, task.scheduled_time, task.timezone
            )
            next_run_at = self._next_run_at(
                task.trigger_type,
                task.enabled,
                task.cron_expression,
                task.scheduled_time,
                task.timezone,
            )
            if next_run_at != task.next_run_at:
                task.next_run_at = next_run_at

            await session.flush()
            response = ScheduleTaskResponse.model_validate(task)

        logger.info(f"Updated schedule task {task_id} (version {response.version})")
        return response

    async def delete_task(self, task_id: uuid.UUID) -> None:
        """Hard-delete a task.

        Raises:
            ScheduleTaskNotFoundError: If the task does not exist.
        """
        async with session_scope(self.session_factory) as session:
            task = await self._get(session, task_id)
            self.state_machine.next_state(task.status, LifecycleAction.DELETE)
            await session.delete(task)

        logger.info(f"Deleted schedule task {task_id}")

    # ==========================================================================
    # Reads
    # ==========================================================================

    async def get_task(self, task_id: uuid.UUID) -> ScheduleTaskResponse:
        async with session_scope(self.session_factory) as session:
            task = await self._get(session, task_id)
            return ScheduleTaskResponse.model_validate(task)

    async def find_by_source(
        self, source_module: str, source_entity_id: uuid.UUID
    ) -> list[ScheduleTaskResponse]:
        """Tasks with the given source key (zero or one row)."""
        async with session_scope(self.session_factory) as session:
            result = await session.execute(
                select(ScheduleTask)
                .where(
                    ScheduleTask.source_module == source_module,
                    ScheduleTask.source_entity_id == source_entity_id,
                )
                .order_by(ScheduleTask.created_at)
            )
            return [ScheduleTaskResponse.model_validate(t) for t in result.scalars().all()]

    async def find_by_template(self, template_uuid: uuid.UUID) -> list[ScheduleTaskResponse]:
        """Every task owned by a template: recurrence and delivery tasks."""
        async with session_scope(self.session_factory) as session:
            result = await session.execute(
                select(ScheduleTask)
                .where(ScheduleTask.template_uuid == template_uuid)
                .order_by(ScheduleTask.created_at, ScheduleTask.scheduled_time)
            )
            return [ScheduleTaskResponse.model_validate(t) for t in result.scalars().all()]

    # ==========================================================================
    # Helpers
    # ==========================================================================

    async def _insert_if_absent(
        self, draft: ScheduleTaskDraft
    ) -> tuple[ScheduleTaskResponse, bool]:
        async with session_scope(self.session_factory) as session:
            result = await session.execute(
                select(ScheduleTask).where(
                    ScheduleTask.source_module == draft.source_module,
                    ScheduleTask.source_entity_id == draft.source_entity_id,
                )
            )
            existing = result.scalar_one_or_none()
            if existing is not None:
                return ScheduleTaskResponse.model_validate(existing), False

            task = self._new_task(draft)
            session.add(task)
            await session.flush()
            response = ScheduleTaskResponse.model_validate(task)

        logger.info(
            f"Created schedule task {response.id} ({response.trigger_type}) "
            f"for {draft.source_module}:{draft.source_entity_id}"
        )
        return response, True

    def _new_task(self, draft: ScheduleTaskDraft) -> ScheduleTask:
        self.state_machine.check_trigger(
            draft.trigger_type, draft.cron_expression, draft.scheduled_time, draft.timezone
        )
        status = self.state_machine.initial_state(draft.enabled)
        if status is None:
            raise InvalidTransitionError(None, LifecycleAction.CREATE.value)

        return ScheduleTask(
            name=draft.name,
            description=draft.description,
            trigger_type=draft.trigger_type.value,
            cron_expression=draft.cron_expression,
            scheduled_time=draft.scheduled_time,
            timezone=draft.timezone,
            enabled=draft.enabled,
            status=status.value,
            source_module=draft.source_module,
            source_entity_id=draft.source_entity_id,
            template_uuid=draft.template_uuid,
            account_uuid=draft.account_uuid,
            metadata_=dict(draft.metadata),
            alert_config=draft.alert_config,
            next_run_at=self._next_run_at(
                draft.trigger_type,
                draft.enabled,
                draft.cron_expression,
                draft.scheduled_time,
                draft.timezone,
            ),
        )

    def _next_run_at(
        self,
        trigger_type: TriggerType | str,
        enabled: bool,
        cron_expression: str | None,
        scheduled_time: datetime | None,
        timezone: str,
    ) -> datetime | None:
        if not enabled:
            return None
        return compute_next_run_at(
            trigger_type,
            self.clock.now(),
            cron_expression=cron_expression,
            scheduled_time=scheduled_time,
            timezone=timezone,
        )

    @staticmethod
    async def _get(session: AsyncSession, task_id: uuid.UUID) -> ScheduleTask:
        task = await session.get(ScheduleTask, task_id)
        if task is None:
            raise ScheduleTaskNotFoundError(task_id)
        return task


__all__ = ["UPDATABLE_FIELDS", "SQLAlchemyScheduleTaskStore", "ScheduleTaskStore"]
