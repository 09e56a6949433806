"""ScheduleTask model: the downstream trigger record.

A schedule task tells an external scheduler *when* something should fire.
It is linked back to whatever produced it through the source key
``(source_module, source_entity_id)``, which is unique across the table.

Two kinds of rows share the table:

    Recurrence task (one per enabled template):
        source_entity_id = template uuid
        trigger_type     = cron  (DAILY / WEEKLY / MONTHLY)
                         | once  (ABSOLUTE_ONCE)

    Delivery task (one per occurrence / reminder instance):
        source_entity_id = instance uuid
        trigger_type     = once
        alert_config     = popup / sound settings for the dispatcher

``template_uuid`` is filled for both so that every task owned by a template
can be found when the template changes or is deleted.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from reminder_sync.models.base import (
    GUID,
    Base,
    JSONType,
    TimestampMixin,
    UTCDateTime,
    UUIDMixin,
)
from reminder_sync.models.enums import TaskStatus, TriggerType


class ScheduleTask(UUIDMixin, TimestampMixin, Base):
    """Trigger definition consumed by an external scheduler.

    Attributes:
        id: UUID primary key (from UUIDMixin)
        name: Display name, e.g. "Reminder: Drink water"
        description: Optional description
        trigger_type: cron or once
        cron_expression: Six-field cron string (cron tasks only)
        scheduled_time: Single fire time (once tasks only)
        timezone: IANA timezone the cron fields are evaluated in
        enabled: Whether the scheduler should fire this task
        status: active or paused
        source_module: Producing module, "reminder"
        source_entity_id: Template uuid or instance uuid
        template_uuid: Owning template
        account_uuid: Owning account
        metadata_: Free-form metadata (role, template name, pattern, ...)
        alert_config: Delivery settings for instance-level tasks
        next_run_at: Next fire time computed from the trigger
        version: Optimistic lock counter, incremented on every update

    Examples:
        >>> task = ScheduleTask(
        ...     name="Reminder: Stand up",
        ...     trigger_type=TriggerType.CRON,
        ...     cron_expression="0 0 9 * * *",
        ...     enabled=True,
        ...     status=TaskStatus.ACTIVE,
        ...     source_module="reminder",
        ...     source_entity_id=template_uuid,
        ...     template_uuid=template_uuid,
        ...     account_uuid=account_uuid,
        ... )
    """

    __tablename__ = "schedule_tasks"
    __table_args__ = (
        UniqueConstraint(
            "source_module",
            "source_entity_id",
            name="uq_schedule_tasks_source",
        ),
        Index("ix_schedule_tasks_template_uuid", "template_uuid"),
        Index("ix_schedule_tasks_next_run_at", "next_run_at"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Trigger definition
    trigger_type: Mapped[TriggerType] = mapped_column(String(20), nullable=False)

    cron_expression: Mapped[str | None] = mapped_column(String(100), nullable=True)

    scheduled_time: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    timezone: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="UTC",
        server_default="UTC",
    )

    # Lifecycle
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    status: Mapped[TaskStatus] = mapped_column(
        String(20),
        nullable=False,
        default=TaskStatus.ACTIVE.value,
    )

    # Source key
    source_module: Mapped[str] = mapped_column(String(50), nullable=False)

    source_entity_id: Mapped[uuid.UUID] = mapped_column(GUID(), nullable=False)

    template_uuid: Mapped[uuid.UUID] = mapped_column(GUID(), nullable=False)

    account_uuid: Mapped[uuid.UUID] = mapped_column(GUID(), nullable=False, index=True)

    # Payload for the dispatcher
    metadata_: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        JSONType,
        nullable=False,
        default=dict,
    )

    alert_config: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)

    next_run_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        """Return string representation of the task."""
        return (
            f"<ScheduleTask(id={self.id}, source={self.source_module}:"
            f"{self.source_entity_id}, type={self.trigger_type}, status={self.status})>"
        )

    @property
    def is_recurring(self) -> bool:
        """Check if this task recurs (cron trigger)."""
        return self.trigger_type == TriggerType.CRON


__all__ = ["ScheduleTask"]
