"""Pydantic schemas for schedule tasks.

``ScheduleTaskDraft`` is what the synchronizer computes from a template or
instance; ``ScheduleTaskResponse`` is what the store hands back.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import AliasChoices, Field

from reminder_sync.models.enums import TaskRole, TaskStatus, TriggerType
from reminder_sync.schemas.base import BaseSchema


class ScheduleTaskDraft(BaseSchema):
    """Desired state of a schedule task, keyed by its source."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    trigger_type: TriggerType
    cron_expression: str | None = None
    scheduled_time: datetime | None = None
    timezone: str = "UTC"
    enabled: bool = True
    source_module: str
    source_entity_id: UUID
    template_uuid: UUID
    account_uuid: UUID
    metadata: dict[str, Any] = Field(default_factory=dict)
    alert_config: dict[str, Any] | None = None

    @property
    def role(self) -> TaskRole:
        return TaskRole(self.metadata.get("role", TaskRole.RECURRENCE.value))

    def overwrite_fields(self) -> dict[str, Any]:
        """Fields an update is allowed to overwrite on an existing task."""
        return {
            "name": self.name,
            "description": self.description,
            "trigger_type": self.trigger_type,
            "cron_expression": self.cron_expression,
            "scheduled_time": self.scheduled_time,
            "timezone": self.timezone,
            "metadata": self.metadata,
            "alert_config": self.alert_config,
        }


class ScheduleTaskResponse(BaseSchema):
    """Stored schedule task."""

    id: UUID
    name: str
    description: str | None = None
    trigger_type: TriggerType
    cron_expression: str | None = None
    scheduled_time: datetime | None = None
    timezone: str
    enabled: bool
    status: TaskStatus
    source_module: str
    source_entity_id: UUID
    template_uuid: UUID
    account_uuid: UUID
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("metadata_", "metadata"),
    )
    alert_config: dict[str, Any] | None = None
    next_run_at: datetime | None = None
    version: int
    created_at: datetime
    updated_at: datetime

    @property
    def role(self) -> TaskRole:
        return TaskRole(self.metadata.get("role", TaskRole.RECURRENCE.value))


__all__ = ["ScheduleTaskDraft", "ScheduleTaskResponse"]
