"""Pydantic schemas.

This package contains the value types, event definitions and task schemas
exchanged between the reminder and schedule modules.
"""

from reminder_sync.schemas.base import BaseSchema, FrozenSchema
from reminder_sync.schemas.events import (
    DomainEvent,
    InstanceCreated,
    InstancePayload,
    TemplateCreated,
    TemplateDeleted,
    TemplatePayload,
    TemplateUpdated,
    parse_event,
)
from reminder_sync.schemas.schedule_task import ScheduleTaskDraft, ScheduleTaskResponse
from reminder_sync.schemas.template import AlertConfig, ReminderTemplate
from reminder_sync.schemas.time_config import (
    CustomInterval,
    TimeConfig,
    normalize_time_config,
)

__all__ = [
    # Base
    "BaseSchema",
    "FrozenSchema",
    # Time configuration
    "CustomInterval",
    "TimeConfig",
    "normalize_time_config",
    # Templates
    "AlertConfig",
    "ReminderTemplate",
    # Events
    "DomainEvent",
    "InstanceCreated",
    "InstancePayload",
    "TemplateCreated",
    "TemplateDeleted",
    "TemplatePayload",
    "TemplateUpdated",
    "parse_event",
    # Schedule tasks
    "ScheduleTaskDraft",
    "ScheduleTaskResponse",
]
