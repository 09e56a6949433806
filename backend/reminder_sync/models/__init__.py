"""SQLAlchemy models.

This package contains all database models.
"""

from reminder_sync.models.base import Base, TimestampMixin, UUIDMixin
from reminder_sync.models.enums import (
    AlertMethod,
    EventType,
    IntervalUnit,
    PatternType,
    ReminderInstanceStatus,
    TaskRole,
    TaskStatus,
    TriggerType,
)
from reminder_sync.models.reminder_instance import ReminderInstance, instance_uuid_for
from reminder_sync.models.schedule_task import ScheduleTask

__all__ = [
    # Base classes
    "Base",
    "UUIDMixin",
    "TimestampMixin",
    # Enums
    "AlertMethod",
    "EventType",
    "IntervalUnit",
    "PatternType",
    "ReminderInstanceStatus",
    "TaskRole",
    "TaskStatus",
    "TriggerType",
    # Models
    "ReminderInstance",
    "ScheduleTask",
    "instance_uuid_for",
]
