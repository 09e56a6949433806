"""Domain enum definitions for reminder scheduling.

This module defines all enum types used across the engine for type-safe
representation of recurrence patterns, trigger kinds and lifecycle states.
"""

from enum import Enum


class PatternType(str, Enum):
    """Recurrence pattern of a reminder template's time configuration."""

    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    CUSTOM = "CUSTOM"
    ABSOLUTE_ONCE = "ABSOLUTE_ONCE"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value

    @property
    def is_cron_expressible(self) -> bool:
        """Whether a single six-field cron rule can describe the pattern."""
        return self in (PatternType.DAILY, PatternType.WEEKLY, PatternType.MONTHLY)


class IntervalUnit(str, Enum):
    """Unit of a CUSTOM pattern's repeat interval."""

    MINUTES = "MINUTES"
    HOURS = "HOURS"
    DAYS = "DAYS"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class TriggerType(str, Enum):
    """Kind of trigger stored on a schedule task.

    CRON tasks recur according to ``cron_expression``; ONCE tasks fire a
    single time at ``scheduled_time``.
    """

    CRON = "cron"
    ONCE = "once"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class TaskStatus(str, Enum):
    """Lifecycle state of a schedule task."""

    ACTIVE = "active"
    PAUSED = "paused"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class TaskRole(str, Enum):
    """Why a schedule task exists.

    RECURRENCE tasks are keyed by the template and define the recurrence;
    DELIVERY tasks are keyed by an occurrence/instance and drive a single
    notification.
    """

    RECURRENCE = "recurrence"
    DELIVERY = "delivery"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class AlertMethod(str, Enum):
    """Notification channels a dispatcher may use for a delivery task."""

    POPUP = "POPUP"
    SOUND = "SOUND"
    SYSTEM_NOTIFICATION = "SYSTEM_NOTIFICATION"
    EMAIL = "EMAIL"
    SMS = "SMS"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class ReminderInstanceStatus(str, Enum):
    """Status of a materialized reminder occurrence.

    Only PENDING is assigned by this engine; later transitions belong to the
    notification dispatcher.
    """

    PENDING = "pending"
    TRIGGERED = "triggered"
    ACKNOWLEDGED = "acknowledged"
    DISMISSED = "dismissed"
    SNOOZED = "snoozed"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class EventType(str, Enum):
    """Domain event type names used as bus subscription keys."""

    TEMPLATE_CREATED = "TemplateCreated"
    TEMPLATE_UPDATED = "TemplateUpdated"
    TEMPLATE_DELETED = "TemplateDeleted"
    INSTANCE_CREATED = "InstanceCreated"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


__all__ = [
    "AlertMethod",
    "EventType",
    "IntervalUnit",
    "PatternType",
    "ReminderInstanceStatus",
    "TaskRole",
    "TaskStatus",
    "TriggerType",
]
