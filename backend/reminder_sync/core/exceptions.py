"""Common exception classes.

Every error raised by the sync engine derives from ``AppError`` so that the
event bus and callers can tell engine failures apart from library errors.
Persistence errors (SQLAlchemy) are not wrapped; they
propagate unchanged.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

# =============================================================================
# Base
# =============================================================================


class AppError(Exception):
    """Base exception for the reminder sync engine."""


# =============================================================================
# Time configuration
# =============================================================================


class ValidationError(AppError):
    """Raised when a raw time configuration cannot be normalized.

    Carries one entry per malformed field rather than stopping at the first
    problem.

    Attributes:
        errors: List of ``{"field": ..., "message": ...}`` dicts.

    Example:
        >>> raise ValidationError([
        ...     {"field": "times[0]", "message": "must match HH:MM"},
        ...     {"field": "weekdays", "message": "required for WEEKLY pattern"},
        ... ])
    """

    def __init__(self, errors: list[dict[str, str]]) -> None:
        self.errors = errors

        details = "; ".join(f"{e['field']}: {e['message']}" for e in errors)
        super().__init__(f"Invalid time configuration ({len(errors)} errors): {details}")

    @property
    def fields(self) -> list[str]:
        """Names of the fields that failed validation, in report order."""
        return [e["field"] for e in self.errors]


class UnsupportedPatternError(AppError):
    """Raised when a cron expression is requested for a non cron-able pattern.

    Attributes:
        pattern_type: The offending pattern type value.
    """

    def __init__(self, pattern_type: str) -> None:
        self.pattern_type = pattern_type
        super().__init__(
            f"Pattern '{pattern_type}' cannot be expressed as a cron expression"
        )


# =============================================================================
# Schedule task lifecycle
# =============================================================================


class InvalidTransitionError(AppError):
    """Raised when a lifecycle action is not allowed from the current state."""

    def __init__(self, state: str | None, action: str) -> None:
        self.state = state
        self.action = action
        super().__init__(f"Cannot apply '{action}' to a task in state '{state}'")


class TriggerInvariantError(AppError):
    """Raised when trigger fields contradict the trigger type.

    CRON tasks carry a cron expression and no scheduled time; ONCE tasks
    carry a scheduled time and no cron expression.
    """

    def __init__(self, trigger_type: str, details: dict[str, Any]) -> None:
        self.trigger_type = trigger_type
        self.details = details
        super().__init__(f"Invalid trigger fields for '{trigger_type}' task: {details}")


class ScheduleTaskNotFoundError(AppError):
    """Raised when a schedule task id does not exist in the store."""

    def __init__(self, task_id: UUID) -> None:
        self.task_id = task_id
        super().__init__(f"Schedule task {task_id} not found")


# =============================================================================
# Event delivery
# =============================================================================


class EventDispatchError(AppError):
    """Raised when a payload cannot be turned into a known domain event."""

    def __init__(self, message: str, payload: dict[str, Any] | None = None) -> None:
        self.payload = payload or {}
        super().__init__(message)


__all__ = [
    "AppError",
    "EventDispatchError",
    "InvalidTransitionError",
    "ScheduleTaskNotFoundError",
    "TriggerInvariantError",
    "UnsupportedPatternError",
    "ValidationError",
]
