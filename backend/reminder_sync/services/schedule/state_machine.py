"""Schedule task lifecycle rules.

States are ``active`` and ``paused``; a deleted task has no state (None).
Enable and disable are idempotent, delete is terminal::

    create(enabled=True)   -> active
    create(enabled=False)  -> (no task)
    enable   active|paused -> active
    disable  active|paused -> paused
    delete   active|paused -> (gone)
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from reminder_sync.core.exceptions import InvalidTransitionError, TriggerInvariantError
from reminder_sync.models.enums import TaskStatus, TriggerType
from reminder_sync.services.schedule.triggers import validate_cron_expression


class LifecycleAction(str, Enum):
    """Actions the synchronizer applies to a schedule task."""

    CREATE = "create"
    ENABLE = "enable"
    DISABLE = "disable"
    DELETE = "delete"

    def __str__(self) -> str:
        return self.value


_TRANSITIONS: dict[tuple[TaskStatus, LifecycleAction], TaskStatus | None] = {
    (TaskStatus.ACTIVE, LifecycleAction.ENABLE): TaskStatus.ACTIVE,
    (TaskStatus.PAUSED, LifecycleAction.ENABLE): TaskStatus.ACTIVE,
    (TaskStatus.ACTIVE, LifecycleAction.DISABLE): TaskStatus.PAUSED,
    (TaskStatus.PAUSED, LifecycleAction.DISABLE): TaskStatus.PAUSED,
    (TaskStatus.ACTIVE, LifecycleAction.DELETE): None,
    (TaskStatus.PAUSED, LifecycleAction.DELETE): None,
}


class ScheduleTaskStateMachine:
    """Pure transition and trigger-shape rules for schedule tasks."""

    @staticmethod
    def initial_state(enabled: bool) -> TaskStatus | None:
        """State a newly created task starts in; None means do not create."""
        return TaskStatus.ACTIVE if enabled else None

    @staticmethod
    def next_state(
        current: TaskStatus | str | None, action: LifecycleAction
    ) -> TaskStatus | None:
        """Apply ``action`` to a task in ``current`` state.

        Raises:
            InvalidTransitionError: On any action against a deleted task, or
                CREATE against an existing one.
        """
        if current is None:
            if action == LifecycleAction.CREATE:
                return TaskStatus.ACTIVE
            raise InvalidTransitionError(None, action.value)

        state = TaskStatus(current)
        key = (state, action)
        if key not in _TRANSITIONS:
            raise InvalidTransitionError(state.value, action.value)
        return _TRANSITIONS[key]

    @staticmethod
    def lifecycle_fields(status: TaskStatus) -> dict[str, Any]:
        """Column values that represent ``status`` on a stored task."""
        return {"status": status, "enabled": status == TaskStatus.ACTIVE}

    @staticmethod
    def check_trigger(
        trigger_type: TriggerType | str,
        cron_expression: str | None,
        scheduled_time: datetime | None,
        timezone: str = "UTC",
    ) -> None:
        """Enforce CRON => expression only, ONCE => scheduled time only.

        Raises:
            TriggerInvariantError: If the fields do not match the trigger type
                or the cron expression does not parse.
        """
        kind = TriggerType(trigger_type)
        details = {
            "cron_expression": cron_expression,
            "scheduled_time": scheduled_time.isoformat() if scheduled_time else None,
        }

        if kind == TriggerType.CRON:
            if not cron_expression or scheduled_time is not None:
                raise TriggerInvariantError(kind.value, details)
            if not validate_cron_expression(cron_expression, timezone):
                raise TriggerInvariantError(
                    kind.value, {**details, "reason": "unparseable cron expression"}
                )
            return

        if scheduled_time is None or cron_expression is not None:
            raise TriggerInvariantError(kind.value, details)
        if scheduled_time.tzinfo is None:
            raise TriggerInvariantError(
                kind.value, {**details, "reason": "scheduled_time must be timezone-aware"}
            )


__all__ = ["LifecycleAction", "ScheduleTaskStateMachine"]
