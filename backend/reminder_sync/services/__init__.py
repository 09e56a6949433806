"""Business logic services.

This package contains the event bus, the schedule synchronization services
and reminder instance generation.
"""

from reminder_sync.services.event_bus import DeadLetter, EventBus
from reminder_sync.services.reminder_instance_service import ReminderInstanceService
from reminder_sync.services.schedule import (
    ScheduleSynchronizer,
    SQLAlchemyScheduleTaskStore,
)

__all__ = [
    "DeadLetter",
    "EventBus",
    "ReminderInstanceService",
    "SQLAlchemyScheduleTaskStore",
    "ScheduleSynchronizer",
]
