"""In-process event bus for reminder domain events.

Delivery is at-least-once: a failing handler is retried up to
``EVENT_MAX_ATTEMPTS`` times, then the event is recorded as a dead letter
and the error is re-raised to the publisher. Handlers for one event run
sequentially, in subscription order.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol

from reminder_sync.core.config import Settings, settings as default_settings
from reminder_sync.core.exceptions import (
    EventDispatchError,
    InvalidTransitionError,
    TriggerInvariantError,
    UnsupportedPatternError,
    ValidationError,
)
from reminder_sync.core.logging import LogContext
from reminder_sync.schemas.events import EVENT_TYPES, DomainEvent, parse_event

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], Awaitable[None]]

# Deterministic failures; retrying them cannot succeed
NON_RETRYABLE_ERRORS: tuple[type[Exception], ...] = (
    EventDispatchError,
    InvalidTransitionError,
    TriggerInvariantError,
    UnsupportedPatternError,
    ValidationError,
)


class EventPublisher(Protocol):
    async def publish(self, event: DomainEvent | Mapping[str, Any]) -> None: ...


@dataclass
class DeadLetter:
    """An event a handler could not process."""

    event: DomainEvent
    handler_name: str
    error: Exception
    attempts: int
    failed_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class EventBus:
    """Subscribe handlers by event type and publish events to them.

    Examples:
        >>> bus = EventBus()
        >>> bus.subscribe("TemplateCreated", synchronizer.handle)
        >>> await bus.publish({"type": "TemplateCreated", ...})
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        max_attempts: int | None = None,
        retry_backoff_seconds: float | None = None,
    ) -> None:
        config = settings or default_settings
        self.max_attempts = max_attempts or config.EVENT_MAX_ATTEMPTS
        self.retry_backoff_seconds = (
            config.EVENT_RETRY_BACKOFF_SECONDS
            if retry_backoff_seconds is None
            else retry_backoff_seconds
        )
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self.dead_letters: list[DeadLetter] = []

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """Register ``handler`` for ``event_type``.

        Raises:
            EventDispatchError: If the event type is unknown.
        """
        if event_type not in EVENT_TYPES:
            raise EventDispatchError(f"Cannot subscribe to unknown event type: {event_type!r}")
        if handler not in self._handlers[event_type]:
            self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def handlers_for(self, event_type: str) -> list[EventHandler]:
        return list(self._handlers.get(event_type, []))

    async def publish(self, event: DomainEvent | Mapping[str, Any]) -> None:
        """Parse (if needed) and deliver an event to its subscribers.

        Raises:
            EventDispatchError: If a raw mapping is not a known event.
            ValidationError: If the event's time configuration is invalid.
            Exception: Whatever the last attempt of a failing handler raised.
        """
        parsed = parse_event(event)
        handlers = self.handlers_for(parsed.type)
        if not handlers:
            logger.debug(f"No handlers subscribed to {parsed.type}")
            return

        with LogContext(event_id=str(parsed.event_id), event_type=parsed.type):
            for handler in handlers:
                await self._deliver(parsed, handler)

    async def publish_many(self, events: Iterable[DomainEvent | Mapping[str, Any]]) -> None:
        """Publish events one after another, stopping at the first failure."""
        for event in events:
            await self.publish(event)

    async def _deliver(self, event: DomainEvent, handler: EventHandler) -> None:
        name = getattr(handler, "__qualname__", repr(handler))

        for attempt in range(1, self.max_attempts + 1):
            try:
                await handler(event)
                return
            except Exception as e:
                retryable = not isinstance(e, NON_RETRYABLE_ERRORS)
                if retryable and attempt < self.max_attempts:
                    logger.warning(
                        f"Handler {name} failed on attempt {attempt}/{self.max_attempts}: {e}"
                    )
                    if self.retry_backoff_seconds:
                        await asyncio.sleep(self.retry_backoff_seconds * attempt)
                    continue

                self.dead_letters.append(
                    DeadLetter(event=event, handler_name=name, error=e, attempts=attempt)
                )
                logger.error(
                    f"Handler {name} gave up on {event.type} {event.event_id} "
                    f"after {attempt} attempt(s): {e}",
                    exc_info=True,
                )
                raise


__all__ = [
    "NON_RETRYABLE_ERRORS",
    "DeadLetter",
    "EventBus",
    "EventHandler",
    "EventPublisher",
]
