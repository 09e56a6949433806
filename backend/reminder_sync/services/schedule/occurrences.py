"""Occurrence generation for reminder templates.

Expands a template's time configuration into concrete fire times inside a
window. Calendar patterns (DAILY, WEEKLY, MONTHLY) are evaluated day by day
in the template's own timezone and converted to UTC; CUSTOM steps forward
from the template's anchor; ABSOLUTE_ONCE yields its single instant.

Only occurrences strictly after ``clock.now()`` are produced, ascending.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from uuid import UUID

from reminder_sync.core.clock import Clock
from reminder_sync.core.config import settings
from reminder_sync.models.enums import PatternType
from reminder_sync.schemas.template import ReminderTemplate

logger = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class Occurrence:
    """A single concrete fire time of a template (UTC)."""

    scheduled_time: datetime
    template_uuid: UUID | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.scheduled_time.tzinfo is None:
            raise ValueError("Occurrence times must be timezone-aware")


@dataclass(frozen=True)
class GenerationWindow:
    """Inclusive ``[start, end]`` interval occurrences are generated in."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ValueError("Window bounds must be timezone-aware")
        if self.end < self.start:
            raise ValueError(f"Window end {self.end} precedes start {self.start}")

    @classmethod
    def from_clock(cls, clock: Clock, horizon_days: int | None = None) -> GenerationWindow:
        """Window from now to ``horizon_days`` ahead (GENERATION_HORIZON_DAYS)."""
        days = settings.GENERATION_HORIZON_DAYS if horizon_days is None else horizon_days
        now = clock.now()
        return cls(start=now, end=now + timedelta(days=days))

    def __contains__(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


class OccurrenceSequence:
    """Lazy, restartable sequence of occurrences.

    ``now`` is read from the clock once, when the sequence is built, so
    iterating twice yields the same occurrences.
    """

    def __init__(
        self,
        template: ReminderTemplate,
        window: GenerationWindow,
        now: datetime,
    ) -> None:
        self.template = template
        self.window = window
        self.now = now

    def __iter__(self) -> Iterator[Occurrence]:
        if not self.template.enabled:
            return iter(())

        match self.template.time_config.pattern_type:
            case PatternType.CUSTOM:
                times = self._interval_times()
            case PatternType.ABSOLUTE_ONCE:
                times = self._once_times()
            case _:
                times = self._calendar_times()

        return (
            Occurrence(moment, self.template.uuid)
            for moment in times
            if moment in self.window and moment > self.now
        )

    def __repr__(self) -> str:
        return (
            f"<OccurrenceSequence template={self.template.uuid} "
            f"window=[{self.window.start.isoformat()}, {self.window.end.isoformat()}]>"
        )

    # ==========================================================================
    # Pattern expansion
    # ==========================================================================

    def _calendar_times(self) -> Iterator[datetime]:
        config = self.template.time_config
        zone = self.template.zone
        clock_times = sorted(config.clock_times)

        day = self.window.start.astimezone(zone).date()
        last_day = self.window.end.astimezone(zone).date()
        while day <= last_day:
            if self._applies_to(day):
                for at in clock_times:
                    local = datetime.combine(day, at, tzinfo=zone)
                    yield local.astimezone(UTC)
            day += timedelta(days=1)

    def _applies_to(self, day: date) -> bool:
        config = self.template.time_config
        match config.pattern_type:
            case PatternType.WEEKLY:
                # date.weekday() is Monday=0; weekdays use Sunday=0
                return (day.weekday() + 1) % 7 in config.weekdays
            case PatternType.MONTHLY:
                return day.day in config.month_days
            case _:
                return True

    def _interval_times(self) -> Iterator[datetime]:
        interval = self.template.time_config.custom_interval
        if interval is None:
            return
        step = interval.to_timedelta()
        anchor = self.template.anchor_at or self.window.start
        if anchor.tzinfo is None:
            anchor = anchor.replace(tzinfo=UTC)

        floor = max(self.window.start, self.now)
        moment = anchor
        if moment < floor:
            moment = anchor + step * -(-(floor - anchor) // step)

        while moment <= self.window.end:
            yield moment.astimezone(UTC)
            moment += step

    def _once_times(self) -> Iterator[datetime]:
        once_at = self.template.time_config.once_at
        if once_at is not None:
            yield once_at.astimezone(UTC)


def generate_occurrences(
    template: ReminderTemplate,
    window_start: datetime,
    window_end: datetime,
    clock: Clock,
) -> OccurrenceSequence:
    """Expand ``template`` into occurrences inside ``[window_start, window_end]``.

    Args:
        template: Template to expand. Disabled templates yield nothing.
        window_start: Inclusive lower bound (timezone-aware).
        window_end: Inclusive upper bound (timezone-aware).
        clock: Source of "now"; only occurrences strictly after it are kept.

    Returns:
        OccurrenceSequence: Ascending occurrences, iterable more than once.

    Raises:
        ValueError: If the window is naive or inverted.
    """
    window = GenerationWindow(window_start, window_end)
    sequence = OccurrenceSequence(template, window, clock.now())
    logger.debug(f"Prepared {sequence!r}")
    return sequence


__all__ = [
    "GenerationWindow",
    "Occurrence",
    "OccurrenceSequence",
    "generate_occurrences",
]
