"""Injected time sources.

Algorithms never call ``datetime.now`` directly; they receive a ``Clock`` so
that "strictly after now" filtering is deterministic under test.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    """Anything that can report the current UTC time."""

    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock backed by the operating system."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class FixedClock:
    """Manually controlled clock.

    Examples:
        >>> clock = FixedClock(datetime(2026, 3, 2, 8, 0, tzinfo=UTC))
        >>> clock.advance(hours=2)
        >>> clock.now().hour
        10
    """

    def __init__(self, current: datetime) -> None:
        if current.tzinfo is None:
            raise ValueError("FixedClock requires a timezone-aware datetime")
        self._current = current

    def now(self) -> datetime:
        return self._current

    def set(self, current: datetime) -> None:
        if current.tzinfo is None:
            raise ValueError("FixedClock requires a timezone-aware datetime")
        self._current = current

    def advance(self, **delta: float) -> None:
        """Move the clock forward by ``timedelta(**delta)``."""
        step = timedelta(**delta)
        if step < timedelta(0):
            raise ValueError("FixedClock cannot move backwards")
        self._current = self._current + step


__all__ = ["Clock", "FixedClock", "SystemClock"]
