"""Cron expression derivation for reminder time configurations.

Expressions use six fields, ``sec min hour dom month dow``, with
multi-value fields comma-joined, ascending and de-duplicated::

    DAILY   ["09:00"]                    -> "0 0 9 * * *"
    WEEKLY  ["14:30"], weekdays [1,3,5]  -> "0 30 14 * * 1,3,5"
    MONTHLY ["10:00"], monthDays [1,15]  -> "0 0 10 1,15 * *"

Only the first clock time is used; a template with several times per day
is described by its first time here and fully materialized by the
occurrence generator.
"""

from collections.abc import Iterable

from reminder_sync.core.exceptions import UnsupportedPatternError
from reminder_sync.models.enums import PatternType
from reminder_sync.schemas.time_config import TimeConfig

CRON_FIELD_COUNT = 6


def join_cron_values(values: Iterable[int]) -> str:
    """Render a set of integers as a cron list field (``"1,3,5"``)."""
    return ",".join(str(v) for v in sorted(set(values)))


def derive_cron_expression(config: TimeConfig) -> str:
    """Derive the six-field cron expression for a cron-expressible config.

    Args:
        config: Normalized time configuration.

    Returns:
        str: Cron expression, identical byte-for-byte for identical input.

    Raises:
        UnsupportedPatternError: For CUSTOM and ABSOLUTE_ONCE patterns.

    Examples:
        >>> derive_cron_expression(normalize_time_config(
        ...     {"patternType": "DAILY", "times": ["09:00"]}))
        '0 0 9 * * *'
    """
    day_of_month = "*"
    day_of_week = "*"

    match config.pattern_type:
        case PatternType.DAILY:
            pass
        case PatternType.WEEKLY:
            day_of_week = join_cron_values(config.weekdays)
        case PatternType.MONTHLY:
            day_of_month = join_cron_values(config.month_days)
        case _:
            raise UnsupportedPatternError(config.pattern_type.value)

    at = config.first_time
    return f"0 {at.minute} {at.hour} {day_of_month} * {day_of_week}"


def split_cron_expression(expression: str) -> list[str]:
    """Split a six-field expression, raising ValueError on the wrong arity."""
    fields = expression.split()
    if len(fields) != CRON_FIELD_COUNT:
        raise ValueError(
            f"Cron expression must have {CRON_FIELD_COUNT} fields, got {len(fields)}"
        )
    return fields


__all__ = [
    "CRON_FIELD_COUNT",
    "derive_cron_expression",
    "join_cron_values",
    "split_cron_expression",
]
