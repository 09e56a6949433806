"""TimeConfig value type and its normalizer.

A TimeConfig is the declarative recurrence description attached to a
reminder template. Raw input arrives loosely typed from event payloads
(camelCase keys, strings for enums and timestamps), so
``normalize_time_config`` checks every field, collects *all* problems and
only then builds the frozen model.

Fields relevant per pattern:

    DAILY          times
    WEEKLY         times, weekdays   (0 = Sunday ... 6 = Saturday)
    MONTHLY        times, monthDays  (1 ... 31)
    CUSTOM         customInterval    {amount > 0, unit MINUTES|HOURS|DAYS}
    ABSOLUTE_ONCE  onceAt

Any other field populated for a pattern is an error.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import UTC, datetime, time, timedelta
from typing import Any

from pydantic import PositiveInt, model_validator

from reminder_sync.core.exceptions import ValidationError
from reminder_sync.models.enums import IntervalUnit, PatternType
from reminder_sync.schemas.base import FrozenSchema

TIME_PATTERN = re.compile(r"^(\d{2}):(\d{2})$")

_REQUIRED_FIELDS: dict[PatternType, frozenset[str]] = {
    PatternType.DAILY: frozenset({"times"}),
    PatternType.WEEKLY: frozenset({"times", "weekdays"}),
    PatternType.MONTHLY: frozenset({"times", "monthDays"}),
    PatternType.CUSTOM: frozenset({"customInterval"}),
    PatternType.ABSOLUTE_ONCE: frozenset({"onceAt"}),
}

_OPTIONAL_FIELDS = ("times", "weekdays", "monthDays", "customInterval", "onceAt")

_UNIT_DELTAS = {
    IntervalUnit.MINUTES: "minutes",
    IntervalUnit.HOURS: "hours",
    IntervalUnit.DAYS: "days",
}


class CustomInterval(FrozenSchema):
    """Repeat interval of a CUSTOM pattern."""

    amount: PositiveInt
    unit: IntervalUnit

    def to_timedelta(self) -> timedelta:
        return timedelta(**{_UNIT_DELTAS[self.unit]: self.amount})


class TimeConfig(FrozenSchema):
    """Validated recurrence description.

    Build instances with ``normalize_time_config`` when the input is raw;
    direct construction runs the same checks and fails with a pydantic
    error instead.

    Examples:
        >>> config = normalize_time_config(
        ...     {"patternType": "WEEKLY", "times": ["14:30"], "weekdays": [5, 1, 3, 1]}
        ... )
        >>> config.weekdays
        (1, 3, 5)
    """

    pattern_type: PatternType
    times: tuple[str, ...] = ()
    weekdays: tuple[int, ...] = ()
    month_days: tuple[int, ...] = ()
    custom_interval: CustomInterval | None = None
    once_at: datetime | None = None

    @model_validator(mode="after")
    def check_invariant(self) -> TimeConfig:
        _, errors = _check_fields(
            pattern_type=self.pattern_type,
            raw={
                "times": list(self.times),
                "weekdays": list(self.weekdays),
                "monthDays": list(self.month_days),
                "customInterval": self.custom_interval,
                "onceAt": self.once_at,
            },
        )
        if errors:
            raise ValueError("; ".join(f"{e['field']}: {e['message']}" for e in errors))
        return self

    @property
    def clock_times(self) -> list[time]:
        """``times`` parsed into ``datetime.time`` values, in configured order."""
        return [_parse_clock_time(value) for value in self.times]

    @property
    def first_time(self) -> time:
        """The clock time used for cron derivation."""
        if not self.times:
            raise ValueError(f"{self.pattern_type} time config has no clock times")
        return _parse_clock_time(self.times[0])


def normalize_time_config(raw: Mapping[str, Any] | TimeConfig) -> TimeConfig:
    """Validate and normalize a raw time configuration.

    Args:
        raw: Mapping with camelCase or snake_case keys, or an existing
             TimeConfig (returned unchanged).

    Returns:
        TimeConfig: Frozen, de-duplicated configuration.

    Raises:
        ValidationError: One entry per malformed or misplaced field.

    Examples:
        >>> normalize_time_config({"patternType": "DAILY", "times": ["09:00"]}).times
        ('09:00',)
        >>> normalize_time_config({"patternType": "DAILY", "times": ["25:00"]})
        Traceback (most recent call last):
        ...
        reminder_sync.core.exceptions.ValidationError: ...
    """
    if isinstance(raw, TimeConfig):
        return raw
    if not isinstance(raw, Mapping):
        raise ValidationError([{"field": "timeConfig", "message": "must be an object"}])

    values = {
        "patternType": _pick(raw, "patternType", "pattern_type"),
        "times": _pick(raw, "times"),
        "weekdays": _pick(raw, "weekdays"),
        "monthDays": _pick(raw, "monthDays", "month_days"),
        "customInterval": _pick(raw, "customInterval", "custom_interval"),
        "onceAt": _pick(raw, "onceAt", "once_at"),
    }

    errors: list[dict[str, str]] = []
    pattern_type = _parse_pattern_type(values["patternType"], errors)
    cleaned, field_errors = _check_fields(pattern_type=pattern_type, raw=values)
    errors.extend(field_errors)

    if errors:
        raise ValidationError(errors)

    return TimeConfig(
        pattern_type=pattern_type,
        times=tuple(cleaned["times"]),
        weekdays=tuple(cleaned["weekdays"]),
        month_days=tuple(cleaned["monthDays"]),
        custom_interval=cleaned["customInterval"],
        once_at=cleaned["onceAt"],
    )


# =============================================================================
# Field checks
# =============================================================================


def _pick(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in raw:
            return raw[key]
    return None


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, (list, tuple, set)) and len(value) == 0)


def _parse_clock_time(value: str) -> time:
    match = TIME_PATTERN.match(value)
    if match is None:
        raise ValueError(f"Invalid clock time: {value!r}")
    return time(int(match.group(1)), int(match.group(2)))


def _parse_pattern_type(value: Any, errors: list[dict[str, str]]) -> PatternType | None:
    if value is None:
        errors.append({"field": "patternType", "message": "is required"})
        return None
    if isinstance(value, PatternType):
        return value
    try:
        return PatternType(str(value).strip().upper())
    except ValueError:
        allowed = ", ".join(p.value for p in PatternType)
        errors.append(
            {"field": "patternType", "message": f"must be one of {allowed}, got {value!r}"}
        )
        return None


def _check_fields(
    pattern_type: PatternType | None,
    raw: dict[str, Any],
) -> tuple[dict[str, Any], list[dict[str, str]]]:
    """Check every field, returning cleaned values and all errors found."""
    errors: list[dict[str, str]] = []
    cleaned: dict[str, Any] = {
        "times": _check_times(raw["times"], errors),
        "weekdays": _check_int_set(raw["weekdays"], "weekdays", 0, 6, errors),
        "monthDays": _check_int_set(raw["monthDays"], "monthDays", 1, 31, errors),
        "customInterval": _check_custom_interval(raw["customInterval"], errors),
        "onceAt": _check_once_at(raw["onceAt"], errors),
    }

    if pattern_type is None:
        return cleaned, errors

    required = _REQUIRED_FIELDS[pattern_type]
    for field in _OPTIONAL_FIELDS:
        # Malformed values were already reported; don't pile on a presence error
        if any(e["field"].split("[")[0].split(".")[0] == field for e in errors):
            continue
        present = not _is_empty(raw[field])
        if field in required and not present:
            errors.append(
                {"field": field, "message": f"is required for {pattern_type.value} pattern"}
            )
        elif field not in required and present:
            errors.append(
                {"field": field, "message": f"is not allowed for {pattern_type.value} pattern"}
            )

    return cleaned, errors


def _check_times(value: Any, errors: list[dict[str, str]]) -> list[str]:
    if _is_empty(value):
        return []
    if not isinstance(value, (list, tuple)):
        errors.append({"field": "times", "message": "must be a list of HH:MM strings"})
        return []

    result: list[str] = []
    for index, item in enumerate(value):
        field = f"times[{index}]"
        if not isinstance(item, str):
            errors.append({"field": field, "message": "must be a string"})
            continue
        text = item.strip()
        match = TIME_PATTERN.match(text)
        if match is None:
            errors.append({"field": field, "message": f"must match HH:MM, got {item!r}"})
            continue
        hour, minute = int(match.group(1)), int(match.group(2))
        if not 0 <= hour <= 23:
            errors.append({"field": field, "message": f"hour must be 0-23, got {hour}"})
            continue
        if not 0 <= minute <= 59:
            errors.append({"field": field, "message": f"minute must be 0-59, got {minute}"})
            continue
        if text not in result:
            result.append(text)
    return result


def _check_int_set(
    value: Any,
    field: str,
    low: int,
    high: int,
    errors: list[dict[str, str]],
) -> list[int]:
    if _is_empty(value):
        return []
    if not isinstance(value, (list, tuple, set, frozenset)):
        errors.append({"field": field, "message": "must be a list of integers"})
        return []

    result: set[int] = set()
    for item in value:
        # bool is an int subclass; True is not a weekday
        if isinstance(item, bool) or not isinstance(item, int):
            errors.append({"field": field, "message": f"must contain integers, got {item!r}"})
            return []
        if not low <= item <= high:
            errors.append(
                {"field": field, "message": f"values must be {low}-{high}, got {item}"}
            )
            return []
        result.add(item)
    return sorted(result)


def _check_custom_interval(
    value: Any, errors: list[dict[str, str]]
) -> CustomInterval | None:
    if value is None:
        return None
    if isinstance(value, CustomInterval):
        return value
    if not isinstance(value, Mapping):
        errors.append({"field": "customInterval", "message": "must be an object"})
        return None

    amount = value.get("amount")
    unit = value.get("unit")
    ok = True

    if isinstance(amount, bool) or not isinstance(amount, int):
        errors.append({"field": "customInterval.amount", "message": "must be an integer"})
        ok = False
    elif amount <= 0:
        errors.append({"field": "customInterval.amount", "message": "must be > 0"})
        ok = False

    parsed_unit: IntervalUnit | None = None
    try:
        parsed_unit = IntervalUnit(str(unit).strip().upper())
    except ValueError:
        allowed = ", ".join(u.value for u in IntervalUnit)
        errors.append(
            {"field": "customInterval.unit", "message": f"must be one of {allowed}"}
        )
        ok = False

    if not ok or parsed_unit is None:
        return None
    return CustomInterval(amount=amount, unit=parsed_unit)


def _check_once_at(value: Any, errors: list[dict[str, str]]) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            errors.append(
                {"field": "onceAt", "message": f"must be an ISO-8601 timestamp, got {value!r}"}
            )
            return None
    else:
        errors.append({"field": "onceAt", "message": "must be a timestamp"})
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


__all__ = ["CustomInterval", "TimeConfig", "normalize_time_config"]
