"""Tests for time configuration normalization.

Covers per-pattern required and forbidden fields, de-duplication and
ordering of multi-value fields, and error aggregation.
"""

from datetime import UTC, datetime, time, timedelta

import pytest
from pydantic import ValidationError as PydanticValidationError

from reminder_sync.core.exceptions import ValidationError
from reminder_sync.models.enums import IntervalUnit, PatternType
from reminder_sync.schemas.time_config import TimeConfig, normalize_time_config


class TestNormalizeValidConfigs:
    """Valid configurations for each pattern type."""

    def test_daily(self) -> None:
        config = normalize_time_config({"patternType": "DAILY", "times": ["09:00"]})

        assert config.pattern_type == PatternType.DAILY
        assert config.times == ("09:00",)
        assert config.weekdays == ()
        assert config.clock_times == [time(9, 0)]

    def test_weekly_weekdays_sorted_and_deduplicated(self) -> None:
        config = normalize_time_config(
            {"patternType": "WEEKLY", "times": ["14:30"], "weekdays": [5, 1, 3, 1]}
        )

        assert config.weekdays == (1, 3, 5)

    def test_monthly_days_sorted_and_deduplicated(self) -> None:
        config = normalize_time_config(
            {"patternType": "MONTHLY", "times": ["10:00"], "monthDays": [15, 1, 15]}
        )

        assert config.month_days == (1, 15)

    def test_times_deduplicated_keep_order(self) -> None:
        config = normalize_time_config(
            {"patternType": "DAILY", "times": ["15:00", "09:00", "15:00"]}
        )

        assert config.times == ("15:00", "09:00")
        assert config.first_time == time(15, 0)

    def test_custom_interval(self) -> None:
        config = normalize_time_config(
            {"patternType": "CUSTOM", "customInterval": {"amount": 90, "unit": "minutes"}}
        )

        assert config.custom_interval is not None
        assert config.custom_interval.unit == IntervalUnit.MINUTES
        assert config.custom_interval.to_timedelta() == timedelta(minutes=90)

    def test_absolute_once_naive_is_utc(self) -> None:
        config = normalize_time_config(
            {"patternType": "ABSOLUTE_ONCE", "onceAt": "2026-03-05T12:00:00"}
        )

        assert config.once_at == datetime(2026, 3, 5, 12, 0, tzinfo=UTC)

    def test_absolute_once_z_suffix(self) -> None:
        config = normalize_time_config(
            {"patternType": "ABSOLUTE_ONCE", "onceAt": "2026-03-05T12:00:00Z"}
        )

        assert config.once_at == datetime(2026, 3, 5, 12, 0, tzinfo=UTC)

    def test_snake_case_keys_accepted(self) -> None:
        config = normalize_time_config(
            {"pattern_type": "MONTHLY", "times": ["10:00"], "month_days": [1]}
        )

        assert config.month_days == (1,)

    def test_existing_config_returned_unchanged(self) -> None:
        config = normalize_time_config({"patternType": "DAILY", "times": ["09:00"]})

        assert normalize_time_config(config) is config

    def test_config_is_frozen(self) -> None:
        config = normalize_time_config({"patternType": "DAILY", "times": ["09:00"]})

        with pytest.raises(PydanticValidationError):
            config.times = ("10:00",)  # type: ignore[misc]


class TestNormalizeInvalidConfigs:
    """Invalid configurations raise ValidationError listing every field."""

    def test_weekly_without_weekdays(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            normalize_time_config({"patternType": "WEEKLY", "times": ["09:00"]})

        assert exc_info.value.fields == ["weekdays"]

    def test_weekly_with_empty_weekdays(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            normalize_time_config(
                {"patternType": "WEEKLY", "times": ["09:00"], "weekdays": []}
            )

        assert "weekdays" in exc_info.value.fields

    def test_daily_without_times(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            normalize_time_config({"patternType": "DAILY", "times": []})

        assert exc_info.value.fields == ["times"]

    def test_malformed_time_reported_by_index(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            normalize_time_config({"patternType": "DAILY", "times": ["09:00", "9:00"]})

        assert exc_info.value.fields == ["times[1]"]

    @pytest.mark.parametrize("value", ["24:00", "12:60", "ab:cd", "0900"])
    def test_out_of_range_times(self, value: str) -> None:
        with pytest.raises(ValidationError):
            normalize_time_config({"patternType": "DAILY", "times": [value]})

    def test_weekday_out_of_range(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            normalize_time_config(
                {"patternType": "WEEKLY", "times": ["09:00"], "weekdays": [1, 7]}
            )

        assert exc_info.value.fields == ["weekdays"]

    def test_month_day_zero(self) -> None:
        with pytest.raises(ValidationError):
            normalize_time_config(
                {"patternType": "MONTHLY", "times": ["09:00"], "monthDays": [0]}
            )

    def test_bool_is_not_a_weekday(self) -> None:
        with pytest.raises(ValidationError):
            normalize_time_config(
                {"patternType": "WEEKLY", "times": ["09:00"], "weekdays": [True]}
            )

    def test_field_not_allowed_for_pattern(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            normalize_time_config(
                {"patternType": "DAILY", "times": ["09:00"], "monthDays": [1]}
            )

        assert exc_info.value.fields == ["monthDays"]

    def test_custom_interval_amount_must_be_positive(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            normalize_time_config(
                {"patternType": "CUSTOM", "customInterval": {"amount": 0, "unit": "HOURS"}}
            )

        assert exc_info.value.fields == ["customInterval.amount"]

    def test_custom_interval_unknown_unit(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            normalize_time_config(
                {"patternType": "CUSTOM", "customInterval": {"amount": 2, "unit": "WEEKS"}}
            )

        assert exc_info.value.fields == ["customInterval.unit"]

    def test_unknown_pattern_type(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            normalize_time_config({"patternType": "YEARLY", "times": ["09:00"]})

        assert exc_info.value.fields == ["patternType"]

    def test_not_a_mapping(self) -> None:
        with pytest.raises(ValidationError):
            normalize_time_config(["09:00"])  # type: ignore[arg-type]

    def test_all_errors_reported_together(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            normalize_time_config(
                {
                    "patternType": "WEEKLY",
                    "times": ["25:00"],
                    "onceAt": "2026-03-05T12:00:00Z",
                }
            )

        fields = exc_info.value.fields
        assert "times[0]" in fields
        assert "weekdays" in fields
        assert "onceAt" in fields
        assert len(exc_info.value.errors) == 3


class TestTimeConfigDirectConstruction:
    """Direct construction enforces the same invariant."""

    def test_invalid_direct_construction(self) -> None:
        with pytest.raises(ValueError):
            TimeConfig(pattern_type=PatternType.WEEKLY, times=("09:00",))

    def test_first_time_without_times(self) -> None:
        config = normalize_time_config(
            {"patternType": "CUSTOM", "customInterval": {"amount": 1, "unit": "HOURS"}}
        )

        with pytest.raises(ValueError):
            _ = config.first_time
