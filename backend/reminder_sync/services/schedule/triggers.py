"""
APScheduler 트리거 빌더

저장된 스케줄 태스크의 트리거 정의
(6필드 cron 표현식 또는 단일 실행 시각)를
APScheduler 트리거로 변환하고, 다음 실행 시각(next_run_at)을 계산합니다.

cron 요일 필드는 일요일=0 규칙을 따르지만 APScheduler의 숫자 요일은
월요일=0 이므로, 숫자 요일은 요일 이름(sun, mon, ...)으로 변환합니다.
"""

from datetime import UTC, datetime
from typing import Any
from zoneinfo import ZoneInfo

from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger

from reminder_sync.models.enums import TriggerType
from reminder_sync.services.schedule.cron import split_cron_expression

# cron 요일 번호 (0=일요일) -> APScheduler 요일 이름
DAY_NAMES = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")


def _translate_day_of_week(field: str) -> str:
    """cron 요일 필드를 APScheduler 형식으로 변환합니다.

    Examples:
        >>> _translate_day_of_week("1,3,5")
        'mon,wed,fri'
        >>> _translate_day_of_week("*")
        '*'
    """
    if field == "*":
        return field

    parts: list[str] = []
    for token in field.split(","):
        if token.isdigit():
            number = int(token)
            if not 0 <= number <= 7:
                raise ValueError(f"Invalid day of week: {token}")
            parts.append(DAY_NAMES[number % 7])
        else:
            parts.append(token)
    return ",".join(parts)


def build_cron_trigger(expression: str, timezone: str | ZoneInfo = "UTC") -> CronTrigger:
    """
    6필드 cron 표현식으로 Cron 트리거를 생성합니다.

    Args:
        expression: "sec min hour dom month dow" 형식의 cron 표현식
        timezone: 시간대 (IANA 이름 또는 ZoneInfo)

    Returns:
        CronTrigger: APScheduler CronTrigger 인스턴스

    Raises:
        ValueError: 필드 수가 6이 아니거나 값이 유효하지 않은 경우

    Examples:
        >>> # 매일 9시 정각
        >>> trigger = build_cron_trigger("0 0 9 * * *")

        >>> # 월/수/금 14시 30분 (KST)
        >>> trigger = build_cron_trigger("0 30 14 * * 1,3,5", "Asia/Seoul")
    """
    second, minute, hour, day, month, day_of_week = split_cron_expression(expression)
    tz = ZoneInfo(timezone) if isinstance(timezone, str) else timezone

    return CronTrigger(
        second=second,
        minute=minute,
        hour=hour,
        day=day,
        month=month,
        day_of_week=_translate_day_of_week(day_of_week),
        timezone=tz,
    )


def build_date_trigger(run_at: datetime) -> DateTrigger:
    """
    단일 실행 시각으로 Date 트리거를 생성합니다.

    Args:
        run_at: 실행 시각 (timezone-aware)

    Returns:
        DateTrigger: APScheduler DateTrigger 인스턴스
    """
    if run_at.tzinfo is None:
        raise ValueError("run_at must be timezone-aware")
    return DateTrigger(run_date=run_at, timezone=run_at.tzinfo)


def compute_next_run_at(
    trigger_type: TriggerType | str,
    now: datetime,
    cron_expression: str | None = None,
    scheduled_time: datetime | None = None,
    timezone: str = "UTC",
) -> datetime | None:
    """
    트리거 정의의 다음 실행 시각을 계산합니다.

    Args:
        trigger_type: cron 또는 once
        now: 기준 시각 (timezone-aware)
        cron_expression: cron 태스크의 표현식
        scheduled_time: once 태스크의 실행 시각
        timezone: cron 필드를 해석할 시간대

    Returns:
        datetime | None: UTC 기준 다음 실행 시각. 이미 지난 once 태스크는 None
    """
    trigger: Any
    if TriggerType(trigger_type) == TriggerType.CRON:
        if cron_expression is None:
            return None
        trigger = build_cron_trigger(cron_expression, timezone)
    else:
        if scheduled_time is None:
            return None
        trigger = build_date_trigger(scheduled_time)

    next_fire = trigger.get_next_fire_time(None, now)
    if next_fire is None or next_fire <= now:
        return None
    return next_fire.astimezone(UTC)


def validate_cron_expression(expression: str, timezone: str = "UTC") -> bool:
    """
    cron 표현식의 유효성을 검사합니다.

    Examples:
        >>> validate_cron_expression("0 30 14 * * 1,3,5")
        True

        >>> validate_cron_expression("0 30 25 * * *")  # invalid hour
        False

        >>> validate_cron_expression("30 14 * * *")  # 5필드
        False
    """
    try:
        build_cron_trigger(expression, timezone)
        return True
    except (ValueError, TypeError):
        return False
