"""
Schedule Synchronization Service

이 패키지는 리마인더 템플릿을 스케줄 태스크로 동기화합니다:
- Cron Deriver: TimeConfig -> 6필드 cron 표현식
- Occurrence Generator: 윈도우 내 실제 발생 시각 계산
- State Machine: 태스크 수명주기 및 트리거 불변식
- Store: 소스 키 기반 멱등 저장소
- Synchronizer: 도메인 이벤트 -> 스케줄 태스크 반영
"""

from reminder_sync.services.schedule.cron import derive_cron_expression
from reminder_sync.services.schedule.occurrences import (
    GenerationWindow,
    Occurrence,
    OccurrenceSequence,
    generate_occurrences,
)
from reminder_sync.services.schedule.state_machine import (
    LifecycleAction,
    ScheduleTaskStateMachine,
)
from reminder_sync.services.schedule.store import (
    ScheduleTaskStore,
    SQLAlchemyScheduleTaskStore,
)
from reminder_sync.services.schedule.synchronizer import ScheduleSynchronizer
from reminder_sync.services.schedule.triggers import (
    build_cron_trigger,
    build_date_trigger,
    compute_next_run_at,
    validate_cron_expression,
)

__all__ = [
    "GenerationWindow",
    "LifecycleAction",
    "Occurrence",
    "OccurrenceSequence",
    "SQLAlchemyScheduleTaskStore",
    "ScheduleSynchronizer",
    "ScheduleTaskStateMachine",
    "ScheduleTaskStore",
    "build_cron_trigger",
    "build_date_trigger",
    "compute_next_run_at",
    "derive_cron_expression",
    "generate_occurrences",
    "validate_cron_expression",
]
