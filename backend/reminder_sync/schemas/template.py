"""Reminder template and alert configuration schemas.

Templates are owned by the reminder module; this engine only sees them as
event payloads. ``ReminderTemplate`` is the validated view the synchronizer
and the occurrence generator work with.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator

from reminder_sync.core.config import settings
from reminder_sync.models.enums import AlertMethod
from reminder_sync.schemas.base import BaseSchema, FrozenSchema
from reminder_sync.schemas.time_config import TimeConfig, normalize_time_config

# Notification channel names used by the reminder UI -> dispatcher methods
_CHANNEL_METHODS: dict[str, AlertMethod] = {
    "DESKTOP": AlertMethod.POPUP,
    "IN_APP": AlertMethod.POPUP,
    "POPUP": AlertMethod.POPUP,
    "SOUND": AlertMethod.SOUND,
    "SYSTEM_NOTIFICATION": AlertMethod.SYSTEM_NOTIFICATION,
    "EMAIL": AlertMethod.EMAIL,
    "SMS": AlertMethod.SMS,
}


class AlertConfig(BaseSchema):
    """Delivery settings attached to instance-level ONCE tasks."""

    methods: list[AlertMethod] = Field(default_factory=lambda: [AlertMethod.POPUP])
    sound_volume: int | None = Field(default=None, ge=0, le=100)
    popup_duration: int | None = Field(
        default=None,
        ge=0,
        description="Seconds the popup stays visible",
    )
    allow_snooze: bool = True
    snooze_options: list[int] = Field(
        default_factory=lambda: list(settings.DEFAULT_SNOOZE_OPTIONS)
    )

    @classmethod
    def from_metadata(cls, metadata: dict[str, Any] | None) -> AlertConfig:
        """Build an alert config from instance or template metadata.

        Accepts either an explicit ``alertConfig`` block or the reminder
        module's ``notificationSettings`` (``channels``, ``soundVolume``,
        ``popupDuration``, ``allowSnooze``, ``snoozeOptions``).
        """
        metadata = metadata or {}

        explicit = metadata.get("alertConfig") or metadata.get("alert_config")
        if explicit:
            return cls.model_validate(explicit)

        notification = (
            metadata.get("notificationSettings")
            or metadata.get("notification_settings")
            or {}
        )
        methods: list[AlertMethod] = []
        for channel in notification.get("channels") or []:
            method = _CHANNEL_METHODS.get(str(channel).upper())
            if method is not None and method not in methods:
                methods.append(method)

        data: dict[str, Any] = {
            "methods": methods or [AlertMethod.POPUP],
            "sound_volume": notification.get("soundVolume"),
            "popup_duration": notification.get("popupDuration"),
            "allow_snooze": notification.get("allowSnooze", True) is not False,
        }
        if notification.get("snoozeOptions"):
            data["snooze_options"] = notification["snoozeOptions"]
        return cls.model_validate(data)


class ReminderTemplate(FrozenSchema):
    """A reminder template as seen by the scheduling engine."""

    uuid: UUID
    account_uuid: UUID
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    message: str | None = None
    enabled: bool = True
    time_config: TimeConfig
    priority: str = "NORMAL"
    category: str | None = None
    timezone: str = Field(default_factory=lambda: settings.SCHEDULER_TIMEZONE)
    anchor_at: datetime | None = Field(
        default=None,
        description="Start point CUSTOM intervals step from",
    )
    notification_settings: dict[str, Any] | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("time_config", mode="before")
    @classmethod
    def normalize(cls, v: Any) -> TimeConfig:
        return normalize_time_config(v)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def schedule_task_name(self) -> str:
        return f"Reminder: {self.name}"

    def schedule_task_description(self) -> str | None:
        return self.description or self.message

    def notification_metadata(self) -> dict[str, Any]:
        """Metadata carried onto reminder instances for the dispatcher."""
        data: dict[str, Any] = {"patternType": self.time_config.pattern_type.value}
        if self.notification_settings:
            data["notificationSettings"] = self.notification_settings
        return data


__all__ = ["AlertConfig", "ReminderTemplate"]
