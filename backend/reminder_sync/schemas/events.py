"""Domain events exchanged between the reminder and schedule modules.

Events form a closed tagged union discriminated by ``type``. Raw payloads
(camelCase mappings from a queue or another process) are parsed with
``parse_event``; handlers ``match`` on the concrete class.

Wire format::

    {
        "type": "TemplateCreated",
        "eventId": "...",
        "aggregateId": "<template uuid>",
        "accountUuid": "...",
        "occurredOn": "2026-03-02T08:00:00Z",
        "payload": {"templateUuid": "...", "timeConfig": {...}, ...}
    }
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Annotated, Any, Literal
from uuid import UUID, uuid4

from pydantic import Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from reminder_sync.core.exceptions import EventDispatchError
from reminder_sync.models.enums import EventType
from reminder_sync.schemas.base import FrozenSchema
from reminder_sync.schemas.template import ReminderTemplate
from reminder_sync.schemas.time_config import TimeConfig, normalize_time_config

# =============================================================================
# Payloads
# =============================================================================


class TemplatePayload(FrozenSchema):
    """Template snapshot carried by TemplateCreated / TemplateUpdated."""

    template_uuid: UUID
    account_uuid: UUID
    time_config: TimeConfig
    enabled: bool
    name: str
    description: str | None = None
    message: str | None = None
    priority: str = "NORMAL"
    category: str | None = None
    timezone: str | None = None
    anchor_at: datetime | None = None
    notification_settings: dict[str, Any] | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("time_config", mode="before")
    @classmethod
    def normalize(cls, v: Any) -> TimeConfig:
        # Raises ValidationError (not a pydantic error) listing every bad field
        return normalize_time_config(v)

    def to_template(self) -> ReminderTemplate:
        data: dict[str, Any] = {
            "uuid": self.template_uuid,
            "account_uuid": self.account_uuid,
            "name": self.name,
            "description": self.description,
            "message": self.message,
            "enabled": self.enabled,
            "time_config": self.time_config,
            "priority": self.priority,
            "category": self.category,
            "anchor_at": self.anchor_at,
            "notification_settings": self.notification_settings,
            "metadata": self.metadata,
        }
        if self.timezone:
            data["timezone"] = self.timezone
        return ReminderTemplate(**data)

    @classmethod
    def from_template(cls, template: ReminderTemplate) -> TemplatePayload:
        return cls(
            template_uuid=template.uuid,
            account_uuid=template.account_uuid,
            time_config=template.time_config,
            enabled=template.enabled,
            name=template.name,
            description=template.description,
            message=template.message,
            priority=template.priority,
            category=template.category,
            timezone=template.timezone,
            anchor_at=template.anchor_at,
            notification_settings=template.notification_settings,
            metadata=template.metadata,
        )


class TemplateDeletedPayload(FrozenSchema):
    template_uuid: UUID
    account_uuid: UUID


class InstancePayload(FrozenSchema):
    """A materialized reminder occurrence ready for delivery scheduling."""

    instance_uuid: UUID
    template_uuid: UUID
    account_uuid: UUID
    scheduled_time: datetime
    title: str
    message: str | None = None
    priority: str = "NORMAL"
    category: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Events
# =============================================================================


class _EventEnvelope(FrozenSchema):
    event_id: UUID = Field(default_factory=uuid4)
    aggregate_id: UUID
    account_uuid: UUID
    occurred_on: datetime = Field(default_factory=lambda: datetime.now(UTC))


class TemplateCreated(_EventEnvelope):
    type: Literal["TemplateCreated"] = "TemplateCreated"
    payload: TemplatePayload

    @classmethod
    def for_template(cls, template: ReminderTemplate, **envelope: Any) -> TemplateCreated:
        return cls(
            aggregate_id=template.uuid,
            account_uuid=template.account_uuid,
            payload=TemplatePayload.from_template(template),
            **envelope,
        )


class TemplateUpdated(_EventEnvelope):
    type: Literal["TemplateUpdated"] = "TemplateUpdated"
    payload: TemplatePayload

    @classmethod
    def for_template(cls, template: ReminderTemplate, **envelope: Any) -> TemplateUpdated:
        return cls(
            aggregate_id=template.uuid,
            account_uuid=template.account_uuid,
            payload=TemplatePayload.from_template(template),
            **envelope,
        )


class TemplateDeleted(_EventEnvelope):
    type: Literal["TemplateDeleted"] = "TemplateDeleted"
    payload: TemplateDeletedPayload

    @classmethod
    def for_template(
        cls, template_uuid: UUID, account_uuid: UUID, **envelope: Any
    ) -> TemplateDeleted:
        return cls(
            aggregate_id=template_uuid,
            account_uuid=account_uuid,
            payload=TemplateDeletedPayload(
                template_uuid=template_uuid, account_uuid=account_uuid
            ),
            **envelope,
        )


class InstanceCreated(_EventEnvelope):
    type: Literal["InstanceCreated"] = "InstanceCreated"
    payload: InstancePayload

    @classmethod
    def for_instance(cls, payload: InstancePayload, **envelope: Any) -> InstanceCreated:
        return cls(
            aggregate_id=payload.instance_uuid,
            account_uuid=payload.account_uuid,
            payload=payload,
            **envelope,
        )


DomainEvent = Annotated[
    TemplateCreated | TemplateUpdated | TemplateDeleted | InstanceCreated,
    Field(discriminator="type"),
]

_event_adapter: TypeAdapter[DomainEvent] = TypeAdapter(DomainEvent)

EVENT_TYPES: tuple[str, ...] = tuple(event_type.value for event_type in EventType)


def parse_event(raw: Mapping[str, Any] | DomainEvent) -> DomainEvent:
    """Parse a wire-format mapping into a concrete domain event.

    Raises:
        EventDispatchError: Unknown ``type`` or a structurally invalid event.
        ValidationError: The embedded time configuration is invalid.
    """
    if isinstance(raw, (TemplateCreated, TemplateUpdated, TemplateDeleted, InstanceCreated)):
        return raw
    if not isinstance(raw, Mapping):
        raise EventDispatchError(f"Event must be a mapping, got {type(raw).__name__}")

    event_type = raw.get("type")
    if event_type not in EVENT_TYPES:
        raise EventDispatchError(f"Unknown event type: {event_type!r}", dict(raw))

    try:
        return _event_adapter.validate_python(dict(raw))
    except PydanticValidationError as e:
        raise EventDispatchError(f"Malformed {event_type} event: {e}", dict(raw)) from e


__all__ = [
    "EVENT_TYPES",
    "DomainEvent",
    "InstanceCreated",
    "InstancePayload",
    "TemplateCreated",
    "TemplateDeleted",
    "TemplateDeletedPayload",
    "TemplatePayload",
    "TemplateUpdated",
    "parse_event",
]
