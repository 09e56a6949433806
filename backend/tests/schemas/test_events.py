"""Tests for domain event parsing, templates and alert configuration."""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

import pytest

from reminder_sync.core.exceptions import EventDispatchError, ValidationError
from reminder_sync.models.enums import AlertMethod, EventType, PatternType
from reminder_sync.schemas.events import (
    EVENT_TYPES,
    InstanceCreated,
    InstancePayload,
    TemplateCreated,
    TemplateDeleted,
    TemplateUpdated,
    parse_event,
)
from reminder_sync.schemas.template import AlertConfig, ReminderTemplate


class TestParseEvent:
    """Raw mappings parse into the matching event class."""

    def test_template_created(self, make_template_event: Any, template_uuid: UUID) -> None:
        event = parse_event(make_template_event("TemplateCreated"))

        assert isinstance(event, TemplateCreated)
        assert event.payload.template_uuid == template_uuid
        assert event.payload.time_config.pattern_type == PatternType.DAILY
        assert event.occurred_on.tzinfo is not None

    def test_template_updated(self, make_template_event: Any) -> None:
        event = parse_event(make_template_event("TemplateUpdated", enabled=False))

        assert isinstance(event, TemplateUpdated)
        assert event.payload.enabled is False

    def test_template_deleted(self, deleted_event: dict[str, Any], template_uuid: UUID) -> None:
        event = parse_event(deleted_event)

        assert isinstance(event, TemplateDeleted)
        assert event.payload.template_uuid == template_uuid

    def test_instance_created(self, template_uuid: UUID, account_uuid: UUID) -> None:
        instance_uuid = uuid4()
        event = parse_event(
            {
                "type": "InstanceCreated",
                "aggregateId": str(instance_uuid),
                "accountUuid": str(account_uuid),
                "payload": {
                    "instanceUuid": str(instance_uuid),
                    "templateUuid": str(template_uuid),
                    "accountUuid": str(account_uuid),
                    "scheduledTime": "2026-03-02T09:00:00Z",
                    "title": "Drink water",
                },
            }
        )

        assert isinstance(event, InstanceCreated)
        assert event.payload.scheduled_time == datetime(2026, 3, 2, 9, 0, tzinfo=UTC)
        assert event.payload.priority == "NORMAL"

    def test_event_types_follow_enum(self) -> None:
        assert EVENT_TYPES == tuple(e.value for e in EventType)
        assert "InstanceCreated" in EVENT_TYPES

    def test_event_instance_passes_through(self, make_template: Any) -> None:
        event = TemplateCreated.for_template(make_template())

        assert parse_event(event) is event

    def test_unknown_type(self, make_template_event: Any) -> None:
        raw = make_template_event("TemplateArchived")

        with pytest.raises(EventDispatchError, match="Unknown event type"):
            parse_event(raw)

    def test_missing_payload_field(self, make_template_event: Any) -> None:
        raw = make_template_event()
        del raw["payload"]["accountUuid"]

        with pytest.raises(EventDispatchError, match="Malformed TemplateCreated"):
            parse_event(raw)

    def test_not_a_mapping(self) -> None:
        with pytest.raises(EventDispatchError):
            parse_event("TemplateCreated")  # type: ignore[arg-type]

    def test_invalid_time_config_raises_validation_error(
        self, make_template_event: Any
    ) -> None:
        raw = make_template_event(time_config={"patternType": "WEEKLY", "times": ["09:00"]})

        with pytest.raises(ValidationError) as exc_info:
            parse_event(raw)

        assert exc_info.value.fields == ["weekdays"]


class TestEventFactories:
    """Events built from templates round-trip through the wire format."""

    def test_created_from_template(self, make_template: Any) -> None:
        template = make_template(category="health")
        event = TemplateCreated.for_template(template)

        assert event.aggregate_id == template.uuid
        assert event.payload.to_template() == template

    def test_wire_format_is_camel_case(self, make_template: Any) -> None:
        wire = TemplateCreated.for_template(make_template()).to_wire()

        assert wire["type"] == "TemplateCreated"
        assert "occurredOn" in wire
        assert wire["payload"]["timeConfig"]["patternType"] == "DAILY"
        assert isinstance(parse_event(wire), TemplateCreated)

    def test_deleted_factory(self, template_uuid: UUID, account_uuid: UUID) -> None:
        event = TemplateDeleted.for_template(template_uuid, account_uuid)

        assert event.payload.template_uuid == template_uuid
        assert event.account_uuid == account_uuid

    def test_instance_factory(self, template_uuid: UUID, account_uuid: UUID) -> None:
        payload = InstancePayload(
            instance_uuid=uuid4(),
            template_uuid=template_uuid,
            account_uuid=account_uuid,
            scheduled_time=datetime(2026, 3, 2, 9, 0, tzinfo=UTC),
            title="Drink water",
        )

        event = InstanceCreated.for_instance(payload)

        assert event.aggregate_id == payload.instance_uuid


class TestReminderTemplate:
    """Template validation and helpers."""

    def test_defaults(self, make_template: Any) -> None:
        template = make_template()

        assert template.enabled is True
        assert template.priority == "NORMAL"
        assert template.schedule_task_name == "Reminder: Drink water"
        assert template.schedule_task_description() == "Stay hydrated"

    def test_description_falls_back_to_message(self, make_template: Any) -> None:
        template = make_template(description=None, message="Glass of water")

        assert template.schedule_task_description() == "Glass of water"

    def test_unknown_timezone(self, make_template: Any) -> None:
        with pytest.raises(ValueError, match="Unknown timezone"):
            make_template(timezone="Mars/Olympus")

    def test_invalid_time_config(self, make_template: Any) -> None:
        with pytest.raises(ValidationError):
            make_template(time_config={"patternType": "DAILY"})


class TestAlertConfig:
    """Alert config derivation from metadata."""

    def test_defaults(self) -> None:
        config = AlertConfig.from_metadata(None)

        assert config.methods == [AlertMethod.POPUP]
        assert config.allow_snooze is True
        assert config.snooze_options == [5, 10, 15, 30]

    def test_from_notification_settings(self) -> None:
        config = AlertConfig.from_metadata(
            {
                "notificationSettings": {
                    "channels": ["desktop", "SOUND", "IN_APP", "PIGEON"],
                    "soundVolume": 70,
                    "allowSnooze": False,
                }
            }
        )

        assert config.methods == [AlertMethod.POPUP, AlertMethod.SOUND]
        assert config.sound_volume == 70
        assert config.allow_snooze is False

    def test_explicit_alert_config_wins(self) -> None:
        config = AlertConfig.from_metadata(
            {
                "alertConfig": {"methods": ["EMAIL"], "snoozeOptions": [1]},
                "notificationSettings": {"channels": ["SOUND"]},
            }
        )

        assert config.methods == [AlertMethod.EMAIL]
        assert config.snooze_options == [1]

    def test_wire_format(self) -> None:
        wire = AlertConfig.from_metadata({}).to_wire()

        assert wire == {
            "methods": ["POPUP"],
            "allowSnooze": True,
            "snoozeOptions": [5, 10, 15, 30],
        }
