"""ReminderInstance model: one materialized occurrence of a template.

Rows are unique per ``(template_uuid, scheduled_time)`` and their primary key
is derived from that pair, so regenerating the same window twice never
creates duplicates.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from reminder_sync.models.base import GUID, Base, JSONType, TimestampMixin, UTCDateTime
from reminder_sync.models.enums import ReminderInstanceStatus


def instance_uuid_for(template_uuid: uuid.UUID, scheduled_time: datetime) -> uuid.UUID:
    """Deterministic identity of the occurrence of a template at a given time.

    Args:
        template_uuid: Owning template.
        scheduled_time: Timezone-aware occurrence time.

    Returns:
        uuid5 namespaced by the template uuid.

    Examples:
        >>> t = uuid.UUID("00000000-0000-0000-0000-000000000001")
        >>> when = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)
        >>> instance_uuid_for(t, when) == instance_uuid_for(t, when)
        True
    """
    if scheduled_time.tzinfo is None:
        raise ValueError("scheduled_time must be timezone-aware")
    stamp = scheduled_time.astimezone(UTC).isoformat()
    return uuid.uuid5(template_uuid, stamp)


class ReminderInstance(TimestampMixin, Base):
    """A single scheduled occurrence of a reminder template.

    Attributes:
        id: Deterministic uuid (see ``instance_uuid_for``)
        template_uuid: Owning template
        account_uuid: Owning account
        scheduled_time: When the reminder should be delivered
        title: Notification title (template name)
        message: Notification body
        priority: Template priority
        category: Template category
        status: Delivery status, pending on creation
        metadata_: Delivery metadata (notification settings, pattern type)
    """

    __tablename__ = "reminder_instances"
    __table_args__ = (
        UniqueConstraint(
            "template_uuid",
            "scheduled_time",
            name="uq_reminder_instances_template_time",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, nullable=False)

    template_uuid: Mapped[uuid.UUID] = mapped_column(GUID(), nullable=False, index=True)

    account_uuid: Mapped[uuid.UUID] = mapped_column(GUID(), nullable=False, index=True)

    scheduled_time: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        index=True,
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    message: Mapped[str | None] = mapped_column(Text, nullable=True)

    priority: Mapped[str] = mapped_column(String(20), nullable=False, default="NORMAL")

    category: Mapped[str | None] = mapped_column(String(100), nullable=True)

    status: Mapped[ReminderInstanceStatus] = mapped_column(
        String(20),
        nullable=False,
        default=ReminderInstanceStatus.PENDING.value,
    )

    metadata_: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        JSONType,
        nullable=False,
        default=dict,
    )

    def __repr__(self) -> str:
        """Return string representation of the instance."""
        return (
            f"<ReminderInstance(id={self.id}, template={self.template_uuid}, "
            f"at={self.scheduled_time.isoformat()})>"
        )


__all__ = ["ReminderInstance", "instance_uuid_for"]
