"""Create schedule_tasks and reminder_instances tables.

Revision ID: 001_reminder_schedule_sync
Revises:
Create Date: 2026-03-02 08:00:00
"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_reminder_schedule_sync"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def upgrade() -> None:
    """Upgrade database schema - Add schedule task and reminder instance tables."""
    op.create_table(
        "schedule_tasks",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("trigger_type", sa.String(length=20), nullable=False),
        sa.Column("cron_expression", sa.String(length=100), nullable=True),
        sa.Column("scheduled_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "timezone", sa.String(length=50), nullable=False, server_default="UTC"
        ),
        sa.Column("enabled", sa.Boolean(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("source_module", sa.String(length=50), nullable=False),
        sa.Column("source_entity_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("template_uuid", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("account_uuid", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("metadata", postgresql.JSONB(), nullable=False),
        sa.Column("alert_config", postgresql.JSONB(), nullable=True),
        sa.Column("next_run_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "source_module", "source_entity_id", name="uq_schedule_tasks_source"
        ),
    )
    op.create_index(
        "ix_schedule_tasks_template_uuid", "schedule_tasks", ["template_uuid"]
    )
    op.create_index("ix_schedule_tasks_next_run_at", "schedule_tasks", ["next_run_at"])
    op.create_index(
        op.f("ix_schedule_tasks_account_uuid"), "schedule_tasks", ["account_uuid"]
    )

    op.create_table(
        "reminder_instances",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("template_uuid", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("account_uuid", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("scheduled_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("priority", sa.String(length=20), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("metadata", postgresql.JSONB(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "template_uuid",
            "scheduled_time",
            name="uq_reminder_instances_template_time",
        ),
    )
    for column in ("template_uuid", "account_uuid", "scheduled_time"):
        op.create_index(
            op.f(f"ix_reminder_instances_{column}"), "reminder_instances", [column]
        )


def downgrade() -> None:
    """Downgrade database schema - Remove reminder sync tables."""
    for column in ("scheduled_time", "account_uuid", "template_uuid"):
        op.drop_index(op.f(f"ix_reminder_instances_{column}"), table_name="reminder_instances")
    op.drop_table("reminder_instances")

    op.drop_index(op.f("ix_schedule_tasks_account_uuid"), table_name="schedule_tasks")
    op.drop_index("ix_schedule_tasks_next_run_at", table_name="schedule_tasks")
    op.drop_index("ix_schedule_tasks_template_uuid", table_name="schedule_tasks")
    op.drop_table("schedule_tasks")
