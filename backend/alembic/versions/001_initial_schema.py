"""Initial schema: directory tables, interviews, audit logs.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "candidates",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(255), default=""),
        sa.Column("email", sa.String(255), default=""),
        sa.Column("affiliation", sa.String(255), default=""),
    )

    op.create_table(
        "interviewers",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(255), default=""),
        sa.Column("email", sa.String(255), default=""),
        sa.Column("department", sa.String(255), default=""),
    )

    op.create_table(
        "positions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.String(255), default=""),
    )

    op.create_table(
        "applications",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("candidate_id", UUID(as_uuid=True), nullable=True),
        sa.Column("position_id", UUID(as_uuid=True), nullable=True),
        sa.Column("status", sa.String(30), default=""),
    )
    op.create_index("ix_applications_candidate_id", "applications", ["candidate_id"])
    op.create_index("ix_applications_position_id", "applications", ["position_id"])

    op.create_table(
        "interviews",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("interviewer_id", UUID(as_uuid=True), nullable=False),
        sa.Column("candidate_id", UUID(as_uuid=True), nullable=False),
        sa.Column("application_id", UUID(as_uuid=True), nullable=True),
        sa.Column("position_id", UUID(as_uuid=True), nullable=True),
        sa.Column("interview_type", sa.String(20), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("timezone", sa.String(64), nullable=False, server_default="UTC"),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ends_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("meeting_link", sa.String(500), nullable=True),
        sa.Column("location", sa.String(500), nullable=True),
        sa.Column("agenda", sa.Text(), server_default=""),
        sa.Column("instructions", sa.Text(), server_default=""),
        sa.Column("notes", sa.Text(), server_default=""),
        sa.Column("materials", JSONB(), server_default="[]"),
        sa.Column("status", sa.String(20), nullable=False, server_default="Scheduled"),
        sa.Column("rescheduled_from", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reschedule_count", sa.Integer(), server_default="0"),
        sa.Column("reminders_enabled", sa.Boolean(), server_default=sa.true()),
        sa.Column("reminder_offsets", JSONB(), server_default="[15]"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("duration_minutes > 0", name="ck_interviews_duration_positive"),
    )
    op.create_index("ix_interviews_candidate_id", "interviews", ["candidate_id"])
    op.create_index("idx_interviews_interviewer_start", "interviews", ["interviewer_id", "starts_at"])
    op.create_index("idx_interviews_status", "interviews", ["status"])

    # No two non-cancelled bookings of one interviewer may overlap
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
    op.execute(
        """
        ALTER TABLE interviews ADD CONSTRAINT ex_interviews_no_overlap
        EXCLUDE USING gist (
            interviewer_id WITH =,
            tstzrange(starts_at, ends_at, '[)') WITH &&
        ) WHERE (status <> 'Cancelled')
        """
    )

    op.create_table(
        "audit_logs",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("actor", sa.String(255), server_default=""),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("detail", sa.Text(), server_default=""),
        sa.Column("ip_address", sa.String(45), server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.execute("ALTER TABLE interviews DROP CONSTRAINT IF EXISTS ex_interviews_no_overlap")
    op.drop_table("interviews")
    op.drop_table("applications")
    op.drop_table("positions")
    op.drop_table("interviewers")
    op.drop_table("candidates")
