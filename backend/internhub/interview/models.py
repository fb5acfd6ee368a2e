"""Interview booking model and enums."""

import enum
import uuid
from datetime import UTC, datetime

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, Index, Integer, String, Text, Time
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID

from ..database.base import Base


class InterviewType(enum.StrEnum):
    TECHNICAL = "Technical"
    HR = "HR"
    BEHAVIORAL = "Behavioral"
    FINAL = "Final"
    GROUP = "Group"


class InterviewStatus(enum.StrEnum):
    """Booking lifecycle stage. IN_PROGRESS is derived at read time, never stored."""

    SCHEDULED = "Scheduled"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    RESCHEDULED = "Rescheduled"
    NO_SHOW = "No Show"


class Interview(Base):
    __tablename__ = "interviews"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    interviewer_id = Column(UUID(as_uuid=True), nullable=False)
    candidate_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    application_id = Column(UUID(as_uuid=True), nullable=True)
    position_id = Column(UUID(as_uuid=True), nullable=True)

    interview_type = Column(
        SQLEnum(InterviewType, values_callable=lambda e: [t.value for t in e], native_enum=False, length=20),
        default=InterviewType.TECHNICAL,
    )

    # Local booking as entered; starts_at/ends_at are the resolved UTC window
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=30)
    timezone = Column(String(64), nullable=False, default="UTC")
    starts_at = Column(DateTime(timezone=True), nullable=False)
    ends_at = Column(DateTime(timezone=True), nullable=False)

    meeting_link = Column(String(500), nullable=True)
    location = Column(String(500), nullable=True)
    agenda = Column(Text, default="")
    instructions = Column(Text, default="")
    notes = Column(Text, default="")
    materials = Column(JSON, default=list)  # [{name, url, size}]

    status = Column(
        SQLEnum(InterviewStatus, values_callable=lambda e: [s.value for s in e], native_enum=False, length=20),
        default=InterviewStatus.SCHEDULED,
        nullable=False,
    )
    rescheduled_from = Column(DateTime(timezone=True), nullable=True)
    reschedule_count = Column(Integer, default=0)

    reminders_enabled = Column(Boolean, default=True)
    reminder_offsets = Column(JSON, default=lambda: [15])  # minutes before start

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC))
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    __table_args__ = (
        Index("idx_interviews_interviewer_start", "interviewer_id", "starts_at"),
        Index("idx_interviews_status", "status"),
    )
