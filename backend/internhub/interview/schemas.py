"""Interview request/response schemas."""

import datetime as dt
from typing import Literal

from pydantic import BaseModel, Field

from .models import InterviewStatus, InterviewType


class Material(BaseModel):
    name: str = Field(..., max_length=255)
    url: str = Field(..., max_length=1000)
    size: int | None = Field(None, ge=0)


class InterviewInput(BaseModel):
    """Booking form payload.

    Dates, times and ids arrive as strings; the scheduling service parses them
    and reports problems as ValidationError.
    """

    interviewer_id: str | None = None
    candidate_id: str | None = None
    application_id: str | None = None
    position_id: str | None = None
    interview_type: InterviewType = InterviewType.TECHNICAL
    date: str | None = None
    start_time: str | None = None
    duration_minutes: int | None = 30
    timezone: str | None = None
    meeting_link: str | None = Field(None, max_length=500)
    location: str | None = Field(None, max_length=500)
    agenda: str = Field("", max_length=5000)
    instructions: str = Field("", max_length=5000)
    notes: str = Field("", max_length=5000)
    materials: list[Material] = Field(default_factory=list)
    reminders_enabled: bool = True
    reminder_offsets: list[int] = Field(default_factory=lambda: [15])


class StatusChangeRequest(BaseModel):
    status: InterviewStatus
    # New slot, mandatory when status is Rescheduled
    date: str | None = None
    start_time: str | None = None
    duration_minutes: int | None = None
    timezone: str | None = None


class BulkActionRequest(BaseModel):
    action: Literal["cancel", "delete"]
    ids: list[str] = Field(..., min_length=1, max_length=200)


class QuerySpec(BaseModel):
    text: str = ""
    status: InterviewStatus | None = None
    interview_type: InterviewType | None = None
    interviewer_id: str | None = None
    candidate_id: str | None = None
    date_bucket: Literal["all", "today", "tomorrow", "this_week", "past"] = "all"
    sort_by: Literal["date", "candidate", "interviewer", "position", "status", "type"] = "date"
    sort_order: Literal["asc", "desc"] = "asc"
    page: int = Field(1, ge=1)
    page_size: int = Field(10, ge=1, le=100)
    timezone: str | None = None


class PersonRef(BaseModel):
    id: str | None = None
    name: str
    email: str = ""
    detail: str = ""  # affiliation for candidates, department for interviewers


class PositionRef(BaseModel):
    id: str | None = None
    title: str = ""


class ApplicationRef(BaseModel):
    id: str
    status: str = ""


class EnrichedInterview(BaseModel):
    id: str
    candidate: PersonRef
    interviewer: PersonRef
    position: PositionRef
    application: ApplicationRef | None = None
    interview_type: InterviewType
    date: dt.date
    start_time: str
    end_date: dt.date
    end_time: str
    duration_minutes: int
    duration_label: str
    timezone: str
    starts_at: dt.datetime
    ends_at: dt.datetime
    meeting_link: str | None = None
    location: str | None = None
    agenda: str = ""
    instructions: str = ""
    notes: str = ""
    materials: list[dict] = Field(default_factory=list)
    stored_status: InterviewStatus
    status: InterviewStatus
    is_joinable: bool = False
    reminders_enabled: bool = True
    reminder_offsets: list[int] = Field(default_factory=list)
    rescheduled_from: dt.datetime | None = None
    reschedule_count: int = 0
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None


class PageResult(BaseModel):
    items: list[EnrichedInterview]
    total: int
    page: int
    page_size: int
    total_pages: int
