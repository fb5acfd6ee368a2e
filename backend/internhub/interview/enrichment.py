"""Join bookings with directory records into display-ready rows."""

from collections.abc import Mapping
from datetime import datetime

from .models import Interview, InterviewStatus, InterviewType
from .schemas import ApplicationRef, EnrichedInterview, PersonRef, PositionRef
from .status import derive_status
from .window import TimeWindow, format_duration

UNKNOWN_CANDIDATE = "Unknown Candidate"
UNKNOWN_INTERVIEWER = "Unknown Interviewer"


def _key(value) -> str | None:
    return str(value) if value is not None else None


def _person(record: dict | None, ref_id: str | None, placeholder: str, detail_field: str) -> PersonRef:
    if not record:
        return PersonRef(id=ref_id, name=placeholder)
    return PersonRef(
        id=ref_id,
        name=record.get("name") or placeholder,
        email=record.get("email") or "",
        detail=record.get(detail_field) or "",
    )


def enrich(
    interview: Interview,
    candidates: Mapping[str, dict],
    interviewers: Mapping[str, dict],
    applications: Mapping[str, dict],
    positions: Mapping[str, dict],
    now: datetime,
    join_lead_minutes: int = 15,
) -> EnrichedInterview:
    """Resolve the booking's references; missing ones become placeholders."""
    window = TimeWindow.from_interview(interview)
    local_start, local_end = window.local_start(), window.local_end()

    application_id = _key(interview.application_id)
    application = applications.get(application_id) if application_id else None

    candidate_id = _key(interview.candidate_id)
    position_id = _key(interview.position_id)
    if application:
        position_id = position_id or application.get("position_id")
        candidate_id = candidate_id or application.get("candidate_id")

    position = positions.get(position_id) if position_id else None
    stored = InterviewStatus(interview.status or InterviewStatus.SCHEDULED)

    return EnrichedInterview(
        id=str(interview.id),
        candidate=_person(candidates.get(candidate_id), candidate_id, UNKNOWN_CANDIDATE, "affiliation"),
        interviewer=_person(
            interviewers.get(_key(interview.interviewer_id)),
            _key(interview.interviewer_id),
            UNKNOWN_INTERVIEWER,
            "department",
        ),
        position=PositionRef(id=position_id, title=(position or {}).get("title") or ""),
        application=(
            ApplicationRef(id=application_id, status=(application or {}).get("status") or "")
            if application_id
            else None
        ),
        interview_type=InterviewType(interview.interview_type or InterviewType.TECHNICAL),
        date=interview.date,
        start_time=local_start.strftime("%H:%M"),
        end_date=local_end.date(),
        end_time=local_end.strftime("%H:%M"),
        duration_minutes=interview.duration_minutes,
        duration_label=format_duration(interview.duration_minutes),
        timezone=window.timezone,
        starts_at=window.start,
        ends_at=window.end,
        meeting_link=interview.meeting_link,
        location=interview.location,
        agenda=interview.agenda or "",
        instructions=interview.instructions or "",
        notes=interview.notes or "",
        materials=list(interview.materials or []),
        stored_status=stored,
        status=derive_status(stored, window, now),
        is_joinable=stored == InterviewStatus.SCHEDULED and window.is_joinable(now, join_lead_minutes),
        reminders_enabled=bool(interview.reminders_enabled),
        reminder_offsets=list(interview.reminder_offsets or []),
        rescheduled_from=interview.rescheduled_from,
        reschedule_count=interview.reschedule_count or 0,
        created_at=interview.created_at,
        updated_at=interview.updated_at,
    )


def enrich_all(interviews, directory: Mapping[str, Mapping[str, dict]], now: datetime, join_lead_minutes: int = 15):
    """Enrich a batch against a loaded directory (see ``directory.service.load_directory``)."""
    return [
        enrich(
            i,
            directory.get("candidates", {}),
            directory.get("interviewers", {}),
            directory.get("applications", {}),
            directory.get("positions", {}),
            now,
            join_lead_minutes,
        )
        for i in interviews
    ]
