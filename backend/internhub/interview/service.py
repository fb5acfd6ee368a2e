"""Interview scheduling service: the only writer of bookings.

Every write that can occupy an interviewer's time runs the conflict check and
the commit under the interviewer's booking lock, so two requests can never
both pass the check for overlapping slots.
"""

import logging
from collections.abc import Callable
from datetime import UTC, date, datetime, time, timedelta
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from .conflicts import find_conflicts
from .errors import ConflictError, InvalidTransitionError, NotFoundError, SchedulingError, ValidationError
from .models import Interview, InterviewStatus, InterviewType
from .repository import InterviewRepository
from .schemas import InterviewInput
from .status import check_transition, is_terminal
from .window import TimeWindow

logger = logging.getLogger(__name__)

MAX_REMINDER_OFFSET = 7 * 24 * 60  # one week, in minutes

_WINDOW_FIELDS = ("date", "start_time", "duration_minutes", "timezone")


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _to_uuid(value, field: str, required: bool = False) -> UUID | None:
    if value in (None, ""):
        if required:
            raise ValidationError(f"{field.replace('_id', '').capitalize()} is required", field=field)
        return None
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (ValueError, AttributeError):
        raise ValidationError(f"Malformed id for {field}", field=field) from None


def _parse_date(value) -> date:
    if isinstance(value, date):
        return value
    if not value:
        raise ValidationError("Date is required", field="date")
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"Invalid date: {value}", field="date") from None


def _parse_time(value) -> time:
    if isinstance(value, time):
        return value
    if not value:
        raise ValidationError("Start time is required", field="start_time")
    try:
        return time.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"Invalid start time: {value}", field="start_time") from None


def _parse_duration(value) -> int:
    if value is None or isinstance(value, bool):
        raise ValidationError("Duration is required", field="duration_minutes")
    try:
        minutes = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Duration must be a whole number of minutes", field="duration_minutes") from None
    if minutes <= 0:
        raise ValidationError("Duration must be a positive number of minutes", field="duration_minutes")
    return minutes


def _parse_window(data: dict, default_timezone: str) -> TimeWindow:
    return TimeWindow.from_local(
        _parse_date(data.get("date")),
        _parse_time(data.get("start_time")),
        _parse_duration(data.get("duration_minutes")),
        data.get("timezone") or default_timezone,
    )


def _parse_offsets(offsets) -> list[int]:
    cleaned = []
    for raw in offsets or []:
        try:
            minutes = int(raw)
        except (TypeError, ValueError):
            raise ValidationError("Reminder offsets must be whole minutes", field="reminder_offsets") from None
        if not 0 <= minutes <= MAX_REMINDER_OFFSET:
            raise ValidationError(
                f"Reminder offsets must be between 0 and {MAX_REMINDER_OFFSET} minutes",
                field="reminder_offsets",
            )
        cleaned.append(minutes)
    return sorted(set(cleaned), reverse=True)


def _input_from(interview: Interview) -> dict:
    """The stored booking expressed as an input dict, for partial updates."""
    return {
        "interviewer_id": interview.interviewer_id,
        "candidate_id": interview.candidate_id,
        "application_id": interview.application_id,
        "position_id": interview.position_id,
        "interview_type": interview.interview_type,
        "date": interview.date,
        "start_time": interview.start_time,
        "duration_minutes": interview.duration_minutes,
        "timezone": interview.timezone,
        "meeting_link": interview.meeting_link,
        "location": interview.location,
        "agenda": interview.agenda or "",
        "instructions": interview.instructions or "",
        "notes": interview.notes or "",
        "materials": list(interview.materials or []),
        "reminders_enabled": interview.reminders_enabled,
        "reminder_offsets": list(interview.reminder_offsets or []),
    }


def _as_dict(data, partial: bool = False) -> dict:
    if isinstance(data, InterviewInput):
        return data.model_dump(exclude_unset=partial)
    return dict(data)


class SchedulingService:
    """Create, edit, reschedule, cancel and delete interview bookings."""

    def __init__(
        self,
        repository: InterviewRepository,
        now: Callable[[], datetime] = _utcnow,
        default_timezone: str = "UTC",
    ) -> None:
        self.repo = repository
        self._now = now
        self.default_timezone = default_timezone

    # ── Validation ─────────────────────────────────────────────────────

    def _validate(self, data: dict) -> tuple[dict, TimeWindow]:
        """Check a full booking payload; return column values and the window."""
        interviewer_id = _to_uuid(data.get("interviewer_id"), "interviewer_id", required=True)
        candidate_id = _to_uuid(data.get("candidate_id"), "candidate_id", required=True)
        window = _parse_window(data, self.default_timezone)

        try:
            interview_type = InterviewType(data.get("interview_type") or InterviewType.TECHNICAL)
        except ValueError:
            raise ValidationError(
                f"Unknown interview type: {data.get('interview_type')}", field="interview_type"
            ) from None

        materials = []
        for m in data.get("materials") or []:
            item = m if isinstance(m, dict) else m.model_dump()
            if not item.get("name") or not item.get("url"):
                raise ValidationError("Materials need a name and a url", field="materials")
            materials.append({"name": item["name"], "url": item["url"], "size": item.get("size")})

        fields = {
            "interviewer_id": interviewer_id,
            "candidate_id": candidate_id,
            "application_id": _to_uuid(data.get("application_id"), "application_id"),
            "position_id": _to_uuid(data.get("position_id"), "position_id"),
            "interview_type": interview_type,
            "date": _parse_date(data.get("date")),
            "start_time": _parse_time(data.get("start_time")).replace(tzinfo=None),
            "duration_minutes": window.duration_minutes,
            "timezone": window.timezone,
            "meeting_link": data.get("meeting_link") or None,
            "location": data.get("location") or None,
            "agenda": data.get("agenda") or "",
            "instructions": data.get("instructions") or "",
            "notes": data.get("notes") or "",
            "materials": materials,
            "reminders_enabled": bool(data.get("reminders_enabled", True)),
            "reminder_offsets": _parse_offsets(data.get("reminder_offsets", [15])),
            "starts_at": window.start,
            "ends_at": window.end,
        }
        return fields, window

    def _get(self, interview_id) -> Interview:
        try:
            uid = _to_uuid(interview_id, "interview_id", required=True)
        except ValidationError:
            raise NotFoundError(f"Interview {interview_id} not found") from None
        interview = self.repo.get(uid)
        if interview is None:
            raise NotFoundError(f"Interview {interview_id} not found")
        return interview

    # ── Conflict gate ──────────────────────────────────────────────────

    def find_conflicts(
        self, interviewer_id: UUID, window: TimeWindow, exclude_id: UUID | None = None
    ) -> list[Interview]:
        return find_conflicts(self.repo.for_interviewer(interviewer_id), interviewer_id, window, exclude_id)

    def check_conflicts(self, data, exclude_id=None) -> list[Interview]:
        """Advisory check for live form feedback. Writes nothing."""
        data = _as_dict(data)
        interviewer_id = _to_uuid(data.get("interviewer_id"), "interviewer_id", required=True)
        window = _parse_window(data, self.default_timezone)
        return self.find_conflicts(interviewer_id, window, _to_uuid(exclude_id, "exclude_id"))

    def _guarded_write(
        self,
        interviewer_id: UUID,
        window: TimeWindow | None,
        exclude_id: UUID | None,
        write: Callable[[], Interview],
    ) -> Interview:
        """Run conflict check, write and commit as one unit for the interviewer.

        ``window=None`` skips the check, for bookings that hold no slot.
        """
        with self.repo.lock_interviewer(interviewer_id):
            try:
                if window is not None:
                    conflicts = self.find_conflicts(interviewer_id, window, exclude_id)
                    if conflicts:
                        logger.info(
                            "Booking conflict for interviewer %s at %s (%d overlapping)",
                            interviewer_id, window.label(), len(conflicts),
                        )
                        raise ConflictError(conflicts)
                interview = write()
                self.repo.commit()
            except IntegrityError:
                # Storage-level exclusion constraint caught a concurrent overlap
                self.repo.rollback()
                logger.warning("Overlap rejected by database constraint for interviewer %s", interviewer_id)
                # The winning row is committed now, so it can be reported
                conflicts = self.find_conflicts(interviewer_id, window, exclude_id) if window is not None else []
                raise ConflictError(conflicts) from None
            except Exception:
                self.repo.rollback()
                raise
        return interview

    # ── Operations ─────────────────────────────────────────────────────

    def create(self, data) -> Interview:
        fields, window = self._validate(_as_dict(data))
        now = self._now()

        def write() -> Interview:
            interview = Interview(**fields, status=InterviewStatus.SCHEDULED, created_at=now, updated_at=now)
            self.repo.add(interview)
            return interview

        interview = self._guarded_write(fields["interviewer_id"], window, None, write)
        logger.info(
            "Interview %s scheduled: interviewer=%s candidate=%s slot=%s",
            interview.id, interview.interviewer_id, interview.candidate_id, window.label(),
        )
        return interview

    def update(self, interview_id, data, *, require_new_window: bool = False) -> Interview:
        interview = self._get(interview_id)
        merged = _input_from(interview)
        merged.update(_as_dict(data, partial=True))
        fields, window = self._validate(merged)

        old_window = TimeWindow.from_interview(interview)
        window_changed = (window.start, window.end) != (old_window.start, old_window.end)
        stored = InterviewStatus(interview.status)

        if require_new_window and not window_changed:
            raise ValidationError("Rescheduling requires a different date or time", field="date")
        if window_changed and is_terminal(stored):
            raise InvalidTransitionError(f"A '{stored}' interview cannot be moved")

        now = self._now()

        def write() -> Interview:
            for name, value in fields.items():
                setattr(interview, name, value)
            if window_changed:
                interview.rescheduled_from = old_window.start
                interview.reschedule_count = (interview.reschedule_count or 0) + 1
                interview.status = InterviewStatus.SCHEDULED
            interview.updated_at = now
            return interview

        holds_slot = stored != InterviewStatus.CANCELLED
        self._guarded_write(fields["interviewer_id"], window if holds_slot else None, interview.id, write)

        if window_changed:
            logger.info("Interview %s rescheduled: %s -> %s", interview.id, old_window.label(), window.label())
        else:
            logger.info("Interview %s updated", interview.id)
        return interview

    def change_status(self, interview_id, new_status, reschedule: dict | None = None) -> Interview:
        """Apply a manual status change.

        Setting the current status again is a no-op. Rescheduled needs a new
        slot in ``reschedule`` and goes through the full conflict gate.
        """
        try:
            new_status = InterviewStatus(new_status)
        except ValueError:
            raise ValidationError(f"Unknown status: {new_status}", field="status") from None

        interview = self._get(interview_id)
        stored = InterviewStatus(interview.status)
        window = TimeWindow.from_interview(interview)

        if not check_transition(stored, new_status, window, self._now()):
            return interview

        if new_status == InterviewStatus.RESCHEDULED:
            slot = {k: v for k, v in (reschedule or {}).items() if k in _WINDOW_FIELDS and v is not None}
            if not slot.get("date") and not slot.get("start_time"):
                raise ValidationError("Rescheduling requires a new date or start time", field="date")
            return self.update(interview.id, slot, require_new_window=True)

        now = self._now()

        def write() -> Interview:
            interview.status = new_status
            interview.updated_at = now
            return interview

        # No slot is gained by a status change, so the conflict check is skipped
        self._guarded_write(interview.interviewer_id, None, interview.id, write)
        logger.info("Interview %s status %s -> %s", interview.id, stored, new_status)
        return interview

    def cancel(self, interview_id) -> Interview:
        return self.change_status(interview_id, InterviewStatus.CANCELLED)

    def delete(self, interview_id) -> None:
        interview = self._get(interview_id)
        try:
            self.repo.delete(interview)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise
        logger.info("Interview %s deleted", interview_id)

    def bulk(self, action: str, ids: list[str]) -> dict:
        """Cancel or delete many bookings; each id succeeds or fails on its own."""
        if action not in ("cancel", "delete"):
            raise ValidationError(f"Unknown bulk action: {action}", field="action")

        succeeded, failed = [], []
        for interview_id in ids:
            try:
                if action == "cancel":
                    self.cancel(interview_id)
                else:
                    self.delete(interview_id)
            except SchedulingError as exc:
                failed.append({"id": interview_id, "error": exc.message})
            else:
                succeeded.append(interview_id)
        logger.info("Bulk %s: %d ok, %d failed", action, len(succeeded), len(failed))
        return {"action": action, "succeeded": succeeded, "failed": failed}

    # ── Read helpers ───────────────────────────────────────────────────

    def now(self) -> datetime:
        return self._now()

    def list_all(self) -> list[Interview]:
        return self.repo.list_all()

    def get(self, interview_id) -> Interview:
        return self._get(interview_id)

    def upcoming(self, hours: int = 48) -> list[Interview]:
        """Scheduled bookings starting within the next ``hours``."""
        now = self._now()
        return self.repo.starting_between(now, now + timedelta(hours=hours))

    def due_reminders(self, lookahead_minutes: int = 60) -> list[dict]:
        """Reminders falling due in ``[now, now + lookahead)``. Delivery is up to the caller."""
        now = self._now()
        horizon = now + timedelta(minutes=lookahead_minutes)
        candidates = self.repo.starting_between(now, horizon + timedelta(minutes=MAX_REMINDER_OFFSET))

        due = []
        for interview in candidates:
            if not interview.reminders_enabled:
                continue
            window = TimeWindow.from_interview(interview)
            for offset in interview.reminder_offsets or []:
                remind_at = window.start - timedelta(minutes=int(offset))
                if now <= remind_at < horizon:
                    due.append({"interview": interview, "offset_minutes": int(offset), "remind_at": remind_at})
        due.sort(key=lambda r: r["remind_at"])
        return due
