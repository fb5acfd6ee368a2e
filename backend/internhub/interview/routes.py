"""Interview JSON API routes."""

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session

from ..audit.service import audit
from ..config import settings
from ..database import get_db
from ..dependencies import get_scheduling_service
from ..directory.service import load_directory
from ..rate_limit import limiter
from .enrichment import enrich_all
from .models import Interview
from .query import query
from .schemas import BulkActionRequest, InterviewInput, QuerySpec, StatusChangeRequest
from .service import SchedulingService
from .stats import compute_stats

router = APIRouter(tags=["interviews"])


def _enriched(db: Session, service: SchedulingService, interviews: list[Interview]) -> list[dict]:
    directory = load_directory(db)
    rows = enrich_all(interviews, directory, service.now(), settings.join_lead_minutes)
    return [r.model_dump(mode="json") for r in rows]


def _summary(interview: Interview) -> dict:
    return {
        "id": str(interview.id),
        "interviewer_id": str(interview.interviewer_id),
        "candidate_id": str(interview.candidate_id),
        "date": interview.date.isoformat(),
        "start_time": interview.start_time.strftime("%H:%M"),
        "duration_minutes": interview.duration_minutes,
        "timezone": interview.timezone,
        "status": str(interview.status),
        "reschedule_count": interview.reschedule_count or 0,
    }


@router.get("/interviews")
def list_interviews(
    spec: QuerySpec = Depends(),
    db: Session = Depends(get_db),
    service: SchedulingService = Depends(get_scheduling_service),
):
    directory = load_directory(db)
    now = service.now()
    rows = enrich_all(service.list_all(), directory, now, settings.join_lead_minutes)
    page = query(rows, spec, now, settings.default_timezone)
    return JSONResponse(page.model_dump(mode="json"))


@router.get("/interviews/{interview_id}")
def get_interview(
    interview_id: str,
    db: Session = Depends(get_db),
    service: SchedulingService = Depends(get_scheduling_service),
):
    interview = service.get(interview_id)
    return JSONResponse(_enriched(db, service, [interview])[0])


@router.post("/interviews")
@limiter.limit(settings.rate_limit_schedule)
def create_interview(
    request: Request,
    payload: InterviewInput,
    db: Session = Depends(get_db),
    service: SchedulingService = Depends(get_scheduling_service),
):
    interview = service.create(payload)
    audit(db, request, "interview_create", f"id={interview.id}, interviewer={interview.interviewer_id}")
    db.commit()
    return JSONResponse({"ok": True, "interview": _summary(interview)}, status_code=201)


@router.put("/interviews/{interview_id}")
@limiter.limit(settings.rate_limit_schedule)
def update_interview(
    request: Request,
    interview_id: str,
    payload: InterviewInput,
    db: Session = Depends(get_db),
    service: SchedulingService = Depends(get_scheduling_service),
):
    interview = service.update(interview_id, payload)
    audit(db, request, "interview_update", f"id={interview_id}")
    db.commit()
    return JSONResponse({"ok": True, "interview": _summary(interview)})


@router.post("/interviews/{interview_id}/status")
def change_interview_status(
    request: Request,
    interview_id: str,
    payload: StatusChangeRequest,
    db: Session = Depends(get_db),
    service: SchedulingService = Depends(get_scheduling_service),
):
    slot = payload.model_dump(exclude={"status"}, exclude_none=True)
    interview = service.change_status(interview_id, payload.status, reschedule=slot)
    audit(db, request, "interview_status", f"id={interview_id}, status={payload.status}")
    db.commit()
    return JSONResponse({"ok": True, "interview": _summary(interview)})


@router.delete("/interviews/{interview_id}")
def delete_interview(
    request: Request,
    interview_id: str,
    db: Session = Depends(get_db),
    service: SchedulingService = Depends(get_scheduling_service),
):
    service.delete(interview_id)
    audit(db, request, "interview_delete", f"id={interview_id}")
    db.commit()
    return Response(status_code=204)


@router.post("/interviews/conflicts")
def check_conflicts(
    payload: InterviewInput,
    exclude_id: str | None = None,
    db: Session = Depends(get_db),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Advisory check used while the booking form is being filled in."""
    conflicts = service.check_conflicts(payload, exclude_id=exclude_id)
    return JSONResponse({"conflict": bool(conflicts), "conflicts": _enriched(db, service, conflicts)})


@router.post("/interviews/bulk")
def bulk_action(
    request: Request,
    payload: BulkActionRequest,
    db: Session = Depends(get_db),
    service: SchedulingService = Depends(get_scheduling_service),
):
    result = service.bulk(payload.action, payload.ids)
    detail = f"ok={len(result['succeeded'])}, failed={len(result['failed'])}"
    audit(db, request, f"interview_bulk_{payload.action}", detail)
    db.commit()
    return JSONResponse(result)


@router.get("/interviews-upcoming")
def upcoming_interviews(
    hours: int = Query(settings.upcoming_hours, ge=1, le=24 * 31),
    db: Session = Depends(get_db),
    service: SchedulingService = Depends(get_scheduling_service),
):
    return JSONResponse({"interviews": _enriched(db, service, service.upcoming(hours))})


@router.get("/interviews-reminders")
def due_reminders(
    lookahead: int = Query(settings.reminder_lookahead_minutes, ge=1, le=24 * 60),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Reminders due soon, for the external notification worker to deliver."""
    due = service.due_reminders(lookahead)
    return JSONResponse(
        {
            "reminders": [
                {
                    "interview": _summary(r["interview"]),
                    "offset_minutes": r["offset_minutes"],
                    "remind_at": r["remind_at"].isoformat(),
                }
                for r in due
            ]
        }
    )


@router.get("/interviews-stats")
def interview_stats(service: SchedulingService = Depends(get_scheduling_service)):
    return JSONResponse(compute_stats(service.list_all(), service.now()))
