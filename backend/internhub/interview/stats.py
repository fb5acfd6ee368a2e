"""Booking analytics for the scheduler dashboard."""

from collections import Counter
from collections.abc import Iterable
from datetime import UTC, datetime

from .models import Interview, InterviewStatus
from .status import derive_status
from .window import TimeWindow

TREND_MONTHS = 6


def _month_keys(now: datetime, months: int = TREND_MONTHS) -> list[str]:
    """``YYYY-MM`` keys for the last ``months`` calendar months, oldest first."""
    now = now.astimezone(UTC)
    index = now.year * 12 + now.month - 1
    return [f"{i // 12:04d}-{i % 12 + 1:02d}" for i in range(index - months + 1, index + 1)]


def compute_stats(interviews: Iterable[Interview], now: datetime) -> dict:
    """Aggregate counts and rates using effective (clock-derived) statuses."""
    total = upcoming = completed = cancelled = no_show = 0
    completed_minutes = 0
    per_interviewer: Counter[str] = Counter()
    per_type: Counter[str] = Counter()
    per_candidate: Counter[str] = Counter()
    per_month: Counter[str] = Counter()

    for interview in interviews:
        window = TimeWindow.from_interview(interview)
        status = derive_status(InterviewStatus(interview.status), window, now)
        total += 1
        per_interviewer[str(interview.interviewer_id)] += 1
        per_type[str(interview.interview_type)] += 1
        per_candidate[str(interview.candidate_id)] += 1
        per_month[f"{window.start:%Y-%m}"] += 1

        if status == InterviewStatus.SCHEDULED:
            upcoming += 1
        elif status == InterviewStatus.COMPLETED:
            completed += 1
            completed_minutes += interview.duration_minutes or 0
        elif status == InterviewStatus.CANCELLED:
            cancelled += 1
        elif status == InterviewStatus.NO_SHOW:
            no_show += 1

    return {
        "total": total,
        "upcoming": upcoming,
        "completed": completed,
        "cancelled": cancelled,
        "no_show": no_show,
        "attendance_rate": round(completed / total * 100, 1) if total else 0.0,
        "no_show_rate": round(no_show / total * 100, 1) if total else 0.0,
        "completed_minutes": completed_minutes,
        "per_interviewer": dict(per_interviewer),
        "per_type": dict(per_type),
        "per_candidate": dict(per_candidate),
        "monthly_trend": [{"month": m, "count": per_month[m]} for m in _month_keys(now)],
    }
