"""Filter, sort and paginate enriched bookings."""

import math
from collections.abc import Sequence
from datetime import datetime, timedelta

from .models import InterviewStatus
from .schemas import EnrichedInterview, PageResult, QuerySpec
from .window import resolve_timezone

SORT_KEYS = {
    "date": lambda i: i.starts_at,
    "candidate": lambda i: i.candidate.name.casefold(),
    "interviewer": lambda i: i.interviewer.name.casefold(),
    "position": lambda i: i.position.title.casefold(),
    "status": lambda i: i.status.value,
    "type": lambda i: i.interview_type.value,
}


def _matches_text(item: EnrichedInterview, needle: str) -> bool:
    haystacks = (item.candidate.name, item.interviewer.name, item.position.title, item.agenda)
    return any(needle in (h or "").casefold() for h in haystacks)


def _in_bucket(item: EnrichedInterview, bucket: str, now: datetime, tz) -> bool:
    if bucket == "all":
        return True
    if bucket == "past":
        return item.starts_at < now or item.status == InterviewStatus.COMPLETED
    today = now.astimezone(tz).date()
    day = item.starts_at.astimezone(tz).date()
    if bucket == "today":
        return day == today
    if bucket == "tomorrow":
        return day == today + timedelta(days=1)
    if bucket == "this_week":
        return today <= day < today + timedelta(days=7)
    raise ValueError(f"Unknown date bucket: {bucket}")


def query(
    interviews: Sequence[EnrichedInterview],
    spec: QuerySpec,
    now: datetime,
    default_timezone: str = "UTC",
) -> PageResult:
    tz = resolve_timezone(spec.timezone or default_timezone)
    needle = spec.text.strip().casefold()

    rows = []
    for item in interviews:
        if needle and not _matches_text(item, needle):
            continue
        if spec.status is not None and item.status != spec.status:
            continue
        if spec.interview_type is not None and item.interview_type != spec.interview_type:
            continue
        if spec.interviewer_id and item.interviewer.id != spec.interviewer_id.lower():
            continue
        if spec.candidate_id and item.candidate.id != spec.candidate_id.lower():
            continue
        if not _in_bucket(item, spec.date_bucket, now, tz):
            continue
        rows.append(item)

    # sorted() is stable in both directions, ties keep their input order
    rows = sorted(rows, key=SORT_KEYS[spec.sort_by], reverse=spec.sort_order == "desc")

    total = len(rows)
    offset = (spec.page - 1) * spec.page_size
    return PageResult(
        items=rows[offset : offset + spec.page_size],
        total=total,
        page=spec.page,
        page_size=spec.page_size,
        total_pages=math.ceil(total / spec.page_size),
    )
