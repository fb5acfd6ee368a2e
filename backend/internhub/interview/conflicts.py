"""Interviewer double-booking detection."""

from collections.abc import Iterable
from uuid import UUID

from .models import Interview, InterviewStatus
from .window import TimeWindow


def occupies_time(interview: Interview) -> bool:
    """Cancelled bookings never hold a slot."""
    return interview.status != InterviewStatus.CANCELLED


def find_conflicts(
    bookings: Iterable[Interview],
    interviewer_id: UUID,
    window: TimeWindow,
    exclude_id: UUID | None = None,
) -> list[Interview]:
    """Return the interviewer's bookings whose window overlaps ``window``, by start."""
    hits = []
    for booking in bookings:
        if booking.interviewer_id != interviewer_id:
            continue
        if exclude_id is not None and booking.id == exclude_id:
            continue
        if not occupies_time(booking):
            continue
        other = TimeWindow.from_interview(booking)
        if window.overlaps(other):
            hits.append((other.start, booking))
    hits.sort(key=lambda pair: pair[0])
    return [b for _, b in hits]
