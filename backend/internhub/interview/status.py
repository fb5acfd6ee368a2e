"""Booking lifecycle: read-time status derivation and the transition table."""

from datetime import datetime

from .errors import InvalidTransitionError
from .models import InterviewStatus
from .window import TimeWindow

# Stored statuses that the clock never overrides
MANUAL_STATUSES = frozenset(
    {
        InterviewStatus.CANCELLED,
        InterviewStatus.RESCHEDULED,
        InterviewStatus.NO_SHOW,
        InterviewStatus.COMPLETED,
    }
)

TERMINAL_STATUSES = frozenset(
    {
        InterviewStatus.CANCELLED,
        InterviewStatus.COMPLETED,
        InterviewStatus.NO_SHOW,
    }
)

ALLOWED_TRANSITIONS: dict[InterviewStatus, frozenset[InterviewStatus]] = {
    InterviewStatus.SCHEDULED: frozenset(
        {
            InterviewStatus.COMPLETED,
            InterviewStatus.CANCELLED,
            InterviewStatus.RESCHEDULED,
            InterviewStatus.NO_SHOW,
        }
    ),
    InterviewStatus.RESCHEDULED: frozenset({InterviewStatus.SCHEDULED, InterviewStatus.CANCELLED}),
    InterviewStatus.COMPLETED: frozenset(),
    InterviewStatus.CANCELLED: frozenset(),
    InterviewStatus.NO_SHOW: frozenset(),
}


def derive_status(stored: InterviewStatus, window: TimeWindow, now: datetime) -> InterviewStatus:
    """Effective status as seen at ``now``. Pure; the result is never persisted."""
    if stored != InterviewStatus.SCHEDULED:
        return stored
    if now > window.end:
        return InterviewStatus.COMPLETED
    if now > window.start:
        return InterviewStatus.IN_PROGRESS
    return InterviewStatus.SCHEDULED


def is_terminal(status: InterviewStatus) -> bool:
    return status in TERMINAL_STATUSES


def check_transition(
    current: InterviewStatus,
    new: InterviewStatus,
    window: TimeWindow,
    now: datetime,
) -> bool:
    """Validate a stored-status change.

    Returns False when ``new`` equals ``current``, or is In Progress while the
    booking already reads as In Progress (nothing to do), True when the
    change is allowed, and raises InvalidTransitionError otherwise.
    """
    if new == InterviewStatus.IN_PROGRESS:
        if derive_status(current, window, now) == InterviewStatus.IN_PROGRESS:
            return False
        raise InvalidTransitionError("'In Progress' is derived from the clock and cannot be set")
    if new == current:
        return False
    if new not in ALLOWED_TRANSITIONS.get(current, frozenset()):
        raise InvalidTransitionError(f"Cannot change status from '{current}' to '{new}'")
    if new == InterviewStatus.NO_SHOW and now < window.end:
        raise InvalidTransitionError("An interview can only be marked 'No Show' after it has ended")
    return True
