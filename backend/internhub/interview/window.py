"""Booking time windows.

A window is the half-open interval ``[start, start + duration)`` resolved to an
absolute UTC instant, so bookings entered in different timezones compare
correctly. Two windows that only touch at a boundary do not overlap.
"""

from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import ValidationError


def resolve_timezone(tz: str) -> ZoneInfo:
    """Return the ZoneInfo for an IANA name, raising ValidationError if unknown."""
    if not tz or not isinstance(tz, str):
        raise ValidationError("Timezone is required", field="timezone")
    try:
        return ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError(f"Unknown timezone: {tz}", field="timezone") from None


@dataclass(frozen=True)
class TimeWindow:
    start: datetime
    duration_minutes: int
    timezone: str = "UTC"

    @classmethod
    def from_local(cls, day: date, start_time: time, duration_minutes: int, timezone: str = "UTC") -> "TimeWindow":
        """Build a window from a local calendar date and wall-clock time."""
        if duration_minutes is None or duration_minutes <= 0:
            raise ValidationError("Duration must be a positive number of minutes", field="duration_minutes")
        zone = resolve_timezone(timezone)
        naive = datetime.combine(day, start_time.replace(tzinfo=None))
        local_start = naive.replace(tzinfo=zone)
        # Wall times skipped by a DST jump do not survive the round trip
        if local_start.astimezone(UTC).astimezone(zone).replace(tzinfo=None) != naive:
            raise ValidationError(
                f"{naive:%Y-%m-%d %H:%M} does not exist in {timezone} (clock change)", field="start_time"
            )
        return cls(start=local_start.astimezone(UTC), duration_minutes=duration_minutes, timezone=timezone)

    @classmethod
    def from_interview(cls, interview) -> "TimeWindow":
        return cls.from_local(
            interview.date,
            interview.start_time,
            interview.duration_minutes,
            interview.timezone or "UTC",
        )

    @property
    def end(self) -> datetime:
        return self.start + timedelta(minutes=self.duration_minutes)

    def overlaps(self, other: "TimeWindow") -> bool:
        return self.start < other.end and other.start < self.end

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end

    def is_joinable(self, now: datetime, lead_minutes: int = 15) -> bool:
        """A meeting can be joined from ``lead_minutes`` before start until it ends."""
        return self.start - timedelta(minutes=lead_minutes) <= now < self.end

    def local_start(self) -> datetime:
        return self.start.astimezone(ZoneInfo(self.timezone))

    def local_end(self) -> datetime:
        return self.end.astimezone(ZoneInfo(self.timezone))

    def label(self) -> str:
        """Human slot label in the booking's own timezone, e.g. ``2024-06-10 10:00-10:30``."""
        start, end = self.local_start(), self.local_end()
        if start.date() == end.date():
            return f"{start:%Y-%m-%d %H:%M}-{end:%H:%M}"
        return f"{start:%Y-%m-%d %H:%M}-{end:%Y-%m-%d %H:%M}"


def format_duration(minutes: int) -> str:
    """Compact duration label: ``45m``, ``1h``, ``1h 30m``."""
    hours, mins = divmod(int(minutes or 0), 60)
    if hours == 0:
        return f"{mins}m"
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"
