"""Scheduling error taxonomy.

Each error carries the HTTP status the API answers with; main.py installs a
single handler for the whole hierarchy.
"""


class SchedulingError(Exception):
    status_code = 400

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error": self.message, "kind": type(self).__name__}


class ValidationError(SchedulingError):
    """Missing or malformed booking input. Nothing was persisted."""

    status_code = 400

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.field:
            data["field"] = self.field
        return data


class ConflictError(SchedulingError):
    """The interviewer already has an overlapping booking."""

    status_code = 409

    def __init__(self, conflicts: list) -> None:
        self.conflicts = conflicts
        if conflicts:
            from .window import TimeWindow

            slot = TimeWindow.from_interview(conflicts[0]).label()
            message = f"Time conflict with another interview at {slot}"
        else:
            message = "Time conflict with another interview"
        super().__init__(message)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["conflicts"] = [
            {
                "id": str(c.id),
                "date": c.date.isoformat(),
                "start_time": c.start_time.strftime("%H:%M"),
                "duration_minutes": c.duration_minutes,
                "timezone": c.timezone,
            }
            for c in self.conflicts
        ]
        return data


class InvalidTransitionError(SchedulingError):
    status_code = 409


class NotFoundError(SchedulingError):
    status_code = 404
