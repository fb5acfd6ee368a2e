"""Directory lookups: generic named-collection access to portal entities."""

import enum
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .models import Application, Candidate, Interviewer, Position

logger = logging.getLogger(__name__)


class Collection(enum.StrEnum):
    CANDIDATES = "candidates"
    INTERVIEWERS = "interviewers"
    APPLICATIONS = "applications"
    POSITIONS = "positions"


_COLLECTIONS = {
    Collection.CANDIDATES: (Candidate, ("name", "email", "affiliation")),
    Collection.INTERVIEWERS: (Interviewer, ("name", "email", "department")),
    Collection.APPLICATIONS: (Application, ("candidate_id", "position_id", "status")),
    Collection.POSITIONS: (Position, ("title",)),
}


class UpstreamUnavailable(Exception):
    """A directory collection could not be read."""

    def __init__(self, collection: str, reason: str = "") -> None:
        self.collection = collection
        super().__init__(f"{collection} lookup failed: {reason}" if reason else f"{collection} lookup failed")


def _to_record(row, fields: tuple[str, ...]) -> dict:
    record = {"id": str(row.id)}
    for name in fields:
        value = getattr(row, name)
        # Foreign keys are exposed as strings, like the ids they point to
        record[name] = str(value) if name.endswith("_id") and value is not None else value
    return record


def fetch_collection(db: Session, name: str, ids=None) -> dict[str, dict]:
    """Return the named collection as ``{id: record}``.

    ``ids`` optionally restricts the lookup. Raises UpstreamUnavailable when
    the underlying store fails.
    """
    try:
        model, fields = _COLLECTIONS[Collection(name)]
    except ValueError:
        raise KeyError(f"Unknown collection: {name}") from None

    try:
        q = db.query(model)
        if ids is not None:
            q = q.filter(model.id.in_(list(ids)))
        rows = q.all()
    except SQLAlchemyError as exc:
        raise UpstreamUnavailable(str(name), str(exc)) from exc

    return {str(r.id): _to_record(r, fields) for r in rows}


def load_directory(db: Session) -> dict[str, dict[str, dict]]:
    """Load every collection, degrading a failed one to an empty mapping."""
    directory: dict[str, dict[str, dict]] = {}
    for name in Collection:
        try:
            directory[name.value] = fetch_collection(db, name)
        except UpstreamUnavailable as exc:
            logger.warning("Directory degraded: %s", exc)
            # A failed statement poisons the transaction; later reads need a clean one
            db.rollback()
            directory[name.value] = {}
    return directory
