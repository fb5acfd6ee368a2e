"""Interview record store with Protocol pattern for dependency injection.

Provides SqlInterviewRepository (SQLAlchemy session) and the per-interviewer
write lock that makes conflict-check-then-write atomic.
"""

import logging
import threading
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from datetime import datetime
from typing import Protocol
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.orm import Session

from .models import Interview, InterviewStatus

logger = logging.getLogger(__name__)


class InterviewRepository(Protocol):
    """Interview store interface, keyed by interview id."""

    def get(self, interview_id: UUID) -> Interview | None: ...
    def add(self, interview: Interview) -> None: ...
    def delete(self, interview: Interview) -> None: ...
    def for_interviewer(self, interviewer_id: UUID) -> list[Interview]: ...
    def list_all(self) -> list[Interview]: ...
    def starting_between(self, start: datetime, end: datetime) -> list[Interview]: ...
    def lock_interviewer(self, interviewer_id: UUID) -> AbstractContextManager[None]: ...
    def commit(self) -> None: ...
    def rollback(self) -> None: ...


class InterviewerLocks:
    """Fixed pool of in-process locks, picked by hashing the interviewer id.

    Two interviewers may share a lock; that only serializes their writers.
    """

    def __init__(self, size: int = 64) -> None:
        self._locks = tuple(threading.Lock() for _ in range(size))

    def __len__(self) -> int:
        return len(self._locks)

    def get(self, interviewer_id: UUID) -> threading.Lock:
        return self._locks[interviewer_id.int % len(self._locks)]


_interviewer_locks = InterviewerLocks()


def _advisory_key(interviewer_id: UUID) -> int:
    # pg_advisory_xact_lock takes a signed bigint
    return (interviewer_id.int & 0xFFFF_FFFF_FFFF_FFFF) - (1 << 63)


class SqlInterviewRepository:
    """SQLAlchemy-backed interview store bound to one session."""

    def __init__(self, db: Session, locks: InterviewerLocks | None = None) -> None:
        self.db = db
        self._locks = locks if locks is not None else _interviewer_locks

    def get(self, interview_id: UUID) -> Interview | None:
        return self.db.query(Interview).filter(Interview.id == interview_id).first()

    def add(self, interview: Interview) -> None:
        self.db.add(interview)
        self.db.flush()

    def delete(self, interview: Interview) -> None:
        self.db.delete(interview)
        self.db.flush()

    def for_interviewer(self, interviewer_id: UUID) -> list[Interview]:
        return (
            self.db.query(Interview)
            .filter(Interview.interviewer_id == interviewer_id)
            .order_by(Interview.starts_at.asc())
            .all()
        )

    def list_all(self) -> list[Interview]:
        return self.db.query(Interview).order_by(Interview.starts_at.asc()).all()

    def starting_between(self, start: datetime, end: datetime) -> list[Interview]:
        return (
            self.db.query(Interview)
            .filter(
                Interview.status == InterviewStatus.SCHEDULED,
                Interview.starts_at >= start,
                Interview.starts_at <= end,
            )
            .order_by(Interview.starts_at.asc())
            .all()
        )

    @contextmanager
    def lock_interviewer(self, interviewer_id: UUID) -> Iterator[None]:
        """Serialize writers for one interviewer until the block exits.

        Inside a process a plain lock is enough; on PostgreSQL a transaction
        scoped advisory lock also serializes writers in other workers and is
        released by the commit or rollback that ends the block.
        """
        with self._locks.get(interviewer_id):
            if self.db.get_bind().dialect.name == "postgresql":
                self.db.execute(text("SELECT pg_advisory_xact_lock(:k)"), {"k": _advisory_key(interviewer_id)})
            logger.debug("Acquired booking lock for interviewer %s", interviewer_id)
            yield

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
