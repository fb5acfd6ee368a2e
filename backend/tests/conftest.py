"""Shared test fixtures."""

import uuid
from contextlib import contextmanager
from datetime import UTC, date, datetime, time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from internhub.audit.models import AuditLog
from internhub.database.base import Base
from internhub.directory.models import Application, Candidate, Interviewer, Position
from internhub.interview.models import Interview, InterviewStatus, InterviewType
from internhub.interview.repository import InterviewerLocks, SqlInterviewRepository
from internhub.interview.service import SchedulingService
from internhub.interview.window import TimeWindow

# Models must be imported so Base.metadata.create_all() sees all tables.
_ALL_MODELS = [AuditLog, Application, Candidate, Interviewer, Position, Interview]


class FrozenClock:
    """Callable clock the tests can move by hand."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class InMemoryInterviewRepository:
    """Dict-backed store for service tests that do not need a database."""

    def __init__(self, locks: InterviewerLocks | None = None) -> None:
        self.rows: dict[uuid.UUID, Interview] = {}
        self.locks = locks or InterviewerLocks()
        self.commits = 0
        self.rollbacks = 0

    def get(self, interview_id):
        return self.rows.get(interview_id)

    def add(self, interview):
        if interview.id is None:
            interview.id = uuid.uuid4()
        self.rows[interview.id] = interview

    def delete(self, interview):
        self.rows.pop(interview.id, None)

    def for_interviewer(self, interviewer_id):
        return sorted(
            (i for i in self.rows.values() if i.interviewer_id == interviewer_id),
            key=lambda i: i.starts_at,
        )

    def list_all(self):
        return sorted(self.rows.values(), key=lambda i: i.starts_at)

    def starting_between(self, start, end):
        return [
            i for i in self.list_all()
            if i.status == InterviewStatus.SCHEDULED and start <= i.starts_at <= end
        ]

    @contextmanager
    def lock_interviewer(self, interviewer_id):
        with self.locks.get(interviewer_id):
            yield

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1


@pytest.fixture
def db_session():
    """Create an in-memory SQLite database for testing.

    Note: SQLite stores DateTime columns without an offset, so tests compare
    windows rebuilt from the local date/time columns rather than starts_at.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestSession = sessionmaker(bind=engine)
    session = TestSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FrozenClock(datetime(2024, 6, 1, 9, 0, tzinfo=UTC))


@pytest.fixture
def service(db_session, clock):
    """Scheduling service over the SQLite session with a private lock registry."""
    return SchedulingService(SqlInterviewRepository(db_session, locks=InterviewerLocks()), now=clock)


@pytest.fixture
def memory_repo():
    return InMemoryInterviewRepository()


@pytest.fixture
def interviewer(db_session):
    person = Interviewer(id=uuid.uuid4(), name="Maria Rossi", email="maria@example.com", department="Engineering")
    db_session.add(person)
    db_session.commit()
    return person


@pytest.fixture
def other_interviewer(db_session):
    person = Interviewer(id=uuid.uuid4(), name="Luca Bianchi", email="luca@example.com", department="People")
    db_session.add(person)
    db_session.commit()
    return person


@pytest.fixture
def candidate(db_session):
    person = Candidate(id=uuid.uuid4(), name="Ada Lovelace", email="ada@example.com", affiliation="Politecnico")
    db_session.add(person)
    db_session.commit()
    return person


@pytest.fixture
def position(db_session):
    row = Position(id=uuid.uuid4(), title="Backend Intern")
    db_session.add(row)
    db_session.commit()
    return row


@pytest.fixture
def application(db_session, candidate, position):
    row = Application(id=uuid.uuid4(), candidate_id=candidate.id, position_id=position.id, status="Interviewing")
    db_session.add(row)
    db_session.commit()
    return row


@pytest.fixture
def book(service, interviewer, candidate):
    """Factory that books through the service with sensible defaults."""

    def _book(start_time="10:00", day="2024-06-10", duration=30, **extra):
        data = {
            "interviewer_id": str(extra.pop("interviewer_id", interviewer.id)),
            "candidate_id": str(extra.pop("candidate_id", candidate.id)),
            "date": day,
            "start_time": start_time,
            "duration_minutes": duration,
            **extra,
        }
        return service.create(data)

    return _book


def make_interview(
    interviewer_id=None,
    candidate_id=None,
    day=date(2024, 6, 10),
    start=time(10, 0),
    duration=30,
    timezone="UTC",
    status=InterviewStatus.SCHEDULED,
    **extra,
) -> Interview:
    """Unsaved Interview with its UTC window filled in."""
    window = TimeWindow.from_local(day, start, duration, timezone)
    return Interview(
        id=extra.pop("id", uuid.uuid4()),
        interviewer_id=interviewer_id or uuid.uuid4(),
        candidate_id=candidate_id or uuid.uuid4(),
        interview_type=extra.pop("interview_type", InterviewType.TECHNICAL),
        date=day,
        start_time=start,
        duration_minutes=duration,
        timezone=timezone,
        starts_at=window.start,
        ends_at=window.end,
        status=status,
        reminders_enabled=extra.pop("reminders_enabled", True),
        reminder_offsets=extra.pop("reminder_offsets", [15]),
        reschedule_count=extra.pop("reschedule_count", 0),
        **extra,
    )


@pytest.fixture
def interview_factory():
    return make_interview
