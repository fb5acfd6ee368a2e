"""Tests for the interview store and the booking lock pool."""

import uuid
from datetime import UTC, datetime

from internhub.interview.models import InterviewStatus
from internhub.interview.repository import InterviewerLocks, SqlInterviewRepository


class TestInterviewerLocks:
    def test_same_interviewer_same_lock(self):
        locks = InterviewerLocks()
        interviewer_id = uuid.uuid4()
        assert locks.get(interviewer_id) is locks.get(uuid.UUID(str(interviewer_id)))

    def test_pool_does_not_grow(self):
        locks = InterviewerLocks(size=8)
        seen = {id(locks.get(uuid.uuid4())) for _ in range(500)}
        assert len(locks) == 8
        assert len(seen) <= 8


class TestSqlInterviewRepository:
    def test_lock_interviewer_holds_pool_lock(self, db_session):
        locks = InterviewerLocks(size=4)
        repo = SqlInterviewRepository(db_session, locks=locks)
        interviewer_id = uuid.uuid4()
        with repo.lock_interviewer(interviewer_id):
            assert locks.get(interviewer_id).locked()
        assert not locks.get(interviewer_id).locked()

    def test_starting_between_skips_cancelled(self, db_session, service, book):
        kept = book("10:00")
        dropped = book("11:00")
        service.cancel(dropped.id)
        repo = SqlInterviewRepository(db_session, locks=InterviewerLocks())
        rows = repo.starting_between(
            datetime(2024, 6, 10, 0, 0, tzinfo=UTC), datetime(2024, 6, 11, 0, 0, tzinfo=UTC)
        )
        assert [r.id for r in rows] == [kept.id]
        assert all(r.status == InterviewStatus.SCHEDULED for r in rows)
