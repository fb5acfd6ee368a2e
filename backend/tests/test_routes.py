"""Tests for HTTP routes using FastAPI TestClient."""

import uuid
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from unittest.mock import patch

import pytest
from conftest import FrozenClock
from fastapi.testclient import TestClient

from internhub.audit.models import AuditLog
from internhub.interview.models import Interview, InterviewStatus

API = "/api/v1"


@pytest.fixture
def clock():
    return FrozenClock(datetime(2024, 6, 10, 9, 0, tzinfo=UTC))


@pytest.fixture
def app_client(db_session, clock):
    """TestClient on the SQLite session with lifespan, rate limits and the clock patched."""
    from internhub.database import get_db
    from internhub.dependencies import get_scheduling_service
    from internhub.interview.repository import InterviewerLocks, SqlInterviewRepository
    from internhub.interview.service import SchedulingService
    from internhub.main import create_app
    from internhub.rate_limit import limiter

    @asynccontextmanager
    async def _test_lifespan(app):
        yield

    def _fake_db():
        yield db_session

    def _service():
        return SchedulingService(SqlInterviewRepository(db_session, locks=InterviewerLocks()), now=clock)

    with patch("internhub.main.lifespan", _test_lifespan), patch("internhub.main.settings") as mock_settings:
        mock_settings.trusted_hosts_list = ["*"]
        mock_settings.cors_origins_list = ["*"]
        mock_settings.cors_allow_credentials = False
        app = create_app()
        app.dependency_overrides[get_db] = _fake_db
        app.dependency_overrides[get_scheduling_service] = _service
        limiter.enabled = False
        try:
            with TestClient(app, raise_server_exceptions=False) as client:
                yield client
        finally:
            limiter.enabled = True


@pytest.fixture
def payload(interviewer, candidate, application):
    def _payload(start_time="10:00", day="2024-06-10", **extra):
        return {
            "interviewer_id": str(interviewer.id),
            "candidate_id": str(candidate.id),
            "application_id": str(application.id),
            "date": day,
            "start_time": start_time,
            "duration_minutes": 30,
            **extra,
        }

    return _payload


class TestHealthEndpoint:
    def test_health_returns_ok(self, app_client):
        response = app_client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["db"] == "ok"
        assert "version" in data
        assert "uptime_seconds" in data

    def test_unknown_path_is_json_404(self, app_client):
        response = app_client.get("/nonexistent-page-that-does-not-exist")
        assert response.status_code == 404
        assert "error" in response.json()

    def test_security_headers(self, app_client):
        response = app_client.get("/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"


class TestCreateInterview:
    def test_creates_booking(self, app_client, db_session, payload):
        response = app_client.post(f"{API}/interviews", json=payload(), headers={"X-User-Id": "recruiter-1"})
        assert response.status_code == 201
        body = response.json()
        assert body["ok"] is True
        assert body["interview"]["status"] == "Scheduled"
        assert body["interview"]["start_time"] == "10:00"
        log = db_session.query(AuditLog).one()
        assert log.action == "interview_create"
        assert log.actor == "recruiter-1"

    def test_conflict_returns_409_with_slot(self, app_client, payload):
        app_client.post(f"{API}/interviews", json=payload("10:00"))
        response = app_client.post(f"{API}/interviews", json=payload("10:15"))
        assert response.status_code == 409
        body = response.json()
        assert body["kind"] == "ConflictError"
        assert "2024-06-10 10:00-10:30" in body["error"]
        assert body["conflicts"][0]["start_time"] == "10:00"

    def test_boundary_touch_is_accepted(self, app_client, payload):
        app_client.post(f"{API}/interviews", json=payload("10:00"))
        response = app_client.post(f"{API}/interviews", json=payload("10:30"))
        assert response.status_code == 201

    def test_validation_error_names_field(self, app_client, db_session, payload):
        response = app_client.post(f"{API}/interviews", json=payload(duration_minutes=0))
        assert response.status_code == 400
        body = response.json()
        assert body["kind"] == "ValidationError"
        assert body["field"] == "duration_minutes"
        assert db_session.query(Interview).count() == 0


class TestListInterviews:
    def test_today_scheduled_page(self, app_client, payload):
        for start in ("14:00", "08:00", "10:00"):
            app_client.post(f"{API}/interviews", json=payload(start))
        app_client.post(f"{API}/interviews", json=payload("10:00", day="2024-06-11"))

        response = app_client.get(
            f"{API}/interviews",
            params={"date_bucket": "today", "status": "Scheduled", "sort_by": "date", "page_size": 10},
        )
        assert response.status_code == 200
        page = response.json()
        # 08:00-08:30 already ended at 09:00, so it reads as Completed
        assert [i["start_time"] for i in page["items"]] == ["10:00", "14:00"]
        assert page["total"] == 2
        assert page["total_pages"] == 1
        assert page["items"][0]["candidate"]["name"] == "Ada Lovelace"
        assert page["items"][0]["position"]["title"] == "Backend Intern"

    def test_effective_status_in_listing(self, app_client, payload, clock):
        app_client.post(f"{API}/interviews", json=payload("10:00"))
        clock.now = datetime(2024, 6, 10, 10, 15, tzinfo=UTC)
        item = app_client.get(f"{API}/interviews").json()["items"][0]
        assert item["status"] == "In Progress"
        assert item["stored_status"] == "Scheduled"
        assert item["is_joinable"] is True

    def test_bad_sort_key_rejected(self, app_client):
        response = app_client.get(f"{API}/interviews", params={"sort_by": "salary"})
        assert response.status_code == 422

    def test_deleted_candidate_shows_placeholder(self, app_client, db_session, payload, candidate):
        created = app_client.post(f"{API}/interviews", json=payload()).json()["interview"]
        db_session.delete(candidate)
        db_session.commit()
        response = app_client.get(f"{API}/interviews/{created['id']}")
        assert response.status_code == 200
        assert response.json()["candidate"]["name"] == "Unknown Candidate"


class TestInterviewDetail:
    def test_unknown_id_is_404(self, app_client):
        response = app_client.get(f"{API}/interviews/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.json()["kind"] == "NotFoundError"


class TestUpdateAndStatus:
    def test_update_moves_booking(self, app_client, payload):
        created = app_client.post(f"{API}/interviews", json=payload()).json()["interview"]
        response = app_client.put(f"{API}/interviews/{created['id']}", json={"start_time": "16:00"})
        assert response.status_code == 200
        assert response.json()["interview"]["start_time"] == "16:00"
        assert response.json()["interview"]["reschedule_count"] == 1

    def test_cancel_via_status(self, app_client, db_session, payload):
        created = app_client.post(f"{API}/interviews", json=payload()).json()["interview"]
        response = app_client.post(f"{API}/interviews/{created['id']}/status", json={"status": "Cancelled"})
        assert response.status_code == 200
        assert response.json()["interview"]["status"] == "Cancelled"
        assert db_session.query(AuditLog).filter_by(action="interview_status").count() == 1

    def test_invalid_transition_is_409(self, app_client, payload):
        created = app_client.post(f"{API}/interviews", json=payload()).json()["interview"]
        app_client.post(f"{API}/interviews/{created['id']}/status", json={"status": "Cancelled"})
        response = app_client.post(f"{API}/interviews/{created['id']}/status", json={"status": "Scheduled"})
        assert response.status_code == 409
        assert response.json()["kind"] == "InvalidTransitionError"

    def test_reschedule_with_new_slot(self, app_client, payload):
        created = app_client.post(f"{API}/interviews", json=payload()).json()["interview"]
        response = app_client.post(
            f"{API}/interviews/{created['id']}/status",
            json={"status": "Rescheduled", "date": "2024-06-12", "start_time": "11:00"},
        )
        assert response.status_code == 200
        body = response.json()["interview"]
        assert body["date"] == "2024-06-12"
        assert body["status"] == "Scheduled"


class TestDeleteAndBulk:
    def test_delete(self, app_client, db_session, payload):
        created = app_client.post(f"{API}/interviews", json=payload()).json()["interview"]
        response = app_client.delete(f"{API}/interviews/{created['id']}")
        assert response.status_code == 204
        assert db_session.query(Interview).count() == 0

    def test_bulk_cancel(self, app_client, db_session, payload):
        a = app_client.post(f"{API}/interviews", json=payload("10:00")).json()["interview"]
        b = app_client.post(f"{API}/interviews", json=payload("11:00")).json()["interview"]
        response = app_client.post(f"{API}/interviews/bulk", json={"action": "cancel", "ids": [a["id"], b["id"], "nope"]})
        assert response.status_code == 200
        body = response.json()
        assert body["succeeded"] == [a["id"], b["id"]]
        assert body["failed"][0]["id"] == "nope"
        statuses = {i.status for i in db_session.query(Interview).all()}
        assert statuses == {InterviewStatus.CANCELLED}


class TestAdvisoryAndReports:
    def test_conflict_check(self, app_client, payload):
        created = app_client.post(f"{API}/interviews", json=payload("10:00")).json()["interview"]
        response = app_client.post(f"{API}/interviews/conflicts", json=payload("10:15"))
        assert response.status_code == 200
        body = response.json()
        assert body["conflict"] is True
        assert body["conflicts"][0]["id"] == created["id"]

        clear = app_client.post(f"{API}/interviews/conflicts", params={"exclude_id": created["id"]}, json=payload("10:15"))
        assert clear.json()["conflict"] is False

    def test_upcoming(self, app_client, payload):
        app_client.post(f"{API}/interviews", json=payload("10:00"))
        app_client.post(f"{API}/interviews", json=payload("10:00", day="2024-07-01"))
        response = app_client.get(f"{API}/interviews-upcoming", params={"hours": 24})
        assert response.status_code == 200
        assert len(response.json()["interviews"]) == 1

    def test_reminders(self, app_client, payload, clock):
        app_client.post(f"{API}/interviews", json=payload("10:00", reminder_offsets=[30]))
        response = app_client.get(f"{API}/interviews-reminders", params={"lookahead": 60})
        reminders = response.json()["reminders"]
        assert len(reminders) == 1
        assert reminders[0]["offset_minutes"] == 30
        assert reminders[0]["remind_at"].startswith("2024-06-10T09:30")

    def test_stats(self, app_client, payload):
        app_client.post(f"{API}/interviews", json=payload("10:00"))
        response = app_client.get(f"{API}/interviews-stats")
        assert response.status_code == 200
        assert response.json()["total"] == 1
        assert response.json()["upcoming"] == 1
