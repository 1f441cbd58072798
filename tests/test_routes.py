"""Tests for the HTTP surface: health, manual poll trigger, poll status, live-now view."""

from datetime import timedelta
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from livestatus.api.routes.poll import get_poll_runner
from livestatus.core.constants import POLL_JOB_ID
from livestatus.db.session import get_db
from livestatus.main import app
from livestatus.services.live_status import set_poll_job_heartbeat
from tests.conftest import T0, add_account, add_open_session


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_manual_poll_run_returns_job_result(client):
    app.dependency_overrides[get_poll_runner] = lambda: (lambda: {"ok": True, "processed": 3})

    r = client.post("/poll/run")

    assert r.status_code == 200
    assert r.json() == {"ok": True, "processed": 3}


def test_manual_poll_run_database_down_is_503(client):
    def runner():
        raise OperationalError("SELECT", {}, Exception("could not connect"))

    app.dependency_overrides[get_poll_runner] = lambda: runner

    r = client.post("/poll/run")

    assert r.status_code == 503
    assert r.json()["detail"] == "Database unavailable; poll run not started."


def test_manual_poll_run_unexpected_error_is_500(client):
    def runner():
        raise RuntimeError("adapter registry broken")

    app.dependency_overrides[get_poll_runner] = lambda: runner

    r = client.post("/poll/run")

    assert r.status_code == 500
    assert r.json()["detail"] == "adapter registry broken"


def test_poll_status(client):
    set_poll_job_heartbeat(started=T0)
    set_poll_job_heartbeat(finished=T0 + timedelta(seconds=4), processed=12, outcomes={"no_change": 12})

    body = client.get("/poll/status").json()

    assert body["job_id"] == POLL_JOB_ID
    assert "twitch" in body["platforms"]
    assert body["config"]["live_recheck_base_seconds"] > 0
    hb = body["heartbeat"]
    assert hb["last_run_processed"] == 12
    assert hb["last_run_outcomes"] == {"no_change": 12}
    assert hb["last_run_duration_seconds"] == 4.0
    assert hb["is_job_running"] is False


def test_live_now_lists_open_sessions_newest_first(client, db):
    older = add_account(db, "twitch", "1", "older")
    newer = add_account(db, "kick", "2", "newer")
    closed = add_account(db, "youtube", "UC3", "closed")
    add_open_session(db, older.id, started_at=T0 - timedelta(hours=2), title="Older")
    add_open_session(db, newer.id, started_at=T0 - timedelta(minutes=10), title="Newer")
    s = add_open_session(db, closed.id, title="Done")
    s.ended_at = T0
    s.is_live = False
    db.commit()

    body = client.get("/live/now").json()

    assert [row["title"] for row in body["data"]] == ["Newer", "Older"]
    first = body["data"][0]
    assert first["platform_account"]["platform"] == "kick"
    assert first["platform_account"]["platform_username"] == "newer"
    assert first["started_at"].startswith("2026-01-01T11:50:00")


def test_live_now_limit_validated(client):
    assert client.get("/live/now", params={"limit": 0}).status_code == 422
    assert client.get("/live/now", params={"limit": 1}).status_code == 200


def test_manual_poll_run_calls_poll_job_by_default(client):
    with patch("livestatus.api.routes.poll.run_poll_job", return_value={"ok": True, "processed": 0}) as mock_run:
        r = client.post("/poll/run")

    assert r.json() == {"ok": True, "processed": 0}
    mock_run.assert_called_once_with()
