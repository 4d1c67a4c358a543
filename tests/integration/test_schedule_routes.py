from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.routes.schedule import get_clock, get_session_source
from app.services.schedule.clock import FixedClock
from tests.fakes import FakeSessionSource

client = TestClient(app)


def _instant(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@pytest.fixture
def fake_source(june_rows, apply_auth_override):
    source = FakeSessionSource(june_rows)
    apply_auth_override(app)
    app.dependency_overrides[get_session_source] = lambda: source
    app.dependency_overrides[get_clock] = lambda: FixedClock(
        datetime(2024, 6, 10, 14, 37, tzinfo=UTC)
    )
    yield source
    app.dependency_overrides.clear()


def test_month_grid(fake_source):
    response = client.get("/schedule/grid", params={"reference_date": "2024-06-15"})

    assert response.status_code == 200
    data = response.json()
    assert data["window"]["label"] == "June 2024"
    assert data["window"]["mode"] == "month"
    assert _instant(data["window"]["range_start"]) == datetime(2024, 6, 1, tzinfo=UTC)
    assert len(data["cells"]) == 42
    assert data["hour_rows"] == []
    assert data["total_sessions"] == 4

    cells = {c["day"]: c for c in data["cells"]}
    assert [s["id"] for s in cells["2024-06-10"]["sessions"]] == ["s1", "s2"]
    assert cells["2024-06-10"]["is_today"] is True
    assert cells["2024-06-10"]["sessions"][0]["participant_name"] == "Anna Petrova"
    assert cells["2024-05-27"]["in_current_period"] is False


def test_week_grid(fake_source):
    response = client.get(
        "/schedule/grid", params={"reference_date": "2024-06-16", "mode": "week"}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["window"]["label"] == "10 - 16 June 2024"
    assert [c["day"] for c in data["cells"]][0] == "2024-06-10"
    assert data["hour_rows"] == list(range(8, 21))
    assert [s["id"] for s in data["cells"][0]["hours"]["9"]] == ["s1"]
    assert data["start_time_options"][0] == "08:00"


def test_grid_fetch_failure_returns_502(fake_source):
    fake_source.fail_fetch = True

    response = client.get("/schedule/grid", params={"reference_date": "2024-06-15"})

    assert response.status_code == 502
    assert response.json()["detail"] == "Could not load the schedule"


def test_grid_skips_unreadable_rows(fake_source, june_rows):
    bad_title = dict(june_rows[0], id="s9", title=404)
    fake_source.fetch_sessions = AsyncMock(return_value=[june_rows[0], None, bad_title])

    response = client.get("/schedule/grid", params={"reference_date": "2024-06-15"})

    assert response.status_code == 200
    data = response.json()
    assert data["total_sessions"] == 2
    cells = {c["day"]: c for c in data["cells"]}
    assert [s["title"] for s in cells["2024-06-10"]["sessions"]] == ["Workout", "404"]


def test_grid_rejects_unknown_mode(fake_source):
    response = client.get("/schedule/grid", params={"mode": "year"})

    assert response.status_code == 422


def test_list_sessions(fake_source):
    response = client.get(
        "/schedule/sessions",
        params={"start": "2024-06-10T00:00:00Z", "end": "2024-06-11T00:00:00Z"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["total_count"] == 2
    assert [s["id"] for s in data["sessions"]] == ["s1", "s2"]


@pytest.mark.parametrize(
    "start, end",
    [
        ("2024-06-11T00:00:00Z", "2024-06-10T00:00:00Z"),
        ("2024-01-01T00:00:00Z", "2024-06-01T00:00:00Z"),
    ],
)
def test_list_sessions_rejects_bad_range(fake_source, start, end):
    response = client.get("/schedule/sessions", params={"start": start, "end": end})

    assert response.status_code == 400


def test_propose_slot(fake_source):
    response = client.post(
        "/schedule/slots/propose", json={"candidate": "2024-06-10T22:00:00+00:00"}
    )

    assert response.status_code == 200
    data = response.json()
    assert _instant(data["proposed"]) == datetime(2024, 6, 11, 8, 0, tzinfo=UTC)
    assert data["working_hours"] == {"start_hour": 8, "end_hour": 21}


def test_draft_for_cell_starts_at_opening_hour(fake_source):
    response = client.get(
        "/schedule/drafts", params={"day": "2024-06-12", "participant_id": "client-1"}
    )

    assert response.status_code == 200
    data = response.json()
    assert _instant(data["start_time"]) == datetime(2024, 6, 12, 8, 0, tzinfo=UTC)
    assert _instant(data["end_time"]) == datetime(2024, 6, 12, 9, 0, tzinfo=UTC)
    assert data["title"] == "Personal training"
    assert data["participant_id"] == "client-1"
    assert data["is_new"] is True


def test_draft_without_day_uses_clock(fake_source):
    response = client.get("/schedule/drafts")

    assert response.status_code == 200
    assert _instant(response.json()["start_time"]) == datetime(2024, 6, 10, 14, 0, tzinfo=UTC)


def test_draft_for_hour_row_before_opening(fake_source):
    response = client.get("/schedule/drafts", params={"day": "2024-06-12", "hour": 6})

    assert response.status_code == 200
    assert _instant(response.json()["start_time"]) == datetime(2024, 6, 12, 8, 0, tzinfo=UTC)


def test_draft_for_existing_session(fake_source):
    response = client.get(
        "/schedule/sessions/s4/draft", params={"reference_date": "2024-06-15"}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["session_id"] == "s4"
    assert data["is_new"] is False
    assert data["duration_minutes"] == 60


def test_draft_for_unknown_session(fake_source):
    response = client.get(
        "/schedule/sessions/missing/draft", params={"reference_date": "2024-06-15"}
    )

    assert response.status_code == 404


def test_create_session(fake_source):
    response = client.post(
        "/schedule/sessions",
        json={
            "participant_id": "client-3",
            "title": "Mobility",
            "start_time": "2024-06-20T10:00:00+00:00",
            "duration_minutes": 45,
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["message"] == "Session scheduled"
    assert data["session_id"] == "new-1"
    assert data["grid"]["total_sessions"] == 5

    cells = {c["day"]: c for c in data["grid"]["cells"]}
    created = cells["2024-06-20"]["sessions"][0]
    assert created["title"] == "Mobility"
    assert created["duration_minutes"] == 45


def test_create_session_outside_working_hours(fake_source):
    response = client.post(
        "/schedule/sessions",
        json={"participant_id": "client-3", "start_time": "2024-06-20T22:00:00+00:00"},
    )

    assert response.status_code == 422
    assert fake_source.saved == []


def test_create_session_store_failure(fake_source):
    fake_source.fail_mutation = True

    response = client.post(
        "/schedule/sessions",
        json={"participant_id": "client-3", "start_time": "2024-06-20T10:00:00+00:00"},
    )

    assert response.status_code == 502
    assert response.json()["detail"] == "Could not save the session"


def test_update_session(fake_source):
    response = client.put(
        "/schedule/sessions/s1",
        json={
            "participant_id": "client-1",
            "title": "Moved",
            "start_time": "2024-06-10T11:00:00+00:00",
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Session updated"
    assert data["session_id"] == "s1"
    assert fake_source.saved[-1].session_id == "s1"


def test_delete_session(fake_source):
    response = client.delete(
        "/schedule/sessions/s4", params={"reference_date": "2024-06-15"}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Session deleted"
    assert data["grid"]["total_sessions"] == 3
    assert fake_source.deleted == ["s4"]


def test_delete_unknown_session(fake_source):
    response = client.delete("/schedule/sessions/missing")

    assert response.status_code == 502
    assert response.json()["detail"] == "Could not delete the session"


def test_schedule_requires_authentication():
    response = client.get("/schedule/grid")

    assert response.status_code in (401, 403)
