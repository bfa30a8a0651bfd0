"""API tests for creating, editing, moving and querying calendar events."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from eventgrid.main import app, event_repo, timeline_repo


@pytest.fixture(autouse=True)
def _clear_repos():
    """Reset in-memory repos before each test."""
    event_repo.clear()
    timeline_repo.clear()
    yield
    event_repo.clear()
    timeline_repo.clear()


@pytest.fixture()
def client():
    return TestClient(app)


def _create(client: TestClient, **fields) -> dict:
    payload = {"title": "Meeting", "date": "2024-01-01T09:00", "end_time": "10:00"}
    payload.update(fields)
    resp = client.post("/events", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


def test_create_event_without_conflicts(client: TestClient):
    body = _create(client, title="  Planning  ")

    event = body["event"]
    assert event["title"] == "Planning"
    assert event["end_time"] == "10:00"
    assert event["recurrence"] is None
    assert event["id"]
    assert body["conflicts"] == {
        "conflicts": [],
        "has_recurring_conflicts": False,
        "conflict_count": 0,
    }


def test_create_conflicting_event_is_stored_with_warning(client: TestClient):
    existing = _create(client)["event"]

    body = _create(client, title="Overlap", date="2024-01-01T09:15", end_time="09:45")

    report = body["conflicts"]
    assert report["conflict_count"] == 1
    assert report["conflicts"][0]["id"] == existing["id"]
    assert report["conflicts"][0]["conflict_type"] == "contained"
    assert len(client.get("/events").json()) == 2

    timeline = client.get(f"/events/{body['event']['id']}/timeline").json()
    assert [e["type"] for e in timeline] == ["created", "conflict_detected"]


def test_create_reports_recurring_conflict(client: TestClient):
    _create(client, title="Weekly sync", recurrence={"type": "weekly"})

    body = _create(
        client, title="Later Monday", date="2024-01-29T09:30", end_time="10:30"
    )

    assert body["conflicts"]["conflicts"] == []
    assert body["conflicts"]["has_recurring_conflicts"] is True
    assert body["conflicts"]["conflict_count"] == 1


@pytest.mark.parametrize(
    "fields",
    [
        {"title": "   "},
        {"end_time": "09:00"},
        {"end_time": "08:30"},
        {"recurrence": {"type": "custom", "interval": 0, "unit": "days"}},
        {"recurrence": {"type": "yearly"}},
    ],
)
def test_create_rejects_invalid_form(client: TestClient, fields):
    payload = {"title": "Meeting", "date": "2024-01-01T09:00", "end_time": "10:00"}
    payload.update(fields)

    resp = client.post("/events", json=payload)

    assert resp.status_code == 422
    assert client.get("/events").json() == []


def test_create_rejects_utc_offset_beside_local_events(client: TestClient):
    _create(client)

    resp = client.post(
        "/events",
        json={"title": "Call", "date": "2024-01-01T09:30+02:00", "end_time": "10:30"},
    )

    assert resp.status_code == 422
    assert len(client.get("/events").json()) == 1


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------


def test_get_unknown_event_is_404(client: TestClient):
    assert client.get("/events/nope").status_code == 404
    assert client.get("/events/nope/timeline").status_code == 404


def test_events_on_day_includes_recurring(client: TestClient):
    daily = _create(client, title="Standup", recurrence={"type": "daily"})["event"]
    one_off = _create(client, title="Lunch", date="2024-01-03T12:00", end_time="13:00")[
        "event"
    ]
    _create(client, title="Other day", date="2024-01-04T12:00")

    resp = client.get("/days/2024-01-03/events")

    assert resp.status_code == 200
    assert [e["id"] for e in resp.json()] == [daily["id"], one_off["id"]]


def test_month_view(client: TestClient):
    _create(
        client,
        title="Every three days",
        recurrence={"type": "custom", "interval": 3, "unit": "days"},
    )

    resp = client.get("/calendar/2024/1")

    assert resp.status_code == 200
    cells = resp.json()
    assert cells[0]["day"] == "2023-12-31"
    assert cells[0]["in_month"] is False
    busy = [c["day"] for c in cells if c["events"]]
    assert busy[:3] == ["2024-01-01", "2024-01-04", "2024-01-07"]


def test_month_view_rejects_bad_month(client: TestClient):
    assert client.get("/calendar/2024/13").status_code == 422


@pytest.mark.parametrize("year", [0, -1, 10000])
def test_month_view_rejects_out_of_range_year(client: TestClient, year):
    assert client.get(f"/calendar/{year}/1").status_code == 422


def test_month_view_at_ends_of_date_range(client: TestClient):
    first = client.get("/calendar/1/1")
    last = client.get("/calendar/9999/12")

    assert first.status_code == 200
    assert first.json()[0]["day"] == "0001-01-01"
    assert last.status_code == 200
    assert last.json()[-1]["day"] == "9999-12-31"


# ---------------------------------------------------------------------------
# Update / move / delete
# ---------------------------------------------------------------------------


def test_update_does_not_conflict_with_itself(client: TestClient):
    event = _create(client)["event"]

    resp = client.patch(f"/events/{event['id']}", json={"end_time": "10:30"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["event"]["end_time"] == "10:30"
    assert body["event"]["id"] == event["id"]
    assert body["conflicts"]["conflict_count"] == 0


def test_update_can_remove_recurrence(client: TestClient):
    event = _create(client, recurrence={"type": "weekly"})["event"]

    resp = client.patch(f"/events/{event['id']}", json={"recurrence": None})

    assert resp.status_code == 200
    assert resp.json()["event"]["recurrence"] is None
    assert client.get("/days/2024-01-08/events").json() == []


def test_update_is_revalidated_against_stored_fields(client: TestClient):
    event = _create(client)["event"]

    resp = client.patch(f"/events/{event['id']}", json={"date": "2024-01-01T11:00"})

    assert resp.status_code == 422
    assert client.get(f"/events/{event['id']}").json()["date"] == "2024-01-01T09:00:00"


def test_update_rejects_date_with_utc_offset(client: TestClient):
    event = _create(client)["event"]

    resp = client.patch(
        f"/events/{event['id']}", json={"date": "2024-01-02T09:00+02:00"}
    )

    assert resp.status_code == 422
    assert client.get(f"/events/{event['id']}").json()["date"] == "2024-01-01T09:00:00"


def test_update_unknown_event_is_404(client: TestClient):
    assert client.patch("/events/nope", json={"title": "x"}).status_code == 404


def test_move_keeps_time_of_day_and_reports_conflicts(client: TestClient):
    blocker = _create(
        client, title="Blocker", date="2024-01-05T09:30", end_time="11:00"
    )["event"]
    event = _create(client)["event"]

    resp = client.post(f"/events/{event['id']}/move", json={"day": "2024-01-05"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["event"]["date"] == "2024-01-05T09:00:00"
    assert body["event"]["end_time"] == "10:00"
    assert [c["id"] for c in body["conflicts"]["conflicts"]] == [blocker["id"]]
    assert body["conflicts"]["conflicts"][0]["conflict_type"] == "overlaps_start"

    timeline = client.get(f"/events/{event['id']}/timeline").json()
    assert [e["type"] for e in timeline] == ["created", "updated", "conflict_detected"]
    assert timeline[1]["payload"] == {"changed_fields": ["date"]}


def test_delete_event(client: TestClient):
    event = _create(client)["event"]

    resp = client.delete(f"/events/{event['id']}")

    assert resp.status_code == 200
    assert client.get(f"/events/{event['id']}").status_code == 404
    timeline = client.get(f"/events/{event['id']}/timeline").json()
    assert [e["type"] for e in timeline] == ["created", "deleted"]
    assert client.delete(f"/events/{event['id']}").status_code == 404


# ---------------------------------------------------------------------------
# Dry-run conflict check
# ---------------------------------------------------------------------------


def test_conflict_check_with_exclusion(client: TestClient):
    event = _create(client)["event"]
    candidate = {"title": "Meeting", "date": "2024-01-01T09:30", "end_time": "10:30"}

    resp = client.post("/conflicts/check", json={"candidate": candidate})
    assert resp.json()["conflicts"][0]["conflict_type"] == "overlaps_end"

    resp = client.post(
        "/conflicts/check",
        json={"candidate": candidate, "exclude_event_id": event["id"]},
    )
    assert resp.json()["conflict_count"] == 0


def test_conflict_check_rejects_candidate_with_utc_offset(client: TestClient):
    _create(client)
    candidate = {
        "title": "Call",
        "date": "2024-01-01T09:30+02:00",
        "end_time": "10:30",
    }

    resp = client.post("/conflicts/check", json={"candidate": candidate})

    assert resp.status_code == 422
