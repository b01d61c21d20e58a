from datetime import date, datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from ptbooking.config import config
from ptbooking.dependencies import get_notifier, get_reservation_gateway, get_settings_store
from ptbooking.main import app
from ptbooking.services.availability import SettingsStore
from ptbooking.services.calendar_day import KST, now_kst

from tests.helpers import settings_document

PASSWORD = "letmein"


@pytest.fixture
def client(store, gateway, notifier, monkeypatch):
    monkeypatch.setattr(config, "admin_password", PASSWORD)
    monkeypatch.setattr(config, "session_secret", "test-secret")

    app.dependency_overrides[get_settings_store] = lambda: store
    app.dependency_overrides[get_reservation_gateway] = lambda: gateway
    app.dependency_overrides[get_notifier] = lambda: notifier
    yield TestClient(app)
    app.dependency_overrides.clear()


def login(client):
    resp = client.post("/api/auth/verify-admin", json={"password": PASSWORD})
    assert resp.status_code == 200
    return resp


def booking(day="2024-05-08", hour=15, **extra):
    body = {
        "dateTime": f"{day}T{hour:02d}:00:00+09:00",
        "memberName": "Kim Minji",
        "memberId": "010-1234-5678",
    }
    body.update(extra)
    return body


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


# ──────────────────────────────────────────────────────────────────────────────
# Admin auth
# ──────────────────────────────────────────────────────────────────────────────

def test_wrong_password(client):
    resp = client.post("/api/auth/verify-admin", json={"password": "nope"})
    assert resp.status_code == 401
    assert resp.json() == {"isValid": False}


def test_login_sets_cookie(client):
    assert client.get("/api/auth/check-auth").status_code == 401

    resp = login(client)
    assert resp.json() == {"isValid": True}
    assert "adminToken" in resp.cookies

    check = client.get("/api/auth/check-auth")
    assert check.status_code == 200
    assert check.json() == {"isAuthenticated": True}


# ──────────────────────────────────────────────────────────────────────────────
# Settings
# ──────────────────────────────────────────────────────────────────────────────

def test_get_settings(client):
    resp = client.get("/api/settings")

    assert resp.status_code == 200
    doc = resp.json()
    assert doc["availableHours"]["weekday"] == {"start": 14, "end": 22}
    assert doc["availableHours"]["sameDay"] == {"enabled": True, "minHoursAfter": 2}
    assert doc["reservationPeriod"]["startDate"] == "2024-05-01"
    assert doc["disabledDates"] == []


def test_save_settings_requires_admin(client, store):
    resp = client.post("/api/settings", json=settings_document(holidays=["2024-05-15"]))

    assert resp.status_code == 401
    assert store.load().holidays == []


def test_save_settings(client, store):
    login(client)

    resp = client.post("/api/settings", json=settings_document(holidays=["2024-05-15"]))

    assert resp.status_code == 200
    assert resp.json() == {"message": "Settings saved."}
    assert store.load().holidays == [date(2024, 5, 15)]


def test_save_settings_while_locked(client, store):
    login(client)

    with store.lock():
        resp = client.post("/api/settings", json=settings_document(holidays=["2024-05-15"]))

    assert resp.status_code == 423
    assert store.load().holidays == []


def test_save_invalid_settings(client, store):
    login(client)
    doc = settings_document()
    doc["availableHours"]["weekday"] = {"start": 22, "end": 14}

    resp = client.post("/api/settings", json=doc)

    assert resp.status_code == 500
    assert "weekday" in resp.json()["detail"]
    assert store.load().hours_for("weekday").start == 14


# ──────────────────────────────────────────────────────────────────────────────
# Reservations
# ──────────────────────────────────────────────────────────────────────────────

def test_create_reservation(client, calendar, sheet):
    resp = client.post("/api/reservations", json=booking())

    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "Reservation confirmed."
    assert body["reservation"]["date"] == "2024-05-08"
    assert body["reservation"]["time"] == "15:00"
    assert body["reservation"]["memberId"] == "01012345678"
    assert body["reservation"]["eventId"] in calendar.events
    assert len(sheet.rows) == 1


def test_create_reservation_conflict(client, calendar):
    calendar.add_timed(datetime(2024, 5, 8, 15, tzinfo=KST))

    resp = client.post("/api/reservations", json=booking())

    assert resp.status_code == 409
    assert "already booked" in resp.json()["detail"]


def test_create_reservation_not_offered(client):
    resp = client.post("/api/reservations", json=booking(hour=9))
    assert resp.status_code == 400


def test_create_reservation_malformed_body(client):
    resp = client.post("/api/reservations", json={"dateTime": "2024-05-08T15:00:00+09:00"})
    assert resp.status_code == 400

    resp = client.post("/api/reservations", json=booking(memberId="abc"))
    assert resp.status_code == 400


def test_create_reservation_sheet_failure(client, sheet):
    sheet.fail_append = True

    resp = client.post("/api/reservations", json=booking())

    assert resp.status_code == 502


def test_booked_times_for_day(client):
    client.post("/api/reservations", json=booking(hour=15))
    client.post("/api/reservations", json=booking(hour=18))

    resp = client.get("/api/reservations", params={"date": "2024-05-08"})

    assert resp.status_code == 200
    assert resp.json() == {"bookedTimes": [15, 18]}


def test_reservations_by_member(client):
    created = client.post("/api/reservations", json=booking()).json()["reservation"]

    resp = client.get("/api/reservations", params={"memberId": "01012345678"})

    assert resp.status_code == 200
    assert resp.json() == [
        ["2024-05-08", "15:00", "01012345678", "Kim Minji", created["eventId"], None],
    ]


def test_reservations_query_required(client):
    assert client.get("/api/reservations").status_code == 400


def test_reschedule_reservation(client, sheet):
    created = client.post("/api/reservations", json=booking()).json()["reservation"]

    resp = client.put(
        "/api/reservations",
        json=booking(day="2024-05-09", hour=19, eventId=created["eventId"]),
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Reservation changed."
    assert body["reservation"]["changeHistory"] == "2024-05-08 15:00 → 2024-05-09 19:00"
    assert sheet.rows[0].time == "19:00"


def test_reschedule_unknown_reservation(client):
    resp = client.put("/api/reservations", json=booking(eventId="missing"))
    assert resp.status_code == 404


def test_delete_not_allowed(client):
    assert client.delete("/api/reservations").status_code == 405


# ──────────────────────────────────────────────────────────────────────────────
# Availability (evaluated against the real clock)
# ──────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def live_store(tmp_path):
    today = now_kst().date()
    hours = {"start": 10, "end": 17}
    store = SettingsStore(tmp_path / "live")
    store.save(settings_document(
        disabledDates=[(today + timedelta(days=2)).isoformat()],
        availableHours={
            "weekday": hours,
            "weekend": hours,
            "holiday": hours,
            "notice": "10-17 every day",
            "sameDay": {"enabled": True, "minHoursAfter": 2},
        },
        reservationPeriod={
            "startDate": today.isoformat(),
            "endDate": (today + timedelta(days=30)).isoformat(),
        },
    ))
    return store


def test_availability_for_open_day(client, live_store, calendar):
    app.dependency_overrides[get_settings_store] = lambda: live_store
    day = now_kst().date() + timedelta(days=1)
    calendar.add_timed(datetime(day.year, day.month, day.day, 12, tzinfo=KST))

    resp = client.get("/api/availability", params={"date": day.isoformat()})

    assert resp.status_code == 200
    body = resp.json()
    assert body["date"] == day.isoformat()
    assert body["selectable"] is True
    assert body["dayKind"] in ("weekday", "weekend")
    assert body["notice"] == "10-17 every day"
    assert [s["hour"] for s in body["slots"]] == list(range(10, 18))
    assert [s["time"] for s in body["slots"] if s["isBooked"]] == ["12:00"]


def test_availability_for_disabled_day(client, live_store, calendar):
    app.dependency_overrides[get_settings_store] = lambda: live_store
    day = now_kst().date() + timedelta(days=2)

    resp = client.get("/api/availability", params={"date": day.isoformat()})

    assert resp.status_code == 200
    assert resp.json()["selectable"] is False
    assert resp.json()["slots"] == []
    assert calendar.list_calls == 0


def test_availability_requires_valid_date(client):
    assert client.get("/api/availability", params={"date": "soon"}).status_code == 400
