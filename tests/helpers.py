"""Shared fakes and fixtures data for tests."""

import itertools
from datetime import datetime, timedelta

from ptbooking.exceptions import ExternalServiceError
from ptbooking.services.calendar_day import KST
from ptbooking.services.google_sheets import AuditRow
from ptbooking.services.reservations import event_end, event_start

# Monday
NOW = datetime(2024, 5, 6, 10, 0, tzinfo=KST)


def settings_document(**overrides) -> dict:
    doc = {
        "disabledDates": [],
        "holidays": [],
        "availableHours": {
            "weekday": {"start": 14, "end": 22},
            "weekend": {"start": 10, "end": 17},
            "holiday": {"start": 10, "end": 17},
            "notice": "Weekdays 14-22, weekends 10-17",
            "sameDay": {"enabled": True, "minHoursAfter": 2},
        },
        "reservationPeriod": {"startDate": "2024-05-01", "endDate": "2024-05-31"},
    }
    doc.update(overrides)
    return doc


class FakeCalendar:
    """In-memory stand-in for GoogleCalendar."""

    def __init__(self):
        self.events: dict[str, dict] = {}
        self._ids = itertools.count(1)
        self.list_calls = 0

    def add(self, body: dict) -> dict:
        event = {"id": f"evt{next(self._ids)}", **body}
        self.events[event["id"]] = event
        return event

    def add_timed(self, start: datetime, minutes: int = 50, summary: str = "Busy") -> dict:
        return self.add({
            "summary": summary,
            "start": {"dateTime": start.isoformat()},
            "end": {"dateTime": (start + timedelta(minutes=minutes)).isoformat()},
        })

    def list_events(self, time_min, time_max=None):
        self.list_calls += 1
        found = []
        for event in self.events.values():
            start, end = event_start(event), event_end(event)
            if end is None:
                end = start
            if end <= time_min:
                continue
            if time_max is not None and start >= time_max:
                continue
            found.append(event)
        return sorted(found, key=event_start)

    def get_event(self, event_id):
        return self.events.get(event_id)

    def insert_event(self, body):
        return self.add(body)

    def update_event(self, event_id, body):
        event = {"id": event_id, **body}
        self.events[event_id] = event
        return event


class FakeSheet:
    """In-memory stand-in for ReservationSheet."""

    def __init__(self):
        self.rows: list[AuditRow] = []
        self.fail_append = False
        self.fail_update = False

    def append_row(self, row):
        if self.fail_append:
            raise ExternalServiceError("Failed to append reservation to sheet")
        self.rows.append(row)

    def get_rows(self):
        return list(self.rows)

    def update_row(self, index, row):
        if self.fail_update:
            raise ExternalServiceError("Failed to update reservation in sheet")
        self.rows[index] = row


class FakeNotifier:
    def __init__(self):
        self.messages: list[str] = []

    def send(self, text):
        self.messages.append(text)
        return True

    def send_once(self, key, text):
        return self.send(text)


class _FailingRequest:
    def __init__(self, exc):
        self.exc = exc

    def execute(self):
        raise self.exc


class FailingGoogleService:
    """Discovery-style service whose every request fails in execute()."""

    def __init__(self, exc: Exception):
        self.exc = exc

    def events(self):
        return self

    def spreadsheets(self):
        return self

    def values(self):
        return self

    def list(self, **kwargs):
        return _FailingRequest(self.exc)

    get = insert = update = append = list
