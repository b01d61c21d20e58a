"""
ptbooking/services/reservations.py

Reservation gateway: booked-hour lookup, create and reschedule.

The calendar is consulted at decision time and never cached: every commit
re-reads the day's events right before writing. Inside the process the
validate → write window is serialised by a lock, so of two concurrent
requests for the same hour the second one sees the first one's event and
gets ConflictError.

A calendar event written without its audit row (sheet failure afterwards)
is logged and reported, not reconciled.
"""

import logging
import re
import threading
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Callable, Iterable, Optional

from ..exceptions import ConflictError, ExternalServiceError, NotFoundError, ValidationError
from ..schemas.settings import AvailabilitySettings
from .availability import SettingsStore, compute_offerable_hours
from .calendar_day import (
    CALENDAR_TIMEZONE,
    KST,
    as_calendar_day,
    day_bounds,
    hour_interval,
    now_kst,
    parse_datetime,
    to_kst,
)
from .google_calendar import GoogleCalendar
from .google_sheets import AuditRow, ReservationSheet
from .notifications import (
    TelegramNotifier,
    format_booking_created,
    format_booking_rescheduled,
)

logger = logging.getLogger(__name__)

SESSION_DURATION = timedelta(minutes=50)
EVENT_DESCRIPTION = "PT session"

# "Jane Doe(01012345678)"
_SUMMARY_RE = re.compile(r"^(.*?)\s*\((\d+)\)\s*$")


@dataclass
class Reservation:
    event_id: str
    date: date
    hour: int
    member_name: str
    member_id: str
    change_history: Optional[str] = None

    @property
    def time(self) -> str:
        return f"{self.hour:02d}:00"

    def as_tuple(self) -> tuple:
        """(date, time, memberId, name, eventId, changeHistory)."""
        return (
            self.date.isoformat(),
            self.time,
            self.member_id,
            self.member_name,
            self.event_id,
            self.change_history,
        )


# ──────────────────────────────────────────────────────────────────────────────
# Event helpers
# ──────────────────────────────────────────────────────────────────────────────

def normalize_member_id(value: str) -> str:
    return re.sub(r"\D", "", value or "")


def event_summary(member_name: str, member_id: str) -> str:
    return f"{member_name}({member_id})"


def parse_summary(summary: str) -> Optional[tuple[str, str]]:
    """(name, member_id) from an event summary, or None if it is not a reservation."""
    match = _SUMMARY_RE.match(summary or "")
    if not match:
        return None
    return match.group(1).strip(), match.group(2)


def _event_time(event: dict, key: str) -> Optional[datetime]:
    value = event.get(key) or {}
    if value.get("dateTime"):
        return to_kst(parse_datetime(value["dateTime"]))
    if value.get("date"):
        return datetime.combine(date.fromisoformat(value["date"]), time.min, tzinfo=KST)
    return None


def event_start(event: dict) -> Optional[datetime]:
    return _event_time(event, "start")


def event_end(event: dict) -> Optional[datetime]:
    return _event_time(event, "end")


def is_all_day(event: dict) -> bool:
    start = event.get("start") or {}
    return "date" in start and "dateTime" not in start


def occupied_hours(event: dict, day: date) -> set[int]:
    """Hours of `day` that overlap the event at all."""
    start = event_start(event)
    if start is None:
        return set()

    end = event_end(event)
    if is_all_day(event):
        # All-day end dates are exclusive
        last = end.date() if end else start.date() + timedelta(days=1)
        return set(range(24)) if start.date() <= day < last else set()

    if end is None or end <= start:
        end = start + timedelta(minutes=1)

    hours = set()
    for h in range(24):
        slot_start, slot_end = hour_interval(day, h)
        if start < slot_end and end > slot_start:
            hours.add(h)
    return hours


def build_event_body(start: datetime, member_name: str, member_id: str) -> dict:
    return {
        "summary": event_summary(member_name, member_id),
        "description": EVENT_DESCRIPTION,
        "start": {
            "dateTime": start.isoformat(),
            "timeZone": CALENDAR_TIMEZONE,
        },
        "end": {
            "dateTime": (start + SESSION_DURATION).isoformat(),
            "timeZone": CALENDAR_TIMEZONE,
        },
        "reminders": {
            "useDefault": False,
            "overrides": [
                {"method": "email", "minutes": 60},
                {"method": "popup", "minutes": 30},
            ],
        },
    }


def slot_start(value) -> datetime:
    """
    Requested reservation start in UTC+9.

    Raises:
        ValidationError: unparseable, or not on the hour
    """
    if isinstance(value, str):
        try:
            value = parse_datetime(value)
        except ValueError:
            raise ValidationError(f"Invalid reservation time: {value!r}")
    if not isinstance(value, datetime):
        raise ValidationError(f"Invalid reservation time: {value!r}")

    start = to_kst(value)
    if start.minute or start.second or start.microsecond:
        raise ValidationError("Reservations must start on the hour")
    return start


# ──────────────────────────────────────────────────────────────────────────────
# Gateway
# ──────────────────────────────────────────────────────────────────────────────

class ReservationGateway:
    """Books and reschedules sessions against the live calendar."""

    def __init__(
        self,
        calendar: GoogleCalendar,
        sheet: ReservationSheet,
        store: SettingsStore,
        notifier: Optional[TelegramNotifier] = None,
        clock: Callable[[], datetime] = now_kst,
    ):
        self.calendar = calendar
        self.sheet = sheet
        self.store = store
        self.notifier = notifier
        self.clock = clock
        self._commit_lock = threading.Lock()

    # ── Queries ──────────────────────────────────────────────────────────

    def list_booked_hours(self, day, exclude_event_id: Optional[str] = None) -> set[int]:
        """Hours of the day blocked by any calendar event."""
        day = as_calendar_day(day)
        start, end = day_bounds(day)
        events = self.calendar.list_events(start, end)

        booked: set[int] = set()
        for event in events:
            if exclude_event_id and event.get("id") == exclude_event_id:
                continue
            booked |= occupied_hours(event, day)

        logger.debug(f"Booked hours {day}: {sorted(booked)}")
        return booked

    def list_member_reservations(
        self,
        member_id: str,
        now: Optional[datetime] = None,
    ) -> list[Reservation]:
        """Upcoming reservations of one member, soonest first."""
        member_id = normalize_member_id(member_id)
        if not member_id:
            raise ValidationError("Member ID is required")

        now = to_kst(now or self.clock())
        found: list[Reservation] = []
        for event in self.calendar.list_events(now):
            if is_all_day(event):
                continue
            parsed = parse_summary(event.get("summary", ""))
            if parsed is None or parsed[1] != member_id:
                continue
            start = event_start(event)
            if start is None or start < now:
                continue
            found.append(Reservation(
                event_id=event.get("id"),
                date=start.date(),
                hour=start.hour,
                member_name=parsed[0],
                member_id=member_id,
            ))

        if not found:
            return found

        rows = self.sheet.get_rows()
        for reservation in found:
            row = next(
                (r for r in rows if r.matches(member_id, reservation.date.isoformat(), reservation.time)),
                None,
            )
            if row is not None:
                reservation.change_history = row.change_history
        return found

    # ── Commands ─────────────────────────────────────────────────────────

    def create(
        self,
        start,
        member_name: str,
        member_id: str,
        now: Optional[datetime] = None,
    ) -> Reservation:
        """
        Book one 50-minute session starting at `start`.

        Raises:
            ValidationError: bad input, or the hour is not offered
            ConflictError: the hour is already taken on the calendar
            ExternalServiceError: calendar or sheet failure
        """
        start = slot_start(start)
        member_name, member_id = self._member(member_name, member_id)
        day = start.date()

        with self._commit_lock:
            now = now or self.clock()
            settings = self.store.load()
            booked = self.list_booked_hours(day)
            self._check_slot(settings, day, start.hour, now, booked)
            created = self.calendar.insert_event(build_event_body(start, member_name, member_id))

        event_id = created.get("id")
        booked_start = event_start(created) or start
        reservation = Reservation(
            event_id=event_id,
            date=booked_start.date(),
            hour=booked_start.hour,
            member_name=member_name,
            member_id=member_id,
        )

        try:
            self.sheet.append_row(AuditRow(
                date=reservation.date.isoformat(),
                time=reservation.time,
                member_id=member_id,
                member_name=member_name,
            ))
        except ExternalServiceError:
            logger.error(
                f"Partial commit: calendar event {event_id} created "
                f"but audit row append failed ({reservation.date} {reservation.time})"
            )
            raise

        logger.info(f"Reservation created: {event_id} {reservation.date} {reservation.time}")
        self._notify(format_booking_created(
            reservation.date, reservation.time, member_name, member_id,
        ))
        return reservation

    def reschedule(
        self,
        event_id: str,
        start,
        member_name: str,
        member_id: str,
        now: Optional[datetime] = None,
    ) -> Reservation:
        """
        Move an existing reservation to a new hour.

        Reservations scheduled for today cannot be moved, whatever the
        same-day booking policy says.

        Raises:
            NotFoundError: unknown event, or no matching audit row
            ValidationError: bad input, same-day change, hour not offered
            ConflictError: the new hour is already taken
            ExternalServiceError: calendar or sheet failure
        """
        if not event_id:
            raise ValidationError("Event ID is required")
        start = slot_start(start)
        member_name, member_id = self._member(member_name, member_id)
        day = start.date()

        with self._commit_lock:
            now = to_kst(now or self.clock())
            event = self.calendar.get_event(event_id)
            if event is None:
                raise NotFoundError("Reservation not found")

            old_start = event_start(event)
            if old_start is None or is_all_day(event):
                raise ValidationError("Event is not a timed reservation")
            if old_start.date() == now.date():
                raise ValidationError("Same-day reservations cannot be changed")

            settings = self.store.load()
            booked = self.list_booked_hours(day, exclude_event_id=event_id)
            self._check_slot(settings, day, start.hour, now, booked)

            old_date = old_start.date().isoformat()
            old_time = f"{old_start.hour:02d}:00"
            rows = self.sheet.get_rows()
            index = next(
                (i for i, r in enumerate(rows) if r.matches(member_id, old_date, old_time)),
                None,
            )
            if index is None:
                logger.warning(
                    f"No audit row for member={member_id} at {old_date} {old_time}"
                )
                raise NotFoundError("Existing reservation not found")

            updated = self.calendar.update_event(
                event_id, build_event_body(start, member_name, member_id),
            )

        new_start = event_start(updated) or start
        reservation = Reservation(
            event_id=updated.get("id") or event_id,
            date=new_start.date(),
            hour=new_start.hour,
            member_name=member_name,
            member_id=member_id,
        )

        entry = f"{old_date} {old_time} → {reservation.date.isoformat()} {reservation.time}"
        previous = rows[index].change_history
        reservation.change_history = f"{previous}; {entry}" if previous else entry

        try:
            self.sheet.update_row(index, AuditRow(
                date=reservation.date.isoformat(),
                time=reservation.time,
                member_id=member_id,
                member_name=member_name,
                change_history=reservation.change_history,
            ))
        except ExternalServiceError:
            logger.error(
                f"Partial commit: calendar event {event_id} moved "
                f"but audit row {index + 1} was not updated"
            )
            raise

        logger.info(f"Reservation rescheduled: {event_id} {entry}")
        self._notify(format_booking_rescheduled(
            old_start.date(), old_time,
            reservation.date, reservation.time,
            member_name, member_id,
        ))
        return reservation

    # ── Internals ────────────────────────────────────────────────────────

    @staticmethod
    def _member(member_name: str, member_id: str) -> tuple[str, str]:
        name = (member_name or "").strip()
        digits = normalize_member_id(member_id)
        if not name:
            raise ValidationError("Member name is required")
        if not digits:
            raise ValidationError("Member ID is required")
        return name, digits

    @staticmethod
    def _check_slot(
        settings: AvailabilitySettings,
        day: date,
        hour: int,
        now: datetime,
        booked: Iterable[int],
    ) -> None:
        offered = compute_offerable_hours(settings, day, now, booked)
        slot = next((s for s in offered if s.hour == hour), None)
        if slot is None:
            raise ValidationError(f"{day.isoformat()} {hour:02d}:00 is not an available reservation time")
        if slot.is_booked:
            raise ConflictError(f"{day.isoformat()} {hour:02d}:00 is already booked")

    def _notify(self, text: str) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.send(text)
        except Exception:
            logger.exception("Notification failed")
