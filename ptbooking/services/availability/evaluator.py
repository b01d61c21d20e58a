# ptbooking/services/availability/evaluator.py
"""
Which days and hours can be offered to a customer.

Pure functions over the settings document; the caller supplies `now` and
the set of hours already taken on the calendar.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable

from ...schemas.settings import AvailabilitySettings, DayKind
from ..calendar_day import as_calendar_day, to_kst


@dataclass(frozen=True)
class HourSlot:
    """A single offerable hour on a given day."""
    hour: int
    is_booked: bool = False

    @property
    def label(self) -> str:
        return f"{self.hour:02d}:00"


def is_date_selectable(settings: AvailabilitySettings, day: date, now: datetime) -> bool:
    """
    A day is selectable when it lies inside the reservation period, is not
    disabled, is not in the past, and is not today unless same-day booking
    is enabled.
    """
    day = as_calendar_day(day)
    today = to_kst(now).date()

    period = settings.reservation_period
    bounds = period.bounds if period else None
    if bounds is None:
        return False

    start, end = bounds
    if not (start <= day <= end):
        return False

    if day in settings.disabled_dates:
        return False

    if day < today:
        return False

    if day == today and not settings.same_day.enabled:
        return False

    return True


def resolve_day_kind(settings: AvailabilitySettings, day: date) -> DayKind:
    """Holidays win over weekends."""
    day = as_calendar_day(day)
    if day in settings.holidays:
        return "holiday"
    if day.weekday() >= 5:
        return "weekend"
    return "weekday"


def compute_offerable_hours(
    settings: AvailabilitySettings,
    day: date,
    now: datetime,
    booked: Iterable[int] = (),
) -> list[HourSlot]:
    """
    Hours of the day's range, ascending, with booked hours flagged.

    Returns an empty list for non-selectable days.
    """
    day = as_calendar_day(day)
    if not is_date_selectable(settings, day, now):
        return []

    now = to_kst(now)
    hour_range = settings.hours_for(resolve_day_kind(settings, day))

    floor = 0
    if day == now.date():
        # Same-day is enabled here, otherwise the day is not selectable
        floor = now.hour + settings.same_day.min_hours_after

    booked = set(booked)
    return [
        HourSlot(hour=h, is_booked=h in booked)
        for h in hour_range.hours()
        if h >= floor
    ]


def bookable_hours(
    settings: AvailabilitySettings,
    day: date,
    now: datetime,
    booked: Iterable[int] = (),
) -> list[int]:
    return [
        slot.hour
        for slot in compute_offerable_hours(settings, day, now, booked)
        if not slot.is_booked
    ]
