# ptbooking/services/calendar_day.py
"""
Calendar days in the fixed UTC+9 reference frame.

Every day-granularity comparison in the project goes through here:
dates coming from the admin form ("2024-05-01T00:00:00.000Z"), from the
calendar API ("2024-05-01T14:00:00+09:00") and from the clock are all
reduced to a plain `date` in UTC+9 before being compared.
"""

from datetime import date, datetime, time, timedelta, timezone

KST = timezone(timedelta(hours=9), name="KST")
CALENDAR_TIMEZONE = "Asia/Seoul"

# Stored day timestamps are pinned to 09:00 local time
REFERENCE_HOUR = 9


def now_kst() -> datetime:
    return datetime.now(KST)


def to_kst(value: datetime) -> datetime:
    """Aware values are converted, naive values are taken as UTC+9 already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=KST)
    return value.astimezone(KST)


def parse_datetime(value: str) -> datetime:
    s = value.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    return datetime.fromisoformat(s)


def as_calendar_day(value) -> date:
    """
    Reduce a date, datetime or ISO string to a calendar day in UTC+9.

    Raises:
        ValueError: if the value cannot be interpreted as a day
    """
    if isinstance(value, datetime):
        return to_kst(value).date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        s = value.strip()
        if len(s) == 10:
            return date.fromisoformat(s)
        return to_kst(parse_datetime(s)).date()
    raise ValueError(f"Cannot interpret {value!r} as a calendar day")


def reference_timestamp(day: date) -> datetime:
    return datetime.combine(day, time(REFERENCE_HOUR), tzinfo=KST)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """First and last second of the day in UTC+9."""
    start = datetime.combine(day, time.min, tzinfo=KST)
    end = datetime.combine(day, time(23, 59, 59), tzinfo=KST)
    return start, end


def hour_interval(day: date, hour: int) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time(hour), tzinfo=KST)
    return start, start + timedelta(hours=1)


def same_day(a, b) -> bool:
    return as_calendar_day(a) == as_calendar_day(b)
