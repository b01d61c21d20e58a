# ptbooking/schemas/settings.py
"""
Availability settings document.

Field names are snake_case in Python and camelCase on disk and on the wire
("disabledDates", "availableHours", "sameDay", ...).
"""

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ..services.calendar_day import as_calendar_day

DayKind = Literal["weekday", "weekend", "holiday"]


class _Document(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def _to_day(value, label: str, optional: bool = False):
    if optional and value in (None, ""):
        return None
    try:
        return as_calendar_day(value)
    except (TypeError, ValueError):
        raise ValueError(f"invalid {label}: {value!r}")


class HourRange(_Document):
    start: int = Field(ge=0, le=23)
    end: int = Field(ge=0, le=23)

    @model_validator(mode="after")
    def check_order(self):
        if self.start > self.end:
            raise ValueError(
                f"start hour {self.start} is after end hour {self.end}"
            )
        return self

    def hours(self) -> range:
        return range(self.start, self.end + 1)


class SameDayPolicy(_Document):
    enabled: bool = True
    min_hours_after: int = Field(2, ge=1, le=6)


class AvailableHours(_Document):
    weekday: HourRange
    weekend: HourRange
    holiday: HourRange
    notice: str = Field(min_length=1)
    same_day: SameDayPolicy


class AutoExtension(_Document):
    start_date: date
    base_day: int = Field(ge=0, le=6)
    week_extension: int = Field(ge=1, le=5)

    @field_validator("start_date", mode="before")
    @classmethod
    def normalize_start(cls, v):
        return _to_day(v, "auto start date")


class ReservationPeriod(_Document):
    type: Literal["manual", "auto"] = "manual"
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    auto: Optional[AutoExtension] = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def normalize_bounds(cls, v):
        return _to_day(v, "reservation period date", optional=True)

    @model_validator(mode="after")
    def check_period(self):
        if self.type == "manual":
            if self.start_date and self.end_date and self.start_date > self.end_date:
                raise ValueError("reservation period starts after it ends")
        elif self.auto is None:
            raise ValueError("auto reservation period requires auto settings")
        return self

    @property
    def bounds(self) -> Optional[tuple[date, date]]:
        """Inclusive window, or None when either bound is missing."""
        if self.start_date is None or self.end_date is None:
            return None
        return self.start_date, self.end_date


class AvailabilitySettings(_Document):
    disabled_dates: list[date]
    holidays: list[date]
    available_hours: AvailableHours
    reservation_period: Optional[ReservationPeriod] = None

    @field_validator("disabled_dates", mode="before")
    @classmethod
    def normalize_disabled(cls, v):
        if not isinstance(v, list):
            raise ValueError("disabledDates must be a list")
        return sorted({_to_day(d, "disabled date") for d in v})

    @field_validator("holidays", mode="before")
    @classmethod
    def normalize_holidays(cls, v):
        if not isinstance(v, list):
            raise ValueError("holidays must be a list")
        return sorted({_to_day(d, "holiday") for d in v})

    def hours_for(self, kind: DayKind) -> HourRange:
        return getattr(self.available_hours, kind)

    @property
    def same_day(self) -> SameDayPolicy:
        return self.available_hours.same_day

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
