# ptbooking/schemas/reservations.py

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..services.reservations import normalize_member_id


class _Body(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReservationCreate(_Body):
    date_time: datetime = Field(description="Start time, ISO-8601; naive values are UTC+9")
    member_name: str = Field(min_length=1)
    member_id: str = Field(description="Phone-derived member number, digits only")

    @field_validator("member_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Member name is required")
        return v

    @field_validator("member_id", mode="before")
    @classmethod
    def digits_only(cls, v) -> str:
        digits = normalize_member_id(str(v))
        if not digits:
            raise ValueError("Member ID must contain digits")
        return digits


class ReservationUpdate(ReservationCreate):
    event_id: str = Field(min_length=1)


class ReservationRead(_Body):
    event_id: str
    date: date
    time: str
    member_name: str
    member_id: str
    change_history: Optional[str] = None


class ReservationResponse(_Body):
    message: str
    reservation: ReservationRead


class BookedTimesResponse(_Body):
    booked_times: list[int]


class HourSlotRead(_Body):
    hour: int
    time: str
    is_booked: bool


class AvailabilityDayResponse(_Body):
    date: date
    day_kind: str
    selectable: bool
    slots: list[HourSlotRead]
    notice: str
