# ptbooking/routers/availability.py
"""
Availability API.

GET /api/availability?date= - day kind, selectable flag and hour slots
(booked hours flagged, not removed) for the booking page.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query

from ..dependencies import get_reservation_gateway, get_settings_store
from ..schemas.reservations import AvailabilityDayResponse, HourSlotRead
from ..services.availability import (
    SettingsStore,
    compute_offerable_hours,
    is_date_selectable,
    resolve_day_kind,
)
from ..services.calendar_day import now_kst
from ..services.reservations import ReservationGateway

router = APIRouter(prefix="/api/availability", tags=["availability"])


@router.get("", response_model=AvailabilityDayResponse)
def get_day_availability(
    target_date: date = Query(..., alias="date"),
    store: SettingsStore = Depends(get_settings_store),
    gateway: ReservationGateway = Depends(get_reservation_gateway),
):
    settings = store.load()
    now = now_kst()

    selectable = is_date_selectable(settings, target_date, now)
    booked = gateway.list_booked_hours(target_date) if selectable else set()
    slots = compute_offerable_hours(settings, target_date, now, booked)

    return AvailabilityDayResponse(
        date=target_date,
        day_kind=resolve_day_kind(settings, target_date),
        selectable=selectable,
        slots=[
            HourSlotRead(hour=s.hour, time=s.label, is_booked=s.is_booked)
            for s in slots
        ],
        notice=settings.available_hours.notice,
    )
