# ptbooking/routers/reservations.py
# API: POST = create, PUT = reschedule, GET ?date= / ?memberId=, DELETE = 405

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..dependencies import get_reservation_gateway
from ..schemas.reservations import (
    BookedTimesResponse,
    ReservationCreate,
    ReservationRead,
    ReservationResponse,
    ReservationUpdate,
)
from ..services.reservations import Reservation, ReservationGateway

router = APIRouter(prefix="/api/reservations", tags=["reservations"])


def _read(reservation: Reservation) -> ReservationRead:
    return ReservationRead(
        event_id=reservation.event_id,
        date=reservation.date,
        time=reservation.time,
        member_name=reservation.member_name,
        member_id=reservation.member_id,
        change_history=reservation.change_history,
    )


@router.get("")
def get_reservations(
    target_date: date | None = Query(None, alias="date"),
    member_id: str | None = Query(None, alias="memberId"),
    gateway: ReservationGateway = Depends(get_reservation_gateway),
):
    """
    ?memberId= → upcoming reservations of the member as
    [date, time, memberId, name, eventId, changeHistory] rows.
    ?date= → {"bookedTimes": [...]} for that day.
    """
    if member_id:
        return [r.as_tuple() for r in gateway.list_member_reservations(member_id)]

    if target_date:
        booked = gateway.list_booked_hours(target_date)
        return BookedTimesResponse(booked_times=sorted(booked))

    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="date or memberId required",
    )


@router.post("", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
def create_reservation(
    data: ReservationCreate,
    gateway: ReservationGateway = Depends(get_reservation_gateway),
):
    reservation = gateway.create(data.date_time, data.member_name, data.member_id)
    return ReservationResponse(message="Reservation confirmed.", reservation=_read(reservation))


@router.put("", response_model=ReservationResponse)
def reschedule_reservation(
    data: ReservationUpdate,
    gateway: ReservationGateway = Depends(get_reservation_gateway),
):
    reservation = gateway.reschedule(
        data.event_id, data.date_time, data.member_name, data.member_id,
    )
    return ReservationResponse(message="Reservation changed.", reservation=_read(reservation))


@router.delete("")
def delete_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )
