from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlmodel import Session

from app.database import get_session
from app.models.court import Court
from app.models.user import User
from app.schemas import BookingResponse, TimeSlotResponse, booking_to_response
from app.services.booking_service import (
    BookingNotFoundError,
    BookingValidationError,
    SlotConflictError,
    active_time_slots,
    cancel_booking,
    create_booking,
    list_bookings,
    slot_availability,
)
from app.utils.auth import require_user

router = APIRouter()


class BookingCreate(BaseModel):
    court_id: int
    booking_date: date
    time_slot_ids: List[int] = Field(default_factory=list)
    notes: Optional[str] = Field(default=None, max_length=500)


class SlotAvailabilityItem(TimeSlotResponse):
    is_available: bool


class SlotAvailabilityResponse(BaseModel):
    court_id: int
    date: date
    slots: List[SlotAvailabilityItem]


def conflict_detail(e: SlotConflictError) -> dict:
    return {"message": e.message, "taken_slot_ids": e.taken_slot_ids}


@router.get("/bookings/time-slots", response_model=List[TimeSlotResponse])
def list_time_slots(session: Session = Depends(get_session)):
    """List active one-hour slots in start-time order"""
    return active_time_slots(session)


@router.get("/bookings/available", response_model=SlotAvailabilityResponse)
def get_available_slots(
    date_: date = Query(..., alias="date"),
    court_id: int = Query(...),
    session: Session = Depends(get_session),
):
    """Every active slot for a court/day with is_available set"""
    if not session.get(Court, court_id):
        raise HTTPException(status_code=404, detail="Court not found")

    slots = [
        SlotAvailabilityItem(
            **TimeSlotResponse.model_validate(entry.slot).model_dump(),
            is_available=entry.is_available,
        )
        for entry in slot_availability(session, court_id, date_)
    ]
    return SlotAvailabilityResponse(court_id=court_id, date=date_, slots=slots)


@router.post("/bookings", response_model=BookingResponse, status_code=201)
def create_booking_endpoint(
    payload: BookingCreate,
    user: User = Depends(require_user),
    session: Session = Depends(get_session),
):
    """Book one or more slots on a court for a day"""
    try:
        booking = create_booking(
            session,
            user_id=user.id,
            court_id=payload.court_id,
            booking_date=payload.booking_date,
            time_slot_ids=payload.time_slot_ids,
            notes=payload.notes,
        )
    except BookingNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except BookingValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SlotConflictError as e:
        raise HTTPException(status_code=409, detail=conflict_detail(e))

    return booking_to_response(booking)


@router.get("/bookings/my-bookings", response_model=List[BookingResponse])
def get_my_bookings(user: User = Depends(require_user), session: Session = Depends(get_session)):
    """The caller's bookings, newest date first"""
    return [booking_to_response(b) for b in list_bookings(session, user_id=user.id)]


@router.put("/bookings/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking_endpoint(
    booking_id: int,
    user: User = Depends(require_user),
    session: Session = Depends(get_session),
):
    """Cancel one of the caller's bookings and free its slots"""
    try:
        booking = cancel_booking(session, booking_id, user.id)
    except BookingNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except BookingValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return booking_to_response(booking)
