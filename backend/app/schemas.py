"""Response schemas shared by the player and admin routers."""
from datetime import date, datetime, time
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel

from app.models.booking import Booking


class CourtResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price_per_hour: Decimal
    is_available: bool
    created_at: datetime

    class Config:
        from_attributes = True


class TimeSlotResponse(BaseModel):
    id: int
    start_time: time
    end_time: time
    is_active: bool

    class Config:
        from_attributes = True


class BookingResponse(BaseModel):
    id: int
    user_id: int
    court_id: int
    court_name: str
    price_per_hour: Decimal
    booking_date: date
    total_amount: Decimal
    notes: Optional[str] = None
    status: str
    created_at: datetime
    updated_at: datetime
    time_slots: List[TimeSlotResponse]


class AdminBookingResponse(BookingResponse):
    username: str
    full_name: str
    phone: Optional[str] = None
    email: str


def booking_to_response(booking: Booking) -> BookingResponse:
    return BookingResponse(**_booking_fields(booking))


def booking_to_admin_response(booking: Booking) -> AdminBookingResponse:
    user = booking.user
    return AdminBookingResponse(
        **_booking_fields(booking),
        username=user.username,
        full_name=user.full_name,
        phone=user.phone,
        email=user.email,
    )


def _booking_fields(booking: Booking) -> dict:
    slots = sorted(booking.time_slots, key=lambda s: s.start_time)
    return {
        "id": booking.id,
        "user_id": booking.user_id,
        "court_id": booking.court_id,
        "court_name": booking.court.name,
        "price_per_hour": booking.court.price_per_hour,
        "booking_date": booking.booking_date,
        "total_amount": booking.total_amount,
        "notes": booking.notes,
        "status": booking.status,
        "created_at": booking.created_at,
        "updated_at": booking.updated_at,
        "time_slots": [TimeSlotResponse.model_validate(slot) for slot in slots],
    }
