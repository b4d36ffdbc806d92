from app.models.booking import Booking
from app.models.booking_time_slot import BookingTimeSlot
from app.models.court import Court
from app.models.slot_claim import SlotClaim
from app.models.time_slot import TimeSlot
from app.models.user import User

__all__ = [
    "User",
    "Court",
    "TimeSlot",
    "Booking",
    "BookingTimeSlot",
    "SlotClaim",
]
