from sqlmodel import Field, SQLModel


class BookingTimeSlot(SQLModel, table=True):
    """Slots covered by a booking. Kept after cancellation for history."""

    booking_id: int = Field(foreign_key="booking.id", primary_key=True)
    time_slot_id: int = Field(foreign_key="timeslot.id", primary_key=True)
