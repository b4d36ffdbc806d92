from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel


class SlotClaim(SQLModel, table=True):
    """
    Exclusive hold on (court, date, slot) by a live booking.

    Rows exist only while the owning booking is not cancelled; the unique
    constraint is what stops two concurrent requests from both committing.
    """

    __table_args__ = (
        SAUniqueConstraint("court_id", "booking_date", "time_slot_id", name="uq_claim_court_date_slot"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    court_id: int = Field(foreign_key="court.id")
    booking_date: date
    time_slot_id: int = Field(foreign_key="timeslot.id")
    booking_id: int = Field(foreign_key="booking.id", index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
