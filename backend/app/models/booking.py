from datetime import date, datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

from app.models.booking_time_slot import BookingTimeSlot

if TYPE_CHECKING:
    from app.models.court import Court
    from app.models.time_slot import TimeSlot
    from app.models.user import User

STATUS_PENDING = "pending"
STATUS_CONFIRMED = "confirmed"
STATUS_PAID = "paid"
STATUS_CANCELLED = "cancelled"
STATUS_COMPLETED = "completed"

BOOKING_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED, STATUS_PAID, STATUS_CANCELLED, STATUS_COMPLETED)

# Statuses that count towards revenue
REVENUE_STATUSES = (STATUS_PAID, STATUS_COMPLETED)


class Booking(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    court_id: int = Field(foreign_key="court.id", index=True)
    booking_date: date = Field(index=True)
    total_amount: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)
    notes: Optional[str] = None
    status: str = Field(default=STATUS_PENDING, max_length=20, index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column_kwargs={"onupdate": lambda: datetime.now(timezone.utc)},
    )

    # Relationships
    user: "User" = Relationship(back_populates="bookings")
    court: "Court" = Relationship(back_populates="bookings")
    time_slots: List["TimeSlot"] = Relationship(link_model=BookingTimeSlot)
