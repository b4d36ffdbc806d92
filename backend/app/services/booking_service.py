"""
Booking Conflict Resolver

Decides whether a set of time slots on a court/date is free and, if so,
persists a booking holding all of them in a single transaction.

Double-booking is prevented at two levels:

1. **Pre-check**: reject early with the list of taken slots (friendly error)
2. **SlotClaim unique constraint**: the database refuses a second live claim
   on the same (court, date, slot), so two requests that both pass the
   pre-check cannot both commit. The loser is rolled back completely.

Claims are deleted when a booking is cancelled and re-created if an admin
moves it out of cancelled, so cancelled bookings never block a slot.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List, Optional

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from app.config import BOOKING_WINDOW_DAYS
from app.models.booking import (
    BOOKING_STATUSES,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_PENDING,
    Booking,
)
from app.models.court import Court
from app.models.slot_claim import SlotClaim
from app.models.time_slot import TimeSlot
from app.utils.sql import to_money

logger = logging.getLogger(__name__)

# A court with this many free slots or fewer is shown as "limited"
LIMITED_AVAILABILITY_THRESHOLD = 3


class BookingError(Exception):
    """Base exception for booking errors"""
    pass


class BookingNotFoundError(BookingError):
    """Booking or court does not exist (or is not visible to the caller)"""
    pass


class BookingValidationError(BookingError):
    """Request is well-formed but not acceptable"""
    pass


class SlotConflictError(BookingError):
    """One or more requested slots are held by another live booking"""

    def __init__(self, taken_slot_ids: Iterable[int], message: str = "Some selected slots are already booked"):
        super().__init__(message)
        self.message = message
        self.taken_slot_ids = sorted(set(taken_slot_ids))


@dataclass
class SlotAvailability:
    slot: TimeSlot
    is_available: bool


@dataclass
class CourtAvailability:
    court: Court
    total_slots: int
    booked_slots: int
    available_slots: int
    availability_status: str


def active_time_slots(session: Session) -> List[TimeSlot]:
    return session.exec(
        select(TimeSlot).where(TimeSlot.is_active == True).order_by(TimeSlot.start_time)  # noqa: E712
    ).all()


def find_taken_slot_ids(
    session: Session,
    court_id: int,
    booking_date: date,
    time_slot_ids: Optional[Iterable[int]] = None,
) -> List[int]:
    """
    Slot ids on this court/date held by non-cancelled bookings.

    Args:
        session: Database session
        court_id: Court ID
        booking_date: Date of play
        time_slot_ids: If provided, only report these slots

    Returns:
        Sorted list of taken slot ids
    """
    statement = select(SlotClaim.time_slot_id).where(
        SlotClaim.court_id == court_id,
        SlotClaim.booking_date == booking_date,
    )
    if time_slot_ids is not None:
        ids = list(time_slot_ids)
        if not ids:
            return []
        statement = statement.where(SlotClaim.time_slot_id.in_(ids))

    return sorted(set(session.exec(statement).all()))


def _check_booking_window(booking_date: date, today: date) -> None:
    if booking_date < today:
        raise BookingValidationError("Cannot book a date in the past")
    last_day = today + timedelta(days=BOOKING_WINDOW_DAYS - 1)
    if booking_date > last_day:
        raise BookingValidationError(f"Bookings can only be made up to {BOOKING_WINDOW_DAYS} days ahead")


def _add_claims(session: Session, booking: Booking, slot_ids: Iterable[int]) -> None:
    for slot_id in slot_ids:
        session.add(
            SlotClaim(
                court_id=booking.court_id,
                booking_date=booking.booking_date,
                time_slot_id=slot_id,
                booking_id=booking.id,
            )
        )


def _release_claims(session: Session, booking: Booking) -> None:
    session.execute(delete(SlotClaim).where(SlotClaim.booking_id == booking.id))


def create_booking(
    session: Session,
    user_id: int,
    court_id: int,
    booking_date: date,
    time_slot_ids: Iterable[int],
    notes: Optional[str] = None,
    today: Optional[date] = None,
) -> Booking:
    """
    Create a pending booking holding every requested slot, or nothing at all.

    Args:
        session: Database session
        user_id: Player making the booking
        court_id: Court to book
        booking_date: Date of play
        time_slot_ids: Requested one-hour slots (duplicates ignored)
        notes: Free text from the player
        today: Reference date for the booking window (defaults to date.today())

    Returns:
        The committed Booking

    Raises:
        BookingValidationError: No slots, unbookable court, unknown slots, date outside window
        BookingNotFoundError: Court does not exist
        SlotConflictError: A slot is already held (pre-check or lost race)
    """
    slot_ids = sorted(set(time_slot_ids or []))
    if not slot_ids:
        raise BookingValidationError("Please select at least one time slot")

    court = session.get(Court, court_id)
    if not court:
        raise BookingNotFoundError("Court not found")
    if not court.is_available:
        raise BookingValidationError(f"Court '{court.name}' is not available for booking")

    slots = session.exec(
        select(TimeSlot).where(TimeSlot.id.in_(slot_ids), TimeSlot.is_active == True)  # noqa: E712
    ).all()
    found_ids = {slot.id for slot in slots}
    unknown = [slot_id for slot_id in slot_ids if slot_id not in found_ids]
    if unknown:
        raise BookingValidationError(f"Unknown or inactive time slots: {unknown}")

    _check_booking_window(booking_date, today or date.today())

    taken = find_taken_slot_ids(session, court_id, booking_date, slot_ids)
    if taken:
        logger.info(f"Booking rejected: court {court_id} on {booking_date} slots {taken} already taken")
        raise SlotConflictError(taken)

    booking = Booking(
        user_id=user_id,
        court_id=court_id,
        booking_date=booking_date,
        total_amount=to_money(court.price_per_hour) * len(slot_ids),
        notes=notes,
        status=STATUS_PENDING,
    )
    booking.time_slots = sorted(slots, key=lambda s: s.start_time)

    try:
        session.add(booking)
        session.flush()  # Get the ID
        _add_claims(session, booking, slot_ids)
        session.commit()
    except IntegrityError:
        session.rollback()
        taken = find_taken_slot_ids(session, court_id, booking_date, slot_ids)
        if not taken:
            raise
        logger.warning(
            f"Concurrent booking won court {court_id} on {booking_date} slots {taken}; rolled back"
        )
        raise SlotConflictError(taken)

    session.refresh(booking)
    logger.info(
        f"Booking {booking.id} created: user {user_id} court {court_id} on {booking_date} "
        f"slots {slot_ids} total {booking.total_amount}"
    )
    return booking


def cancel_booking(session: Session, booking_id: int, user_id: int) -> Booking:
    """
    Cancel a player's own booking and free its slots.

    Cancelling an already-cancelled booking is a no-op.

    Raises:
        BookingNotFoundError: Booking missing or owned by someone else
        BookingValidationError: Booking already completed
    """
    booking = session.get(Booking, booking_id)
    if not booking or booking.user_id != user_id:
        raise BookingNotFoundError("Booking not found")

    if booking.status == STATUS_CANCELLED:
        return booking
    if booking.status == STATUS_COMPLETED:
        raise BookingValidationError("Completed bookings cannot be cancelled")

    _release_claims(session, booking)
    booking.status = STATUS_CANCELLED
    booking.updated_at = datetime.now(timezone.utc)
    session.add(booking)
    session.commit()
    session.refresh(booking)

    logger.info(f"Booking {booking_id} cancelled by user {user_id}")
    return booking


def set_booking_status(session: Session, booking_id: int, status: str) -> Booking:
    """
    Admin status change.

    Moving into cancelled releases the slots; moving out of cancelled takes
    them back, which fails with SlotConflictError if they were rebooked.
    """
    if status not in BOOKING_STATUSES:
        raise BookingValidationError("Invalid status")

    booking = session.get(Booking, booking_id)
    if not booking:
        raise BookingNotFoundError("Booking not found")

    previous = booking.status
    if previous == status:
        return booking

    slot_ids = [slot.id for slot in booking.time_slots]

    if status == STATUS_CANCELLED:
        _release_claims(session, booking)
    elif previous == STATUS_CANCELLED:
        taken = find_taken_slot_ids(session, booking.court_id, booking.booking_date, slot_ids)
        if taken:
            raise SlotConflictError(taken, "Slots were booked by someone else since this booking was cancelled")
        _add_claims(session, booking, slot_ids)

    booking.status = status
    booking.updated_at = datetime.now(timezone.utc)
    session.add(booking)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        taken = find_taken_slot_ids(session, booking.court_id, booking.booking_date, slot_ids)
        if not taken:
            raise
        raise SlotConflictError(taken, "Slots were booked by someone else since this booking was cancelled")

    session.refresh(booking)
    logger.info(f"Booking {booking_id} status {previous} -> {status}")
    return booking


def slot_availability(session: Session, court_id: int, booking_date: date) -> List[SlotAvailability]:
    """Every active slot for the court/date, flagged free or taken."""
    taken = set(find_taken_slot_ids(session, court_id, booking_date))
    return [SlotAvailability(slot=slot, is_available=slot.id not in taken) for slot in active_time_slots(session)]


def _availability_status(available: int) -> str:
    if available == 0:
        return "fully_booked"
    if available <= LIMITED_AVAILABILITY_THRESHOLD:
        return "limited"
    return "available"


def court_availability(session: Session, booking_date: date) -> List[CourtAvailability]:
    """Per-court free/taken counts for a date, bookable courts only."""
    courts = session.exec(
        select(Court).where(Court.is_available == True).order_by(Court.name)  # noqa: E712
    ).all()
    active_ids = {slot.id for slot in active_time_slots(session)}

    claims = session.exec(
        select(SlotClaim.court_id, SlotClaim.time_slot_id).where(SlotClaim.booking_date == booking_date)
    ).all()
    booked_by_court = {}
    for court_id, slot_id in claims:
        if slot_id in active_ids:
            booked_by_court.setdefault(court_id, set()).add(slot_id)

    result = []
    for court in courts:
        booked = len(booked_by_court.get(court.id, ()))
        available = len(active_ids) - booked
        result.append(
            CourtAvailability(
                court=court,
                total_slots=len(active_ids),
                booked_slots=booked,
                available_slots=available,
                availability_status=_availability_status(available),
            )
        )
    return result


def list_bookings(
    session: Session,
    user_id: Optional[int] = None,
    status: Optional[str] = None,
    booking_date: Optional[date] = None,
) -> List[Booking]:
    """Bookings newest date first, with court, player and slots preloaded."""
    statement = select(Booking).options(
        selectinload(Booking.court),
        selectinload(Booking.user),
        selectinload(Booking.time_slots),
    )
    if user_id is not None:
        statement = statement.where(Booking.user_id == user_id)
    if status:
        statement = statement.where(Booking.status == status)
    if booking_date:
        statement = statement.where(Booking.booking_date == booking_date)

    statement = statement.order_by(Booking.booking_date.desc(), Booking.created_at.desc(), Booking.id.desc())
    return session.exec(statement).all()
