"""
Admin endpoints. Every route requires an admin session.
"""
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, func, select

from app.database import get_session
from app.models.booking import BOOKING_STATUSES, Booking
from app.models.booking_time_slot import BookingTimeSlot
from app.models.court import Court
from app.models.slot_claim import SlotClaim
from app.models.user import USER_ROLES, User
from app.routes.bookings import conflict_detail
from app.schemas import AdminBookingResponse, CourtResponse, booking_to_admin_response
from app.services.booking_service import (
    BookingNotFoundError,
    BookingValidationError,
    SlotConflictError,
    list_bookings,
    set_booking_status,
)
from app.services.dashboard_service import get_dashboard_stats
from app.utils.auth import require_admin
from app.utils.sql import scalar_int

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


class DashboardStats(BaseModel):
    total_bookings: int
    pending_bookings: int
    confirmed_bookings: int
    paid_bookings: int
    completed_bookings: int
    total_users: int
    active_courts: int
    total_revenue: Decimal
    today_bookings: int
    today_earnings: Decimal
    month_bookings: int
    month_revenue: Decimal


class BookingStatusUpdate(BaseModel):
    status: str


class AdminUserResponse(BaseModel):
    id: int
    username: str
    email: str
    full_name: str
    phone: Optional[str] = None
    role: str
    created_at: datetime
    booking_count: int


class RoleUpdate(BaseModel):
    role: str

    @field_validator("role")
    @classmethod
    def validate_role(cls, v):
        if v not in USER_ROLES:
            raise ValueError(f"role must be one of {', '.join(USER_ROLES)}")
        return v


class CourtCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    price_per_hour: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    is_available: bool = True

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        if not v.strip():
            raise ValueError("name is required")
        return v.strip()


class CourtUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    price_per_hour: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    is_available: Optional[bool] = None


def _court_name_taken(session: Session, name: str, exclude_id: Optional[int] = None) -> bool:
    statement = select(Court).where(Court.name == name)
    if exclude_id is not None:
        statement = statement.where(Court.id != exclude_id)
    return session.exec(statement).first() is not None


# ============================================================================
# Dashboard
# ============================================================================


@router.get("/stats", response_model=DashboardStats)
def get_stats(session: Session = Depends(get_session)):
    """Dashboard counters and revenue"""
    return get_dashboard_stats(session)


# ============================================================================
# Bookings
# ============================================================================


@router.get("/bookings", response_model=List[AdminBookingResponse])
def list_all_bookings(
    status: Optional[str] = Query(default=None, description="Booking status, or 'all'"),
    date_: Optional[date] = Query(default=None, alias="date"),
    session: Session = Depends(get_session),
):
    """All bookings with player and court details"""
    if status == "all":
        status = None
    if status and status not in BOOKING_STATUSES:
        raise HTTPException(status_code=400, detail="Invalid status")

    bookings = list_bookings(session, status=status, booking_date=date_)
    return [booking_to_admin_response(b) for b in bookings]


@router.put("/bookings/{booking_id}/status", response_model=AdminBookingResponse)
def update_booking_status(booking_id: int, payload: BookingStatusUpdate, session: Session = Depends(get_session)):
    """Move a booking to another status"""
    try:
        booking = set_booking_status(session, booking_id, payload.status)
    except BookingNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except BookingValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SlotConflictError as e:
        raise HTTPException(status_code=409, detail=conflict_detail(e))

    return booking_to_admin_response(booking)


# ============================================================================
# Users
# ============================================================================


@router.get("/users", response_model=List[AdminUserResponse])
def list_users(session: Session = Depends(get_session)):
    """Users newest first with their booking counts"""
    counts = dict(
        session.exec(select(Booking.user_id, func.count(Booking.id)).group_by(Booking.user_id)).all()
    )
    users = session.exec(select(User).order_by(User.created_at.desc(), User.id.desc())).all()
    return [
        AdminUserResponse(
            id=u.id,
            username=u.username,
            email=u.email,
            full_name=u.full_name,
            phone=u.phone,
            role=u.role,
            created_at=u.created_at,
            booking_count=scalar_int(counts.get(u.id, 0)),
        )
        for u in users
    ]


@router.put("/users/{user_id}/role", response_model=AdminUserResponse)
def update_user_role(
    user_id: int,
    payload: RoleUpdate,
    admin: User = Depends(require_admin),
    session: Session = Depends(get_session),
):
    """Promote or demote a user"""
    if user_id == admin.id:
        raise HTTPException(status_code=400, detail="Cannot change your own role")

    user = session.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    user.role = payload.role
    session.add(user)
    session.commit()
    session.refresh(user)

    booking_count = scalar_int(
        session.exec(select(func.count(Booking.id)).where(Booking.user_id == user_id)).one()
    )
    logger.info(f"Admin {admin.id} set role of user {user_id} to {payload.role}")
    return AdminUserResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        full_name=user.full_name,
        phone=user.phone,
        role=user.role,
        created_at=user.created_at,
        booking_count=booking_count,
    )


@router.delete("/users/{user_id}", status_code=204)
def delete_user(
    user_id: int,
    admin: User = Depends(require_admin),
    session: Session = Depends(get_session),
):
    """Delete a user together with their bookings"""
    if user_id == admin.id:
        raise HTTPException(status_code=400, detail="Cannot delete your own account")

    user = session.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    try:
        # Order matters: delete child records before parent records
        booking_ids = session.exec(select(Booking.id).where(Booking.user_id == user_id)).all()
        session.execute(delete(SlotClaim).where(SlotClaim.booking_id.in_(booking_ids)))
        session.execute(delete(BookingTimeSlot).where(BookingTimeSlot.booking_id.in_(booking_ids)))
        session.execute(delete(Booking).where(Booking.user_id == user_id))
        session.execute(delete(User).where(User.id == user_id))
        session.commit()
    except Exception as e:
        session.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to delete user: {str(e)}")

    logger.info(f"Admin {admin.id} deleted user {user_id}")
    return Response(status_code=204)


# ============================================================================
# Courts
# ============================================================================


@router.get("/courts", response_model=List[CourtResponse])
def list_all_courts(session: Session = Depends(get_session)):
    """All courts, including ones closed for booking"""
    return session.exec(select(Court).order_by(Court.name)).all()


@router.post("/courts", response_model=CourtResponse, status_code=201)
def create_court(payload: CourtCreate, session: Session = Depends(get_session)):
    """Add a court"""
    if _court_name_taken(session, payload.name):
        raise HTTPException(status_code=409, detail=f"Court with name '{payload.name}' already exists")

    court = Court(**payload.model_dump())
    try:
        session.add(court)
        session.commit()
        session.refresh(court)
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail=f"Court with name '{payload.name}' already exists")

    logger.info(f"Court {court.id} ({court.name}) created")
    return court


@router.put("/courts/{court_id}", response_model=CourtResponse)
def update_court(court_id: int, payload: CourtUpdate, session: Session = Depends(get_session)):
    """Update court details or open/close it for booking"""
    court = session.get(Court, court_id)
    if not court:
        raise HTTPException(status_code=404, detail="Court not found")

    update_data = payload.model_dump(exclude_unset=True)
    if "name" in update_data:
        if update_data["name"] is None or not update_data["name"].strip():
            raise HTTPException(status_code=422, detail="name cannot be empty")
        update_data["name"] = update_data["name"].strip()
        if _court_name_taken(session, update_data["name"], exclude_id=court_id):
            raise HTTPException(status_code=409, detail=f"Court with name '{update_data['name']}' already exists")
    if "price_per_hour" in update_data and update_data["price_per_hour"] is None:
        raise HTTPException(status_code=422, detail="price_per_hour cannot be null")
    if "is_available" in update_data and update_data["is_available"] is None:
        raise HTTPException(status_code=422, detail="is_available cannot be null")

    for field, value in update_data.items():
        setattr(court, field, value)

    court.updated_at = datetime.now(timezone.utc)
    try:
        session.add(court)
        session.commit()
        session.refresh(court)
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail=f"Court with name '{update_data.get('name')}' already exists")

    logger.info(f"Court {court_id} updated: {sorted(update_data)}")
    return court


@router.delete("/courts/{court_id}", status_code=204)
def delete_court(court_id: int, session: Session = Depends(get_session)):
    """Delete a court that has never been booked"""
    court = session.get(Court, court_id)
    if not court:
        raise HTTPException(status_code=404, detail="Court not found")

    booking_count = scalar_int(
        session.exec(select(func.count(Booking.id)).where(Booking.court_id == court_id)).one()
    )
    if booking_count:
        raise HTTPException(
            status_code=409,
            detail=f"Court has {booking_count} booking(s); mark it unavailable instead of deleting",
        )

    session.delete(court)
    session.commit()

    logger.info(f"Court {court_id} deleted")
    return Response(status_code=204)
