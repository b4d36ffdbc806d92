"""
Admin dashboard aggregation.

Counts and revenue sums over bookings, users and courts. Revenue only
includes paid and completed bookings.
"""
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, Optional, Tuple

from sqlmodel import Session, func, select

from app.models.booking import (
    REVENUE_STATUSES,
    STATUS_COMPLETED,
    STATUS_CONFIRMED,
    STATUS_PAID,
    STATUS_PENDING,
    Booking,
)
from app.models.court import Court
from app.models.user import User
from app.utils.sql import scalar_int, to_money


def month_bounds(day: date) -> Tuple[date, date]:
    """First day of the month and first day of the following month."""
    first = day.replace(day=1)
    following = (first + timedelta(days=32)).replace(day=1)
    return first, following


def _count_bookings(session: Session, *criteria) -> int:
    statement = select(func.count(Booking.id))
    if criteria:
        statement = statement.where(*criteria)
    return scalar_int(session.exec(statement).one())


def _sum_revenue(session: Session, *criteria) -> Decimal:
    total = session.exec(
        select(func.coalesce(func.sum(Booking.total_amount), 0)).where(
            Booking.status.in_(REVENUE_STATUSES), *criteria
        )
    ).one()
    return to_money(total)


def get_dashboard_stats(session: Session, today: Optional[date] = None) -> Dict:
    """
    Build the admin dashboard numbers.

    Returns:
        Dict with booking counts per status, user/court totals, and revenue
        for all time, today and the current month.
    """
    today = today or date.today()
    month_start, next_month_start = month_bounds(today)
    in_month = (Booking.booking_date >= month_start, Booking.booking_date < next_month_start)

    return {
        "total_bookings": _count_bookings(session),
        "pending_bookings": _count_bookings(session, Booking.status == STATUS_PENDING),
        "confirmed_bookings": _count_bookings(session, Booking.status == STATUS_CONFIRMED),
        "paid_bookings": _count_bookings(session, Booking.status == STATUS_PAID),
        "completed_bookings": _count_bookings(session, Booking.status == STATUS_COMPLETED),
        "total_users": scalar_int(session.exec(select(func.count(User.id))).one()),
        "active_courts": scalar_int(
            session.exec(select(func.count(Court.id)).where(Court.is_available == True)).one()  # noqa: E712
        ),
        "total_revenue": _sum_revenue(session),
        "today_bookings": _count_bookings(session, Booking.booking_date == today),
        "today_earnings": _sum_revenue(session, Booking.booking_date == today),
        "month_bookings": _count_bookings(session, *in_month),
        "month_revenue": _sum_revenue(session, *in_month),
    }
