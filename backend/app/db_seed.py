"""Startup data: the hourly slot grid and an optional bootstrap admin."""
import logging
from datetime import time
from typing import Optional

from sqlalchemy import or_
from sqlmodel import Session, select

from app.config import ADMIN_EMAIL, ADMIN_PASSWORD, ADMIN_USERNAME, CLOSING_HOUR, OPENING_HOUR
from app.models.time_slot import TimeSlot
from app.models.user import ROLE_ADMIN, User
from app.utils.auth import hash_password

logger = logging.getLogger(__name__)


def seed_time_slots(session: Session, opening_hour: int = OPENING_HOUR, closing_hour: int = CLOSING_HOUR) -> int:
    """
    Create one-hour slots from opening_hour to closing_hour if none exist.

    Returns:
        Number of slots created (0 when the table was already populated)
    """
    if not 0 <= opening_hour < closing_hour <= 24:
        raise ValueError(f"Invalid opening hours: {opening_hour}-{closing_hour}")

    if session.exec(select(TimeSlot)).first():
        return 0

    created = 0
    for hour in range(opening_hour, closing_hour):
        # 24:00 is not a valid time; the last slot of the day ends at 23:59
        end = time(hour + 1, 0) if hour + 1 < 24 else time(23, 59)
        session.add(TimeSlot(start_time=time(hour, 0), end_time=end, is_active=True))
        created += 1
    session.commit()

    logger.info(f"Seeded {created} time slots ({opening_hour:02d}:00-{closing_hour:02d}:00)")
    return created


def ensure_admin_user(
    session: Session,
    username: str = ADMIN_USERNAME,
    email: str = ADMIN_EMAIL,
    password: str = ADMIN_PASSWORD,
) -> Optional[User]:
    """Create the configured admin account if it does not exist yet."""
    if not (username and email and password):
        return None

    existing = session.exec(select(User).where(or_(User.username == username, User.email == email))).first()
    if existing:
        return existing

    admin = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        full_name="Administrator",
        phone="",
        role=ROLE_ADMIN,
    )
    session.add(admin)
    session.commit()
    session.refresh(admin)

    logger.info(f"Created admin user '{username}'")
    return admin
