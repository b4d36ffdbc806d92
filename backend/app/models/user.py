from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from app.models.booking import Booking

ROLE_PLAYER = "player"
ROLE_ADMIN = "admin"
USER_ROLES = (ROLE_PLAYER, ROLE_ADMIN)


class User(SQLModel, table=True):
    # "user" is reserved on Postgres
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(index=True, unique=True, max_length=50)
    email: str = Field(index=True, unique=True, max_length=255)
    password_hash: str
    full_name: str
    phone: str
    role: str = Field(default=ROLE_PLAYER, max_length=10)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Relationships
    bookings: List["Booking"] = Relationship(back_populates="user")
