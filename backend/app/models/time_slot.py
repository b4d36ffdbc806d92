from datetime import time
from typing import Optional

from sqlmodel import Field, SQLModel


class TimeSlot(SQLModel, table=True):
    """One-hour window shared by every court."""

    id: Optional[int] = Field(default=None, primary_key=True)
    start_time: time = Field(unique=True)
    end_time: time
    is_active: bool = Field(default=True)
