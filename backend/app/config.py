import os
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./court_booking.db")
SQL_ECHO = _env_bool("SQL_ECHO")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Session cookie signing
SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
SESSION_MAX_AGE = _env_int("SESSION_MAX_AGE", 24 * 60 * 60)
SESSION_HTTPS_ONLY = _env_bool("SESSION_HTTPS_ONLY")

# Hourly slots run from OPENING_HOUR to CLOSING_HOUR (last slot ends at CLOSING_HOUR)
OPENING_HOUR = _env_int("OPENING_HOUR", 8)
CLOSING_HOUR = _env_int("CLOSING_HOUR", 22)

# Players may book today and the next BOOKING_WINDOW_DAYS - 1 days
BOOKING_WINDOW_DAYS = _env_int("BOOKING_WINDOW_DAYS", 14)

# Optional admin account created at startup if missing
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "")


def cors_origins() -> List[str]:
    origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    extra = os.getenv("CORS_ORIGINS", "")
    if extra:
        origins.extend(o.strip() for o in extra.split(",") if o.strip())
    return origins
