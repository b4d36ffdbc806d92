import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session
from starlette.middleware.sessions import SessionMiddleware

from app import config
from app.database import engine, init_db
from app.db_seed import ensure_admin_user, seed_time_slots
from app.routes import admin, auth, bookings, courts

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

APP_NAME = "Court Booking API"

app = FastAPI(title=APP_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Signed session cookie carrying user_id and role
app.add_middleware(
    SessionMiddleware,
    secret_key=config.SECRET_KEY,
    session_cookie="court_booking_session",
    max_age=config.SESSION_MAX_AGE,
    same_site="lax",
    https_only=config.SESSION_HTTPS_ONLY,
)

# Include routers
app.include_router(auth.router, prefix="/api", tags=["auth"])
app.include_router(courts.router, prefix="/api", tags=["courts"])
app.include_router(bookings.router, prefix="/api", tags=["bookings"])
app.include_router(admin.router, prefix="/api", tags=["admin"])


@app.on_event("startup")
def on_startup():
    if config.SECRET_KEY == "dev-secret-change-me":
        logger.warning("SECRET_KEY is not set; using the development default")

    init_db()
    with Session(engine) as session:
        seed_time_slots(session)
        ensure_admin_user(session)

    logger.info(f"{APP_NAME} started ({engine.url.get_backend_name()})")


@app.get("/api/health")
def health_check():
    return {"app_name": APP_NAME, "status": "healthy"}

