import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, field_validator
from sqlalchemy import or_
from sqlmodel import Session, select

from app.database import get_session
from app.models.user import User
from app.utils.auth import current_user_id, hash_password, login_session, logout_session, verify_password

logger = logging.getLogger(__name__)

router = APIRouter()

MIN_PASSWORD_LENGTH = 6


class RegisterRequest(BaseModel):
    username: str
    email: str
    password: str
    full_name: str
    phone: str

    @field_validator("username", "email", "full_name", "phone")
    @classmethod
    def required_text(cls, v):
        if not v or not v.strip():
            raise ValueError("field is required")
        return v.strip()

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        local, _, domain = v.partition("@")
        if not local or "." not in domain:
            raise ValueError("invalid email address")
        return v.lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"password must be at least {MIN_PASSWORD_LENGTH} characters")
        return v


class LoginRequest(BaseModel):
    username: str  # Username or email
    password: str


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    full_name: str
    phone: Optional[str] = None
    role: str
    created_at: datetime

    class Config:
        from_attributes = True


class RegisterResponse(BaseModel):
    message: str
    user: UserResponse


class LoginResponse(BaseModel):
    message: str
    user: UserResponse


@router.post("/auth/register", response_model=RegisterResponse, status_code=201)
def register(payload: RegisterRequest, session: Session = Depends(get_session)):
    """Register a new player account"""
    existing = session.exec(
        select(User).where(or_(User.username == payload.username, User.email == payload.email))
    ).first()
    if existing:
        raise HTTPException(status_code=400, detail="Username or email already exists")

    user = User(
        username=payload.username,
        email=payload.email,
        password_hash=hash_password(payload.password),
        full_name=payload.full_name,
        phone=payload.phone,
    )
    try:
        session.add(user)
        session.commit()
        session.refresh(user)
    except Exception as e:
        session.rollback()
        if "UNIQUE constraint failed" in str(e) or "IntegrityError" in str(type(e).__name__):
            raise HTTPException(status_code=400, detail="Username or email already exists")
        raise HTTPException(status_code=500, detail="Registration failed")

    logger.info(f"Registered user {user.id} ({user.username})")
    return RegisterResponse(message="Registration successful", user=UserResponse.model_validate(user))


@router.post("/auth/login", response_model=LoginResponse)
def login(payload: LoginRequest, request: Request, session: Session = Depends(get_session)):
    """Log in with username or email; sets the session cookie"""
    identifier = payload.username.strip()
    user = session.exec(
        select(User).where(or_(User.username == identifier, User.email == identifier.lower()))
    ).first()

    if not user or not verify_password(user.password_hash, payload.password):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    login_session(request, user)
    logger.info(f"User {user.id} logged in")
    return LoginResponse(message="Login successful", user=UserResponse.model_validate(user))


@router.post("/auth/logout")
def logout(request: Request):
    """Clear the session"""
    logout_session(request)
    return {"message": "Logout successful"}


@router.get("/auth/me", response_model=UserResponse)
def me(request: Request, session: Session = Depends(get_session)):
    """Get the logged-in user"""
    user_id = current_user_id(request)
    if not user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")

    user = session.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user
