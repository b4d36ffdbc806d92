from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlmodel import Session, select

from app.database import get_session
from app.models.court import Court
from app.schemas import CourtResponse
from app.services.booking_service import court_availability

router = APIRouter()


class CourtAvailabilityItem(CourtResponse):
    total_slots: int
    booked_slots: int
    available_slots: int
    availability_status: str  # available | limited | fully_booked


class CourtAvailabilityResponse(BaseModel):
    date: date
    courts: List[CourtAvailabilityItem]


@router.get("/courts", response_model=List[CourtResponse])
def list_courts(session: Session = Depends(get_session)):
    """List courts open for booking"""
    courts = session.exec(
        select(Court).where(Court.is_available == True).order_by(Court.name)  # noqa: E712
    ).all()
    return courts


@router.get("/courts/availability", response_model=CourtAvailabilityResponse)
def get_courts_availability(
    date_: Optional[date] = Query(default=None, alias="date", description="Day to check (defaults to today)"),
    session: Session = Depends(get_session),
):
    """Free/booked slot counts per court for a day"""
    target_date = date_ or date.today()
    items = []
    for entry in court_availability(session, target_date):
        court_data = CourtResponse.model_validate(entry.court).model_dump()
        items.append(
            CourtAvailabilityItem(
                **court_data,
                total_slots=entry.total_slots,
                booked_slots=entry.booked_slots,
                available_slots=entry.available_slots,
                availability_status=entry.availability_status,
            )
        )
    return CourtAvailabilityResponse(date=target_date, courts=items)


@router.get("/courts/{court_id}", response_model=CourtResponse)
def get_court(court_id: int, session: Session = Depends(get_session)):
    """Get a court by ID"""
    court = session.get(Court, court_id)
    if not court:
        raise HTTPException(status_code=404, detail="Court not found")
    return court
