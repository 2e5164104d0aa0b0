from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from easyprop.auth.firebase import AuthenticatedUser, get_current_user, get_optional_user
from easyprop.core.logging import get_logger
from easyprop.db.base import get_db
from easyprop.services.tours import TourService, get_available_tour_dates, get_time_slots

logger = get_logger(__name__)
router = APIRouter()


class TourRequest(BaseModel):
    property_id: str
    visitor_name: str
    visitor_email: str
    visitor_phone: str
    tour_date: date
    tour_time: str
    visitor_message: Optional[str] = None
    tour_type: str = "physical"


class TourStatusUpdate(BaseModel):
    status: str


class TourFeedback(BaseModel):
    agent_feedback: Optional[str] = None
    agent_rating: Optional[int] = None
    agent_notes: Optional[str] = None
    follow_up_required: bool = False
    follow_up_date: Optional[date] = None
    follow_up_notes: Optional[str] = None


@router.post("", status_code=status.HTTP_201_CREATED)
async def schedule_tour(
    booking: TourRequest,
    user: Optional[AuthenticatedUser] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    """Book a visit. Visitors need not be signed in."""
    tour = TourService(db).schedule_tour(booking.model_dump(), visitor=user)
    return tour.to_dict()


@router.get("/slots")
async def get_booking_options():
    return {"time_slots": get_time_slots(), "available_dates": get_available_tour_dates()}


@router.get("")
async def list_owner_tours(
    status_filter: Optional[str] = Query(None, alias="status"),
    upcoming: bool = False,
    past: bool = False,
    limit: Optional[int] = Query(None, ge=1),
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Tours booked on the caller's listings."""
    tours = TourService(db).get_owner_tours(user.uid, status_filter, upcoming, past, limit)
    return {"tours": tours, "total": len(tours)}


@router.get("/mine")
async def list_visitor_tours(
    status_filter: Optional[str] = Query(None, alias="status"),
    upcoming: bool = False,
    past: bool = False,
    limit: Optional[int] = Query(None, ge=1),
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Tours the caller has booked as a visitor."""
    tours = TourService(db).get_visitor_tours(
        user, status=status_filter, upcoming=upcoming, past=past, limit=limit
    )
    return {"tours": tours, "total": len(tours)}


@router.get("/statistics")
async def get_tour_statistics(
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return TourService(db).get_tour_statistics(user.uid)


@router.get("/upcoming")
async def get_upcoming_tours(
    limit: int = Query(10, ge=1, le=100),
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return {"tours": TourService(db).get_upcoming_tours(user.uid, limit)}


@router.get("/{tour_id}")
async def get_tour(
    tour_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return TourService(db).get_tour_by_id(tour_id, user.uid)


@router.patch("/{tour_id}/status")
async def update_tour_status(
    tour_id: str,
    update: TourStatusUpdate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    tour = TourService(db).update_tour_status(tour_id, update.status, user.uid)
    return tour.to_dict()


@router.post("/{tour_id}/feedback")
async def add_tour_feedback(
    tour_id: str,
    feedback: TourFeedback,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    tour = TourService(db).add_tour_feedback(tour_id, feedback.model_dump(), user.uid)
    return tour.to_dict()
