"""
Property tour scheduling and owner-side tour management
"""

from contextlib import contextmanager
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlalchemy.orm import Session

from easyprop.auth.firebase import AuthenticatedUser
from easyprop.core.exceptions import (
    NotFoundException, ToursUnavailableException, ValidationException,
)
from easyprop.core.logging import get_logger
from easyprop.db.models import Property, Tour
from easyprop.utils.formatting import round_half_up
from easyprop.utils.ids import generate_id
from easyprop.utils.validation import format_phone_number, validate_email, validate_phone

logger = get_logger(__name__)

TIME_SLOTS = ("09:00", "10:00", "11:00", "12:00", "14:00", "15:00", "16:00", "17:00")
TOUR_STATUSES = ("pending", "confirmed", "completed", "cancelled")
TOUR_TYPES = ("physical", "virtual")
BOOKING_WINDOW_DAYS = 30

MISSING_TABLE_MARKERS = ("no such table", "does not exist", "undefinedtable")
UNAVAILABLE_MESSAGE = (
    "Tours functionality is not available. Please contact support to enable tour scheduling."
)


def _is_missing_table(error: Exception) -> bool:
    text = str(getattr(error, "orig", error)).lower()
    return any(marker in text for marker in MISSING_TABLE_MARKERS)


def slot_label(slot: str) -> str:
    """'14:00' -> '2:00 PM'"""
    hour, minute = (int(part) for part in slot.split(":"))
    suffix = "AM" if hour < 12 else "PM"
    return f"{(hour % 12) or 12}:{minute:02d} {suffix}"


def get_time_slots() -> List[Dict[str, str]]:
    return [{"value": slot, "label": slot_label(slot)} for slot in TIME_SLOTS]


def get_available_tour_dates(today: Optional[date] = None, days: int = BOOKING_WINDOW_DAYS) -> List[str]:
    """Bookable dates: the next ``days`` days, Sundays excluded."""
    today = today or date.today()
    dates = []
    for offset in range(1, days + 1):
        day = today + timedelta(days=offset)
        if day.weekday() != 6:
            dates.append(day.isoformat())
    return dates


def _parse_date(value: Any, field: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationException(f"Invalid {field}", details={field: value})


class TourService:
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _tours_table(self):
        """Report a missing tours table as ToursUnavailableException."""
        try:
            yield
        except (OperationalError, ProgrammingError) as e:
            self.db.rollback()
            if _is_missing_table(e):
                logger.warning("Tours table does not exist, run the tours migration")
                raise ToursUnavailableException(UNAVAILABLE_MESSAGE)
            raise

    def _attach_property(self, tours: List[Tour], with_owner: bool = False) -> List[Dict[str, Any]]:
        results = []
        for tour in tours:
            data = tour.to_dict()
            prop = self.db.get(Property, tour.property_id)
            if prop is None:
                data["property"] = None
            else:
                summary = prop.summary()
                if with_owner:
                    owner = prop.owner
                    summary["owner"] = {
                        "name": owner.name,
                        "phone": owner.phone,
                        "email": owner.email,
                        "company": owner.company,
                    } if owner else None
                data["property"] = summary
            results.append(data)
        return results

    def schedule_tour(self, data: Dict[str, Any], visitor: Optional[AuthenticatedUser] = None) -> Tour:
        required = ("property_id", "visitor_name", "visitor_email", "visitor_phone", "tour_date", "tour_time")
        missing = [field for field in required if not data.get(field)]
        if missing:
            raise ValidationException("Please fill in all required fields", details={"missing": missing})

        phone = format_phone_number(data["visitor_phone"])
        if not validate_phone(phone):
            raise ValidationException("Please enter a valid 10-digit phone number")
        if not validate_email(data["visitor_email"]):
            raise ValidationException("Please enter a valid email address")

        tour_date = _parse_date(data["tour_date"], "tour_date")
        if tour_date < date.today():
            raise ValidationException("Tour date cannot be in the past")
        if data["tour_time"] not in TIME_SLOTS:
            raise ValidationException(
                "Invalid tour time slot",
                details={"tour_time": data["tour_time"], "allowed": list(TIME_SLOTS)}
            )

        tour_type = data.get("tour_type") or "physical"
        if tour_type not in TOUR_TYPES:
            raise ValidationException("Invalid tour type", details={"tour_type": tour_type})

        prop = self.db.get(Property, data["property_id"])
        if not prop:
            raise NotFoundException("Property not found", details={"property_id": data["property_id"]})

        now = datetime.utcnow()
        tour = Tour(
            id=generate_id("tour"),
            property_id=prop.id,
            property_owner_id=prop.user_id,
            visitor_user_id=visitor.uid if visitor else data.get("visitor_user_id"),
            visitor_name=data["visitor_name"].strip(),
            visitor_email=data["visitor_email"].strip(),
            visitor_phone=phone,
            visitor_message=data.get("visitor_message") or "",
            tour_date=tour_date,
            tour_time=data["tour_time"],
            status="pending",
            tour_type=tour_type,
            created_at=now,
            updated_at=now,
        )

        with self._tours_table():
            self.db.add(tour)
            self.db.commit()
            self.db.refresh(tour)

        logger.info("Tour scheduled", tour_id=tour.id, property_id=prop.id, tour_date=str(tour_date))
        return tour

    def _filtered(self, query, status: Optional[str], upcoming: bool, past: bool, limit: Optional[int]):
        today = date.today()
        if status:
            query = query.filter(Tour.status == status)
        if upcoming:
            query = query.filter(Tour.tour_date >= today)
        if past:
            query = query.filter(Tour.tour_date < today)
        query = query.order_by(Tour.tour_date.asc(), Tour.tour_time.asc())
        if limit:
            query = query.limit(limit)
        return query

    def get_owner_tours(
        self,
        uid: str,
        status: Optional[str] = None,
        upcoming: bool = False,
        past: bool = False,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        with self._tours_table():
            query = self.db.query(Tour).filter(Tour.property_owner_id == uid)
            tours = self._filtered(query, status, upcoming, past, limit).all()
        return self._attach_property(tours)

    def _visitor_tours(self, condition, status, upcoming, past, limit) -> List[Dict[str, Any]]:
        try:
            with self._tours_table():
                query = self.db.query(Tour).filter(condition)
                tours = self._filtered(query, status, upcoming, past, limit).all()
        except ToursUnavailableException:
            return []
        return self._attach_property(tours, with_owner=True)

    def get_visitor_tours_by_email(
        self,
        email: str,
        status: Optional[str] = None,
        upcoming: bool = False,
        past: bool = False,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        return self._visitor_tours(Tour.visitor_email == email, status, upcoming, past, limit)

    def get_visitor_tours_by_user_id(
        self,
        uid: str,
        status: Optional[str] = None,
        upcoming: bool = False,
        past: bool = False,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        return self._visitor_tours(Tour.visitor_user_id == uid, status, upcoming, past, limit)

    def get_visitor_tours(
        self,
        visitor: AuthenticatedUser,
        limit: Optional[int] = None,
        **filters
    ) -> List[Dict[str, Any]]:
        """Tours booked by the signed-in user, matched by uid and by email.

        The limit applies to the merged list, not to each lookup.
        """
        tours = {t["id"]: t for t in self.get_visitor_tours_by_user_id(visitor.uid, **filters)}
        if visitor.email:
            for tour in self.get_visitor_tours_by_email(visitor.email, **filters):
                tours.setdefault(tour["id"], tour)
        merged = sorted(tours.values(), key=lambda t: (t["tour_date"], t["tour_time"]))
        return merged[:limit] if limit else merged

    def _get_owned_tour(self, tour_id: str, uid: str) -> Tour:
        with self._tours_table():
            tour = self.db.query(Tour).filter(
                Tour.id == tour_id,
                Tour.property_owner_id == uid
            ).first()
        if not tour:
            raise NotFoundException("Tour not found", details={"tour_id": tour_id})
        return tour

    def get_tour_by_id(self, tour_id: str, uid: str) -> Dict[str, Any]:
        tour = self._get_owned_tour(tour_id, uid)
        return tour.to_dict(include_property=True)

    def update_tour_status(self, tour_id: str, status: str, uid: str) -> Tour:
        if status not in TOUR_STATUSES:
            raise ValidationException("Invalid tour status", details={"status": status, "allowed": list(TOUR_STATUSES)})

        tour = self._get_owned_tour(tour_id, uid)
        tour.status = status
        tour.updated_at = datetime.utcnow()
        with self._tours_table():
            self.db.commit()
            self.db.refresh(tour)

        logger.info("Tour status updated", tour_id=tour_id, status=status)
        return tour

    def get_tour_statistics(self, uid: str) -> Dict[str, int]:
        with self._tours_table():
            tours = self.db.query(Tour.status, Tour.tour_date).filter(Tour.property_owner_id == uid).all()

        total = len(tours)
        counts = {status: sum(1 for s, _ in tours if s == status) for status in TOUR_STATUSES}
        today = date.today()
        upcoming = sum(1 for s, d in tours if d and d > today and s != "cancelled")

        return {
            "total_tours": total,
            "pending_tours": counts["pending"],
            "confirmed_tours": counts["confirmed"],
            "completed_tours": counts["completed"],
            "cancelled_tours": counts["cancelled"],
            "upcoming_tours": upcoming,
            "conversion_rate": round_half_up(counts["completed"] / total * 100) if total else 0,
        }

    def get_upcoming_tours(self, uid: str, limit: int = 10) -> List[Dict[str, Any]]:
        with self._tours_table():
            tours = self.db.query(Tour).filter(
                Tour.property_owner_id == uid,
                Tour.tour_date >= date.today(),
                Tour.status != "cancelled",
            ).order_by(Tour.tour_date.asc(), Tour.tour_time.asc()).limit(limit).all()
        return self._attach_property(tours)

    def add_tour_feedback(self, tour_id: str, feedback: Dict[str, Any], uid: str) -> Tour:
        rating = feedback.get("agent_rating")
        if rating is not None and not (1 <= int(rating) <= 5):
            raise ValidationException("Rating must be between 1 and 5", details={"agent_rating": rating})

        tour = self._get_owned_tour(tour_id, uid)
        tour.agent_feedback = feedback.get("agent_feedback")
        tour.agent_rating = rating
        tour.agent_notes = feedback.get("agent_notes")
        tour.follow_up_required = bool(feedback.get("follow_up_required"))
        tour.follow_up_date = (
            _parse_date(feedback["follow_up_date"], "follow_up_date")
            if feedback.get("follow_up_date") else None
        )
        tour.follow_up_notes = feedback.get("follow_up_notes")
        tour.updated_at = datetime.utcnow()

        with self._tours_table():
            self.db.commit()
            self.db.refresh(tour)

        logger.info("Tour feedback recorded", tour_id=tour_id, rating=rating)
        return tour
