"""
Property listing management and public listing reads
"""

import math
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from easyprop.auth.firebase import AuthenticatedUser
from easyprop.core.config import settings
from easyprop.core.exceptions import NotFoundException, PermissionException, ValidationException
from easyprop.core.logging import get_logger
from easyprop.db.models import Favorite, Property, PropertyView, User
from easyprop.services.users import UserService, update_total_cities, update_user_stats
from easyprop.utils.dates import parse_datetime
from easyprop.utils.ids import generate_id

logger = get_logger(__name__)

EARTH_RADIUS_KM = 6371.0

INT_FIELDS = (
    "bedrooms", "bathrooms", "area", "built_up_area", "carpet_area",
    "balconies", "parking", "floor", "total_floors", "age_of_property",
)
FLOAT_FIELDS = ("price", "price_per_sqft")
LIST_FIELDS = ("images", "videos", "amenities", "features", "tags", "keywords")
DATETIME_FIELDS = ("possession_date", "published_at", "expires_at")
PROTECTED_FIELDS = ("id", "user_id", "created_at")


def to_int(value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def listing_counter(listing_type: Optional[str]) -> str:
    return "properties_for_sale" if listing_type == "sale" else "properties_for_rent"


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two coordinates in kilometres"""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def build_property_row(uid: str, data: Dict[str, Any]) -> Property:
    """New listing with every optional field defaulted."""
    now = datetime.utcnow()
    row = Property(
        id=generate_id("prop"),
        user_id=uid,
        title=data.get("title"),
        description=data.get("description") or "",
        address=data.get("location") or data.get("address"),
        city=data.get("city") or "Unknown",
        state=data.get("state") or "Unknown",
        country=data.get("country") or settings.DEFAULT_COUNTRY,
        pincode=data.get("pincode"),
        locality=data.get("locality"),
        landmark=data.get("landmark"),
        latitude=data.get("latitude"),
        longitude=data.get("longitude"),
        type=data.get("type") or "sale",
        category=data.get("category") or "residential",
        property_type=data.get("property_type") or "apartment",
        status=data.get("status") or "active",
        availability=data.get("availability") or "immediate",
        currency=data.get("currency") or settings.DEFAULT_CURRENCY,
        negotiable=data.get("negotiable") is not False,
        facing=data.get("facing") or "north",
        source=data.get("source") or "direct",
        furnishing=data.get("furnishing") or "unfurnished",
        builder=data.get("builder"),
        contact_preference=data.get("contact_preference") or "both",
        best_time_to_call=data.get("best_time_to_call") or "anytime",
        featured=bool(data.get("featured")),
        premium=bool(data.get("premium")),
        verified=bool(data.get("verified")),
        views=0,
        inquiries=0,
        favorites=0,
        shares=0,
        virtual_tour=data.get("virtual_tour"),
        floor_plan=data.get("floor_plan"),
        possession_date=parse_datetime(data.get("possession_date")),
        created_at=now,
        updated_at=now,
        published_at=now,
    )
    for field in INT_FIELDS:
        setattr(row, field, to_int(data.get(field)))
    for field in FLOAT_FIELDS:
        setattr(row, field, to_float(data.get(field)))
    for field in LIST_FIELDS:
        setattr(row, field, list(data.get(field) or []))
    return row


class PropertyService:
    """Listing CRUD, view tracking and homepage reads"""

    def __init__(self, db: Session):
        self.db = db

    def add_property(self, auth_user: AuthenticatedUser, data: Dict[str, Any]) -> Property:
        if not (data.get("title") or "").strip():
            raise ValidationException("Property title is required")

        UserService(self.db).ensure_user_profile(auth_user)

        row = build_property_row(auth_user.uid, data)
        if not row.images:
            logger.warning("Property created without images", user_id=auth_user.uid)

        try:
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Error adding property", user_id=auth_user.uid, error=str(e))
            raise

        update_user_stats(self.db, auth_user.uid, {
            "total_properties": 1,
            listing_counter(row.type): 1,
        })
        update_total_cities(self.db, auth_user.uid)

        logger.info("Property added", property_id=row.id, user_id=auth_user.uid, city=row.city)
        return row

    def get_user_properties(
        self,
        uid: str,
        listing_type: Optional[str] = None,
        status: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[Property]:
        query = self.db.query(Property).filter(Property.user_id == uid)
        if listing_type:
            query = query.filter(Property.type == listing_type)
        if status:
            query = query.filter(Property.status == status)
        query = query.order_by(Property.created_at.desc())
        if limit:
            query = query.limit(limit)
        return query.all()

    def get_user_property(self, uid: str, property_id: str) -> Property:
        row = self.db.query(Property).filter(
            Property.id == property_id,
            Property.user_id == uid
        ).first()
        if not row:
            raise NotFoundException("Property not found", details={"property_id": property_id})
        return row

    def _get_owned(self, uid: str, property_id: str) -> Property:
        row = self.db.get(Property, property_id)
        if not row:
            raise NotFoundException("Property not found", details={"property_id": property_id})
        if row.user_id != uid:
            raise PermissionException("You can only modify your own properties")
        return row

    def update_property(self, uid: str, property_id: str, updates: Dict[str, Any]) -> Property:
        row = self._get_owned(uid, property_id)
        city_changed = "city" in updates and updates["city"] != row.city

        columns = Property.__table__.columns.keys()
        for key, value in updates.items():
            if key == "location":
                key = "address"
            if key in PROTECTED_FIELDS or key not in columns:
                continue
            if key in INT_FIELDS:
                value = to_int(value)
            elif key in FLOAT_FIELDS:
                value = to_float(value)
            elif key in DATETIME_FIELDS:
                value = parse_datetime(value)
            setattr(row, key, value)
        row.updated_at = datetime.utcnow()

        try:
            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Error updating property", property_id=property_id, error=str(e))
            raise

        if city_changed or "status" in updates:
            update_total_cities(self.db, uid)
        return row

    def delete_property(self, uid: str, property_id: str) -> None:
        row = self._get_owned(uid, property_id)
        listing_type = row.type

        try:
            self.db.query(PropertyView).filter(PropertyView.property_id == property_id).delete()
            self.db.query(Favorite).filter(Favorite.property_id == property_id).delete()
            self.db.delete(row)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Error deleting property", property_id=property_id, error=str(e))
            raise

        update_user_stats(self.db, uid, {
            "total_properties": -1,
            listing_counter(listing_type): -1,
        })
        update_total_cities(self.db, uid)
        logger.info("Property deleted", property_id=property_id, user_id=uid)

    def record_view(
        self,
        property_id: str,
        user_id: Optional[str] = None,
        session_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Count one view per signed-in user, or per session for anonymous visitors."""
        row = self.db.get(Property, property_id)
        if not row:
            raise NotFoundException("Property not found", details={"property_id": property_id})

        session_id = user_id or session_id or generate_id("session")
        query = self.db.query(PropertyView.id).filter(PropertyView.property_id == property_id)
        if user_id:
            query = query.filter(PropertyView.user_id == user_id)
        else:
            query = query.filter(PropertyView.session_id == session_id)

        if query.first():
            return {
                "recorded": False,
                "session_id": session_id,
                "message": "View already recorded for this session.",
            }

        view = PropertyView(
            property_id=property_id,
            user_id=user_id,
            session_id=session_id,
            viewed_at=datetime.utcnow(),
        )
        try:
            self.db.add(view)
            row.views = (row.views or 0) + 1
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Error recording property view", property_id=property_id, error=str(e))
            raise

        logger.debug("Property view recorded", property_id=property_id, anonymous=user_id is None)
        return {"recorded": True, "session_id": session_id, "views": row.views}

    def get_property_by_id(self, property_id: str) -> Property:
        row = self.db.query(Property).options(joinedload(Property.owner)).filter(
            Property.id == property_id
        ).first()
        if not row:
            raise NotFoundException("Property not found", details={"property_id": property_id})
        return row

    def get_featured_property(self) -> Optional[Property]:
        return self.db.query(Property).options(joinedload(Property.owner)).filter(
            Property.featured.is_(True)
        ).order_by(Property.created_at.desc()).first()

    def get_popular_properties(self, limit: int = 6) -> List[Property]:
        return self.db.query(Property).options(joinedload(Property.owner)).order_by(
            Property.views.desc()
        ).limit(limit).all()

    def get_recent_properties(self, limit: int = 4) -> List[Property]:
        return self.db.query(Property).order_by(Property.created_at.desc()).limit(limit).all()

    def get_homepage_stats(self) -> Dict[str, int]:
        properties_listed = self.db.query(func.count(Property.id)).scalar() or 0
        expert_agents = self.db.query(func.count(User.id)).filter(
            User.user_type.in_(["agent", "builder"])
        ).scalar() or 0
        cities = {city for (city,) in self.db.query(Property.city).all() if city}
        sold = self.db.query(func.count(Property.id)).filter(Property.status == "sold").scalar() or 0

        return {
            "properties_listed": properties_listed,
            "happy_customers": sold + settings.HAPPY_CUSTOMERS_BASE,
            "expert_agents": expert_agents,
            "cities_covered": len(cities),
        }

    def get_nearby_properties(self, current: Property, limit: int = 6) -> List[Property]:
        """Active listings in the same city or locality priced within 30% of the current one."""
        location_filters = []
        if current.city:
            location_filters.append(Property.city.ilike(f"%{current.city}%"))
        if current.locality:
            location_filters.append(Property.locality.ilike(f"%{current.locality}%"))
        if not location_filters:
            return []

        query = self.db.query(Property).options(joinedload(Property.owner)).filter(
            Property.id != current.id,
            Property.status == "active",
            or_(*location_filters),
        )
        if current.price:
            query = query.filter(
                Property.price >= current.price * 0.7,
                Property.price <= current.price * 1.3,
            )
        return query.order_by(Property.created_at.desc()).limit(limit).all()

    def get_nearby_properties_by_coordinates(
        self,
        latitude: float,
        longitude: float,
        radius_km: float = 10,
        limit: int = 6
    ) -> List[Dict[str, Any]]:
        rows = self.db.query(Property).filter(
            Property.status == "active",
            Property.latitude.isnot(None),
            Property.longitude.isnot(None),
        ).all()

        nearby = []
        for row in rows:
            distance = haversine_km(latitude, longitude, row.latitude, row.longitude)
            if distance <= radius_km:
                nearby.append((distance, row))
        nearby.sort(key=lambda item: item[0])

        return [
            {**row.to_dict(), "distance_km": round(distance, 2)}
            for distance, row in nearby[:limit]
        ]
