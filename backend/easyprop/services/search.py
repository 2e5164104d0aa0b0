"""
Property search and filter options
"""

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from easyprop.core.exceptions import ValidationException
from easyprop.core.logging import get_logger
from easyprop.db.models import Property

logger = get_logger(__name__)

SORT_OPTIONS = {
    "price_low_high": (Property.price, True),
    "price_high_low": (Property.price, False),
    "newest": (Property.created_at, False),
    "oldest": (Property.created_at, True),
    "most_viewed": (Property.views, False),
    "area_low_high": (Property.area, True),
    "area_high_low": (Property.area, False),
}

AGE_BUCKETS = {
    "0-1": (None, 1),
    "1-5": (1, 5),
    "5-10": (5, 10),
    "10+": (10, None),
}


class PropertySearchFilters(BaseModel):
    listing_type: Optional[str] = None
    property_type: Optional[str] = None
    city: Optional[str] = None
    locality: Optional[str] = None
    price_range: Optional[str] = None
    bhk: Optional[str] = None
    furnishing: Optional[str] = None
    facing: Optional[str] = None
    age_of_property: Optional[str] = None
    area_range: Optional[str] = None
    amenities: List[str] = []
    search_query: Optional[str] = None
    sort_by: str = "newest"
    limit: int = 20
    offset: int = 0


def parse_range(value: str, field: str) -> Tuple[Optional[float], Optional[float]]:
    """
    Parse ``"min-max"`` or ``"min+"`` into bounds.

    A zero or empty bound means unbounded on that side.
    """
    text = value.strip()
    try:
        if text.endswith("+"):
            low = float(text[:-1])
            return (low or None), None
        low_text, high_text = text.split("-", 1)
        low = float(low_text) if low_text.strip() else 0
        high = float(high_text) if high_text.strip() else 0
    except ValueError:
        raise ValidationException(f"Invalid {field}", details={field: value})
    return (low or None), (high or None)


class SearchService:
    def __init__(self, db: Session):
        self.db = db

    def _active(self):
        return self.db.query(Property).filter(Property.status == "active")

    def build_query(self, filters: PropertySearchFilters):
        query = self._active().options(joinedload(Property.owner))

        if filters.listing_type:
            query = query.filter(Property.type == filters.listing_type)
        if filters.property_type:
            query = query.filter(Property.property_type == filters.property_type)
        if filters.city:
            query = query.filter(Property.city.ilike(f"%{filters.city}%"))
        if filters.locality:
            query = query.filter(Property.locality.ilike(f"%{filters.locality}%"))

        if filters.price_range:
            low, high = parse_range(filters.price_range, "price_range")
            if low is not None:
                query = query.filter(Property.price >= low)
            if high is not None:
                query = query.filter(Property.price <= high)

        if filters.bhk:
            if filters.bhk == "4+":
                query = query.filter(Property.bedrooms >= 4)
            else:
                try:
                    query = query.filter(Property.bedrooms == int(filters.bhk))
                except ValueError:
                    raise ValidationException("Invalid bhk", details={"bhk": filters.bhk})

        if filters.furnishing:
            query = query.filter(Property.furnishing == filters.furnishing)
        if filters.facing:
            query = query.filter(Property.facing == filters.facing)

        if filters.age_of_property:
            if filters.age_of_property not in AGE_BUCKETS:
                raise ValidationException(
                    "Invalid age_of_property",
                    details={"age_of_property": filters.age_of_property}
                )
            low, high = AGE_BUCKETS[filters.age_of_property]
            if low is not None:
                query = query.filter(Property.age_of_property >= low)
            if high is not None:
                query = query.filter(Property.age_of_property <= high)

        if filters.area_range:
            low, high = parse_range(filters.area_range, "area_range")
            if low is not None:
                query = query.filter(Property.area >= low)
            if high is not None:
                query = query.filter(Property.area <= high)

        if filters.search_query:
            pattern = f"%{filters.search_query}%"
            query = query.filter(or_(
                Property.title.ilike(pattern),
                Property.description.ilike(pattern),
                Property.address.ilike(pattern),
                Property.locality.ilike(pattern),
            ))

        column, ascending = SORT_OPTIONS.get(filters.sort_by, SORT_OPTIONS["newest"])
        return query.order_by(column.asc() if ascending else column.desc())

    def search_properties(self, filters: PropertySearchFilters) -> Dict[str, Any]:
        query = self.build_query(filters)

        if filters.amenities:
            # amenity containment is checked in Python, before pagination
            wanted = set(filters.amenities)
            matches = [row for row in query.all() if wanted.issubset(set(row.amenities or []))]
            total = len(matches)
            page = matches[filters.offset:filters.offset + filters.limit]
        else:
            total = query.count()
            page = query.offset(filters.offset).limit(filters.limit).all()

        logger.info("Property search", total=total, returned=len(page), sort_by=filters.sort_by)
        return {
            "properties": page,
            "total": total,
            "limit": filters.limit,
            "offset": filters.offset,
        }

    def get_unique_cities(self) -> List[str]:
        rows = self.db.query(Property.city).filter(Property.city.isnot(None)).all()
        return sorted({city for (city,) in rows if city})

    def get_unique_localities(self, city: Optional[str] = None) -> List[str]:
        query = self.db.query(Property.locality).filter(Property.locality.isnot(None))
        if city:
            query = query.filter(Property.city == city)
        return sorted({locality for (locality,) in query.all() if locality})

    def get_property_types_with_counts(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for (property_type,) in self._active().with_entities(Property.property_type).all():
            if property_type:
                counts[property_type] = counts.get(property_type, 0) + 1
        return counts

    def get_price_ranges(self, listing_type: str = "sale") -> Dict[str, float]:
        prices = [
            price for (price,) in self._active().with_entities(Property.price).filter(
                Property.type == listing_type,
                Property.price.isnot(None)
            ).all()
        ]
        if not prices:
            return {"min": 0, "max": 0, "average": 0, "count": 0}
        return {
            "min": min(prices),
            "max": max(prices),
            "average": sum(prices) / len(prices),
            "count": len(prices),
        }

    def get_available_amenities(self) -> List[str]:
        amenities = set()
        for (values,) in self._active().with_entities(Property.amenities).all():
            if isinstance(values, list):
                amenities.update(values)
        return sorted(amenities)

    def search_suggestions(self, query: str, limit: int = 10) -> List[Dict[str, Any]]:
        if not query or len(query) < 2:
            return []

        pattern = f"%{query}%"
        rows = self._active().filter(or_(
            Property.title.ilike(pattern),
            Property.address.ilike(pattern),
            Property.city.ilike(pattern),
            Property.locality.ilike(pattern),
        )).limit(limit).all()

        return [
            {
                "id": row.id,
                "title": row.title,
                "address": row.address,
                "city": row.city,
                "locality": row.locality,
                "price": row.price,
                "property_type": row.property_type,
                "images": row.images or [],
            }
            for row in rows
        ]

    def get_search_filters_data(self) -> Dict[str, Any]:
        rows = self._active().all()

        def distinct(attr: str) -> List[str]:
            return sorted({getattr(row, attr) for row in rows if getattr(row, attr)})

        amenities = set()
        for row in rows:
            if isinstance(row.amenities, list):
                amenities.update(row.amenities)

        sale = [row for row in rows if row.type == "sale"]
        rent = [row for row in rows if row.type == "rent"]

        def price_bounds(subset: List[Property]) -> Dict[str, float]:
            prices = sorted(row.price for row in subset if row.price)
            return {
                "min": prices[0] if prices else 0,
                "max": prices[-1] if prices else 0,
                "count": len(prices),
            }

        return {
            "cities": distinct("city"),
            "localities": distinct("locality"),
            "property_types": distinct("property_type"),
            "furnishing_types": distinct("furnishing"),
            "facing_options": distinct("facing"),
            "amenities": sorted(amenities),
            "price_ranges": {
                "sale": price_bounds(sale),
                "rent": price_bounds(rent),
            },
            "total_properties": len(rows),
            "sale_count": len(sale),
            "rent_count": len(rent),
        }
