"""
Similar-property lookup and the property page recommendation buckets.

Buckets are filled from a candidate pool; an empty bucket falls back to a
broader one so the page never shows an empty section.
"""

from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session, joinedload

from easyprop.core.exceptions import NotFoundException
from easyprop.core.logging import get_logger
from easyprop.db.models import Property
from easyprop.services.analytics import AnalyticsService

logger = get_logger(__name__)

DEFAULT_AREA = 1000
BUCKET_SIZE = 6
SMALL_BUCKET_SIZE = 4

MOCK_IMAGES = (
    "https://images.unsplash.com/photo-1545324418-cc1a3fa10c00?w=400&h=300&fit=crop",
    "https://images.unsplash.com/photo-1600596542815-ffad4c1539a9?w=400&h=300&fit=crop",
    "https://images.unsplash.com/photo-1486406146926-c627a92ad1ab?w=400&h=300&fit=crop",
)


def _same_text(a: Optional[str], b: Optional[str]) -> bool:
    return bool(a) and bool(b) and a.lower() == b.lower()


def build_mock_properties(current: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Three placeholder listings shaped after the current property."""
    kind = current.get("property_type") or "Property"
    city = current.get("city")
    price = current.get("price") or 0
    area = current.get("area") or DEFAULT_AREA
    bedrooms = current.get("bedrooms")
    bathrooms = current.get("bathrooms") or 2
    locality = current.get("locality") or "Same Locality"
    address = current.get("address")

    base = {
        "city": city or "Same City",
        "locality": locality,
        "property_type": current.get("property_type") or "apartment",
        "status": "active",
    }
    return [
        {
            **base,
            "id": "mock-1",
            "title": f"Similar {kind} in {city or 'Same Area'}",
            "address": address or "Similar Location",
            "price": price * 0.9,
            "bedrooms": bedrooms or 2,
            "bathrooms": bathrooms,
            "area": area + 50,
            "images": [MOCK_IMAGES[0]],
            "views": 245,
            "owner": {"name": "Demo Agent", "company": "Premium Properties"},
        },
        {
            **base,
            "id": "mock-2",
            "title": f"Premium {kind} Near You",
            "address": f"Near {address or 'Your Location'}",
            "price": price * 1.1,
            "bedrooms": bedrooms or 3,
            "bathrooms": bathrooms + 1,
            "area": area - 100,
            "images": [MOCK_IMAGES[1]],
            "views": 189,
            "owner": {"name": "Expert Realtor", "company": "Elite Homes"},
        },
        {
            **base,
            "id": "mock-3",
            "title": f"Affordable {kind} Option",
            "address": f"{city or 'Same City'} - Great Location",
            "price": price * 0.8,
            "bedrooms": bedrooms or 2,
            "bathrooms": bathrooms,
            "area": area - 50,
            "images": [MOCK_IMAGES[2]],
            "views": 156,
            "owner": {"name": "Property Expert", "company": "Smart Homes"},
        },
    ]


def bucket_candidates(current: Dict[str, Any], candidates: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Split candidates into the themed sections shown on a property page."""
    pool = [p for p in candidates if p.get("id") != current.get("id")]

    def pick(predicate: Callable[[Dict[str, Any]], bool]) -> List[Dict[str, Any]]:
        return [p for p in pool if predicate(p)]

    price = current.get("price") or 0
    price_range = pick(lambda p: price * 0.7 <= (p.get("price") or 0) <= price * 1.3)

    location = pick(lambda p: _same_text(p.get("city"), current.get("city"))
                    or _same_text(p.get("locality"), current.get("locality")))
    same_area = pick(lambda p: _same_text(p.get("locality"), current.get("locality")))
    same_bhk = pick(lambda p: p.get("bedrooms") == current.get("bedrooms"))

    area = current.get("area") or DEFAULT_AREA
    similar_size = pick(lambda p: bool(p.get("area")) and area - 300 <= p["area"] <= area + 300)

    same_builder = pick(lambda p: _same_text(p.get("builder"), current.get("builder")))
    same_type = pick(lambda p: _same_text(p.get("property_type"), current.get("property_type")))

    def fill(matches: List[Dict[str, Any]], fallback: List[Dict[str, Any]], size: int) -> List[Dict[str, Any]]:
        return (matches or fallback)[:size]

    result = {
        "similar": pool[:BUCKET_SIZE],
        "price_range": fill(price_range, pool, BUCKET_SIZE),
        "location": fill(location, pool, BUCKET_SIZE),
        "same_area": fill(same_area, location, BUCKET_SIZE),
        "same_bhk": fill(same_bhk, pool, BUCKET_SIZE),
        "similar_size": fill(similar_size, pool, BUCKET_SIZE),
        "same_builder": fill(same_builder, pool, SMALL_BUCKET_SIZE),
        "same_type": fill(same_type, pool, SMALL_BUCKET_SIZE),
        "recommended": fill(same_type, pool, SMALL_BUCKET_SIZE),
    }
    result["counts"] = {
        "total": len(pool),
        "price_range": len(price_range),
        "location": len(location),
        "same_area": len(same_area),
        "same_bhk": len(same_bhk),
        "similar_size": len(similar_size),
        "same_builder": len(same_builder),
        "recommended": len(result["recommended"]),
    }
    return result


class RecommendationService:
    def __init__(self, db: Session):
        self.db = db

    def get_similar_properties(self, property_id: str, limit: int = 4) -> List[Property]:
        """Active listings in the same city and type within 20% of the price."""
        current = self.db.get(Property, property_id)
        if not current:
            raise NotFoundException("Property not found", details={"property_id": property_id})

        query = self.db.query(Property).options(joinedload(Property.owner)).filter(
            Property.status == "active",
            Property.id != property_id,
        )
        if current.city:
            query = query.filter(Property.city == current.city)
        if current.property_type:
            query = query.filter(Property.property_type == current.property_type)
        if current.price:
            query = query.filter(
                Property.price >= current.price * 0.8,
                Property.price <= current.price * 1.2,
            )
        return query.limit(limit).all()

    def _broad_candidates(self, property_id: str, limit: int = 30) -> List[Property]:
        return self.db.query(Property).options(joinedload(Property.owner)).filter(
            Property.status == "active",
            Property.id != property_id,
        ).limit(limit).all()

    def build_recommendations(self, current: Property) -> Dict[str, Any]:
        rows = self.get_similar_properties(current.id, 20)
        source = "similar"
        if not rows:
            rows = self._broad_candidates(current.id)
            source = "broad"

        current_data = current.to_dict()
        candidates = [row.to_dict(include_owner=True) for row in rows]
        if not candidates:
            candidates = build_mock_properties(current_data)
            source = "mock"

        result = bucket_candidates(current_data, candidates)
        result["source"] = source
        logger.info("Built recommendations", property_id=current.id, source=source,
                    candidates=len(candidates))
        return result

    def get_property_analytics(self, property_id: str, days_back: int = 30) -> Dict[str, Any]:
        analytics = AnalyticsService(self.db)
        views = analytics.get_property_view_analytics(property_id, days_back)
        recent = analytics.get_property_views(property_id, 10)
        similar = self.get_similar_properties(property_id, 4)

        return {
            "views": views,
            "recent_views": recent,
            "similar_properties": [row.to_dict(include_owner=True) for row in similar],
            "total_views": views.get("total_views", 0),
            "recent_views_count": len(recent["recent_views"]),
            "similar_properties_count": len(similar),
        }
