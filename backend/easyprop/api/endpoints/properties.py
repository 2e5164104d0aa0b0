from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Query, Request, Response, UploadFile, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from easyprop.api.deps import SEARCH_FILTERS_KEY, cached_with_etag, invalidate_listing_caches
from easyprop.auth.firebase import AuthenticatedUser, get_current_user, get_optional_user
from easyprop.core.logging import get_logger
from easyprop.db.base import get_db
from easyprop.services.agents import AgentService
from easyprop.services.analytics import AnalyticsService
from easyprop.services.properties import PropertyService
from easyprop.services.recommendations import RecommendationService
from easyprop.services.search import PropertySearchFilters, SearchService
from easyprop.services.storage import storage_client

logger = get_logger(__name__)
router = APIRouter()


class PropertyPayload(BaseModel):
    """Listing fields accepted on create and update. Unknown keys are passed through."""
    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    locality: Optional[str] = None
    pincode: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    type: Optional[str] = None
    property_type: Optional[str] = None
    status: Optional[str] = None
    price: Optional[float] = None
    area: Optional[float] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    furnishing: Optional[str] = None
    facing: Optional[str] = None
    amenities: Optional[List[str]] = None
    images: Optional[List[str]] = None

    class Config:
        extra = "allow"


class ViewPayload(BaseModel):
    session_id: Optional[str] = None


class PropertyListResponse(BaseModel):
    properties: List[Dict[str, Any]]
    total: int
    limit: int
    offset: int


@router.get("", response_model=PropertyListResponse)
async def search_properties(
    listing_type: Optional[str] = Query(None, description="sale or rent"),
    property_type: Optional[str] = Query(None, description="apartment, villa, plot, ..."),
    city: Optional[str] = Query(None, description="Case-insensitive city match"),
    locality: Optional[str] = Query(None, description="Case-insensitive locality match"),
    price_range: Optional[str] = Query(None, description="min-max or min+"),
    bhk: Optional[str] = Query(None, description="Bedrooms, or 4+"),
    furnishing: Optional[str] = None,
    facing: Optional[str] = None,
    age_of_property: Optional[str] = Query(None, description="0-1, 1-5, 5-10 or 10+"),
    area_range: Optional[str] = Query(None, description="min-max or min+ in sq ft"),
    amenities: List[str] = Query([], description="Every amenity must be present"),
    q: Optional[str] = Query(None, description="Free text over title, description and address"),
    sort_by: str = Query("newest", description="Sort order"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db)
):
    """Search active listings."""
    filters = PropertySearchFilters(
        listing_type=listing_type,
        property_type=property_type,
        city=city,
        locality=locality,
        price_range=price_range,
        bhk=bhk,
        furnishing=furnishing,
        facing=facing,
        age_of_property=age_of_property,
        area_range=area_range,
        amenities=amenities,
        search_query=q,
        sort_by=sort_by,
        limit=limit,
        offset=offset,
    )
    logger.info("Property search requested", city=city, listing_type=listing_type, limit=limit, offset=offset)

    result = SearchService(db).search_properties(filters)
    return {
        **result,
        "properties": [row.to_dict(include_owner=True) for row in result["properties"]],
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_property(
    payload: PropertyPayload,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    row = PropertyService(db).add_property(user, payload.model_dump(exclude_none=True))
    await invalidate_listing_caches()
    return row.to_dict()


@router.post("/images")
async def upload_property_images(
    files: List[UploadFile] = File(...),
    user: AuthenticatedUser = Depends(get_current_user)
):
    """Upload listing photos to storage and return their public URLs."""
    uploads = [(f.filename, await f.read(), f.content_type) for f in files]
    urls = await storage_client.upload_property_images(user.uid, uploads)
    return {"urls": urls, "count": len(urls)}


@router.get("/mine")
async def get_my_properties(
    listing_type: Optional[str] = Query(None, alias="type"),
    status_filter: Optional[str] = Query(None, alias="status"),
    limit: Optional[int] = Query(None, ge=1),
    with_analytics: bool = Query(False, description="Attach 30 day view analytics"),
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if with_analytics:
        properties = AnalyticsService(db).get_user_properties_with_analytics(
            user.uid, listing_type, status_filter, limit
        )
    else:
        properties = [
            row.to_dict()
            for row in PropertyService(db).get_user_properties(user.uid, listing_type, status_filter, limit)
        ]
    return {"properties": properties, "total": len(properties)}


@router.get("/featured")
async def get_featured_property(db: Session = Depends(get_db)):
    row = PropertyService(db).get_featured_property()
    return {"property": row.to_dict(include_owner=True) if row else None}


@router.get("/popular")
async def get_popular_properties(
    limit: int = Query(6, ge=1, le=50),
    db: Session = Depends(get_db)
):
    rows = PropertyService(db).get_popular_properties(limit)
    return {"properties": [row.to_dict(include_owner=True) for row in rows]}


@router.get("/recent")
async def get_recent_properties(
    limit: int = Query(4, ge=1, le=50),
    db: Session = Depends(get_db)
):
    rows = PropertyService(db).get_recent_properties(limit)
    return {"properties": [row.to_dict() for row in rows]}


@router.get("/suggestions")
async def get_search_suggestions(
    q: str = Query("", description="Partial city, locality or title"),
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db)
):
    return {"suggestions": SearchService(db).search_suggestions(q, limit)}


@router.get("/filters")
async def get_search_filters(
    request: Request,
    response: Response,
    db: Session = Depends(get_db)
):
    """Filter options for the search page (cached, ETag aware)."""
    return await cached_with_etag(
        request,
        response,
        SEARCH_FILTERS_KEY,
        lambda: SearchService(db).get_search_filters_data()
    )


@router.get("/cities")
async def get_cities(db: Session = Depends(get_db)):
    return {"cities": SearchService(db).get_unique_cities()}


@router.get("/localities")
async def get_localities(
    city: Optional[str] = None,
    db: Session = Depends(get_db)
):
    return {"localities": SearchService(db).get_unique_localities(city)}


@router.get("/types")
async def get_property_types(db: Session = Depends(get_db)):
    return {"property_types": SearchService(db).get_property_types_with_counts()}


@router.get("/price-ranges")
async def get_price_ranges(
    listing_type: str = Query("sale", description="sale or rent"),
    db: Session = Depends(get_db)
):
    return SearchService(db).get_price_ranges(listing_type)


@router.get("/amenities")
async def get_amenities(db: Session = Depends(get_db)):
    return {"amenities": SearchService(db).get_available_amenities()}


@router.get("/nearby")
async def get_nearby_by_coordinates(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    radius_km: float = Query(10, gt=0, le=500),
    limit: int = Query(6, ge=1, le=50),
    db: Session = Depends(get_db)
):
    """Active listings within radius_km of a point, nearest first."""
    properties = PropertyService(db).get_nearby_properties_by_coordinates(lat, lon, radius_km, limit)
    return {"properties": properties}


@router.get("/{property_id}")
async def get_property(property_id: str, db: Session = Depends(get_db)):
    return PropertyService(db).get_property_by_id(property_id).to_dict(include_owner=True)


@router.patch("/{property_id}")
async def update_property(
    property_id: str,
    payload: PropertyPayload,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    row = PropertyService(db).update_property(user.uid, property_id, payload.model_dump(exclude_unset=True))
    await invalidate_listing_caches()
    return row.to_dict()


@router.delete("/{property_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_property(
    property_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    PropertyService(db).delete_property(user.uid, property_id)
    await invalidate_listing_caches()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{property_id}/views")
async def record_property_view(
    property_id: str,
    payload: Optional[ViewPayload] = None,
    user: Optional[AuthenticatedUser] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    """Record a view, at most once per signed-in user or anonymous session."""
    session_id = payload.session_id if payload else None
    return PropertyService(db).record_view(property_id, user.uid if user else None, session_id)


@router.get("/{property_id}/views")
async def get_property_views(
    property_id: str,
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db)
):
    return AnalyticsService(db).get_property_views(property_id, limit)


@router.get("/{property_id}/analytics")
async def get_property_analytics(
    property_id: str,
    days_back: int = Query(30, ge=1, le=365),
    db: Session = Depends(get_db)
):
    return RecommendationService(db).get_property_analytics(property_id, days_back)


@router.get("/{property_id}/similar")
async def get_similar_properties(
    property_id: str,
    limit: int = Query(4, ge=1, le=20),
    db: Session = Depends(get_db)
):
    rows = RecommendationService(db).get_similar_properties(property_id, limit)
    return {"properties": [row.to_dict(include_owner=True) for row in rows]}


@router.get("/{property_id}/recommendations")
async def get_recommendations(property_id: str, db: Session = Depends(get_db)):
    current = PropertyService(db).get_property_by_id(property_id)
    return RecommendationService(db).build_recommendations(current)


@router.get("/{property_id}/nearby")
async def get_nearby_properties(
    property_id: str,
    limit: int = Query(6, ge=1, le=50),
    db: Session = Depends(get_db)
):
    service = PropertyService(db)
    current = service.get_property_by_id(property_id)
    return {"properties": [row.to_dict() for row in service.get_nearby_properties(current, limit)]}


@router.get("/{property_id}/agent")
async def get_property_agent(property_id: str, db: Session = Depends(get_db)):
    """Contact card for the listing owner; 404 when the listing has no owner on file."""
    return AgentService(db).get_property_agent_contact(property_id)
