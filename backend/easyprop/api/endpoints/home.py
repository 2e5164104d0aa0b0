from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from easyprop.api.deps import HOMEPAGE_STATS_KEY, cached_with_etag
from easyprop.core.logging import get_logger
from easyprop.db.base import get_db
from easyprop.services.agents import AgentService
from easyprop.services.properties import PropertyService

logger = get_logger(__name__)
router = APIRouter()


@router.get("")
async def get_homepage(db: Session = Depends(get_db)):
    """Everything the landing page renders in one call."""
    properties = PropertyService(db)
    agents = AgentService(db)
    featured = properties.get_featured_property()

    logger.info("Homepage data requested")
    return {
        "featured": featured.to_dict(include_owner=True) if featured else None,
        "popular": [row.to_dict(include_owner=True) for row in properties.get_popular_properties()],
        "recent": [row.to_dict() for row in properties.get_recent_properties()],
        "top_picks_agents": agents.get_top_picks_agents(),
        "top_sellers": agents.get_top_sellers(),
        "stats": properties.get_homepage_stats(),
    }


@router.get("/stats")
async def get_homepage_stats(
    request: Request,
    response: Response,
    db: Session = Depends(get_db)
):
    return await cached_with_etag(
        request,
        response,
        HOMEPAGE_STATS_KEY,
        lambda: PropertyService(db).get_homepage_stats()
    )
