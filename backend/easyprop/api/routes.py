"""
API Routes Configuration
"""

from fastapi import APIRouter

from easyprop.api.endpoints import (
    agents,
    auth,
    favorites,
    health,
    home,
    leads,
    properties,
    revenue,
    tools,
    tours,
    users,
)

# Create main router
router = APIRouter()

# Include endpoint routers
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(home.router, prefix="/home", tags=["home"])
router.include_router(properties.router, prefix="/properties", tags=["properties"])
router.include_router(tours.router, prefix="/tours", tags=["tours"])
router.include_router(leads.router, prefix="/leads", tags=["leads"])
router.include_router(revenue.router, prefix="/revenue", tags=["revenue"])
router.include_router(favorites.router, prefix="/favorites", tags=["favorites"])
router.include_router(agents.router, prefix="/agents", tags=["agents"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(tools.router, prefix="/tools", tags=["tools"])
