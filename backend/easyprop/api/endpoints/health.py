from fastapi import APIRouter

from easyprop import __version__
from easyprop.core.config import settings
from easyprop.core.logging import get_logger
from easyprop.db.init_db import check_connection
from easyprop.services.email import email_service
from easyprop.services.storage import storage_client

logger = get_logger(__name__)
router = APIRouter()


@router.get("/")
async def health_check():
    """Basic health check endpoint."""
    logger.info("Health check requested")
    return {"status": "healthy", "service": settings.PROJECT_NAME}


@router.get("/detailed")
async def detailed_health_check():
    """Detailed health check with component status."""
    logger.info("Detailed health check requested")

    database_ok = check_connection()
    return {
        "status": "healthy" if database_ok else "degraded",
        "service": settings.PROJECT_NAME,
        "version": __version__,
        "environment": settings.ENVIRONMENT,
        "components": {
            "database": "connected" if database_ok else "unavailable",
            "cache": "enabled" if settings.cache_enabled else "disabled",
            "storage": "configured" if storage_client.configured else "not_configured",
            "email": "configured" if email_service.configured else "development",
            "auth": "configured" if settings.FIREBASE_PROJECT_ID else "not_configured",
        }
    }
