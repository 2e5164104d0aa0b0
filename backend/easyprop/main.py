"""
Main application entry point
"""

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from easyprop import __version__
from easyprop.api.routes import router as api_router
from easyprop.core.config import settings
from easyprop.core.exceptions import EasyPropException, create_http_exception, internal_server_exception
from easyprop.core.logging import get_logger, setup_logging
from easyprop.db.init_db import init_db
from easyprop.utils.cache import cache
from easyprop.utils.scheduler import start_scheduler, stop_scheduler

# Set up logging
setup_logging()
logger = get_logger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Property listings, tours, leads and agent dashboards",
    version=__version__
)

cors_origins = settings.get_cors_origins()
logger.info("Configuring CORS", allowed_origins=cors_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["ETag"]
)
app.add_middleware(GZipMiddleware, minimum_size=1000)

app.include_router(api_router, prefix=settings.API_V1_STR)


@app.exception_handler(EasyPropException)
async def easyprop_exception_handler(request: Request, exc: EasyPropException):
    if exc.status_code >= 500:
        logger.error("Request failed", path=request.url.path, error_code=exc.error_code, error=exc.message)
    else:
        logger.info("Request rejected", path=request.url.path, error_code=exc.error_code)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()})


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Database error", path=request.url.path, error=str(exc))
    http_exc = create_http_exception(500, "Database error", error_code="DATABASE_ERROR")
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error", path=request.url.path)
    http_exc = internal_server_exception()
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


@app.on_event("startup")
async def startup_event():
    """Initialize services on startup"""
    logger.info("Starting application", environment=settings.ENVIRONMENT)
    try:
        init_db()
        logger.info("Database initialized")
    except SQLAlchemyError as e:
        # Continue startup so health checks can report the database as unavailable
        logger.error("Startup failed", error=str(e))

    await cache.connect()

    if settings.ENABLE_STATS_SCHEDULER:
        start_scheduler()
        logger.info("Maintenance scheduler started")


@app.on_event("shutdown")
async def shutdown_event():
    if settings.ENABLE_STATS_SCHEDULER:
        stop_scheduler()
        logger.info("Maintenance scheduler stopped")
    await cache.disconnect()


@app.get("/")
async def root():
    return {"message": settings.PROJECT_NAME, "docs": "/docs", "api": settings.API_V1_STR}


def run():
    """
    Run the FastAPI application using uvicorn
    """
    uvicorn.run(
        "easyprop.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.ENVIRONMENT == "development",
    )


if __name__ == "__main__":
    run()
