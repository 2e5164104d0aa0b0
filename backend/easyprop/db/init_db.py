"""
Database initialization script
"""

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from easyprop.db.base import Base, engine
from easyprop.db import models  # noqa: F401  registers tables on Base.metadata
from easyprop.core.logging import get_logger

logger = get_logger(__name__)

def init_db(bind=None) -> None:
    """Initialize the database by creating all tables"""
    try:
        logger.info("Creating database tables")
        Base.metadata.create_all(bind=bind or engine)
        logger.info("Database tables created successfully")
    except SQLAlchemyError as e:
        logger.error("Failed to initialize database", error=str(e))
        raise

def check_connection(bind=None) -> bool:
    """Run a trivial query to confirm the database is reachable"""
    try:
        with (bind or engine).connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.warning("Database connectivity check failed", error=str(e))
        return False
