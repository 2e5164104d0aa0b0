"""
Background scheduler for stats maintenance
"""

import threading
import time

import schedule
from sqlalchemy.exc import SQLAlchemyError

from easyprop.core.config import settings
from easyprop.core.logging import get_logger
from easyprop.db.base import SessionLocal

logger = get_logger(__name__)


class MaintenanceScheduler:
    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory
        self.stop_flag = threading.Event()
        self.scheduler = schedule.Scheduler()

    def start(self):
        """Start the scheduler"""
        self.scheduler.every().day.at(settings.STATS_RECALC_TIME).do(self._run_cities_recalculation)
        logger.info("Scheduled daily total-cities recalculation", at=settings.STATS_RECALC_TIME)

        thread = threading.Thread(target=self._run_scheduler)
        thread.daemon = True
        thread.start()
        logger.info("Maintenance scheduler started")

    def stop(self):
        """Stop the scheduler"""
        self.stop_flag.set()
        self.scheduler.clear()
        logger.info("Maintenance scheduler stopped")

    def _run_scheduler(self):
        while not self.stop_flag.is_set():
            self.scheduler.run_pending()
            time.sleep(60)

    def _run_cities_recalculation(self):
        from easyprop.services.users import recalculate_all_users_total_cities

        db = self.session_factory()
        try:
            updated = recalculate_all_users_total_cities(db)
            logger.info("Scheduled cities recalculation completed", users_updated=updated)
            return updated
        except SQLAlchemyError as e:
            logger.error("Error during scheduled cities recalculation", error=str(e))
            return 0
        finally:
            db.close()


# Global scheduler instance
scheduler = MaintenanceScheduler()

def start_scheduler():
    """Start the maintenance scheduler"""
    scheduler.start()

def stop_scheduler():
    """Stop the maintenance scheduler"""
    scheduler.stop()
