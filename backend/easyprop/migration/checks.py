"""
Post-import sanity checks and migration environment setup
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from easyprop.core.config import get_absolute_path, settings
from easyprop.core.logging import get_logger
from easyprop.db.models import AnalyticsRecord, Lead, Property, Revenue, User
from easyprop.migration.importers import TABLE_ORDER, export_path

logger = get_logger(__name__)

TABLE_MODELS = {
    "users": User,
    "properties": Property,
    "leads": Lead,
    "revenue": Revenue,
    "analytics": AnalyticsRecord,
}

OPEN_LEAD_STATUSES = ("new", "contacted", "qualified")
REQUIRED_SETTINGS = ("SUPABASE_URL", "SUPABASE_KEY")


def count_tables(session: Session) -> Dict[str, Optional[int]]:
    """Row count per imported table; None where the count failed."""
    counts: Dict[str, Optional[int]] = {}
    for table in TABLE_ORDER:
        try:
            counts[table] = session.query(func.count()).select_from(TABLE_MODELS[table]).scalar() or 0
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Error counting table", table=table, error=str(e))
            counts[table] = None
    return counts


def validate_import(session: Session) -> Dict[str, Any]:
    counts = count_tables(session)
    details: Dict[str, Any] = {}

    if counts.get("users"):
        stats = [s for (s,) in session.query(User.stats).all()]
        details["users"] = {
            "total": len(stats),
            "with_properties": sum(1 for s in stats if s and (s.get("total_properties") or 0) > 0),
            "with_stats": sum(1 for s in stats if s),
        }

    if counts.get("properties"):
        rows = session.query(Property.status, Property.images, Property.latitude, Property.longitude).all()
        details["properties"] = {
            "active": sum(1 for status, _, _, _ in rows if status == "active"),
            "with_images": sum(1 for _, images, _, _ in rows if images),
            "with_coordinates": sum(1 for _, _, lat, lon in rows if lat and lon),
        }

    if counts.get("leads"):
        rows = session.query(Lead.status, Lead.notes).all()
        details["leads"] = {
            "active": sum(1 for status, _ in rows if status in OPEN_LEAD_STATUSES),
            "converted": sum(1 for status, _ in rows if status == "converted"),
            "with_notes": sum(1 for _, notes in rows if notes),
        }

    if counts.get("revenue"):
        rows = session.query(Revenue.payment_status, Revenue.amount).all()
        completed = [amount or 0 for status, amount in rows if status == "completed"]
        details["revenue"] = {
            "total_revenue": sum(completed),
            "completed_transactions": len(completed),
        }

    total = sum(count for count in counts.values() if isinstance(count, int))
    return {"counts": counts, "details": details, "total_records": total}


def prepare_environment(data_dir: Optional[str] = None) -> Dict[str, Any]:
    """Create the data directory and list what is still missing before an import."""
    directory = get_absolute_path(data_dir or settings.MIGRATION_DATA_DIR)
    created = not directory.exists()
    directory.mkdir(parents=True, exist_ok=True)

    files: List[Dict[str, Any]] = []
    for table in TABLE_ORDER:
        path = export_path(table, str(directory))
        files.append({
            "file": path.name,
            "present": path.exists(),
            "size_kb": round(path.stat().st_size / 1024, 2) if path.exists() else 0,
        })

    missing_settings = [name for name in REQUIRED_SETTINGS if not getattr(settings, name)]
    missing_files = [f["file"] for f in files if not f["present"]]
    return {
        "data_dir": str(directory),
        "created": created,
        "files": files,
        "missing_files": missing_files,
        "missing_settings": missing_settings,
        "env_file_present": Path(".env").exists(),
        "ready": not missing_files and not missing_settings,
    }
