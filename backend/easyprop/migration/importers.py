"""
Bulk importers for JSON exports of the legacy database.

Each export is a JSON array stored as ``<data_dir>/<table>_export.json``.
Records are mapped from the export's camelCase fields to table columns and
upserted by primary key, one commit per record so a bad row only costs
itself.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from easyprop.core.config import settings
from easyprop.core.exceptions import ValidationException
from easyprop.core.logging import get_logger
from easyprop.db.models import AnalyticsRecord, Lead, Property, Revenue, User
from easyprop.utils.dates import parse_datetime

logger = get_logger(__name__)

TABLE_ORDER = ("users", "properties", "leads", "revenue", "analytics")

PAID_PLAN_FEATURES = ["basic_listings", "advanced_analytics", "priority_support"]


@dataclass
class ImportResult:
    table: str
    total: int = 0
    imported: int = 0
    failed: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.failed == 0


def export_path(table: str, data_dir: Optional[str] = None) -> Path:
    return Path(data_dir or settings.MIGRATION_DATA_DIR) / f"{table}_export.json"


def load_export(path: Path) -> List[Dict[str, Any]]:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValidationException(f"{path.name} must contain a JSON array", details={"path": str(path)})
    return data


def _list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def map_user(user: Dict[str, Any]) -> Dict[str, Any]:
    plan = user.get("subscription_plan") or "free"
    return {
        "id": user["uid"],
        "email": user.get("email"),
        "name": user.get("name"),
        "phone": user.get("phone"),
        "photo_url": user.get("photoURL"),
        "created_at": parse_datetime(user.get("createdAt")),
        "updated_at": parse_datetime(user.get("updatedAt")),
        "last_login_at": parse_datetime(user.get("lastLoginAt")),
        "stats": {
            "total_properties": user.get("total_properties") or 0,
            "properties_for_sale": user.get("properties_for_sale") or 0,
            "properties_for_rent": user.get("properties_for_rent") or 0,
            "total_customers": user.get("total_customers") or 0,
            "total_cities": user.get("total_cities") or 0,
            "total_revenue": user.get("total_revenue") or 0,
            "monthly_revenue": user.get("monthly_revenue") or 0,
            "total_leads": user.get("total_leads") or 0,
            "active_leads": user.get("active_leads") or 0,
            "converted_leads": user.get("converted_leads") or 0,
        },
        "preferences": {
            "theme": user.get("theme_preference") or "light",
            "notifications": user.get("notifications_enabled") is not False,
            "email_updates": user.get("email_updates_enabled") is not False,
            "language": user.get("language_preference") or "en",
            "timezone": user.get("timezone") or "UTC",
        },
        "profile": {
            "bio": user.get("bio") or "",
            "address": user.get("address") or "",
            "website": user.get("website") or "",
            "social_media": {
                "facebook": user.get("facebook_url") or "",
                "twitter": user.get("twitter_url") or "",
                "linkedin": user.get("linkedin_url") or "",
                "instagram": user.get("instagram_url") or "",
            },
        },
        "status": user.get("status") or "active",
        "email_verified": bool(user.get("emailVerified")),
        "phone_verified": bool(user.get("phoneVerified")),
        "subscription": {
            "plan": plan,
            "status": user.get("subscription_status") or "active",
            "start_date": user.get("subscription_start_date") or datetime.utcnow().isoformat(),
            "end_date": user.get("subscription_end_date"),
            "features": ["basic_listings"] if plan == "free" else list(PAID_PLAN_FEATURES),
        },
    }


def map_property(prop: Dict[str, Any]) -> Dict[str, Any]:
    created_at = parse_datetime(prop.get("createdAt"))
    return {
        "id": prop["id"],
        "user_id": prop.get("userId"),
        "title": prop.get("title"),
        "description": prop.get("description") or "",
        "type": prop.get("type"),
        "category": prop.get("category"),
        "property_type": prop.get("propertyType"),
        "price": prop.get("price") or 0,
        "currency": prop.get("currency") or "INR",
        "price_per_sqft": prop.get("pricePerSqft") or 0,
        "negotiable": prop.get("negotiable") is not False,
        "area": prop.get("area") or 0,
        "built_up_area": prop.get("builtUpArea") or 0,
        "carpet_area": prop.get("carpetArea") or 0,
        "bedrooms": prop.get("bedrooms") or 0,
        "bathrooms": prop.get("bathrooms") or 0,
        "balconies": prop.get("balconies") or 0,
        "parking": prop.get("parking") or 0,
        "floor": prop.get("floor") or 0,
        "total_floors": prop.get("totalFloors") or 0,
        "address": prop.get("address") or "",
        "city": prop.get("city") or "",
        "state": prop.get("state") or "",
        "country": prop.get("country") or "India",
        "pincode": prop.get("pincode") or "",
        "locality": prop.get("locality") or "",
        "landmark": prop.get("landmark") or "",
        "latitude": prop.get("latitude") or 0,
        "longitude": prop.get("longitude") or 0,
        "images": _list(prop.get("images")),
        "videos": [],
        "virtual_tour": "",
        "floor_plan": "",
        "amenities": _list(prop.get("amenities")),
        "features": _list(prop.get("features")),
        "furnishing": prop.get("furnishing") or "unfurnished",
        "status": prop.get("status") or "active",
        "availability": prop.get("availability") or "immediate",
        "possession_date": parse_datetime(prop.get("possessionDate")),
        "featured": bool(prop.get("featured")),
        "premium": bool(prop.get("premium")),
        "verified": bool(prop.get("verified")),
        "views": prop.get("views") or 0,
        "inquiries": prop.get("inquiries") or 0,
        "favorites": prop.get("favorites") or 0,
        "shares": prop.get("shares") or 0,
        "tags": _list(prop.get("tags")),
        "keywords": [],
        "created_at": created_at,
        "updated_at": parse_datetime(prop.get("updatedAt")),
        "published_at": parse_datetime(prop.get("publishedAt")) or created_at,
        "expires_at": parse_datetime(prop.get("expiresAt")),
        "age_of_property": prop.get("ageOfProperty") or 0,
        "facing": prop.get("facing") or "north",
        "source": prop.get("source") or "direct",
        "contact_preference": prop.get("contactPreference") or "both",
        "best_time_to_call": prop.get("bestTimeToCall") or "anytime",
    }


def map_lead(lead: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": lead["id"],
        "user_id": lead.get("userId"),
        "property_id": lead.get("propertyId"),
        "name": lead.get("name"),
        "email": lead.get("email"),
        "phone": lead.get("phone") or "",
        "message": lead.get("message") or "",
        "budget": lead.get("budget") or "",
        "requirements": lead.get("requirements") or "",
        "status": lead.get("status") or "new",
        "priority": lead.get("priority") or "medium",
        "source": lead.get("source") or "website",
        "contact_method": lead.get("contactMethod") or "email",
        "preferred_time": lead.get("preferredTime") or "anytime",
        "score": lead.get("score") or 0,
        "rating": lead.get("rating") or 0,
        "last_contact_at": parse_datetime(lead.get("lastContactAt")),
        "next_follow_up": parse_datetime(lead.get("nextFollowUp")),
        "follow_up_count": lead.get("followUpCount") or 0,
        "location": lead.get("location") or "",
        "occupation": lead.get("occupation") or "",
        "company": lead.get("company") or "",
        "created_at": parse_datetime(lead.get("createdAt")),
        "updated_at": parse_datetime(lead.get("updatedAt")),
        "notes": _list(lead.get("notes")),
        "history": [],
        "converted_at": parse_datetime(lead.get("convertedAt")),
        "conversion_value": lead.get("conversionValue") or 0,
        "communications": _list(lead.get("communications")),
    }


def map_revenue(revenue: Dict[str, Any]) -> Dict[str, Any]:
    created_at = parse_datetime(revenue.get("createdAt"))
    return {
        "id": revenue["id"],
        "user_id": revenue.get("userId"),
        "property_id": revenue.get("propertyId"),
        "lead_id": revenue.get("leadId"),
        "amount": revenue.get("amount") or 0,
        "currency": revenue.get("currency") or "INR",
        "type": revenue.get("type") or "commission",
        "transaction_id": revenue.get("transactionId") or "",
        "payment_method": revenue.get("paymentMethod") or "bank_transfer",
        "payment_status": revenue.get("paymentStatus") or "completed",
        "created_at": created_at,
        "received_at": parse_datetime(revenue.get("receivedAt")) or created_at,
        "due_date": parse_datetime(revenue.get("dueDate")),
        "description": revenue.get("description") or "",
        "category": revenue.get("category") or "primary",
        "recurring": bool(revenue.get("recurring")),
        "tax_amount": revenue.get("taxAmount") or 0,
        "tax_rate": revenue.get("taxRate") or 0,
        "net_amount": revenue.get("netAmount") or revenue.get("amount"),
        "client_name": revenue.get("clientName") or "",
        "client_email": revenue.get("clientEmail") or "",
        "client_phone": revenue.get("clientPhone") or "",
    }


def map_analytics(record: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": f"{record['userId']}_{record['date']}",
        "date": record["date"],
        "user_id": record["userId"],
        "views": {
            "total": record.get("total_views") or 0,
            "unique": record.get("unique_views") or 0,
            "properties": {},
        },
        "leads": {
            "total": record.get("total_leads") or 0,
            "new": record.get("new_leads") or 0,
            "converted": record.get("converted_leads") or 0,
            "sources": {},
        },
        "revenue": {
            "total": record.get("total_revenue") or 0,
            "transactions": record.get("transactions") or 0,
            "average": record.get("average_transaction") or 0,
        },
        "properties": {
            "active": record.get("active_properties") or 0,
            "sold": record.get("sold_properties") or 0,
            "rented": record.get("rented_properties") or 0,
            "new": record.get("new_properties") or 0,
        },
        "activity": {
            "logins": record.get("logins") or 0,
            "time_spent": record.get("time_spent") or 0,
            "actions": {},
        },
        "traffic": {
            "direct": record.get("direct_traffic") or 0,
            "search": record.get("search_traffic") or 0,
            "social": record.get("social_traffic") or 0,
            "referral": record.get("referral_traffic") or 0,
        },
    }


IMPORTERS: Dict[str, Tuple[Type, Callable[[Dict[str, Any]], Dict[str, Any]]]] = {
    "users": (User, map_user),
    "properties": (Property, map_property),
    "leads": (Lead, map_lead),
    "revenue": (Revenue, map_revenue),
    "analytics": (AnalyticsRecord, map_analytics),
}


def import_records(session: Session, table: str, records: List[Dict[str, Any]]) -> ImportResult:
    """Upsert already-loaded export records into ``table``."""
    if table not in IMPORTERS:
        raise ValidationException(f"Unknown table: {table}", details={"allowed": list(TABLE_ORDER)})

    model, mapper = IMPORTERS[table]
    result = ImportResult(table=table, total=len(records))
    logger.info("Starting import", table=table, records=len(records))

    for index, record in enumerate(records):
        try:
            values = {k: v for k, v in mapper(record).items() if v is not None}
            session.merge(model(**values))
            session.commit()
            result.imported += 1
        except (KeyError, TypeError, ValueError, SQLAlchemyError) as e:
            session.rollback()
            result.failed += 1
            result.errors.append({"index": index, "id": record.get("id") or record.get("uid"), "error": str(e)})
            logger.error("Failed to import record", table=table, index=index, error=str(e))

    logger.info("Import completed", table=table, imported=result.imported, failed=result.failed)
    return result


def import_table(session: Session, table: str, data_dir: Optional[str] = None) -> ImportResult:
    path = export_path(table, data_dir)
    if not path.exists():
        logger.error("Export file not found", table=table, path=str(path))
        return ImportResult(table=table, errors=[{"error": f"{path} not found"}], failed=1)
    try:
        records = load_export(path)
    except (ValueError, ValidationException) as e:
        logger.error("Could not read export file", table=table, path=str(path), error=str(e))
        return ImportResult(table=table, errors=[{"error": str(e)}], failed=1)
    return import_records(session, table, records)


def import_all(session: Session, data_dir: Optional[str] = None) -> List[ImportResult]:
    """Run every importer in dependency order; a failing table does not stop the rest."""
    return [import_table(session, table, data_dir) for table in TABLE_ORDER]
