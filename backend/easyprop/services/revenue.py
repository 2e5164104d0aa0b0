from datetime import datetime, timedelta
from typing import Any, Dict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from easyprop.core.config import settings
from easyprop.core.exceptions import ValidationException
from easyprop.core.logging import get_logger
from easyprop.db.models import Revenue
from easyprop.services.users import update_user_stats
from easyprop.utils.ids import generate_id

logger = get_logger(__name__)

TIMEFRAME_DAYS = {
    "all": None,
    "month": 30,
    "quarter": 90,
    "year": 365,
}

REVENUE_FIELDS = (
    "property_id", "lead_id", "currency", "type", "transaction_id", "payment_method",
    "payment_status", "description", "category", "recurring", "tax_amount", "tax_rate",
    "net_amount", "client_name", "client_email", "client_phone", "received_at", "due_date",
)


class RevenueService:
    def __init__(self, db: Session):
        self.db = db

    def add_revenue(self, uid: str, data: Dict[str, Any]) -> Revenue:
        try:
            amount = float(data.get("amount"))
        except (TypeError, ValueError):
            amount = 0
        if amount <= 0:
            raise ValidationException("Revenue amount must be greater than zero", details={"amount": data.get("amount")})

        record = Revenue(
            id=generate_id("rev"),
            user_id=uid,
            amount=amount,
            currency=settings.DEFAULT_CURRENCY,
            created_at=datetime.utcnow(),
        )
        for field in REVENUE_FIELDS:
            if data.get(field) is not None:
                setattr(record, field, data[field])
        if record.net_amount is None:
            record.net_amount = amount

        try:
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Error adding revenue", user_id=uid, error=str(e))
            raise

        update_user_stats(self.db, uid, {"total_revenue": amount, "monthly_revenue": amount})
        logger.info("Revenue added", revenue_id=record.id, user_id=uid, amount=amount)
        return record

    def get_user_revenue(self, uid: str, timeframe: str = "all") -> Dict[str, Any]:
        if timeframe not in TIMEFRAME_DAYS:
            raise ValidationException("Invalid timeframe", details={"timeframe": timeframe, "allowed": list(TIMEFRAME_DAYS)})

        query = self.db.query(Revenue).filter(Revenue.user_id == uid)
        days = TIMEFRAME_DAYS[timeframe]
        if days:
            query = query.filter(Revenue.created_at >= datetime.utcnow() - timedelta(days=days))

        records = query.order_by(Revenue.created_at.desc()).all()
        return {
            "timeframe": timeframe,
            "records": records,
            "total": sum(r.amount or 0 for r in records),
            "count": len(records),
        }
