"""
Lead capture (including the agent contact form) and lead pipeline updates
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from easyprop.core.exceptions import NotFoundException, ValidationException
from easyprop.core.logging import get_logger
from easyprop.db.models import Lead, Property, User
from easyprop.services.users import update_user_stats
from easyprop.utils.ids import generate_id
from easyprop.utils.validation import format_phone_number, validate_email

logger = get_logger(__name__)

LEAD_STATUSES = ("new", "contacted", "qualified", "converted", "lost")
CLOSED_STATUSES = ("converted", "lost")

LEAD_FIELDS = (
    "property_id", "name", "email", "phone", "message", "budget", "requirements",
    "priority", "source", "contact_method", "preferred_time", "score", "rating",
    "next_follow_up", "location", "occupation", "company", "notes", "communications",
)


def status_stat_deltas(old_status: str, new_status: str) -> Dict[str, int]:
    """Stats adjustments for moving a lead between pipeline stages."""
    deltas: Dict[str, int] = {}
    if old_status == new_status:
        return deltas

    was_open = old_status not in CLOSED_STATUSES
    is_open = new_status not in CLOSED_STATUSES
    if was_open and not is_open:
        deltas["active_leads"] = -1
    elif not was_open and is_open:
        deltas["active_leads"] = 1

    if new_status == "converted":
        deltas["converted_leads"] = 1
    elif old_status == "converted":
        deltas["converted_leads"] = -1
    return deltas


class LeadService:
    def __init__(self, db: Session):
        self.db = db

    def add_lead(self, uid: str, data: Dict[str, Any]) -> Lead:
        now = datetime.utcnow()
        lead = Lead(
            id=generate_id("lead"),
            user_id=uid,
            status="new",
            created_at=now,
            updated_at=now,
            history=[{"status": "new", "at": now.isoformat()}],
        )
        for field in LEAD_FIELDS:
            if data.get(field) is not None:
                setattr(lead, field, data[field])

        try:
            self.db.add(lead)
            self.db.commit()
            self.db.refresh(lead)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Error adding lead", user_id=uid, error=str(e))
            raise

        update_user_stats(self.db, uid, {"total_leads": 1, "active_leads": 1})
        logger.info("Lead added", lead_id=lead.id, user_id=uid, source=lead.source)
        return lead

    def submit_agent_contact(
        self,
        agent_id: str,
        form: Dict[str, Any],
        property_id: Optional[str] = None
    ) -> Lead:
        """Store an agent contact form submission as a new lead for that agent."""
        if not self.db.get(User, agent_id):
            raise NotFoundException("Agent not found", details={"agent_id": agent_id})

        if not (form.get("name") or "").strip():
            raise ValidationException("Name is required")
        if not validate_email(form.get("email")):
            raise ValidationException("Please enter a valid email address")

        prop = None
        if property_id:
            prop = self.db.get(Property, property_id)
            if not prop:
                raise NotFoundException("Property not found", details={"property_id": property_id})

        lead = self.add_lead(agent_id, {
            "property_id": property_id,
            "name": form["name"].strip(),
            "email": form["email"].strip(),
            "phone": format_phone_number(form.get("phone") or ""),
            "message": form.get("message") or "",
            "preferred_time": form.get("preferred_time") or "morning",
            "contact_method": form.get("contact_method") or "phone",
            "source": "agent_contact",
        })

        if prop is not None:
            try:
                prop.inquiries = (prop.inquiries or 0) + 1
                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error("Error incrementing property inquiries", property_id=property_id, error=str(e))

        return lead

    def get_user_leads(self, uid: str, status: Optional[str] = None, limit: Optional[int] = None) -> List[Lead]:
        query = self.db.query(Lead).filter(Lead.user_id == uid)
        if status:
            query = query.filter(Lead.status == status)
        query = query.order_by(Lead.created_at.desc())
        if limit:
            query = query.limit(limit)
        return query.all()

    def update_lead_status(self, uid: str, lead_id: str, new_status: str) -> Lead:
        if new_status not in LEAD_STATUSES:
            raise ValidationException("Invalid lead status", details={"status": new_status, "allowed": list(LEAD_STATUSES)})

        lead = self.db.query(Lead).filter(Lead.id == lead_id, Lead.user_id == uid).first()
        if not lead:
            raise NotFoundException("Lead not found", details={"lead_id": lead_id})

        old_status = lead.status
        now = datetime.utcnow()
        lead.status = new_status
        lead.updated_at = now
        lead.history = list(lead.history or []) + [{"from": old_status, "status": new_status, "at": now.isoformat()}]
        if new_status == "converted" and old_status != "converted":
            lead.converted_at = now
        if new_status == "contacted":
            lead.last_contact_at = now
            lead.follow_up_count = (lead.follow_up_count or 0) + 1

        try:
            self.db.commit()
            self.db.refresh(lead)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Error updating lead status", lead_id=lead_id, error=str(e))
            raise

        deltas = status_stat_deltas(old_status, new_status)
        if deltas:
            update_user_stats(self.db, uid, deltas)

        logger.info("Lead status updated", lead_id=lead_id, old_status=old_status, new_status=new_status)
        return lead
