from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from easyprop.auth.firebase import AuthenticatedUser, get_current_user
from easyprop.core.logging import get_logger
from easyprop.db.base import get_db
from easyprop.services.leads import LeadService

logger = get_logger(__name__)
router = APIRouter()


class LeadRequest(BaseModel):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    property_id: Optional[str] = None
    message: Optional[str] = None
    budget: Optional[str] = None
    requirements: Optional[str] = None
    priority: Optional[str] = None
    source: Optional[str] = None
    contact_method: Optional[str] = None
    preferred_time: Optional[str] = None
    location: Optional[str] = None
    occupation: Optional[str] = None
    company: Optional[str] = None
    notes: Optional[List[Any]] = None


class LeadStatusUpdate(BaseModel):
    status: str


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_lead(
    lead: LeadRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return LeadService(db).add_lead(user.uid, lead.model_dump(exclude_none=True)).to_dict()


@router.get("")
async def list_leads(
    status_filter: Optional[str] = Query(None, alias="status"),
    limit: Optional[int] = Query(None, ge=1),
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    leads = LeadService(db).get_user_leads(user.uid, status_filter, limit)
    return {"leads": [lead.to_dict() for lead in leads], "total": len(leads)}


@router.patch("/{lead_id}/status")
async def update_lead_status(
    lead_id: str,
    update: LeadStatusUpdate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Move a lead through the pipeline. Dashboard counters follow the transition."""
    lead = LeadService(db).update_lead_status(user.uid, lead_id, update.status)
    logger.info("Lead status changed", lead_id=lead_id, status=update.status)
    return lead.to_dict()
