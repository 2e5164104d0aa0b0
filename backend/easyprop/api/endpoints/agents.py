from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from easyprop.core.logging import get_logger
from easyprop.db.base import get_db
from easyprop.services.agents import AgentService
from easyprop.services.leads import LeadService

logger = get_logger(__name__)
router = APIRouter()


class AgentContactForm(BaseModel):
    name: str
    email: str
    phone: Optional[str] = None
    message: Optional[str] = None
    preferred_time: Optional[str] = None
    contact_method: Optional[str] = None
    property_id: Optional[str] = None


@router.get("/top-picks")
async def get_top_picks(
    limit: int = Query(4, ge=1, le=20),
    db: Session = Depends(get_db)
):
    return {"agents": AgentService(db).get_top_picks_agents(limit)}


@router.get("/top-sellers")
async def get_top_sellers(
    limit: int = Query(4, ge=1, le=20),
    db: Session = Depends(get_db)
):
    return {"agents": AgentService(db).get_top_sellers(limit)}


@router.get("/{agent_id}")
async def get_agent(agent_id: str, db: Session = Depends(get_db)):
    return AgentService(db).get_agent_by_id(agent_id)


@router.post("/{agent_id}/contact", status_code=status.HTTP_201_CREATED)
async def contact_agent(
    agent_id: str,
    form: AgentContactForm,
    db: Session = Depends(get_db)
):
    """Public contact form. The submission becomes a lead for the agent."""
    data = form.model_dump()
    property_id = data.pop("property_id")
    lead = LeadService(db).submit_agent_contact(agent_id, data, property_id=property_id)
    logger.info("Agent contact submitted", agent_id=agent_id, lead_id=lead.id)
    return {"success": True, "lead_id": lead.id, "message": "Your message has been sent to the agent"}
