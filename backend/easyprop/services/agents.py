"""
Agent profiles and contact cards
"""

import re
from typing import Any, Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from easyprop.core.exceptions import NotFoundException
from easyprop.core.logging import get_logger
from easyprop.db.models import Property, User

logger = get_logger(__name__)

AGENT_TYPES = ("agent", "builder")
DEFAULT_PHONE = "+91 98765 43210"

MOCK_AGENTS = (
    {"id": "mock-agent-1", "name": "Priya Sharma", "company": "Elite Properties",
     "email": "priya.sharma@easyprop.com", "phone": "+91 98765 43210"},
    {"id": "mock-agent-2", "name": "Rajesh Kumar", "company": "Premium Realty",
     "email": "rajesh.kumar@easyprop.com", "phone": "+91 98765 43211"},
    {"id": "mock-agent-3", "name": "Anita Desai", "company": "Luxury Homes",
     "email": "anita.desai@easyprop.com", "phone": "+91 98765 43212"},
    {"id": "mock-agent-4", "name": "Vikram Singh", "company": "Metro Properties",
     "email": "vikram.singh@easyprop.com", "phone": "+91 98765 43213"},
)


def _agent_fields(agent: Any) -> Dict[str, Any]:
    if isinstance(agent, dict):
        return agent
    return {
        "id": agent.id,
        "name": agent.name,
        "email": agent.email,
        "phone": agent.phone,
        "company": agent.company,
        "user_type": agent.user_type,
        "profile": agent.profile or {},
        "stats": agent.stats or {},
        "created_at": agent.created_at.isoformat() if agent.created_at else None,
        "updated_at": agent.updated_at.isoformat() if agent.updated_at else None,
    }


def build_contact_info(agent: Any) -> Dict[str, Any]:
    """Contact card for an agent, filling every gap with a marketplace default."""
    data = _agent_fields(agent)
    profile = data.get("profile") or {}
    stats = data.get("stats") or {}
    name = data.get("name") or ""
    specialization = profile.get("specialization") or "Residential Properties"
    email_slug = re.sub(r"\s+", ".", name.lower())

    return {
        "phone": data.get("phone") or profile.get("phone") or DEFAULT_PHONE,
        "email": data.get("email") or profile.get("email") or f"{email_slug}@easyprop.com",
        "whatsapp": profile.get("whatsapp") or data.get("phone") or DEFAULT_PHONE,
        "response_time": profile.get("response_time") or "< 2 hours",
        "availability": profile.get("availability") or "Mon-Sat, 9 AM - 7 PM",
        "languages": profile.get("languages") or ["English", "Hindi"],
        "specialization": specialization,
        "experience": profile.get("experience") or "5+ years",
        "rating": stats.get("rating") or 4.5,
        "reviews_count": stats.get("reviews_count") or 50,
        "deals_closed": stats.get("deals_closed") or 100,
        "bio": profile.get("bio") or (
            f"Experienced real estate professional specializing in {specialization.lower()}. "
            "Known for personalized service and deep market knowledge."
        ),
        "achievements": profile.get("achievements") or ["Top Performer", "Customer Choice Award"],
        "avatar_url": profile.get("avatar_url") or f"https://i.pravatar.cc/150?u={data.get('id')}",
    }


class AgentService:
    def __init__(self, db: Session):
        self.db = db

    def _active_count(self, agent_id: str) -> int:
        return self.db.query(func.count(Property.id)).filter(
            Property.user_id == agent_id,
            Property.status == "active"
        ).scalar() or 0

    def get_agent_by_id(self, agent_id: str) -> Dict[str, Any]:
        agent = self.db.query(User).filter(
            User.id == agent_id,
            User.user_type.in_(AGENT_TYPES)
        ).first()
        if agent is None:
            agent = self.db.get(User, agent_id)
        if agent is None:
            raise NotFoundException("Agent not found", details={"agent_id": agent_id})

        recent = self.db.query(Property).filter(
            Property.user_id == agent_id,
            Property.status == "active"
        ).order_by(Property.created_at.desc()).limit(3).all()

        return {
            **_agent_fields(agent),
            "properties_count": self._active_count(agent_id),
            "recent_properties": [
                {
                    "id": p.id,
                    "title": p.title,
                    "price": p.price,
                    "images": p.images or [],
                    "city": p.city,
                    "property_type": p.property_type,
                }
                for p in recent
            ],
            "contact_info": build_contact_info(agent),
        }

    def _recent_agents(self, limit: int) -> List[User]:
        return self.db.query(User).filter(
            User.user_type.in_(AGENT_TYPES)
        ).order_by(User.updated_at.desc()).limit(limit).all()

    def get_top_picks_agents(self, limit: int = 4) -> List[Dict[str, Any]]:
        agents = self._recent_agents(limit)
        if not agents:
            logger.info("No agents found, using placeholder agents")
            agents = [dict(agent) for agent in MOCK_AGENTS[:limit]]

        return [
            {
                **_agent_fields(agent),
                "properties_count": self._active_count(_agent_fields(agent)["id"]),
                "contact_info": build_contact_info(agent),
            }
            for agent in agents
        ]

    def get_top_sellers(self, limit: int = 4) -> List[Dict[str, Any]]:
        """Agents and builders ordered by recent activity."""
        return [
            {
                "id": agent.id,
                "name": agent.name,
                "company": agent.company,
                "stats": agent.stats or {},
                "profile": agent.profile or {},
            }
            for agent in self._recent_agents(limit)
        ]

    def get_property_agent_contact(self, property_id: str) -> Dict[str, Any]:
        prop = self.db.get(Property, property_id)
        if not prop:
            raise NotFoundException("Property not found", details={"property_id": property_id})

        agent = prop.owner
        if agent is None:
            raise NotFoundException("Agent not found for this property", details={"property_id": property_id})

        return {
            "id": agent.id,
            "name": agent.name,
            "company": agent.company,
            "contact_info": build_contact_info(agent),
        }
