"""
Domain services. Each service wraps a SQLAlchemy session and raises
EasyPropException subclasses for the API layer to translate.
"""

from easyprop.services.agents import AgentService
from easyprop.services.analytics import AnalyticsService
from easyprop.services.favorites import FavoriteService
from easyprop.services.leads import LeadService
from easyprop.services.properties import PropertyService
from easyprop.services.recommendations import RecommendationService
from easyprop.services.revenue import RevenueService
from easyprop.services.search import PropertySearchFilters, SearchService
from easyprop.services.tours import TourService
from easyprop.services.users import SettingsService, UserService

__all__ = [
    "AgentService",
    "AnalyticsService",
    "FavoriteService",
    "LeadService",
    "PropertySearchFilters",
    "PropertyService",
    "RecommendationService",
    "RevenueService",
    "SearchService",
    "SettingsService",
    "TourService",
    "UserService",
]
