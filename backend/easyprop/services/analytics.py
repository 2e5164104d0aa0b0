"""
Property view analytics
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from easyprop.core.exceptions import NotFoundException
from easyprop.core.logging import get_logger
from easyprop.db.models import Property, PropertyView
from easyprop.utils.formatting import round_half_up

logger = get_logger(__name__)


class AnalyticsService:
    """Aggregates property_views rows into per-property and per-user metrics"""

    def __init__(self, db: Session):
        self.db = db

    def _get_property(self, property_id: str) -> Property:
        row = self.db.get(Property, property_id)
        if not row:
            raise NotFoundException("Property not found", details={"property_id": property_id})
        return row

    def get_property_view_analytics(self, property_id: str, days_back: int = 30) -> Dict[str, Any]:
        """
        View trend for one property over a trailing window

        Args:
            property_id: Property to analyse
            days_back: Size of the window in days

        Returns:
            Dict with totals, a per-day histogram and the peak day
        """
        row = self._get_property(property_id)
        end = datetime.utcnow()
        start = end - timedelta(days=days_back)

        viewed = self.db.query(PropertyView.viewed_at).filter(
            PropertyView.property_id == property_id,
            PropertyView.viewed_at >= start,
            PropertyView.viewed_at <= end,
        ).order_by(PropertyView.viewed_at.asc()).all()

        views_by_day: Dict[str, int] = {}
        for (viewed_at,) in viewed:
            day = viewed_at.date().isoformat()
            views_by_day[day] = views_by_day.get(day, 0) + 1

        recent_views = len(viewed)
        unique_days = len(views_by_day)

        peak_day = None
        peak_views = 0
        for day, count in views_by_day.items():
            if count > peak_views:
                peak_day, peak_views = day, count

        return {
            "total_views": row.views or 0,
            "recent_views": recent_views,
            "average_daily_views": round_half_up(recent_views / unique_days) if unique_days else 0,
            "peak_day": peak_day,
            "peak_views": peak_views,
            "views_by_day": views_by_day,
            "days_analyzed": days_back,
        }

    def get_property_recent_views(self, property_id: str, limit: int = 10) -> List[PropertyView]:
        return self.db.query(PropertyView).filter(
            PropertyView.property_id == property_id
        ).order_by(PropertyView.viewed_at.desc()).limit(limit).all()

    def get_property_views(self, property_id: str, limit: int = 10) -> Dict[str, Any]:
        self._get_property(property_id)
        views = self.db.query(PropertyView).filter(
            PropertyView.property_id == property_id
        ).order_by(PropertyView.viewed_at.desc()).all()

        now = datetime.utcnow()
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        one_week_ago = now - timedelta(days=7)
        two_weeks_ago = now - timedelta(days=14)
        month_ago = now - timedelta(days=30)

        return {
            "total_views": len(views),
            "unique_views": len({v.user_id for v in views if v.user_id}),
            "views_today": sum(1 for v in views if v.viewed_at >= today),
            "this_week_views": sum(1 for v in views if v.viewed_at >= one_week_ago),
            "last_week_views": sum(1 for v in views if two_weeks_ago <= v.viewed_at < one_week_ago),
            "views_this_month": sum(1 for v in views if v.viewed_at >= month_ago),
            "recent_views": [v.to_dict() for v in views[:limit]],
        }

    def get_user_properties_with_analytics(
        self,
        uid: str,
        listing_type: Optional[str] = None,
        status: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        query = self.db.query(Property).filter(Property.user_id == uid)
        if listing_type:
            query = query.filter(Property.type == listing_type)
        if status:
            query = query.filter(Property.status == status)
        query = query.order_by(Property.created_at.desc())
        if limit:
            query = query.limit(limit)

        return [
            {**row.to_dict(), "analytics": self.get_property_view_analytics(row.id, 30)}
            for row in query.all()
        ]

    def get_user_view_analytics(self, uid: str) -> Dict[str, Any]:
        properties = self.db.query(Property.id, Property.views).filter(Property.user_id == uid).all()
        property_ids = [pid for pid, _ in properties]
        total_views = sum(views or 0 for _, views in properties)

        recent_views = 0
        properties_viewed = 0
        if property_ids:
            since = datetime.utcnow() - timedelta(days=30)
            recent = self.db.query(PropertyView.property_id, func.count(PropertyView.id)).filter(
                PropertyView.property_id.in_(property_ids),
                PropertyView.viewed_at >= since,
            ).group_by(PropertyView.property_id).all()
            recent_views = sum(count for _, count in recent)
            properties_viewed = len(recent)

        return {
            "total_views": total_views,
            "recent_views": recent_views,
            "properties_viewed": properties_viewed,
            "total_properties": len(properties),
            "average_views_per_property": round_half_up(total_views / len(properties)) if properties else 0,
        }
