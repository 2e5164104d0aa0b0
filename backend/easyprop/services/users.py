"""
User profiles, account settings and dashboard stats bookkeeping
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from easyprop.auth.firebase import AuthenticatedUser, FirebaseAuthClient, firebase_auth
from easyprop.core.config import settings
from easyprop.core.exceptions import NotFoundException, ValidationException
from easyprop.core.logging import get_logger
from easyprop.db.models import Property, User, default_preferences, default_stats
from easyprop.utils.validation import (
    validate_billing_data, validate_password, validate_profile_data,
)

logger = get_logger(__name__)

USER_TYPES = ("agent", "owner")

PLANS = {
    "free": {
        "name": "Free",
        "price": "₹0",
        "features": ["5 Properties", "Basic Support", "Standard Features"],
        "limits": {"properties": 5, "storage": "100MB", "support": "Email only"},
    },
    "pro": {
        "name": "Pro",
        "price": "₹999",
        "features": ["50 Properties", "Priority Support", "Advanced Features", "Analytics"],
        "limits": {"properties": 50, "storage": "10GB", "support": "Priority email & chat"},
    },
    "enterprise": {
        "name": "Enterprise",
        "price": "₹2999",
        "features": ["Unlimited Properties", "24/7 Support", "All Features", "Custom Branding"],
        "limits": {"properties": "Unlimited", "storage": "100GB", "support": "24/7 phone & email"},
    },
}

DEFAULT_NOTIFICATIONS = {"email": True, "push": True, "sms": False, "marketing": True}


class UserService:
    """CRUD for the users table"""

    def __init__(self, db: Session):
        self.db = db

    def create_user_profile(self, uid: str, data: Dict[str, Any]) -> User:
        user = User(
            id=uid,
            email=data.get("email"),
            name=data.get("name"),
            phone=data.get("phone"),
            company=data.get("company"),
            photo_url=data.get("photo_url"),
            user_type=data.get("user_type") or "agent",
            stats=default_stats(),
            preferences=default_preferences(),
            profile=data.get("profile") or {},
            subscription=data.get("subscription") or {},
        )
        try:
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Error creating user profile", user_id=uid, error=str(e))
            raise

        logger.info("Created user profile", user_id=uid, user_type=user.user_type)
        return user

    def find_user(self, uid: str) -> Optional[User]:
        return self.db.get(User, uid)

    def get_user_profile(self, uid: str) -> User:
        user = self.find_user(uid)
        if not user:
            raise NotFoundException("User profile not found", details={"user_id": uid})
        return user

    def update_user_profile(self, uid: str, updates: Dict[str, Any]) -> User:
        """Apply column updates; a missing profile is created from the updates instead."""
        user = self.find_user(uid)
        if not user:
            logger.info("User not found, creating profile first", user_id=uid)
            seed = dict(updates)
            seed.setdefault("email", f"{uid}@temp.com")
            seed.setdefault("name", "User")
            return self.create_user_profile(uid, seed)

        for key, value in updates.items():
            if key in User.__table__.columns.keys() and key not in ("id", "created_at"):
                setattr(user, key, value)
        user.updated_at = datetime.utcnow()

        try:
            self.db.commit()
            self.db.refresh(user)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Error updating user profile", user_id=uid, error=str(e))
            raise
        return user

    def ensure_user_profile(self, auth_user: AuthenticatedUser) -> User:
        """Create a minimal profile for a signed-in user who has none yet."""
        user = self.find_user(auth_user.uid)
        if user:
            return user

        logger.info("User profile missing, creating one", user_id=auth_user.uid)
        return self.create_user_profile(auth_user.uid, {
            "email": f"{auth_user.uid}@firebase-user.temp",
            "name": auth_user.display_name,
            "user_type": "agent",
        })

    def get_dashboard_stats(self, uid: str) -> Dict[str, Any]:
        user = self.find_user(uid)
        if not user:
            raise NotFoundException("User profile not found", details={"user_id": uid})
        return user.stats or default_stats()


def get_dashboard_stats_config(user_type: Optional[str], stats: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Four dashboard cards; owners see inquiries and views where agents see customers and cities."""
    is_owner = user_type == "owner"
    stats = stats or {}
    return [
        {
            "title": "My Properties for Sale" if is_owner else "Properties for Sale",
            "value": stats.get("properties_for_sale") or 0,
            "key": "properties_for_sale",
        },
        {
            "title": "My Properties for Rent" if is_owner else "Properties for Rent",
            "value": stats.get("properties_for_rent") or 0,
            "key": "properties_for_rent",
        },
        {
            "title": "Total Inquiries" if is_owner else "Total Customers",
            "value": stats.get("total_customers") or 0,
            "key": "total_customers",
        },
        {
            "title": "Property Views" if is_owner else "Total Cities",
            "value": (stats.get("total_views") if is_owner else stats.get("total_cities")) or 0,
            "key": "total_views" if is_owner else "total_cities",
        },
    ]


def get_user_type_display(user_type: Optional[str]) -> str:
    return "Owner" if user_type == "owner" else "Agent"


def update_user_stats(db: Session, uid: str, deltas: Dict[str, float]) -> None:
    """Add deltas to stats keys the user already has. Failures are logged only."""
    try:
        user = db.get(User, uid)
        if not user:
            return
        stats = dict(user.stats or {})
        for key, delta in deltas.items():
            if key in stats:
                stats[key] = (stats[key] or 0) + delta
        user.stats = stats
        user.updated_at = datetime.utcnow()
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Error updating user stats", user_id=uid, error=str(e))


def count_user_cities(db: Session, uid: str) -> int:
    rows = db.query(Property.city).filter(
        Property.user_id == uid,
        Property.status == "active"
    ).all()
    return len({city.strip() for (city,) in rows if city and city.strip()})


def update_total_cities(db: Session, uid: str) -> Optional[int]:
    """Set total_cities to the number of distinct cities among the user's active listings."""
    try:
        total_cities = count_user_cities(db, uid)
        user = db.get(User, uid)
        if not user:
            return None
        user.stats = {**(user.stats or {}), "total_cities": total_cities}
        user.updated_at = datetime.utcnow()
        db.commit()
        logger.info("Updated total cities", user_id=uid, total_cities=total_cities)
        return total_cities
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Error updating total cities", user_id=uid, error=str(e))
        return None


def recalculate_all_users_total_cities(db: Session) -> int:
    user_ids = [uid for (uid,) in db.query(User.id).all()]
    for uid in user_ids:
        update_total_cities(db, uid)
    logger.info("Recalculated total cities for all users", updated_count=len(user_ids))
    return len(user_ids)


class SettingsService:
    """Account settings screens: profile, photo, password, notifications, billing"""

    def __init__(self, db: Session, auth_client: FirebaseAuthClient = None, storage=None):
        self.db = db
        self.users = UserService(db)
        self.auth_client = auth_client or firebase_auth
        if storage is None:
            from easyprop.services.storage import storage_client
            storage = storage_client
        self.storage = storage

    def load_user_settings(self, uid: str) -> Dict[str, Any]:
        user = self.users.get_user_profile(uid)
        name_parts = (user.name or "").split(" ")
        preferences = user.preferences or {}
        subscription = user.subscription or {}
        profile = user.profile or {}

        notifications = preferences.get("notifications")
        if not isinstance(notifications, dict):
            notifications = dict(DEFAULT_NOTIFICATIONS)

        return {
            "profile": {
                "first_name": name_parts[0],
                "last_name": " ".join(name_parts[1:]),
                "email": user.email or "",
                "phone": user.phone or "",
                "address": profile.get("address") or "",
                "bio": profile.get("bio") or "",
                "photo_url": user.photo_url or "",
            },
            "notifications": notifications,
            "preferences": {
                "theme": preferences.get("theme") or "light",
                "language": preferences.get("language") or "en",
                "currency": preferences.get("currency") or settings.DEFAULT_CURRENCY,
                "timezone": preferences.get("timezone") or "Asia/Kolkata",
            },
            "billing": {
                "plan": subscription.get("plan") or "free",
                "payment_method": subscription.get("payment_method") or "",
                "card_last4": subscription.get("card_last4") or "",
                "expiry_date": subscription.get("expiry_date") or "",
                "billing_address": subscription.get("billing_address") or "",
                "auto_renew": subscription.get("auto_renew") is not False,
            },
            "user_type": user.user_type,
        }

    def update_profile(self, uid: str, data: Dict[str, Any]) -> User:
        check = validate_profile_data(data)
        if not check.is_valid:
            raise ValidationException("Invalid profile data", details=check.errors)

        user = self.users.find_user(uid)
        profile = dict(user.profile or {}) if user else {}
        profile.update({"address": data.get("address"), "bio": data.get("bio")})

        name = f"{data.get('first_name', '')} {data.get('last_name', '')}".strip()
        return self.users.update_user_profile(uid, {
            "name": name,
            "phone": data.get("phone"),
            "profile": profile,
        })

    async def upload_profile_photo(self, uid: str, filename: str, content: bytes, content_type: str) -> str:
        if not (content_type or "").startswith("image/"):
            raise ValidationException("Please select a valid image file")
        if len(content) > settings.MAX_PROFILE_PHOTO_BYTES:
            raise ValidationException("Image size should be less than 5MB")

        photo_url = await self.storage.upload_profile_photo(uid, filename, content, content_type)
        self.users.update_user_profile(uid, {"photo_url": photo_url})
        logger.info("Profile photo updated", user_id=uid)
        return photo_url

    async def change_password(self, auth_user: AuthenticatedUser, current_password: str, new_password: str) -> Dict[str, Any]:
        if not auth_user.email:
            raise ValidationException("No email associated with this account")
        check = validate_password(new_password)
        if not check.is_valid:
            raise ValidationException(
                "New password does not meet requirements",
                details={"errors": check.errors, "strength": check.strength}
            )
        return await self.auth_client.change_password(auth_user.email, current_password, new_password)

    def update_notifications(self, uid: str, notifications: Dict[str, Any]) -> User:
        user = self.users.find_user(uid)
        preferences = dict(user.preferences or {}) if user else default_preferences()
        preferences["notifications"] = notifications
        return self.users.update_user_profile(uid, {"preferences": preferences})

    def update_preferences(self, uid: str, preferences: Dict[str, Any]) -> User:
        user = self.users.find_user(uid)
        merged = dict(user.preferences or {}) if user else default_preferences()
        merged.update(preferences)
        return self.users.update_user_profile(uid, {"preferences": merged})

    def update_billing(self, uid: str, billing: Dict[str, Any]) -> User:
        check = validate_billing_data(billing)
        if not check.is_valid:
            raise ValidationException("Invalid billing data", details=check.errors)

        subscription = {
            key: value for key, value in billing.items()
            if key not in ("cvv", "card_number")
        }
        card_number = "".join(ch for ch in (billing.get("card_number") or "") if ch.isdigit())
        if card_number:
            subscription["card_last4"] = card_number[-4:]
        subscription["updated_at"] = datetime.utcnow().isoformat()

        logger.info("Billing updated", user_id=uid, plan=billing.get("plan"))
        return self.users.update_user_profile(uid, {"subscription": subscription})

    def update_user_type(self, uid: str, user_type: str) -> User:
        if user_type not in USER_TYPES:
            raise ValidationException('Invalid user type. Must be "agent" or "owner"')
        return self.users.update_user_profile(uid, {"user_type": user_type})


def get_plan_details(plan_id: Optional[str]) -> Dict[str, Any]:
    return PLANS.get(plan_id or "free", PLANS["free"])
