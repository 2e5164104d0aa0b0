from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, UploadFile, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from easyprop.auth.firebase import AuthenticatedUser, get_current_user
from easyprop.core.logging import get_logger
from easyprop.db.base import get_db
from easyprop.services.analytics import AnalyticsService
from easyprop.services.users import (
    SettingsService,
    UserService,
    get_dashboard_stats_config,
    get_plan_details,
    get_user_type_display,
)

logger = get_logger(__name__)
router = APIRouter()


class UserProfileCreate(BaseModel):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    user_type: str = "agent"


class UserProfileUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    profile: Optional[Dict[str, Any]] = None


class ProfileSettings(BaseModel):
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    address: Optional[str] = None
    bio: Optional[str] = None


class PasswordChange(BaseModel):
    current_password: str
    new_password: str


class BillingSettings(BaseModel):
    plan: str = ""
    payment_method: str = ""
    card_number: Optional[str] = None
    expiry_date: Optional[str] = None
    cvv: Optional[str] = None
    billing_address: str = ""
    auto_renew: bool = True


class UserTypeUpdate(BaseModel):
    user_type: str


def _profile(user) -> Dict[str, Any]:
    return {**user.to_dict(), "user_type_display": get_user_type_display(user.user_type)}


@router.post("/me", status_code=status.HTTP_201_CREATED)
async def create_my_profile(
    profile: UserProfileCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create the profile row for a freshly registered account."""
    data = profile.model_dump()
    data["email"] = data["email"] or user.email
    return _profile(UserService(db).create_user_profile(user.uid, data))


@router.get("/me")
async def get_my_profile(
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _profile(UserService(db).get_user_profile(user.uid))


@router.patch("/me")
async def update_my_profile(
    updates: UserProfileUpdate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _profile(UserService(db).update_user_profile(user.uid, updates.model_dump(exclude_unset=True)))


@router.get("/me/dashboard")
async def get_my_dashboard(
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Dashboard counters, the card layout for the caller's role and view totals."""
    profile = UserService(db).ensure_user_profile(user)
    stats = UserService(db).get_dashboard_stats(user.uid)
    return {
        "user_type": profile.user_type,
        "user_type_display": get_user_type_display(profile.user_type),
        "stats": stats,
        "cards": get_dashboard_stats_config(profile.user_type, stats),
        "view_analytics": AnalyticsService(db).get_user_view_analytics(user.uid),
    }


@router.get("/me/settings")
async def get_my_settings(
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return SettingsService(db).load_user_settings(user.uid)


@router.put("/me/settings/profile")
async def update_profile_settings(
    settings_form: ProfileSettings,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _profile(SettingsService(db).update_profile(user.uid, settings_form.model_dump()))


@router.post("/me/settings/photo")
async def upload_profile_photo(
    file: UploadFile = File(...),
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    content = await file.read()
    photo_url = await SettingsService(db).upload_profile_photo(
        user.uid, file.filename, content, file.content_type
    )
    return {"photo_url": photo_url}


@router.post("/me/settings/password")
async def change_password(
    change: PasswordChange,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return await SettingsService(db).change_password(user, change.current_password, change.new_password)


@router.put("/me/settings/notifications")
async def update_notification_settings(
    notifications: Dict[str, bool],
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    row = SettingsService(db).update_notifications(user.uid, notifications)
    return {"notifications": (row.preferences or {}).get("notifications", {})}


@router.put("/me/settings/preferences")
async def update_preference_settings(
    preferences: Dict[str, Any],
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    row = SettingsService(db).update_preferences(user.uid, preferences)
    return {"preferences": row.preferences or {}}


@router.put("/me/settings/billing")
async def update_billing_settings(
    billing: BillingSettings,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    row = SettingsService(db).update_billing(user.uid, billing.model_dump(exclude_none=True))
    subscription = row.subscription or {}
    return {"subscription": subscription, "plan": get_plan_details(subscription.get("plan"))}


@router.put("/me/settings/user-type")
async def update_user_type(
    update: UserTypeUpdate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _profile(SettingsService(db).update_user_type(user.uid, update.user_type))


@router.get("/plans/{plan_id}")
async def get_plan(plan_id: str):
    return {"id": plan_id, **get_plan_details(plan_id)}


@router.get("/me/analytics")
async def get_my_view_analytics(
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return AnalyticsService(db).get_user_view_analytics(user.uid)
