import asyncio

import pytest

from easyprop.auth.firebase import AuthenticatedUser
from easyprop.core.exceptions import NotFoundException, ValidationException
from easyprop.db.models import User
from easyprop.services.users import (
    PLANS, SettingsService, UserService, get_dashboard_stats_config, get_plan_details,
    get_user_type_display, recalculate_all_users_total_cities, update_user_stats,
)

VALID_CARD = "4111 1111 1111 1111"


def test_create_and_get_profile(db):
    service = UserService(db)

    service.create_user_profile("uid_1", {"email": "neha@example.com", "name": "Neha"})
    user = service.get_user_profile("uid_1")

    assert user.user_type == "agent"
    assert user.stats["total_properties"] == 0
    assert user.preferences["theme"] == "light"
    with pytest.raises(NotFoundException):
        service.get_user_profile("uid_missing")


def test_update_profile_creates_missing_user(db):
    user = UserService(db).update_user_profile("uid_new", {"phone": "+919876543210"})

    assert user.email == "uid_new@temp.com"
    assert user.name == "User"
    assert user.phone == "+919876543210"


def test_update_profile_ignores_unknown_and_protected_keys(db, make_user):
    make_user()

    user = UserService(db).update_user_profile("user_agent", {
        "company": "Asha Homes",
        "id": "hijacked",
        "favourite_colour": "blue",
    })

    assert user.id == "user_agent"
    assert user.company == "Asha Homes"


def test_update_user_stats_only_touches_existing_keys(db, make_user):
    make_user(stats={"total_leads": 2})

    update_user_stats(db, "user_agent", {"total_leads": 1, "unknown_counter": 5})
    update_user_stats(db, "uid_missing", {"total_leads": 1})

    assert db.get(User, "user_agent").stats == {"total_leads": 3}


def test_recalculate_total_cities(db, make_user, make_property):
    make_user()
    make_user("user_two", email="two@example.com")
    make_property(city="Mumbai")
    make_property(city=" Mumbai ")
    make_property(city="Pune")
    make_property(city="Delhi", status="sold")
    make_property(user_id="user_two", city="Goa")

    assert recalculate_all_users_total_cities(db) == 2
    assert db.get(User, "user_agent").stats["total_cities"] == 2
    assert db.get(User, "user_two").stats["total_cities"] == 1


def test_dashboard_cards_by_user_type():
    stats = {"properties_for_sale": 3, "total_customers": 7, "total_cities": 2, "total_views": 90}

    agent = get_dashboard_stats_config("agent", stats)
    owner = get_dashboard_stats_config("owner", stats)

    assert [card["title"] for card in agent] == [
        "Properties for Sale", "Properties for Rent", "Total Customers", "Total Cities",
    ]
    assert [card["value"] for card in agent] == [3, 0, 7, 2]
    assert owner[2]["title"] == "Total Inquiries"
    assert owner[3] == {"title": "Property Views", "value": 90, "key": "total_views"}
    assert get_user_type_display("owner") == "Owner"
    assert get_user_type_display(None) == "Agent"


def test_plan_details():
    assert get_plan_details("pro")["price"] == "₹999"
    assert get_plan_details(None) == PLANS["free"]
    assert get_plan_details("platinum") == PLANS["free"]


def test_load_user_settings_defaults(db, make_user):
    make_user(name="Asha Rani Verma", profile={"bio": "Mumbai specialist"})

    settings = SettingsService(db, auth_client=object(), storage=object()).load_user_settings("user_agent")

    assert settings["profile"]["first_name"] == "Asha"
    assert settings["profile"]["last_name"] == "Rani Verma"
    assert settings["profile"]["bio"] == "Mumbai specialist"
    assert settings["notifications"] == {"email": True, "push": True, "sms": False, "marketing": True}
    assert settings["preferences"]["timezone"] == "Asia/Kolkata"
    assert settings["billing"]["plan"] == "free"
    assert settings["billing"]["auto_renew"] is True
    assert settings["user_type"] == "agent"


def test_update_profile_settings(db, make_user):
    make_user()
    service = SettingsService(db, auth_client=object(), storage=object())

    user = service.update_profile("user_agent", {
        "first_name": "Asha",
        "last_name": "Kapoor",
        "email": "asha@example.com",
        "phone": "+919812345678",
        "address": "Powai",
    })

    assert user.name == "Asha Kapoor"
    assert user.phone == "+919812345678"
    assert user.profile["address"] == "Powai"

    with pytest.raises(ValidationException) as exc_info:
        service.update_profile("user_agent", {"first_name": "", "email": "asha@example.com"})
    assert "first_name" in exc_info.value.details


def test_update_billing_keeps_only_last_four(db, make_user):
    make_user()
    service = SettingsService(db, auth_client=object(), storage=object())

    user = service.update_billing("user_agent", {
        "plan": "pro",
        "payment_method": "credit_card",
        "card_number": VALID_CARD,
        "expiry_date": "12/99",
        "cvv": "123",
        "billing_address": "Powai, Mumbai",
    })

    assert user.subscription["card_last4"] == "1111"
    assert user.subscription["plan"] == "pro"
    assert "card_number" not in user.subscription
    assert "cvv" not in user.subscription


def test_notifications_preferences_and_user_type(db, make_user):
    make_user()
    service = SettingsService(db, auth_client=object(), storage=object())

    service.update_notifications("user_agent", {"email": False, "sms": True})
    user = service.update_preferences("user_agent", {"theme": "dark"})
    assert user.preferences["notifications"] == {"email": False, "sms": True}
    assert user.preferences["theme"] == "dark"

    assert service.update_user_type("user_agent", "owner").user_type == "owner"
    with pytest.raises(ValidationException):
        service.update_user_type("user_agent", "builder")


def test_upload_profile_photo(db, make_user, mocker):
    make_user()
    storage = mocker.Mock()
    storage.upload_profile_photo = mocker.AsyncMock(return_value="https://cdn.example.com/avatar.png")
    service = SettingsService(db, auth_client=object(), storage=storage)

    url = asyncio.run(service.upload_profile_photo("user_agent", "me.png", b"png-bytes", "image/png"))

    assert url == "https://cdn.example.com/avatar.png"
    assert db.get(User, "user_agent").photo_url == url
    storage.upload_profile_photo.assert_awaited_once_with("user_agent", "me.png", b"png-bytes", "image/png")


def test_upload_profile_photo_rejects_non_images(db, make_user, mocker):
    make_user()
    storage = mocker.Mock()
    service = SettingsService(db, auth_client=object(), storage=storage)

    with pytest.raises(ValidationException):
        asyncio.run(service.upload_profile_photo("user_agent", "notes.txt", b"text", "text/plain"))
    storage.upload_profile_photo.assert_not_called()


def test_change_password_checks_strength_first(db, mocker):
    auth_client = mocker.Mock()
    auth_client.change_password = mocker.AsyncMock(return_value={"success": True})
    service = SettingsService(db, auth_client=auth_client, storage=object())
    user = AuthenticatedUser(uid="user_agent", email="asha@example.com")

    with pytest.raises(ValidationException):
        asyncio.run(service.change_password(user, "Old-pass1", "short"))
    auth_client.change_password.assert_not_called()

    result = asyncio.run(service.change_password(user, "Old-pass1", "NewPass123"))
    assert result == {"success": True}
    auth_client.change_password.assert_awaited_once_with("asha@example.com", "Old-pass1", "NewPass123")


def test_change_password_needs_email(db):
    service = SettingsService(db, auth_client=object(), storage=object())

    with pytest.raises(ValidationException):
        asyncio.run(service.change_password(AuthenticatedUser(uid="phone_only"), "a", "NewPass123"))
