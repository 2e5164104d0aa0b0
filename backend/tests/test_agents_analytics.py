from datetime import datetime, timedelta

import pytest

from easyprop.core.exceptions import NotFoundException
from easyprop.db.models import PropertyView
from easyprop.services.agents import DEFAULT_PHONE, MOCK_AGENTS, AgentService, build_contact_info
from easyprop.services.analytics import AnalyticsService


def test_contact_info_defaults():
    info = build_contact_info({"id": "agent_1", "name": "Priya  Sharma"})

    assert info["email"] == "priya.sharma@easyprop.com"
    assert info["phone"] == DEFAULT_PHONE
    assert info["whatsapp"] == DEFAULT_PHONE
    assert info["specialization"] == "Residential Properties"
    assert "residential properties" in info["bio"]
    assert info["rating"] == 4.5
    assert info["avatar_url"].endswith("u=agent_1")


def test_contact_info_prefers_profile(make_user):
    agent = make_user(profile={"specialization": "Commercial", "whatsapp": "+919000000000"},
                      stats={"rating": 4.9})

    info = build_contact_info(agent)

    assert info["phone"] == "+919876543210"
    assert info["whatsapp"] == "+919000000000"
    assert info["specialization"] == "Commercial"
    assert info["rating"] == 4.9


def test_get_agent_by_id(db, make_user, make_property):
    make_user()
    for _ in range(4):
        make_property()
    make_property(status="sold")

    agent = AgentService(db).get_agent_by_id("user_agent")

    assert agent["name"] == "Asha Verma"
    assert agent["properties_count"] == 4
    assert len(agent["recent_properties"]) == 3
    assert agent["contact_info"]["email"] == "user_agent@example.com"


def test_get_agent_by_id_falls_back_to_any_user(db, make_user):
    make_user("owner_1", email="owner@example.com", user_type="owner")

    assert AgentService(db).get_agent_by_id("owner_1")["user_type"] == "owner"
    with pytest.raises(NotFoundException):
        AgentService(db).get_agent_by_id("agent_missing")


def test_top_picks_use_placeholders_without_agents(db):
    agents = AgentService(db).get_top_picks_agents()

    assert [a["id"] for a in agents] == [a["id"] for a in MOCK_AGENTS]
    assert all(a["properties_count"] == 0 for a in agents)
    assert agents[0]["contact_info"]["email"] == "priya.sharma@easyprop.com"


def test_top_picks_and_sellers(db, make_user, make_property):
    make_user()
    make_user("builder_1", email="builder@example.com", user_type="builder")
    make_user("buyer_1", email="buyer@example.com", user_type="buyer")
    make_property()
    service = AgentService(db)

    picks = service.get_top_picks_agents()
    assert {a["id"] for a in picks} == {"user_agent", "builder_1"}
    assert {a["id"]: a["properties_count"] for a in picks}["user_agent"] == 1

    sellers = service.get_top_sellers(limit=1)
    assert len(sellers) == 1
    assert set(sellers[0]) == {"id", "name", "company", "stats", "profile"}


def test_property_agent_contact(db, make_user, make_property):
    make_user()
    prop = make_property()
    orphan = make_property(user_id="ghost")
    service = AgentService(db)

    contact = service.get_property_agent_contact(prop.id)
    assert contact["id"] == "user_agent"
    assert contact["company"] == "Verma Realty"

    with pytest.raises(NotFoundException):
        service.get_property_agent_contact(orphan.id)
    with pytest.raises(NotFoundException):
        service.get_property_agent_contact("prop_missing")


@pytest.fixture
def viewed_property(db, make_property):
    prop = make_property(views=4)
    now = datetime.utcnow()
    recent = now - timedelta(hours=1)
    for user_id, viewed_at in (
        ("visitor_1", recent),
        ("visitor_2", recent),
        (None, now - timedelta(days=3)),
        ("visitor_1", now - timedelta(days=40)),
    ):
        db.add(PropertyView(property_id=prop.id, user_id=user_id, session_id="s", viewed_at=viewed_at))
    db.commit()
    return prop


def test_property_view_analytics(db, viewed_property):
    analytics = AnalyticsService(db).get_property_view_analytics(viewed_property.id, 30)

    assert analytics["total_views"] == 4
    assert analytics["recent_views"] == 3
    assert len(analytics["views_by_day"]) == 2
    assert analytics["peak_views"] == 2
    assert analytics["average_daily_views"] == 2
    assert analytics["days_analyzed"] == 30


def test_property_views_breakdown(db, viewed_property):
    views = AnalyticsService(db).get_property_views(viewed_property.id, limit=2)

    assert views["total_views"] == 4
    assert views["unique_views"] == 2
    assert views["this_week_views"] == 3
    assert views["last_week_views"] == 0
    assert views["views_this_month"] == 3
    assert len(views["recent_views"]) == 2


def test_view_analytics_unknown_property(db):
    with pytest.raises(NotFoundException):
        AnalyticsService(db).get_property_view_analytics("prop_missing")


def test_user_view_analytics(db, make_property, viewed_property):
    make_property(views=2)

    analytics = AnalyticsService(db).get_user_view_analytics("user_agent")

    assert analytics == {
        "total_views": 6,
        "recent_views": 3,
        "properties_viewed": 1,
        "total_properties": 2,
        "average_views_per_property": 3,
    }


def test_user_properties_with_analytics(db, viewed_property):
    rows = AnalyticsService(db).get_user_properties_with_analytics("user_agent")

    assert len(rows) == 1
    assert rows[0]["analytics"]["recent_views"] == 3


def test_view_averages_round_half_up(db, make_property):
    prop = make_property(views=2)
    make_property(views=3)
    now = datetime.utcnow()
    for viewed_at in [now - timedelta(days=3)] * 3 + [now - timedelta(days=5)] * 2:
        db.add(PropertyView(property_id=prop.id, session_id="s", viewed_at=viewed_at))
    db.commit()
    service = AnalyticsService(db)

    assert service.get_property_view_analytics(prop.id, 30)["average_daily_views"] == 3
    assert service.get_user_view_analytics("user_agent")["average_views_per_property"] == 3
