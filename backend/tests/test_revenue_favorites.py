from datetime import datetime, timedelta

import pytest

from easyprop.core.exceptions import NotFoundException, ValidationException
from easyprop.db.models import Property, Revenue, User
from easyprop.services.favorites import FavoriteService
from easyprop.services.revenue import RevenueService


def test_add_revenue_updates_stats(db, make_user):
    make_user()

    record = RevenueService(db).add_revenue("user_agent", {
        "amount": "150000",
        "client_name": "Meera Iyer",
        "payment_status": "pending",
    })

    assert record.id.startswith("rev_")
    assert record.amount == 150_000.0
    assert record.net_amount == 150_000.0
    assert record.currency == "INR"
    assert record.type == "commission"
    assert record.payment_status == "pending"
    stats = db.get(User, "user_agent").stats
    assert stats["total_revenue"] == 150_000
    assert stats["monthly_revenue"] == 150_000


@pytest.mark.parametrize("amount", [0, -10, None, "lots"])
def test_add_revenue_rejects_bad_amount(db, make_user, amount):
    make_user()
    with pytest.raises(ValidationException):
        RevenueService(db).add_revenue("user_agent", {"amount": amount})


def test_get_user_revenue_timeframes(db, make_user):
    make_user()
    now = datetime.utcnow()
    for days_ago, amount in ((5, 1000), (60, 2000), (200, 4000), (500, 8000)):
        db.add(Revenue(
            id=f"rev_{days_ago}",
            user_id="user_agent",
            amount=amount,
            created_at=now - timedelta(days=days_ago),
        ))
    db.commit()
    service = RevenueService(db)

    assert service.get_user_revenue("user_agent", "month")["total"] == 1000
    assert service.get_user_revenue("user_agent", "quarter")["total"] == 3000
    assert service.get_user_revenue("user_agent", "year")["count"] == 3

    everything = service.get_user_revenue("user_agent")
    assert everything["total"] == 15000
    assert [r.id for r in everything["records"]] == ["rev_5", "rev_60", "rev_200", "rev_500"]


def test_get_user_revenue_rejects_unknown_timeframe(db):
    with pytest.raises(ValidationException):
        RevenueService(db).get_user_revenue("user_agent", "decade")


def test_favorites_add_is_idempotent(db, make_property):
    prop = make_property()
    service = FavoriteService(db)

    first = service.add_to_favorites("buyer_1", prop.id)
    second = service.add_to_favorites("buyer_1", prop.id)

    assert first["already_favorite"] is False
    assert second["already_favorite"] is True
    assert second["favorite"]["id"] == first["favorite"]["id"]
    assert db.get(Property, prop.id).favorites == 1
    assert service.is_favorite("buyer_1", prop.id) is True


def test_favorites_unknown_property(db):
    with pytest.raises(NotFoundException):
        FavoriteService(db).add_to_favorites("buyer_1", "prop_missing")


def test_favorites_list_and_remove(db, make_property):
    older = make_property(title="Older")
    newer = make_property(title="Newer")
    service = FavoriteService(db)
    service.add_to_favorites("buyer_1", older.id)
    service.add_to_favorites("buyer_1", newer.id)
    service.add_to_favorites("buyer_2", newer.id)

    favorites = service.get_user_favorites("buyer_1")
    assert len(favorites) == 2
    assert {fav["property"]["title"] for fav in favorites} == {"Older", "Newer"}

    assert service.remove_from_favorites("buyer_1", newer.id) is True
    assert service.remove_from_favorites("buyer_1", newer.id) is False
    assert service.is_favorite("buyer_1", newer.id) is False
    assert db.get(Property, newer.id).favorites == 1
