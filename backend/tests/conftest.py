from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from easyprop.auth.firebase import AuthenticatedUser, get_current_user, get_optional_user
from easyprop.db import models  # noqa: F401
from easyprop.db.base import Base, get_db
from easyprop.db.models import Property, User, default_preferences, default_stats
from easyprop.main import app
from easyprop.utils.cache import cache


@pytest.fixture(autouse=True)
def disable_cache(monkeypatch):
    """Keep Redis out of every test."""
    monkeypatch.setattr(cache, "enabled", False)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    """A session bound to a fresh in-memory database."""
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def auth_user():
    return AuthenticatedUser(uid="user_agent", email="asha@example.com", name="Asha Verma")


@pytest.fixture
def make_user(db):
    def _make_user(uid="user_agent", **overrides):
        user = User(
            id=uid,
            email=overrides.pop("email", f"{uid}@example.com"),
            name=overrides.pop("name", "Asha Verma"),
            phone=overrides.pop("phone", "+919876543210"),
            company=overrides.pop("company", "Verma Realty"),
            user_type=overrides.pop("user_type", "agent"),
            stats=overrides.pop("stats", default_stats()),
            preferences=overrides.pop("preferences", default_preferences()),
            profile=overrides.pop("profile", {}),
            subscription=overrides.pop("subscription", {}),
            created_at=datetime.utcnow(),
            updated_at=datetime.utcnow(),
            **overrides
        )
        db.add(user)
        db.commit()
        return user
    return _make_user


@pytest.fixture
def make_property(db):
    counter = {"n": 0}

    def _make_property(user_id="user_agent", **overrides):
        counter["n"] += 1
        n = counter["n"]
        prop = Property(
            id=overrides.pop("id", f"prop_test_{n}"),
            user_id=user_id,
            title=overrides.pop("title", f"2 BHK Apartment {n}"),
            description=overrides.pop("description", "Bright flat close to the metro"),
            price=overrides.pop("price", 5_000_000),
            address=overrides.pop("address", f"{n} MG Road"),
            city=overrides.pop("city", "Mumbai"),
            state=overrides.pop("state", "Maharashtra"),
            locality=overrides.pop("locality", "Andheri"),
            bedrooms=overrides.pop("bedrooms", 2),
            bathrooms=overrides.pop("bathrooms", 2),
            area=overrides.pop("area", 1000),
            type=overrides.pop("type", "sale"),
            property_type=overrides.pop("property_type", "apartment"),
            status=overrides.pop("status", "active"),
            furnishing=overrides.pop("furnishing", "semi-furnished"),
            facing=overrides.pop("facing", "east"),
            age_of_property=overrides.pop("age_of_property", 3),
            amenities=overrides.pop("amenities", ["gym", "parking"]),
            images=overrides.pop("images", ["https://cdn.example.com/1.jpg"]),
            views=overrides.pop("views", 0),
            inquiries=0,
            favorites=0,
            created_at=overrides.pop("created_at", datetime.utcnow() - timedelta(minutes=100 - n)),
            updated_at=datetime.utcnow(),
            **overrides
        )
        db.add(prop)
        db.commit()
        return prop
    return _make_property


@pytest.fixture
def client(db, auth_user):
    """Test client with the database and signed-in user overridden."""
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_current_user] = lambda: auth_user
    app.dependency_overrides[get_optional_user] = lambda: None
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()
