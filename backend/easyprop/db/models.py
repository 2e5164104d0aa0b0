from datetime import datetime
from typing import Any, Dict

from sqlalchemy import (
    Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, JSON, String,
    Text, UniqueConstraint,
)
from sqlalchemy.orm import relationship

from easyprop.db.base import Base


def default_stats() -> Dict[str, Any]:
    return {
        "total_properties": 0,
        "properties_for_sale": 0,
        "properties_for_rent": 0,
        "total_customers": 0,
        "total_cities": 0,
        "total_revenue": 0,
        "monthly_revenue": 0,
        "total_leads": 0,
        "active_leads": 0,
        "converted_leads": 0,
    }


def default_preferences() -> Dict[str, Any]:
    return {"theme": "light", "notifications": True, "email_updates": True}


class SerializerMixin:
    """Column-to-dict conversion for API responses."""

    def to_dict(self) -> Dict[str, Any]:
        data = {}
        for column in self.__table__.columns:
            value = getattr(self, column.key)
            if hasattr(value, "isoformat"):
                value = value.isoformat()
            data[column.key] = value
        return data


class User(Base, SerializerMixin):
    """Marketplace account, keyed by the Firebase uid."""
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    email = Column(String, unique=True, index=True)
    name = Column(String)
    phone = Column(String)
    company = Column(String)
    photo_url = Column(String)
    user_type = Column(String, default="agent", index=True)  # agent, owner, builder, buyer
    status = Column(String, default="active")
    email_verified = Column(Boolean, default=False)
    phone_verified = Column(Boolean, default=False)

    stats = Column(JSON, default=default_stats)
    preferences = Column(JSON, default=default_preferences)
    profile = Column(JSON, default=dict)
    subscription = Column(JSON, default=dict)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    last_login_at = Column(DateTime)

    properties = relationship("Property", back_populates="owner")

    def __repr__(self):
        return f"<User(id={self.id}, type='{self.user_type}')>"


class Property(Base, SerializerMixin):
    """Listing for sale or rent."""
    __tablename__ = "properties"

    id = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), index=True)
    title = Column(String, nullable=False)
    description = Column(Text, default="")

    # Pricing
    price = Column(Float, default=0, index=True)
    currency = Column(String, default="INR")
    price_per_sqft = Column(Float, default=0)
    negotiable = Column(Boolean, default=True)

    # Location
    address = Column(String)
    city = Column(String, index=True)
    state = Column(String)
    country = Column(String, default="India")
    pincode = Column(String)
    locality = Column(String, index=True)
    landmark = Column(String)
    latitude = Column(Float)
    longitude = Column(Float)

    # Details
    bedrooms = Column(Integer, default=0)
    bathrooms = Column(Integer, default=0)
    area = Column(Integer, default=0)
    built_up_area = Column(Integer, default=0)
    carpet_area = Column(Integer, default=0)
    balconies = Column(Integer, default=0)
    parking = Column(Integer, default=0)
    floor = Column(Integer, default=0)
    total_floors = Column(Integer, default=0)
    age_of_property = Column(Integer, default=0)

    # Classification
    type = Column(String, default="sale", index=True)  # sale, rent
    category = Column(String, default="residential")
    property_type = Column(String, default="apartment", index=True)
    status = Column(String, default="active", index=True)  # active, sold, rented, inactive
    availability = Column(String, default="immediate")
    facing = Column(String, default="north")
    furnishing = Column(String, default="unfurnished")
    builder = Column(String)
    source = Column(String, default="direct")
    contact_preference = Column(String, default="both")
    best_time_to_call = Column(String, default="anytime")

    # Marketing
    featured = Column(Boolean, default=False, index=True)
    premium = Column(Boolean, default=False)
    verified = Column(Boolean, default=False)

    # Counters
    views = Column(Integer, default=0)
    inquiries = Column(Integer, default=0)
    favorites = Column(Integer, default=0)
    shares = Column(Integer, default=0)

    # Media and tags (JSON arrays)
    images = Column(JSON, default=list)
    videos = Column(JSON, default=list)
    amenities = Column(JSON, default=list)
    features = Column(JSON, default=list)
    tags = Column(JSON, default=list)
    keywords = Column(JSON, default=list)
    virtual_tour = Column(String)
    floor_plan = Column(String)

    possession_date = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    published_at = Column(DateTime, default=datetime.utcnow)
    expires_at = Column(DateTime)

    owner = relationship("User", back_populates="properties")

    def summary(self) -> Dict[str, Any]:
        """Subset used when a property is embedded in another record."""
        return {
            "id": self.id,
            "title": self.title,
            "address": self.address,
            "city": self.city,
            "price": self.price,
            "images": self.images or [],
            "property_type": self.property_type,
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "area": self.area,
            "status": self.status,
            "user_id": self.user_id,
        }

    def to_dict(self, include_owner: bool = False) -> Dict[str, Any]:
        data = super().to_dict()
        if include_owner:
            owner = self.owner
            data["owner"] = {
                "id": owner.id,
                "name": owner.name,
                "company": owner.company,
                "photo_url": owner.photo_url,
                "profile": owner.profile or {},
            } if owner else None
        return data

    def __repr__(self):
        return f"<Property(id={self.id}, city='{self.city}', type='{self.type}')>"


class PropertyView(Base, SerializerMixin):
    __tablename__ = "property_views"

    id = Column(Integer, primary_key=True, autoincrement=True)
    property_id = Column(String, ForeignKey("properties.id", ondelete="CASCADE"), index=True)
    user_id = Column(String, index=True)
    session_id = Column(String, index=True)
    viewed_at = Column(DateTime, default=datetime.utcnow, index=True)


class Favorite(Base, SerializerMixin):
    __tablename__ = "favorites"
    __table_args__ = (UniqueConstraint("user_id", "property_id", name="uq_favorites_user_property"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, index=True, nullable=False)
    property_id = Column(String, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    property = relationship("Property")


class Lead(Base, SerializerMixin):
    """Buyer inquiry addressed to an agent or owner."""
    __tablename__ = "leads"

    id = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), index=True)
    property_id = Column(String, index=True)

    name = Column(String)
    email = Column(String)
    phone = Column(String, default="")
    message = Column(Text, default="")
    budget = Column(String, default="")
    requirements = Column(Text, default="")

    status = Column(String, default="new", index=True)  # new, contacted, qualified, converted, lost
    priority = Column(String, default="medium")
    source = Column(String, default="website")
    contact_method = Column(String, default="email")
    preferred_time = Column(String, default="anytime")

    score = Column(Integer, default=0)
    rating = Column(Integer, default=0)
    last_contact_at = Column(DateTime)
    next_follow_up = Column(DateTime)
    follow_up_count = Column(Integer, default=0)

    location = Column(String, default="")
    occupation = Column(String, default="")
    company = Column(String, default="")

    notes = Column(JSON, default=list)
    history = Column(JSON, default=list)
    communications = Column(JSON, default=list)

    converted_at = Column(DateTime)
    conversion_value = Column(Float, default=0)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Revenue(Base, SerializerMixin):
    __tablename__ = "revenue"

    id = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), index=True)
    property_id = Column(String)
    lead_id = Column(String)

    amount = Column(Float, default=0)
    currency = Column(String, default="INR")
    type = Column(String, default="commission")
    transaction_id = Column(String, default="")
    payment_method = Column(String, default="bank_transfer")
    payment_status = Column(String, default="completed")
    description = Column(Text, default="")
    category = Column(String, default="primary")
    recurring = Column(Boolean, default=False)

    tax_amount = Column(Float, default=0)
    tax_rate = Column(Float, default=0)
    net_amount = Column(Float)

    client_name = Column(String, default="")
    client_email = Column(String, default="")
    client_phone = Column(String, default="")

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    received_at = Column(DateTime)
    due_date = Column(DateTime)


class Tour(Base, SerializerMixin):
    """Requested property visit."""
    __tablename__ = "tours"

    id = Column(String, primary_key=True)
    property_id = Column(String, ForeignKey("properties.id", ondelete="CASCADE"), index=True)
    property_owner_id = Column(String, index=True)
    visitor_user_id = Column(String, index=True)
    visitor_name = Column(String, nullable=False)
    visitor_email = Column(String, nullable=False, index=True)
    visitor_phone = Column(String, nullable=False)
    visitor_message = Column(Text, default="")

    tour_date = Column(Date, nullable=False, index=True)
    tour_time = Column(String, nullable=False)
    status = Column(String, default="pending", index=True)  # pending, confirmed, completed, cancelled
    tour_type = Column(String, default="physical")

    agent_feedback = Column(Text)
    agent_rating = Column(Integer)
    agent_notes = Column(Text)
    follow_up_required = Column(Boolean, default=False)
    follow_up_date = Column(Date)
    follow_up_notes = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    property = relationship("Property")

    def to_dict(self, include_property: bool = False) -> Dict[str, Any]:
        data = super().to_dict()
        if include_property:
            data["property"] = self.property.summary() if self.property else None
        return data


class AnalyticsRecord(Base, SerializerMixin):
    """Daily per-user metrics imported from the legacy database."""
    __tablename__ = "analytics"

    id = Column(String, primary_key=True)  # <user_id>_<date>
    date = Column(String, index=True)
    user_id = Column(String, index=True)
    views = Column(JSON, default=dict)
    leads = Column(JSON, default=dict)
    revenue = Column(JSON, default=dict)
    properties = Column(JSON, default=dict)
    activity = Column(JSON, default=dict)
    traffic = Column(JSON, default=dict)
