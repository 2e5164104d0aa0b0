import pytest

from easyprop.core.exceptions import NotFoundException, ValidationException
from easyprop.db.models import Property, User
from easyprop.services.leads import LeadService, status_stat_deltas


@pytest.mark.parametrize("old,new,expected", [
    ("new", "contacted", {}),
    ("new", "new", {}),
    ("qualified", "lost", {"active_leads": -1}),
    ("contacted", "converted", {"active_leads": -1, "converted_leads": 1}),
    ("lost", "qualified", {"active_leads": 1}),
    ("converted", "new", {"active_leads": 1, "converted_leads": -1}),
    ("converted", "lost", {"converted_leads": -1}),
    ("lost", "converted", {"converted_leads": 1}),
])
def test_status_stat_deltas(old, new, expected):
    assert status_stat_deltas(old, new) == expected


def test_add_lead_defaults_and_stats(db, make_user):
    make_user()

    lead = LeadService(db).add_lead("user_agent", {
        "name": "Meera Iyer",
        "email": "meera@example.com",
        "budget": "80 L",
        "notes": ["Wants a sea view"],
        "unknown": "dropped",
    })

    assert lead.id.startswith("lead_")
    assert lead.status == "new"
    assert lead.source == "website"
    assert lead.priority == "medium"
    assert lead.notes == ["Wants a sea view"]
    assert lead.history[0]["status"] == "new"
    stats = db.get(User, "user_agent").stats
    assert stats["total_leads"] == 1
    assert stats["active_leads"] == 1


def test_update_lead_status_tracks_counters(db, make_user):
    make_user()
    service = LeadService(db)
    lead = service.add_lead("user_agent", {"name": "Meera Iyer"})

    service.update_lead_status("user_agent", lead.id, "contacted")
    converted = service.update_lead_status("user_agent", lead.id, "converted")

    assert converted.converted_at is not None
    assert converted.last_contact_at is not None
    assert converted.follow_up_count == 1
    assert [entry["status"] for entry in converted.history] == ["new", "contacted", "converted"]
    stats = db.get(User, "user_agent").stats
    assert stats["active_leads"] == 0
    assert stats["converted_leads"] == 1

    service.update_lead_status("user_agent", lead.id, "qualified")
    stats = db.get(User, "user_agent").stats
    assert stats["active_leads"] == 1
    assert stats["converted_leads"] == 0


def test_update_lead_status_validation(db, make_user):
    make_user()
    service = LeadService(db)
    lead = service.add_lead("user_agent", {"name": "Meera Iyer"})

    with pytest.raises(ValidationException):
        service.update_lead_status("user_agent", lead.id, "archived")
    with pytest.raises(NotFoundException):
        service.update_lead_status("someone_else", lead.id, "contacted")


def test_get_user_leads_filters(db, make_user):
    make_user()
    service = LeadService(db)
    first = service.add_lead("user_agent", {"name": "One"})
    service.add_lead("user_agent", {"name": "Two"})
    service.update_lead_status("user_agent", first.id, "lost")

    assert len(service.get_user_leads("user_agent")) == 2
    assert [lead.id for lead in service.get_user_leads("user_agent", status="lost")] == [first.id]
    assert len(service.get_user_leads("user_agent", limit=1)) == 1
    assert service.get_user_leads("someone_else") == []


def test_agent_contact_creates_lead_and_counts_inquiry(db, make_user, make_property):
    make_user()
    prop = make_property()

    lead = LeadService(db).submit_agent_contact("user_agent", {
        "name": " Farhan ",
        "email": "farhan@example.com",
        "phone": "9876543210",
        "message": "Is the price negotiable?",
    }, property_id=prop.id)

    assert lead.user_id == "user_agent"
    assert lead.source == "agent_contact"
    assert lead.name == "Farhan"
    assert lead.phone == "+919876543210"
    assert lead.preferred_time == "morning"
    assert lead.contact_method == "phone"
    assert db.get(Property, prop.id).inquiries == 1
    assert db.get(User, "user_agent").stats["total_leads"] == 1


@pytest.mark.parametrize("form", [
    {"name": "", "email": "farhan@example.com"},
    {"name": "Farhan", "email": "not-an-email"},
])
def test_agent_contact_validation(db, make_user, form):
    make_user()
    with pytest.raises(ValidationException):
        LeadService(db).submit_agent_contact("user_agent", form)


def test_agent_contact_unknown_agent_or_property(db, make_user):
    form = {"name": "Farhan", "email": "farhan@example.com"}
    with pytest.raises(NotFoundException):
        LeadService(db).submit_agent_contact("agent_missing", form)

    make_user()
    with pytest.raises(NotFoundException):
        LeadService(db).submit_agent_contact("user_agent", form, property_id="prop_missing")
