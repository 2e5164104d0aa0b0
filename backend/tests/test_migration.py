import json
from datetime import datetime

import pytest

from easyprop.core.exceptions import StorageException, ValidationException
from easyprop.db.models import AnalyticsRecord, Lead, Property, Revenue, User
from easyprop.migration import cli
from easyprop.migration.checks import prepare_environment, validate_import
from easyprop.migration.importers import (
    TABLE_ORDER, import_all, import_records, import_table, map_analytics, map_lead, map_property,
    map_revenue, map_user,
)

USERS = [
    {
        "uid": "legacy_user_1",
        "email": "asha@example.com",
        "name": "Asha Verma",
        "photoURL": "https://cdn.example.com/asha.png",
        "createdAt": "2024-01-15T10:30:00Z",
        "total_properties": 3,
        "subscription_plan": "pro",
        "notifications_enabled": False,
        "emailVerified": True,
    },
]

PROPERTIES = [
    {
        "id": "legacy_prop_1",
        "userId": "legacy_user_1",
        "title": "2 BHK in Baner",
        "type": "sale",
        "propertyType": "apartment",
        "price": 6_500_000,
        "city": "Pune",
        "images": ["https://cdn.example.com/1.jpg"],
        "amenities": "gym",
        "createdAt": 1_700_000_000_000,
        "latitude": 18.559,
        "longitude": 73.786,
    },
]


def write_export(directory, table, records):
    path = directory / f"{table}_export.json"
    path.write_text(json.dumps(records), encoding="utf-8")
    return path


def test_map_user():
    values = map_user(USERS[0])

    assert values["id"] == "legacy_user_1"
    assert values["created_at"] == datetime(2024, 1, 15, 10, 30)
    assert values["stats"]["total_properties"] == 3
    assert values["stats"]["active_leads"] == 0
    assert values["preferences"]["notifications"] is False
    assert values["preferences"]["email_updates"] is True
    assert values["subscription"]["features"] == ["basic_listings", "advanced_analytics", "priority_support"]
    assert values["email_verified"] is True


def test_map_property():
    values = map_property(PROPERTIES[0])

    assert values["user_id"] == "legacy_user_1"
    assert values["property_type"] == "apartment"
    assert values["amenities"] == []
    assert values["country"] == "India"
    assert values["created_at"] == datetime(2023, 11, 14, 22, 13, 20)
    assert values["published_at"] == values["created_at"]


def test_map_lead_revenue_and_analytics():
    lead = map_lead({"id": "lead_1", "userId": "u1", "contactMethod": "phone", "notes": "n/a"})
    assert lead["contact_method"] == "phone"
    assert lead["notes"] == []
    assert lead["status"] == "new"

    revenue = map_revenue({"id": "rev_1", "userId": "u1", "amount": 5000, "createdAt": "2024-03-01T00:00:00Z"})
    assert revenue["net_amount"] == 5000
    assert revenue["received_at"] == datetime(2024, 3, 1)
    assert revenue["payment_status"] == "completed"

    analytics = map_analytics({"userId": "u1", "date": "2024-03-01", "total_views": 12})
    assert analytics["id"] == "u1_2024-03-01"
    assert analytics["views"]["total"] == 12


def test_import_records_counts_failures(db):
    records = USERS + [{"email": "no-uid@example.com"}]

    result = import_records(db, "users", records)

    assert result.total == 2
    assert result.imported == 1
    assert result.failed == 1
    assert result.ok is False
    assert result.errors[0]["index"] == 1
    assert db.get(User, "legacy_user_1").subscription["plan"] == "pro"


def test_import_records_is_an_upsert(db):
    import_records(db, "properties", PROPERTIES)
    changed = [{**PROPERTIES[0], "price": 6_000_000}]

    result = import_records(db, "properties", changed)

    assert result.ok
    assert db.query(Property).count() == 1
    assert db.get(Property, "legacy_prop_1").price == 6_000_000


def test_import_records_unknown_table(db):
    with pytest.raises(ValidationException):
        import_records(db, "tours", [])


def test_import_table_missing_and_malformed_files(db, tmp_path):
    missing = import_table(db, "leads", str(tmp_path))
    assert missing.failed == 1
    assert "not found" in missing.errors[0]["error"]

    (tmp_path / "leads_export.json").write_text("{not json", encoding="utf-8")
    assert import_table(db, "leads", str(tmp_path)).failed == 1

    (tmp_path / "leads_export.json").write_text(json.dumps({"id": "lead_1"}), encoding="utf-8")
    assert import_table(db, "leads", str(tmp_path)).failed == 1


def test_import_all_and_validate(db, tmp_path):
    write_export(tmp_path, "users", USERS)
    write_export(tmp_path, "properties", PROPERTIES)
    write_export(tmp_path, "leads", [
        {"id": "lead_1", "userId": "legacy_user_1", "status": "converted", "notes": ["called"]},
        {"id": "lead_2", "userId": "legacy_user_1", "status": "contacted"},
    ])
    write_export(tmp_path, "revenue", [
        {"id": "rev_1", "userId": "legacy_user_1", "amount": 75_000},
        {"id": "rev_2", "userId": "legacy_user_1", "amount": 10_000, "paymentStatus": "pending"},
    ])

    results = import_all(db, str(tmp_path))

    assert [r.table for r in results] == list(TABLE_ORDER)
    assert [r.ok for r in results] == [True, True, True, True, False]
    assert db.query(Lead).count() == 2
    assert db.query(Revenue).count() == 2
    assert db.query(AnalyticsRecord).count() == 0

    report = validate_import(db)
    assert report["counts"] == {"users": 1, "properties": 1, "leads": 2, "revenue": 2, "analytics": 0}
    assert report["total_records"] == 6
    assert report["details"]["users"]["with_properties"] == 1
    assert report["details"]["properties"] == {"active": 1, "with_images": 1, "with_coordinates": 1}
    assert report["details"]["leads"] == {"active": 1, "converted": 1, "with_notes": 1}
    assert report["details"]["revenue"] == {"total_revenue": 75_000, "completed_transactions": 1}


def test_prepare_environment(tmp_path):
    data_dir = tmp_path / "exports"
    write_target = prepare_environment(str(data_dir))

    assert write_target["created"] is True
    assert data_dir.is_dir()
    assert write_target["missing_files"] == [f"{table}_export.json" for table in TABLE_ORDER]
    assert write_target["ready"] is False

    write_export(data_dir, "users", USERS)
    again = prepare_environment(str(data_dir))
    assert again["created"] is False
    assert again["files"][0]["present"] is True


def test_cli_setup(tmp_path, capsys):
    exit_code = cli.main(["setup", "--data-dir", str(tmp_path)])

    output = capsys.readouterr().out
    assert exit_code == 1
    assert "users_export.json: MISSING" in output
    assert "Setup incomplete" in output


def test_cli_import_and_validate(db, tmp_path, mocker, capsys):
    mocker.patch("easyprop.migration.cli.SessionLocal", return_value=db)
    write_export(tmp_path, "users", USERS)

    assert cli.main(["import", "users", "--data-dir", str(tmp_path)]) == 0
    assert "users: 1/1 imported, 0 failed (ok)" in capsys.readouterr().out

    assert cli.main(["validate"]) == 0
    assert '"users": 1' in capsys.readouterr().out


def test_cli_import_missing_file_fails(db, tmp_path, mocker):
    mocker.patch("easyprop.migration.cli.SessionLocal", return_value=db)

    assert cli.main(["import", "revenue", "--data-dir", str(tmp_path)]) == 1


def test_cli_recalculate_cities(db, make_user, make_property, mocker, capsys):
    mocker.patch("easyprop.migration.cli.SessionLocal", return_value=db)
    make_user()
    make_property(city="Pune")

    assert cli.main(["recalculate-cities"]) == 0
    assert "Recalculated total cities for 1 users" in capsys.readouterr().out
    assert db.get(User, "user_agent").stats["total_cities"] == 1


def test_cli_without_command(capsys):
    assert cli.main([]) == 0
    assert "easyprop-migrate" in capsys.readouterr().out


def test_cli_rejects_unknown_table():
    with pytest.raises(SystemExit):
        cli.main(["import", "tours"])


def test_cli_setup_buckets(mocker, capsys):
    storage = mocker.patch("easyprop.migration.cli.storage_client")
    storage.ensure_buckets.return_value = [
        {"bucket": "property-images", "created": False},
        {"bucket": "profile-photos", "created": True},
    ]

    assert cli.main(["setup-buckets"]) == 0

    output = capsys.readouterr().out
    assert "property-images: already exists" in output
    assert "profile-photos: created" in output
    storage.ensure_buckets.assert_called_once_with()


def test_cli_setup_buckets_reports_storage_errors(mocker, capsys):
    storage = mocker.patch("easyprop.migration.cli.storage_client")
    storage.ensure_buckets.side_effect = StorageException("Failed to create storage bucket")

    assert cli.main(["setup-buckets"]) == 1
    assert "Error: Failed to create storage bucket" in capsys.readouterr().out
