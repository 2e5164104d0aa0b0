from datetime import date, datetime, timedelta, timezone

import pytest

from easyprop.core.config import settings
from easyprop.db.models import User
from easyprop.utils.dates import parse_datetime
from easyprop.utils.scheduler import MaintenanceScheduler


@pytest.mark.parametrize("value,expected", [
    (None, None),
    ("", None),
    ("yesterday", None),
    ("2024-05-01T08:15:00Z", datetime(2024, 5, 1, 8, 15)),
    ("2024-05-01T13:45:00+05:30", datetime(2024, 5, 1, 8, 15)),
    ("2024-05-01", datetime(2024, 5, 1)),
    (0, datetime(1970, 1, 1)),
    (date(2024, 5, 1), datetime(2024, 5, 1)),
    (datetime(2024, 5, 1, 13, 45, tzinfo=timezone(timedelta(hours=5, minutes=30))), datetime(2024, 5, 1, 8, 15)),
])
def test_parse_datetime(value, expected):
    assert parse_datetime(value) == expected


def test_scheduler_registers_daily_job(mocker):
    thread = mocker.patch("easyprop.utils.scheduler.threading.Thread")
    scheduler = MaintenanceScheduler(session_factory=mocker.Mock())

    scheduler.start()

    assert len(scheduler.scheduler.jobs) == 1
    assert scheduler.scheduler.jobs[0].at_time.strftime("%H:%M") == settings.STATS_RECALC_TIME
    thread.return_value.start.assert_called_once()

    scheduler.stop()
    assert scheduler.scheduler.jobs == []
    assert scheduler.stop_flag.is_set()


def test_scheduled_recalculation(db, make_user, make_property):
    make_user()
    make_property(city="Pune")
    make_property(city="Goa")

    updated = MaintenanceScheduler(session_factory=lambda: db)._run_cities_recalculation()

    assert updated == 1
    assert db.get(User, "user_agent").stats["total_cities"] == 2
