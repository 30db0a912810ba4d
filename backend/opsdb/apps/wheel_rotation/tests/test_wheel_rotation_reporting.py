from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from opsdb.apps.wheel_rotation import services
from opsdb.apps.wheel_rotation.config import WheelRotationSettings
from opsdb.apps.wheel_rotation.errors import ValidationError

COMPANY = "company-1"
TODAY = date(2024, 6, 10)
SETTINGS = WheelRotationSettings()


def _wheel(db_session, serial, frequency, arrival, *, company_id=COMPANY, station="NBO"):
    return services.create_wheel(
        db_session,
        company_id=company_id,
        arrival_date=arrival,
        station=station,
        airline="Kenya Airways",
        wheel_part_number="3-1545-3",
        wheel_serial_number=serial,
        rotation_frequency=frequency,
    )


@pytest.fixture()
def fleet(db_session):
    wheels = {
        "overdue": _wheel(db_session, "WHL-A", "weekly", date(2024, 5, 20)),
        "today": _wheel(db_session, "WHL-B", "weekly", date(2024, 6, 3)),
        "this_week": _wheel(db_session, "WHL-C", "weekly", date(2024, 6, 5), station="MBA"),
        "later": _wheel(db_session, "WHL-D", "monthly", date(2024, 5, 25)),
        "next_year": _wheel(db_session, "WHL-E", "annually", date(2024, 6, 1)),
        "inactive": _wheel(db_session, "WHL-F", "weekly", date(2024, 6, 3)),
    }
    wheels["inactive"].is_active = False
    _wheel(db_session, "WHL-X", "weekly", date(2024, 6, 3), company_id="company-2")
    db_session.commit()
    return wheels


def test_upcoming_buckets_by_urgency(db_session, fleet):
    result = services.upcoming_rotations(db_session, company_id=COMPANY, settings=SETTINGS, today=TODAY)
    buckets = result["categorized"]

    assert [row["wheel_serial_number"] for row in buckets["overdue"]] == ["WHL-A"]
    assert buckets["overdue"][0]["days_overdue"] == 14
    assert buckets["overdue"][0]["urgency"] == "critical"
    assert [row["wheel_serial_number"] for row in buckets["today"]] == ["WHL-B"]
    assert [row["wheel_serial_number"] for row in buckets["this_week"]] == ["WHL-C"]
    assert [row["wheel_serial_number"] for row in buckets["later"]] == ["WHL-D"]
    assert buckets["later"][0]["next_rotation_due"] == date(2024, 6, 25)


def test_upcoming_summary_and_period(db_session, fleet):
    result = services.upcoming_rotations(db_session, company_id=COMPANY, settings=SETTINGS, today=TODAY)

    assert result["summary"]["total_upcoming"] == 3
    assert result["summary"]["total_overdue"] == 1
    assert result["summary"]["by_frequency"] == {"weekly": 2, "monthly": 1}
    assert result["summary"]["by_station"] == {"NBO": 2, "MBA": 1}
    assert result["period"] == {"from": TODAY, "to": date(2024, 7, 10), "days": 30}


def test_due_exactly_at_week_end_is_later(db_session):
    _wheel(db_session, "WHL-W", "weekly", date(2024, 6, 10))
    db_session.commit()

    result = services.upcoming_rotations(db_session, company_id=COMPANY, settings=SETTINGS, today=TODAY)

    assert [row["wheel_serial_number"] for row in result["categorized"]["later"]] == ["WHL-W"]
    assert result["categorized"]["this_week"] == []


def test_rotated_wheel_reports_stored_due_date(db_session, fleet):
    services.rotate_wheel(
        db_session,
        company_id=COMPANY,
        wheel_id=fleet["overdue"].id,
        new_position=90,
        rotation_date=datetime(2024, 6, 9, 8, 0, tzinfo=timezone.utc),
    )
    db_session.commit()

    result = services.upcoming_rotations(db_session, company_id=COMPANY, settings=SETTINGS, today=TODAY)

    assert result["categorized"]["overdue"] == []
    assert "WHL-A" in [row["wheel_serial_number"] for row in result["categorized"]["this_week"]]


@pytest.mark.parametrize("days", [0, -5, 367, 400])
def test_upcoming_rejects_window_out_of_bounds(db_session, days):
    with pytest.raises(ValidationError):
        services.upcoming_rotations(db_session, company_id=COMPANY, settings=SETTINGS, days=days, today=TODAY)


def test_custom_window_narrows_later_bucket(db_session, fleet):
    result = services.upcoming_rotations(
        db_session, company_id=COMPANY, settings=SETTINGS, days=10, today=TODAY
    )

    assert result["categorized"]["later"] == []
    assert result["summary"]["total_upcoming"] == 2


def test_frequency_counts(db_session, fleet):
    counts = services.frequency_counts(db_session, company_id=COMPANY, settings=SETTINGS, today=TODAY)

    assert counts["today"] == 1
    assert counts["this_week"] == 2
    assert counts["this_month"] == 3
    assert counts["this_quarter"] == 3
    assert counts["this_year"] == 4
    assert counts["overdue"] == 1
    assert counts["total_active"] == 5
    assert counts["frequency_breakdown"] == {"weekly": 3, "monthly": 1, "annually": 1}


def test_today_count(db_session, fleet):
    assert services.today_count(db_session, company_id=COMPANY, today=TODAY) == 1
    assert services.today_count(db_session, company_id="company-2", today=TODAY) == 1
    assert services.today_count(db_session, company_id="company-3", today=TODAY) == 0
