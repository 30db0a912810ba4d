from __future__ import annotations

from datetime import date, datetime, timezone
from types import SimpleNamespace

import pytest

from opsdb.apps.wheel_rotation.errors import InvalidStateError, ValidationError
from opsdb.apps.wheel_rotation.models import RotationFrequencyEnum
from opsdb.apps.wheel_rotation.scheduling import (
    add_months,
    compute_next_due,
    effective_next_due,
    parse_frequency,
)


@pytest.mark.parametrize(
    "frequency, expected",
    [
        ("weekly", date(2024, 3, 22)),
        ("monthly", date(2024, 4, 15)),
        ("quarterly", date(2024, 6, 15)),
        ("biannually", date(2024, 9, 15)),
        ("annually", date(2025, 3, 15)),
    ],
)
def test_compute_next_due_for_each_cadence(frequency, expected):
    assert compute_next_due(date(2024, 3, 15), frequency) == expected


def test_monthly_clamps_to_end_of_february():
    assert compute_next_due(date(2023, 1, 31), "monthly") == date(2023, 2, 28)
    assert compute_next_due(date(2024, 1, 31), "monthly") == date(2024, 2, 29)


def test_quarterly_and_biannual_clamp_to_shorter_months():
    assert compute_next_due(date(2024, 8, 31), "quarterly") == date(2024, 11, 30)
    assert compute_next_due(date(2024, 8, 31), "biannually") == date(2025, 2, 28)


def test_annual_step_from_leap_day():
    assert compute_next_due(date(2024, 2, 29), "annually") == date(2025, 2, 28)


def test_weekly_crosses_year_boundary():
    assert compute_next_due(date(2024, 12, 28), RotationFrequencyEnum.WEEKLY) == date(2025, 1, 4)


def test_add_months_rolls_into_next_year():
    assert add_months(date(2024, 11, 30), 3) == date(2025, 2, 28)


def test_datetime_base_keeps_time_and_timezone():
    base = datetime(2024, 2, 15, 9, 30, tzinfo=timezone.utc)
    due = compute_next_due(base, "monthly")
    assert due == datetime(2024, 3, 15, 9, 30, tzinfo=timezone.utc)
    assert due.tzinfo is timezone.utc


def test_missing_base_date_is_invalid_state():
    with pytest.raises(InvalidStateError):
        compute_next_due(None, "monthly")


def test_unknown_frequency_is_rejected():
    with pytest.raises(ValidationError):
        compute_next_due(date(2024, 1, 1), "fortnightly")


def test_parse_frequency_normalises_case_and_whitespace():
    assert parse_frequency(" Quarterly ") is RotationFrequencyEnum.QUARTERLY


def test_effective_next_due_prefers_stored_value():
    wheel = SimpleNamespace(
        next_rotation_due=datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc),
        arrival_date=date(2024, 1, 1),
        rotation_frequency=RotationFrequencyEnum.MONTHLY,
    )
    assert effective_next_due(wheel) == date(2024, 5, 1)


def test_effective_next_due_falls_back_to_arrival_date():
    wheel = SimpleNamespace(
        next_rotation_due=None,
        arrival_date=date(2024, 1, 31),
        rotation_frequency=RotationFrequencyEnum.MONTHLY,
    )
    assert effective_next_due(wheel) == date(2024, 2, 29)
