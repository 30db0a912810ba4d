# backend/opsdb/apps/wheel_rotation/scheduling.py
#
# Pure due-date logic for wheel rotations. No database access here so the
# rules can be unit-tested in isolation and reused by the reporting queries.

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Optional, TypeVar, Union

from .errors import InvalidStateError, ValidationError
from .models import RotationFrequencyEnum

DateLike = TypeVar("DateLike", date, datetime)

# Calendar cadences are expressed in whole months so month-end clamping
# applies uniformly (an "annual" step is 12 months).
_CADENCE_MONTHS = {
    RotationFrequencyEnum.MONTHLY: 1,
    RotationFrequencyEnum.QUARTERLY: 3,
    RotationFrequencyEnum.BIANNUALLY: 6,
    RotationFrequencyEnum.ANNUALLY: 12,
}
_CADENCE_DAYS = {
    RotationFrequencyEnum.WEEKLY: 7,
}


def parse_frequency(value: Union[str, RotationFrequencyEnum]) -> RotationFrequencyEnum:
    if isinstance(value, RotationFrequencyEnum):
        return value
    try:
        return RotationFrequencyEnum(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(member.value for member in RotationFrequencyEnum)
        raise ValidationError(
            f"Invalid rotation frequency {value!r}; expected one of: {allowed}"
        )


def add_months(value: DateLike, months: int) -> DateLike:
    """
    Add calendar months, keeping the day of month where it exists and
    clamping to the last day of the target month otherwise
    (Jan 31 + 1 month -> Feb 28/29).
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def compute_next_due(
    base_date: Optional[DateLike],
    frequency: Union[str, RotationFrequencyEnum],
) -> DateLike:
    """
    Next rotation due date for a wheel last turned (or received) on `base_date`.

    weekly +7 days, monthly +1 month, quarterly +3 months,
    biannually +6 months, annually +1 year. Time of day and tzinfo of a
    datetime base are preserved.
    """
    cadence = parse_frequency(frequency)
    if base_date is None:
        raise InvalidStateError("Cannot compute next rotation due date without a base date")

    if cadence in _CADENCE_DAYS:
        return base_date + timedelta(days=_CADENCE_DAYS[cadence])
    return add_months(base_date, _CADENCE_MONTHS[cadence])


def as_date(value: Union[date, datetime, None]) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    return value


def effective_next_due(wheel) -> Optional[date]:
    """
    Calendar day the wheel is next due.

    A wheel that has never been rotated counts from its arrival date.
    """
    if wheel.next_rotation_due is not None:
        return as_date(wheel.next_rotation_due)
    if wheel.arrival_date is None:
        return None
    return as_date(compute_next_due(wheel.arrival_date, wheel.rotation_frequency))
