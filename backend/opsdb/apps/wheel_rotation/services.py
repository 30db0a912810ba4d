# backend/opsdb/apps/wheel_rotation/services.py
#
# Service / business-logic functions for the wheel_rotation module.
#
# Responsibilities:
# - CRUD helpers for WheelRotation (scoped to the caller's company).
# - Append-only rotation history.
# - The rotate command: validate, lock, move, reschedule, log.
# - Due-window reporting for the dashboard (upcoming / counts).
#
# Functions flush but never commit; the router owns the transaction so a
# rotation and its history entry land together or not at all.

from __future__ import annotations

import logging
from collections import Counter
from datetime import date, datetime, timedelta, timezone
from numbers import Real
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..activity import services as activity_services
from .config import MAX_UPCOMING_DAYS, WheelRotationSettings
from .errors import (
    ConcurrentUpdateError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
    WheelRotationError,
)
from .models import RotationFrequencyEnum, WheelRotation, WheelRotationHistory
from .scheduling import add_months, compute_next_due, effective_next_due, parse_frequency

logger = logging.getLogger(__name__)

__all__ = [
    "WheelRotationError",
    "ValidationError",
    "NotFoundError",
    "InvalidStateError",
    "ConcurrentUpdateError",
]

RESOURCE_TYPE = "WHEEL_ROTATION"
FULL_CIRCLE = 360
# Extra attempts for a rotation that lost a race on the version counter.
ROTATE_RETRIES = 3

_REQUIRED_TEXT_FIELDS = (
    "station",
    "airline",
    "wheel_part_number",
    "wheel_serial_number",
)
_UPDATABLE_FIELDS = _REQUIRED_TEXT_FIELDS + ("rotation_frequency", "notes", "is_active")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _ensure_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _clean_text(field: str, value) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} is required")
    return str(value).strip()


def validate_position(value) -> int:
    """
    Whole degrees in [0, 360). Integral floats (90.0) are accepted,
    booleans and fractional values are not.
    """
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ValidationError("position out of range")
    if int(value) != value:
        raise ValidationError("position out of range")
    position = int(value)
    if position < 0 or position >= FULL_CIRCLE:
        raise ValidationError("position out of range")
    return position


def _flush(db: Session, wheel_id: int) -> None:
    try:
        db.flush()
    except StaleDataError:
        db.rollback()
        raise ConcurrentUpdateError(
            f"Wheel rotation {wheel_id} was modified by another request; reload and retry"
        )


def latest_history(wheel: WheelRotation) -> Optional[WheelRotationHistory]:
    history = wheel.rotation_history
    return history[-1] if history else None


# ---------------------------------------------------------------------------
# Record store
# ---------------------------------------------------------------------------


def create_wheel(
    db: Session,
    *,
    company_id: str,
    arrival_date: Optional[date],
    station: Optional[str],
    airline: Optional[str],
    wheel_part_number: Optional[str],
    wheel_serial_number: Optional[str],
    rotation_frequency,
    notes: Optional[str] = None,
    created_by_user_id: Optional[str] = None,
) -> WheelRotation:
    """
    Register a wheel for tracking. Starts at 0 degrees, never rotated,
    no due date stored until the first rotation.
    """
    if arrival_date is None:
        raise ValidationError("arrival_date is required")
    if isinstance(arrival_date, datetime):
        arrival_date = arrival_date.date()

    wheel = WheelRotation(
        company_id=company_id,
        arrival_date=arrival_date,
        station=_clean_text("station", station),
        airline=_clean_text("airline", airline),
        wheel_part_number=_clean_text("wheel_part_number", wheel_part_number),
        wheel_serial_number=_clean_text("wheel_serial_number", wheel_serial_number),
        rotation_frequency=parse_frequency(rotation_frequency),
        current_position=0,
        last_rotation_date=None,
        next_rotation_due=None,
        is_active=True,
        notes=notes,
        created_by_user_id=created_by_user_id,
        updated_by_user_id=created_by_user_id,
    )
    db.add(wheel)
    db.flush()

    activity_services.log_activity(
        db,
        company_id=company_id,
        user_id=created_by_user_id,
        action="ADDED_WHEEL_ROTATION",
        resource_type=RESOURCE_TYPE,
        resource_id=str(wheel.id),
        resource_title=f"Added wheel {wheel.wheel_serial_number} for rotation tracking",
        metadata={"airline": wheel.airline, "part_number": wheel.wheel_part_number},
    )
    logger.info(
        "Registered wheel for rotation tracking",
        extra={"company_id": company_id, "wheel_id": wheel.id, "serial": wheel.wheel_serial_number},
    )
    return wheel


def get_wheel(db: Session, *, company_id: str, wheel_id: int) -> WheelRotation:
    wheel = db.execute(
        select(WheelRotation).where(
            WheelRotation.id == wheel_id,
            WheelRotation.company_id == company_id,
        )
    ).scalar_one_or_none()
    if wheel is None:
        raise NotFoundError("Wheel rotation not found")
    return wheel


def list_wheels(
    db: Session,
    *,
    company_id: str,
    is_active: Optional[bool] = None,
    station: Optional[str] = None,
    airline: Optional[str] = None,
) -> List[WheelRotation]:
    stmt = select(WheelRotation).where(WheelRotation.company_id == company_id)
    if is_active is not None:
        stmt = stmt.where(WheelRotation.is_active == is_active)
    if station:
        stmt = stmt.where(WheelRotation.station == station)
    if airline:
        stmt = stmt.where(WheelRotation.airline == airline)
    stmt = stmt.order_by(WheelRotation.created_at.desc(), WheelRotation.id.desc())
    return list(db.execute(stmt).scalars().all())


def update_wheel(
    db: Session,
    *,
    company_id: str,
    wheel_id: int,
    updated_by_user_id: Optional[str] = None,
    **fields,
) -> WheelRotation:
    """
    Partial metadata update. None leaves a field untouched, except for
    `notes`, where None clears it.
    A cadence change on a rotated wheel reschedules it from the last rotation.
    """
    unknown = sorted(set(fields) - set(_UPDATABLE_FIELDS))
    if unknown:
        raise ValidationError(f"Cannot update field(s): {', '.join(unknown)}")

    changes: Dict[str, object] = {}
    for field, value in fields.items():
        if value is None:
            if field == "notes":
                changes[field] = None
            continue
        if field in _REQUIRED_TEXT_FIELDS:
            value = _clean_text(field, value)
        elif field == "rotation_frequency":
            value = parse_frequency(value)
        elif field == "is_active":
            value = bool(value)
        changes[field] = value

    wheel = get_wheel(db, company_id=company_id, wheel_id=wheel_id)
    cadence_changed = (
        "rotation_frequency" in changes
        and changes["rotation_frequency"] != wheel.rotation_frequency
    )
    for field, value in changes.items():
        setattr(wheel, field, value)

    if cadence_changed and wheel.last_rotation_date is not None:
        wheel.next_rotation_due = compute_next_due(
            _ensure_aware(wheel.last_rotation_date), wheel.rotation_frequency
        )

    wheel.updated_by_user_id = updated_by_user_id
    _flush(db, wheel_id)

    activity_services.log_activity(
        db,
        company_id=company_id,
        user_id=updated_by_user_id,
        action="UPDATED_WHEEL_ROTATION",
        resource_type=RESOURCE_TYPE,
        resource_id=str(wheel.id),
        resource_title=f"Updated wheel {wheel.wheel_serial_number} information",
        metadata={"fields": sorted(changes)},
    )
    return wheel


def delete_wheel(
    db: Session,
    *,
    company_id: str,
    wheel_id: int,
    deleted_by_user_id: Optional[str] = None,
) -> None:
    """Hard delete; history rows go with it."""
    wheel = get_wheel(db, company_id=company_id, wheel_id=wheel_id)
    serial = wheel.wheel_serial_number
    db.delete(wheel)
    _flush(db, wheel_id)

    activity_services.log_activity(
        db,
        company_id=company_id,
        user_id=deleted_by_user_id,
        action="DELETED_WHEEL_ROTATION",
        resource_type=RESOURCE_TYPE,
        resource_id=str(wheel_id),
        resource_title=f"Deleted wheel {serial} from rotation tracking",
    )
    logger.info(
        "Deleted wheel rotation record",
        extra={"company_id": company_id, "wheel_id": wheel_id, "serial": serial},
    )


# ---------------------------------------------------------------------------
# History log
# ---------------------------------------------------------------------------


def append_history(
    db: Session,
    wheel: WheelRotation,
    *,
    previous_position: int,
    new_position: int,
    rotation_date: Optional[datetime] = None,
    performed_by: Optional[str] = None,
    notes: Optional[str] = None,
) -> WheelRotationHistory:
    entry = WheelRotationHistory(
        company_id=wheel.company_id,
        rotation_date=rotation_date or _utcnow(),
        previous_position=previous_position,
        new_position=new_position,
        performed_by=performed_by,
        notes=notes,
    )
    wheel.rotation_history.append(entry)
    return entry


def list_history(db: Session, *, company_id: str, wheel_id: int) -> List[WheelRotationHistory]:
    """All entries for a wheel, oldest first."""
    get_wheel(db, company_id=company_id, wheel_id=wheel_id)
    stmt = (
        select(WheelRotationHistory)
        .where(WheelRotationHistory.wheel_rotation_id == wheel_id)
        .order_by(WheelRotationHistory.id)
    )
    return list(db.execute(stmt).scalars().all())


# ---------------------------------------------------------------------------
# Rotate command
# ---------------------------------------------------------------------------


def _load_for_update(db: Session, *, company_id: str, wheel_id: int) -> WheelRotation:
    # populate_existing refreshes an instance already in the identity map, so
    # previous_position is read from the locked row and not from a stale copy.
    stmt = (
        select(WheelRotation)
        .where(
            WheelRotation.id == wheel_id,
            WheelRotation.company_id == company_id,
        )
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    wheel = db.execute(stmt).scalar_one_or_none()
    if wheel is None:
        raise NotFoundError("Wheel rotation not found")
    return wheel


def rotate_wheel(
    db: Session,
    *,
    company_id: str,
    wheel_id: int,
    new_position,
    notes: Optional[str] = None,
    performed_by: Optional[str] = None,
    rotation_date: Optional[datetime] = None,
    actor_user_id: Optional[str] = None,
) -> WheelRotation:
    """
    Turn a wheel to `new_position` and reschedule it.

    Inactive wheels can still be rotated. The record update and the history
    entry are flushed together; the caller commits.

    When another request rotated the same wheel between our read and our
    write (the version counter no longer matches), the transaction is rolled
    back and the rotation is reapplied on a fresh read of the row, up to
    ROTATE_RETRIES more times. Call this before any other write in the
    transaction, since a retry discards the session's pending work.
    """
    position = validate_position(new_position)
    rotated_at = _ensure_aware(rotation_date) if rotation_date else _utcnow()

    for attempt in range(ROTATE_RETRIES + 1):
        wheel = _load_for_update(db, company_id=company_id, wheel_id=wheel_id)
        previous_position = wheel.current_position

        try:
            next_due = compute_next_due(rotated_at, wheel.rotation_frequency)
        except InvalidStateError:
            logger.error(
                "Could not schedule next wheel rotation",
                extra={"company_id": company_id, "wheel_id": wheel_id},
            )
            raise

        wheel.current_position = position
        wheel.last_rotation_date = rotated_at
        wheel.next_rotation_due = next_due
        wheel.updated_by_user_id = actor_user_id
        append_history(
            db,
            wheel,
            previous_position=previous_position,
            new_position=position,
            rotation_date=rotated_at,
            performed_by=performed_by,
            notes=notes,
        )
        try:
            _flush(db, wheel_id)
        except ConcurrentUpdateError:
            if attempt >= ROTATE_RETRIES:
                raise
            logger.info(
                "Wheel changed underneath rotation; retrying",
                extra={"company_id": company_id, "wheel_id": wheel_id, "attempt": attempt + 1},
            )
            continue
        break

    activity_services.log_activity(
        db,
        company_id=company_id,
        user_id=actor_user_id,
        action="ROTATED_WHEEL",
        resource_type=RESOURCE_TYPE,
        resource_id=str(wheel.id),
        resource_title=(
            f"Rotated wheel {wheel.wheel_serial_number} "
            f"from {previous_position}° to {position}°"
        ),
    )
    logger.info(
        "Rotated wheel",
        extra={
            "company_id": company_id,
            "wheel_id": wheel.id,
            "previous_position": previous_position,
            "new_position": position,
        },
    )
    return wheel


# ---------------------------------------------------------------------------
# Due-window reporting
# ---------------------------------------------------------------------------


def _active_with_due(db: Session, *, company_id: str) -> List[Tuple[WheelRotation, date]]:
    wheels = list_wheels(db, company_id=company_id, is_active=True)
    pairs = []
    for wheel in wheels:
        due = effective_next_due(wheel)
        if due is not None:
            pairs.append((wheel, due))
    pairs.sort(key=lambda pair: (pair[1], pair[0].id))
    return pairs


def _upcoming_row(wheel: WheelRotation, due: date, urgency: str, days_overdue: Optional[int] = None) -> dict:
    return {
        "id": wheel.id,
        "wheel_serial_number": wheel.wheel_serial_number,
        "wheel_part_number": wheel.wheel_part_number,
        "airline": wheel.airline,
        "station": wheel.station,
        "rotation_frequency": wheel.rotation_frequency,
        "next_rotation_due": due,
        "current_position": wheel.current_position,
        "notes": wheel.notes,
        "urgency": urgency,
        "days_overdue": days_overdue,
    }


def _frequency_key(value) -> str:
    return value.value if isinstance(value, RotationFrequencyEnum) else str(value)


def upcoming_rotations(
    db: Session,
    *,
    company_id: str,
    settings: WheelRotationSettings,
    days: Optional[int] = None,
    today: Optional[date] = None,
) -> dict:
    """
    Active wheels due within `days`, plus everything overdue, bucketed by
    urgency: overdue (critical), today (high), this week (medium), later (low).
    """
    window = settings.upcoming_days if days is None else days
    if window < 1 or window > MAX_UPCOMING_DAYS:
        raise ValidationError(f"days must be between 1 and {MAX_UPCOMING_DAYS}")

    today = today or _utcnow().date()
    week_end = today + timedelta(days=settings.week_window_days)
    period_end = today + timedelta(days=window)

    buckets: Dict[str, list] = {"overdue": [], "today": [], "this_week": [], "later": []}
    upcoming: List[WheelRotation] = []
    for wheel, due in _active_with_due(db, company_id=company_id):
        if due < today:
            buckets["overdue"].append(
                _upcoming_row(wheel, due, "critical", days_overdue=(today - due).days)
            )
            continue
        if due > period_end:
            continue
        upcoming.append(wheel)
        if due == today:
            buckets["today"].append(_upcoming_row(wheel, due, "high"))
        elif due < week_end:
            buckets["this_week"].append(_upcoming_row(wheel, due, "medium"))
        else:
            buckets["later"].append(_upcoming_row(wheel, due, "low"))

    return {
        "categorized": buckets,
        "summary": {
            "total_upcoming": len(upcoming),
            "total_overdue": len(buckets["overdue"]),
            "by_frequency": dict(Counter(_frequency_key(w.rotation_frequency) for w in upcoming)),
            "by_station": dict(Counter(w.station for w in upcoming)),
        },
        "period": {"from": today, "to": period_end, "days": window},
    }


def frequency_counts(
    db: Session,
    *,
    company_id: str,
    settings: WheelRotationSettings,
    today: Optional[date] = None,
) -> dict:
    today = today or _utcnow().date()
    limits = {
        "today": today + timedelta(days=1),
        "this_week": today + timedelta(days=settings.week_window_days),
        "this_month": add_months(today, 1),
        "this_quarter": add_months(today, 3),
        "this_year": add_months(today, 12),
    }

    counts = {key: 0 for key in limits}
    overdue = 0
    breakdown: Counter = Counter()
    pairs = _active_with_due(db, company_id=company_id)
    for wheel, due in pairs:
        breakdown[_frequency_key(wheel.rotation_frequency)] += 1
        if due < today:
            overdue += 1
            continue
        for key, limit in limits.items():
            if due < limit:
                counts[key] += 1

    return {
        **counts,
        "overdue": overdue,
        "total_active": len(pairs),
        "frequency_breakdown": dict(breakdown),
    }


def today_count(db: Session, *, company_id: str, today: Optional[date] = None) -> int:
    today = today or _utcnow().date()
    return sum(1 for _, due in _active_with_due(db, company_id=company_id) if due == today)


def sorted_history_newest_first(entries: Sequence[WheelRotationHistory]) -> List[WheelRotationHistory]:
    return sorted(entries, key=lambda entry: entry.id, reverse=True)
