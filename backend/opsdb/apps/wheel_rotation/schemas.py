# backend/opsdb/apps/wheel_rotation/schemas.py
#
# Schemas for the wheel rotation module:
# - WheelRotation*        : tracked wheels (create / partial update / read).
# - RotationHistoryRead   : one past rotation event.
# - WheelRotateRequest    : body of POST /wheel-rotation/{id}/rotate.
# - Upcoming* / FrequencyCounts : dashboard due-window reporting.

from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import RotationFrequencyEnum


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


class RotationHistoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    wheel_rotation_id: int
    rotation_date: datetime
    previous_position: int
    new_position: int
    performed_by: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime


# ---------------------------------------------------------------------------
# Wheels
# ---------------------------------------------------------------------------


class WheelRotationBase(BaseModel):
    arrival_date: date
    station: str
    airline: str
    wheel_part_number: str
    wheel_serial_number: str
    rotation_frequency: RotationFrequencyEnum
    notes: Optional[str] = None


class WheelRotationCreate(WheelRotationBase):
    """
    Register a wheel for rotation tracking. Position starts at 0 degrees.
    """
    pass


class WheelRotationUpdate(BaseModel):
    """
    Partial update of wheel metadata. Position and rotation dates only change
    through the rotate endpoint.
    """

    station: Optional[str] = None
    airline: Optional[str] = None
    wheel_part_number: Optional[str] = None
    wheel_serial_number: Optional[str] = None
    rotation_frequency: Optional[RotationFrequencyEnum] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = None


class WheelRotationRead(WheelRotationBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    current_position: int
    last_rotation_date: Optional[datetime] = None
    next_rotation_due: Optional[datetime] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    # Most recent history entry only; the detail view carries the full log.
    last_rotation: Optional[RotationHistoryRead] = None


class WheelRotationDetail(WheelRotationRead):
    # Newest first, as the detail modal shows it.
    rotation_history: List[RotationHistoryRead] = Field(default_factory=list)


class WheelRotateRequest(BaseModel):
    new_position: int
    notes: Optional[str] = None
    performed_by: Optional[str] = None
    rotation_date: Optional[datetime] = None


class WheelDeleteResponse(BaseModel):
    success: bool = True


# ---------------------------------------------------------------------------
# Due-window reporting
# ---------------------------------------------------------------------------


UrgencyLiteral = Literal["critical", "high", "medium", "low"]


class UpcomingWheel(BaseModel):
    id: int
    wheel_serial_number: str
    wheel_part_number: str
    airline: str
    station: str
    rotation_frequency: RotationFrequencyEnum
    next_rotation_due: date
    current_position: int
    notes: Optional[str] = None
    urgency: UrgencyLiteral
    days_overdue: Optional[int] = None


class UpcomingBuckets(BaseModel):
    overdue: List[UpcomingWheel] = Field(default_factory=list)
    today: List[UpcomingWheel] = Field(default_factory=list)
    this_week: List[UpcomingWheel] = Field(default_factory=list)
    later: List[UpcomingWheel] = Field(default_factory=list)


class UpcomingSummary(BaseModel):
    total_upcoming: int
    total_overdue: int
    by_frequency: Dict[str, int] = Field(default_factory=dict)
    by_station: Dict[str, int] = Field(default_factory=dict)


class UpcomingPeriod(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_date: date = Field(alias="from")
    to_date: date = Field(alias="to")
    days: int


class UpcomingRotations(BaseModel):
    categorized: UpcomingBuckets
    summary: UpcomingSummary
    period: UpcomingPeriod


class FrequencyCounts(BaseModel):
    today: int
    this_week: int
    this_month: int
    this_quarter: int
    this_year: int
    overdue: int
    total_active: int
    frequency_breakdown: Dict[str, int] = Field(default_factory=dict)


class TodayCount(BaseModel):
    count: int
