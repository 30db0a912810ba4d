# backend/opsdb/apps/wheel_rotation/models.py
#
# ORM models for the wheel rotation module:
# - WheelRotation        : one tracked wheel in storage, with its current
#                          angular position and rotation schedule.
# - WheelRotationHistory : append-only log of every rotation performed.
#
# Notes:
# - Positions are whole degrees in [0, 360); enforced by check constraints.
# - Uses non-native enums to avoid Postgres enum lifecycle headaches in Alembic.
# - `version` is SQLAlchemy's optimistic-concurrency counter: an UPDATE against
#   a stale version matches no row and raises StaleDataError.

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship

from ...database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class RotationFrequencyEnum(str, Enum):
    """How often a stored wheel must be turned."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    BIANNUALLY = "biannually"
    ANNUALLY = "annually"


# ---------------------------------------------------------------------------
# WheelRotation – tracked wheel
# ---------------------------------------------------------------------------


class WheelRotation(Base):
    """
    A wheel held in storage at a station and turned on a fixed cadence.

    `next_rotation_due` is only ever written by the scheduling code together
    with `last_rotation_date`; both stay NULL until the first rotation.
    """

    __tablename__ = "wheel_rotations"

    __table_args__ = (
        Index("ix_wheel_rotations_company_active_due", "company_id", "is_active", "next_rotation_due"),
        Index("ix_wheel_rotations_company_serial", "company_id", "wheel_serial_number"),
        CheckConstraint(
            "current_position >= 0 AND current_position < 360",
            name="ck_wheel_rotations_position_range",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(String(64), nullable=False, index=True)

    arrival_date = Column(Date, nullable=False)
    station = Column(String(64), nullable=False, index=True)
    airline = Column(String(128), nullable=False, index=True)
    wheel_part_number = Column(String(64), nullable=False)
    wheel_serial_number = Column(String(64), nullable=False)

    current_position = Column(Integer, nullable=False, default=0)
    rotation_frequency = Column(
        SQLEnum(
            RotationFrequencyEnum,
            name="rotation_frequency_enum",
            native_enum=False,
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
    )
    last_rotation_date = Column(DateTime(timezone=True), nullable=True)
    next_rotation_due = Column(DateTime(timezone=True), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    notes = Column(Text, nullable=True)

    version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )
    created_by_user_id = Column(String(64), nullable=True)
    updated_by_user_id = Column(String(64), nullable=True)

    rotation_history = relationship(
        "WheelRotationHistory",
        back_populates="wheel",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="WheelRotationHistory.id",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return (
            f"<WheelRotation id={self.id} serial={self.wheel_serial_number} "
            f"position={self.current_position}>"
        )


# ---------------------------------------------------------------------------
# WheelRotationHistory – append-only audit trail
# ---------------------------------------------------------------------------


class WheelRotationHistory(Base):
    __tablename__ = "wheel_rotation_history"

    __table_args__ = (
        Index("ix_wheel_rotation_history_wheel_date", "wheel_rotation_id", "rotation_date"),
        CheckConstraint(
            "previous_position >= 0 AND previous_position < 360",
            name="ck_wheel_rotation_history_previous_range",
        ),
        CheckConstraint(
            "new_position >= 0 AND new_position < 360",
            name="ck_wheel_rotation_history_new_range",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    wheel_rotation_id = Column(
        Integer,
        ForeignKey("wheel_rotations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    company_id = Column(String(64), nullable=False, index=True)

    rotation_date = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    previous_position = Column(Integer, nullable=False)
    new_position = Column(Integer, nullable=False)
    performed_by = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    wheel = relationship("WheelRotation", back_populates="rotation_history")

    def __repr__(self) -> str:
        return (
            f"<WheelRotationHistory id={self.id} wheel={self.wheel_rotation_id} "
            f"{self.previous_position}->{self.new_position}>"
        )
