# backend/opsdb/apps/wheel_rotation/errors.py
#
# Error taxonomy for the wheel rotation module. Routers translate these into
# HTTP responses; nothing below the router layer raises HTTPException.

from __future__ import annotations


class WheelRotationError(Exception):
    """Base class for wheel rotation failures."""


class ValidationError(WheelRotationError, ValueError):
    """Malformed or out-of-range input. Raised before any state changes."""


class NotFoundError(WheelRotationError):
    """The referenced wheel does not exist for the caller's company."""


class InvalidStateError(WheelRotationError):
    """An internal invariant does not hold (e.g. no date to schedule from)."""


class ConcurrentUpdateError(WheelRotationError):
    """The wheel was changed by another request since it was loaded."""
