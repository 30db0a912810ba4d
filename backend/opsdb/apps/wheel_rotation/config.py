# backend/opsdb/apps/wheel_rotation/config.py

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

MAX_UPCOMING_DAYS = 366


def _positive_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw_value = (env.get(name) or str(default)).strip()
    try:
        parsed = int(raw_value)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer.") from exc
    if parsed <= 0:
        raise RuntimeError(f"{name} must be a positive integer.")
    return parsed


@dataclass(frozen=True)
class WheelRotationSettings:
    """Reporting windows for the wheel rotation dashboard."""

    upcoming_days: int = 30
    week_window_days: int = 7

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "WheelRotationSettings":
        active_env = os.environ if env is None else env
        upcoming_days = _positive_int(active_env, "WHEEL_ROTATION_UPCOMING_DAYS", cls.upcoming_days)
        if upcoming_days > MAX_UPCOMING_DAYS:
            raise RuntimeError(f"WHEEL_ROTATION_UPCOMING_DAYS must be <= {MAX_UPCOMING_DAYS}.")
        return cls(
            upcoming_days=upcoming_days,
            week_window_days=_positive_int(
                active_env, "WHEEL_ROTATION_WEEK_WINDOW_DAYS", cls.week_window_days
            ),
        )


def get_settings() -> WheelRotationSettings:
    """FastAPI dependency; override in tests via app.dependency_overrides."""
    return WheelRotationSettings.from_env()
