# backend/opsdb/apps/wheel_rotation/__init__.py
"""
Wheel rotation tracking (stored wheels turned on a fixed cadence).

Only models and schemas are imported at package import time so Alembic can
load metadata without pulling in the service layer.
"""

from . import models, schemas  # noqa: F401
