# backend/opsdb/__init__.py
"""
Import ORM models from each app so that:

- Alembic and Base.metadata.create_all() see all tables.
- The package exposes a clear surface.

The actual model classes are kept in opsdb/apps/*/models.py.
"""

from .apps.activity import models as activity_models              # activity log
from .apps.permissions import models as permissions_models        # per-user capabilities
from .apps.wheel_rotation import models as wheel_rotation_models  # wheels + rotation history

__all__ = [
    "activity_models",
    "permissions_models",
    "wheel_rotation_models",
]
