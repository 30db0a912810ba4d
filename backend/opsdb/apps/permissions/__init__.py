# backend/opsdb/apps/permissions/__init__.py
"""
Per-user capability sets (permission name -> granted).
"""

from . import models  # noqa: F401
