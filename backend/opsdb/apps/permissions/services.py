# backend/opsdb/apps/permissions/services.py
#
# Capability-set resolution: permission name -> bool, with defaults for
# anything not explicitly granted or revoked for the user.

from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from .models import UserPermission

logger = logging.getLogger(__name__)


class ValidationError(ValueError):
    """Unknown permission name in an update."""


DEFAULT_PERMISSIONS: Dict[str, bool] = {
    "canViewFlightRecords": True,
    "canAddFlightRecords": True,
    "canExportFlightRecords": False,
    "canEditFlightRecords": False,
    "canExportPdfFlightRecords": False,
    "canDeleteFlightRecords": False,
    "canViewStockInventory": False,
    "canGenerateStockReport": False,
    "canAddStockItem": False,
    "canGenerateStockPdf": False,
    "canDeleteStockRecord": False,
    "canViewIncomingInspections": True,
    "canAddIncomingInspections": False,
    "canDeleteIncomingInspections": False,
    "canConfigureTemperatureRanges": False,
    "canAddTemperatureRecord": False,
    "canDeleteTemperatureRecord": False,
    "canSeeAuditManagement": False,
    "canViewWheelRotation": True,
    "canManageWheelRotation": False,
    "canRotateWheel": False,
    "canDeleteWheelRotation": False,
}


def resolve_permissions(db: Session, *, user_id: str) -> Dict[str, bool]:
    resolved = dict(DEFAULT_PERMISSIONS)
    rows = db.execute(
        select(UserPermission).where(UserPermission.user_id == user_id)
    ).scalars()
    for row in rows:
        # Rows for permissions that were since retired are ignored.
        if row.permission in resolved:
            resolved[row.permission] = bool(row.granted)
    return resolved


def has_permission(db: Session, *, user_id: str, permission: str) -> bool:
    return resolve_permissions(db, user_id=user_id).get(permission, False)


def set_permissions(
    db: Session,
    *,
    user_id: str,
    changes: Mapping[str, bool],
    updated_by_user_id: Optional[str] = None,
) -> Dict[str, bool]:
    """
    Upsert explicit grants for a user and return the resolved map.

    Raises ValidationError for unknown permission names; nothing is written then.
    """
    unknown = sorted(name for name in changes if name not in DEFAULT_PERMISSIONS)
    if unknown:
        raise ValidationError(f"Unknown permission(s): {', '.join(unknown)}")

    existing = {
        row.permission: row
        for row in db.execute(
            select(UserPermission).where(UserPermission.user_id == user_id)
        ).scalars()
    }
    for name, granted in changes.items():
        row = existing.get(name)
        if row is None:
            row = UserPermission(user_id=user_id, permission=name)
            db.add(row)
        row.granted = bool(granted)
        row.updated_by_user_id = updated_by_user_id
    db.flush()

    logger.info(
        "Updated user permissions",
        extra={"user_id": user_id, "permissions": sorted(changes), "updated_by": updated_by_user_id},
    )
    return resolve_permissions(db, user_id=user_id)
