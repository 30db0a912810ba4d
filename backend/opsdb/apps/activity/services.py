from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from . import models

logger = logging.getLogger(__name__)


def log_activity(
    db: Session,
    *,
    company_id: str,
    user_id: Optional[str],
    action: str,
    resource_type: str,
    resource_id: Optional[str] = None,
    resource_title: Optional[str] = None,
    metadata: Optional[dict] = None,
    critical: bool = False,
) -> Optional[models.ActivityLog]:
    """
    Best-effort activity logger; the entry joins the caller's transaction
    inside a SAVEPOINT, so a failed write only discards the log row.
    - For critical actions, raise on failure.
    - For everything else, log a warning and continue.
    """
    try:
        with db.begin_nested():
            entry = models.ActivityLog(
                company_id=company_id,
                user_id=user_id,
                action=action,
                resource_type=resource_type,
                resource_id=resource_id,
                resource_title=resource_title,
                metadata_json=metadata,
            )
            db.add(entry)
            db.flush()
        return entry
    except Exception:
        logger.warning(
            "Failed to log activity",
            extra={
                "company_id": company_id,
                "resource_type": resource_type,
                "resource_id": resource_id,
                "action": action,
                "critical": critical,
            },
        )
        if critical:
            raise
        return None


def list_activity(
    db: Session,
    *,
    company_id: str,
    resource_type: Optional[str] = None,
    resource_id: Optional[str] = None,
    limit: int = 100,
) -> List[models.ActivityLog]:
    query = db.query(models.ActivityLog).filter(models.ActivityLog.company_id == company_id)
    if resource_type:
        query = query.filter(models.ActivityLog.resource_type == resource_type)
    if resource_id:
        query = query.filter(models.ActivityLog.resource_id == resource_id)
    return (
        query.order_by(models.ActivityLog.created_at.desc(), models.ActivityLog.id.desc())
        .limit(limit)
        .all()
    )
