# backend/opsdb/apps/permissions/models.py
#
# Per-user capability grants. One row per (user, permission); a missing row
# means "use the default for that permission".

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String, UniqueConstraint

from ...database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserPermission(Base):
    __tablename__ = "user_permissions"
    __table_args__ = (
        UniqueConstraint("user_id", "permission", name="uq_user_permissions_user_permission"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    permission = Column(String(64), nullable=False)
    granted = Column(Boolean, nullable=False, default=False)

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )
    updated_by_user_id = Column(String(64), nullable=True)

    def __repr__(self) -> str:
        return f"<UserPermission user_id={self.user_id} {self.permission}={self.granted}>"
