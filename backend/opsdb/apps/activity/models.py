from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String, desc

from ...database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ActivityLog(Base):
    """
    Append-only record of user actions on dashboard resources.
    """

    __tablename__ = "activity_logs"
    __table_args__ = (
        Index("ix_activity_logs_company_resource", "company_id", "resource_type", "resource_id"),
        Index("ix_activity_logs_company_action", "company_id", "action"),
        Index("ix_activity_logs_company_time_desc", "company_id", desc("created_at")),
    )

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(String(64), nullable=False, index=True)
    user_id = Column(String(64), nullable=True, index=True)
    action = Column(String(64), nullable=False)
    resource_type = Column(String(64), nullable=False)
    resource_id = Column(String(64), nullable=True)
    resource_title = Column(String(255), nullable=True)
    metadata_json = Column("metadata", JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    def __repr__(self) -> str:
        return f"<ActivityLog id={self.id} {self.resource_type}:{self.resource_id} action={self.action}>"
