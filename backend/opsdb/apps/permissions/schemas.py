# backend/opsdb/apps/permissions/schemas.py

from __future__ import annotations

from typing import Dict

from pydantic import BaseModel, Field


class UserPermissionsRead(BaseModel):
    user_id: str
    permissions: Dict[str, bool]


class UserPermissionsUpdate(BaseModel):
    """
    Partial update: only the listed permissions change, others keep their
    current (explicit or default) value.
    """

    permissions: Dict[str, bool] = Field(default_factory=dict)
