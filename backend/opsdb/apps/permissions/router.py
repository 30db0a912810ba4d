# backend/opsdb/apps/permissions/router.py

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ...database import get_db, get_read_db
from ...security import CurrentUser, get_current_active_user, require_admin

from . import schemas, services

router = APIRouter(
    prefix="/users",
    tags=["permissions"],
)


@router.get(
    "/permissions",
    response_model=schemas.UserPermissionsRead,
)
def get_my_permissions(
    db: Session = Depends(get_read_db),
    current_user: CurrentUser = Depends(get_current_active_user),
) -> schemas.UserPermissionsRead:
    permissions = services.resolve_permissions(db, user_id=current_user.id)
    if current_user.is_admin:
        permissions = {name: True for name in permissions}
    return schemas.UserPermissionsRead(user_id=current_user.id, permissions=permissions)


@router.put(
    "/{user_id}/permissions",
    response_model=schemas.UserPermissionsRead,
)
def update_user_permissions(
    user_id: str,
    payload: schemas.UserPermissionsUpdate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> schemas.UserPermissionsRead:
    try:
        permissions = services.set_permissions(
            db,
            user_id=user_id,
            changes=payload.permissions,
            updated_by_user_id=current_user.id,
        )
    except services.ValidationError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        )
    db.commit()
    return schemas.UserPermissionsRead(user_id=user_id, permissions=permissions)
