# backend/opsdb/security.py

"""
Security helpers for the operations dashboard backend.

Responsibilities:
- JWT access token creation and decoding
- FastAPI dependencies for the current user / admin checks
- Capability-based access helper for router dependencies

Identity is issued by the external auth provider; this module only trusts
and decodes the signed bearer token. No passwords are stored here.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from .database import get_db

# ---------------------------------------------------------------------------
# CONFIG
# ---------------------------------------------------------------------------

# In production, ALWAYS override these via environment variables.
SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME_IN_PRODUCTION")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

try:
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(
        os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60")
    )
except ValueError:
    ACCESS_TOKEN_EXPIRE_MINUTES = 60

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


# ---------------------------------------------------------------------------
# PRINCIPAL
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CurrentUser:
    """Caller identity decoded from the bearer token."""

    id: str
    company_id: str
    name: Optional[str] = None
    is_admin: bool = False
    is_active: bool = True


# ---------------------------------------------------------------------------
# JWT TOKENS
# ---------------------------------------------------------------------------


def create_access_token(
    *,
    data: dict,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a signed JWT.

    The `data` dict should already include the subject and tenant, e.g.:
        {"sub": user_id, "company_id": company_id, "name": "J. Doe"}
    """
    to_encode = data.copy()

    expire = datetime.now(timezone.utc) + (
        expires_delta
        if expires_delta is not None
        else timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})

    return jwt.encode(to_encode, SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> CurrentUser:
    """Decode a bearer token into a CurrentUser, raising 401 on any problem."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError:
        raise _credentials_exception()

    user_id = payload.get("sub")
    company_id = payload.get("company_id")
    if not user_id or not company_id:
        raise _credentials_exception()

    return CurrentUser(
        id=str(user_id),
        company_id=str(company_id),
        name=payload.get("name"),
        is_admin=bool(payload.get("is_admin", False)),
        is_active=bool(payload.get("is_active", True)),
    )


# ---------------------------------------------------------------------------
# FASTAPI DEPENDENCIES
# ---------------------------------------------------------------------------


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(token: str = Depends(oauth2_scheme)) -> CurrentUser:
    return decode_access_token(token)


def get_current_active_user(
    current_user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """
    Ensure the current user is active.

    Deactivated users are blocked here rather than deeper in the app.
    """
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Inactive user account",
        )
    return current_user


def require_admin(
    current_user: CurrentUser = Depends(get_current_active_user),
) -> CurrentUser:
    if current_user.is_admin:
        return current_user
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Insufficient privileges",
    )


# ---------------------------------------------------------------------------
# CAPABILITY-BASED ACCESS HELPER
# ---------------------------------------------------------------------------


def require_permission(permission: str) -> Callable[..., CurrentUser]:
    """
    Dependency factory to enforce that the current user holds a capability.

    Usage:
        @router.post(...)
        def endpoint(
            current_user: CurrentUser = Depends(
                require_permission("canRotateWheel")
            )
        ):
            ...

    Behaviour:
    - Admins always pass.
    - Otherwise the resolved capability map must grant `permission`.
    """
    from .apps.permissions import services as permission_services

    if permission not in permission_services.DEFAULT_PERMISSIONS:
        raise ValueError(f"Unknown permission {permission!r} passed to require_permission()")

    def dependency(
        db: Session = Depends(get_db),
        current_user: CurrentUser = Depends(get_current_active_user),
    ) -> CurrentUser:
        if current_user.is_admin:
            return current_user

        if not permission_services.has_permission(db, user_id=current_user.id, permission=permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions for this operation",
            )
        return current_user

    return dependency
