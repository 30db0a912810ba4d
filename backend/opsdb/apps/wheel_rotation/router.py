# backend/opsdb/apps/wheel_rotation/router.py

from __future__ import annotations

import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ...database import get_db, get_read_db
from ...security import CurrentUser, require_permission
from ..activity import services as activity_services
from ..activity.schemas import ActivityLogRead

from . import schemas, services
from .config import WheelRotationSettings, get_settings
from .models import WheelRotation

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/wheel-rotation",
    tags=["wheel_rotation"],
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _raise_http(db: Session, exc: services.WheelRotationError) -> NoReturn:
    db.rollback()
    if isinstance(exc, services.ValidationError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, services.NotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, services.ConcurrentUpdateError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    logger.error("Wheel rotation request failed", exc_info=exc)
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Failed to save wheel rotation",
    )


def _wheel_read(wheel: WheelRotation) -> schemas.WheelRotationRead:
    read = schemas.WheelRotationRead.model_validate(wheel)
    latest = services.latest_history(wheel)
    if latest is not None:
        read.last_rotation = schemas.RotationHistoryRead.model_validate(latest)
    return read


def _wheel_detail(wheel: WheelRotation) -> schemas.WheelRotationDetail:
    history = services.sorted_history_newest_first(wheel.rotation_history)
    detail = schemas.WheelRotationDetail.model_validate(
        {
            **_wheel_read(wheel).model_dump(),
            "rotation_history": [
                schemas.RotationHistoryRead.model_validate(entry).model_dump() for entry in history
            ],
        }
    )
    return detail


# ---------------------------------------------------------------------------
# Dashboard reporting (declared before /{wheel_id} so the paths do not clash)
# ---------------------------------------------------------------------------


@router.get(
    "/upcoming",
    response_model=schemas.UpcomingRotations,
)
def get_upcoming_rotations(
    days: Optional[int] = Query(None),
    db: Session = Depends(get_read_db),
    settings: WheelRotationSettings = Depends(get_settings),
    current_user: CurrentUser = Depends(require_permission("canViewWheelRotation")),
) -> schemas.UpcomingRotations:
    try:
        data = services.upcoming_rotations(
            db,
            company_id=current_user.company_id,
            settings=settings,
            days=days,
        )
    except services.WheelRotationError as exc:
        _raise_http(db, exc)
    return schemas.UpcomingRotations.model_validate(data)


@router.get(
    "/frequency-counts",
    response_model=schemas.FrequencyCounts,
)
def get_frequency_counts(
    db: Session = Depends(get_read_db),
    settings: WheelRotationSettings = Depends(get_settings),
    current_user: CurrentUser = Depends(require_permission("canViewWheelRotation")),
) -> schemas.FrequencyCounts:
    data = services.frequency_counts(db, company_id=current_user.company_id, settings=settings)
    return schemas.FrequencyCounts.model_validate(data)


@router.get(
    "/today-count",
    response_model=schemas.TodayCount,
)
def get_today_count(
    db: Session = Depends(get_read_db),
    current_user: CurrentUser = Depends(require_permission("canViewWheelRotation")),
) -> schemas.TodayCount:
    return schemas.TodayCount(count=services.today_count(db, company_id=current_user.company_id))


# ---------------------------------------------------------------------------
# Wheels
# ---------------------------------------------------------------------------


@router.get(
    "",
    response_model=List[schemas.WheelRotationRead],
)
def list_wheel_rotations(
    active: Optional[bool] = Query(None),
    station: Optional[str] = None,
    airline: Optional[str] = None,
    db: Session = Depends(get_read_db),
    current_user: CurrentUser = Depends(require_permission("canViewWheelRotation")),
) -> List[schemas.WheelRotationRead]:
    wheels = services.list_wheels(
        db,
        company_id=current_user.company_id,
        is_active=active,
        station=station,
        airline=airline,
    )
    return [_wheel_read(wheel) for wheel in wheels]


@router.post(
    "",
    response_model=schemas.WheelRotationRead,
    status_code=status.HTTP_201_CREATED,
)
def create_wheel_rotation(
    payload: schemas.WheelRotationCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_permission("canManageWheelRotation")),
) -> schemas.WheelRotationRead:
    try:
        wheel = services.create_wheel(
            db,
            company_id=current_user.company_id,
            arrival_date=payload.arrival_date,
            station=payload.station,
            airline=payload.airline,
            wheel_part_number=payload.wheel_part_number,
            wheel_serial_number=payload.wheel_serial_number,
            rotation_frequency=payload.rotation_frequency,
            notes=payload.notes,
            created_by_user_id=current_user.id,
        )
    except services.WheelRotationError as exc:
        _raise_http(db, exc)
    db.commit()
    return _wheel_read(wheel)


@router.get(
    "/{wheel_id}",
    response_model=schemas.WheelRotationDetail,
)
def get_wheel_rotation(
    wheel_id: int,
    db: Session = Depends(get_read_db),
    current_user: CurrentUser = Depends(require_permission("canViewWheelRotation")),
) -> schemas.WheelRotationDetail:
    try:
        wheel = services.get_wheel(db, company_id=current_user.company_id, wheel_id=wheel_id)
    except services.WheelRotationError as exc:
        _raise_http(db, exc)
    return _wheel_detail(wheel)


@router.patch(
    "/{wheel_id}",
    response_model=schemas.WheelRotationRead,
)
def update_wheel_rotation(
    wheel_id: int,
    payload: schemas.WheelRotationUpdate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_permission("canManageWheelRotation")),
) -> schemas.WheelRotationRead:
    try:
        wheel = services.update_wheel(
            db,
            company_id=current_user.company_id,
            wheel_id=wheel_id,
            updated_by_user_id=current_user.id,
            **payload.model_dump(exclude_unset=True),
        )
    except services.WheelRotationError as exc:
        _raise_http(db, exc)
    db.commit()
    return _wheel_read(wheel)


@router.post(
    "/{wheel_id}/rotate",
    response_model=schemas.WheelRotationRead,
)
def rotate_wheel(
    wheel_id: int,
    payload: schemas.WheelRotateRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_permission("canRotateWheel")),
) -> schemas.WheelRotationRead:
    try:
        wheel = services.rotate_wheel(
            db,
            company_id=current_user.company_id,
            wheel_id=wheel_id,
            new_position=payload.new_position,
            notes=payload.notes,
            performed_by=payload.performed_by or current_user.name,
            rotation_date=payload.rotation_date,
            actor_user_id=current_user.id,
        )
    except services.WheelRotationError as exc:
        _raise_http(db, exc)
    db.commit()
    return _wheel_read(wheel)


@router.delete(
    "/{wheel_id}",
    response_model=schemas.WheelDeleteResponse,
)
def delete_wheel_rotation(
    wheel_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_permission("canDeleteWheelRotation")),
) -> schemas.WheelDeleteResponse:
    try:
        services.delete_wheel(
            db,
            company_id=current_user.company_id,
            wheel_id=wheel_id,
            deleted_by_user_id=current_user.id,
        )
    except services.WheelRotationError as exc:
        _raise_http(db, exc)
    db.commit()
    return schemas.WheelDeleteResponse(success=True)


@router.get(
    "/{wheel_id}/activity",
    response_model=List[ActivityLogRead],
)
def list_wheel_activity(
    wheel_id: int,
    db: Session = Depends(get_read_db),
    current_user: CurrentUser = Depends(require_permission("canViewWheelRotation")),
) -> List[ActivityLogRead]:
    entries = activity_services.list_activity(
        db,
        company_id=current_user.company_id,
        resource_type=services.RESOURCE_TYPE,
        resource_id=str(wheel_id),
    )
    return [ActivityLogRead.model_validate(entry) for entry in entries]
