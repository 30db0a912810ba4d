from __future__ import annotations

from datetime import date, datetime, timezone

import pytest
from fastapi import HTTPException

from opsdb.apps.wheel_rotation import router as wheel_router
from opsdb.apps.wheel_rotation import schemas, services
from opsdb.apps.wheel_rotation.config import WheelRotationSettings
from opsdb.security import CurrentUser

USER = CurrentUser(id="user-1", company_id="company-1", name="A. Technician")
OTHER_COMPANY_USER = CurrentUser(id="user-9", company_id="company-2", name="Elsewhere")


def _has_route(path: str, method: str) -> bool:
    return any(
        route.path == path and method in (route.methods or [])
        for route in wheel_router.router.routes
    )


def _create(db_session, **overrides) -> schemas.WheelRotationRead:
    fields = dict(
        arrival_date=date(2024, 1, 31),
        station="NBO",
        airline="Kenya Airways",
        wheel_part_number="3-1545-3",
        wheel_serial_number="WHL-0100",
        rotation_frequency="monthly",
    )
    fields.update(overrides)
    return wheel_router.create_wheel_rotation(
        payload=schemas.WheelRotationCreate(**fields),
        db=db_session,
        current_user=USER,
    )


def test_router_has_expected_routes():
    assert _has_route("/wheel-rotation", "GET")
    assert _has_route("/wheel-rotation", "POST")
    assert _has_route("/wheel-rotation/{wheel_id}", "GET")
    assert _has_route("/wheel-rotation/{wheel_id}", "PATCH")
    assert _has_route("/wheel-rotation/{wheel_id}", "DELETE")
    assert _has_route("/wheel-rotation/{wheel_id}/rotate", "POST")
    assert _has_route("/wheel-rotation/{wheel_id}/activity", "GET")
    assert _has_route("/wheel-rotation/upcoming", "GET")
    assert _has_route("/wheel-rotation/frequency-counts", "GET")
    assert _has_route("/wheel-rotation/today-count", "GET")


def test_reporting_routes_are_declared_before_wheel_detail():
    paths = [route.path for route in wheel_router.router.routes]
    detail_index = paths.index("/wheel-rotation/{wheel_id}")
    for path in ("/wheel-rotation/upcoming", "/wheel-rotation/frequency-counts", "/wheel-rotation/today-count"):
        assert paths.index(path) < detail_index


def test_create_then_list_returns_wheel_without_history(db_session):
    created = _create(db_session)

    assert created.current_position == 0
    assert created.last_rotation is None

    listed = wheel_router.list_wheel_rotations(
        active=None, station=None, airline=None, db=db_session, current_user=USER
    )
    assert [w.id for w in listed] == [created.id]


def test_rotate_returns_updated_record_and_detail_lists_history_newest_first(db_session):
    created = _create(db_session)

    for position, day in ((90, 15), (180, 20)):
        rotated = wheel_router.rotate_wheel(
            wheel_id=created.id,
            payload=schemas.WheelRotateRequest(
                new_position=position,
                rotation_date=datetime(2024, 2, day, tzinfo=timezone.utc),
            ),
            db=db_session,
            current_user=USER,
        )

    assert rotated.current_position == 180
    assert rotated.last_rotation.previous_position == 90
    assert rotated.last_rotation.performed_by == "A. Technician"

    detail = wheel_router.get_wheel_rotation(wheel_id=created.id, db=db_session, current_user=USER)
    assert [(h.previous_position, h.new_position) for h in detail.rotation_history] == [(90, 180), (0, 90)]
    assert detail.next_rotation_due.date() == date(2024, 3, 20)


def test_rotate_out_of_range_is_bad_request(db_session):
    created = _create(db_session)

    with pytest.raises(HTTPException) as excinfo:
        wheel_router.rotate_wheel(
            wheel_id=created.id,
            payload=schemas.WheelRotateRequest(new_position=400),
            db=db_session,
            current_user=USER,
        )
    assert excinfo.value.status_code == 400
    assert excinfo.value.detail == "position out of range"

    detail = wheel_router.get_wheel_rotation(wheel_id=created.id, db=db_session, current_user=USER)
    assert detail.current_position == 0
    assert detail.rotation_history == []


def test_other_company_cannot_see_wheel(db_session):
    created = _create(db_session)

    with pytest.raises(HTTPException) as excinfo:
        wheel_router.get_wheel_rotation(wheel_id=created.id, db=db_session, current_user=OTHER_COMPANY_USER)
    assert excinfo.value.status_code == 404


def test_blank_station_is_bad_request(db_session):
    with pytest.raises(HTTPException) as excinfo:
        _create(db_session, station="  ")
    assert excinfo.value.status_code == 400


def test_patch_updates_metadata_only(db_session):
    created = _create(db_session)

    updated = wheel_router.update_wheel_rotation(
        wheel_id=created.id,
        payload=schemas.WheelRotationUpdate(station="MBA", is_active=False),
        db=db_session,
        current_user=USER,
    )
    assert updated.station == "MBA"
    assert updated.is_active is False
    assert updated.airline == "Kenya Airways"


def test_delete_returns_success_and_wheel_is_gone(db_session):
    created = _create(db_session)

    response = wheel_router.delete_wheel_rotation(wheel_id=created.id, db=db_session, current_user=USER)
    assert response.success is True

    with pytest.raises(HTTPException) as excinfo:
        wheel_router.get_wheel_rotation(wheel_id=created.id, db=db_session, current_user=USER)
    assert excinfo.value.status_code == 404

    activity = wheel_router.list_wheel_activity(wheel_id=created.id, db=db_session, current_user=USER)
    assert activity[0].action == "DELETED_WHEEL_ROTATION"


def test_upcoming_rejects_window_out_of_bounds(db_session):
    with pytest.raises(HTTPException) as excinfo:
        wheel_router.get_upcoming_rotations(
            days=0,
            db=db_session,
            settings=WheelRotationSettings(),
            current_user=USER,
        )
    assert excinfo.value.status_code == 400


def test_upcoming_period_serialises_with_from_and_to_keys(db_session):
    result = wheel_router.get_upcoming_rotations(
        days=10,
        db=db_session,
        settings=WheelRotationSettings(),
        current_user=USER,
    )
    dumped = result.model_dump(by_alias=True)
    assert set(dumped["period"]) == {"from", "to", "days"}
    assert dumped["period"]["days"] == 10


def _rotate_raising(monkeypatch, exc):
    def _fail(db, **kwargs):
        raise exc

    monkeypatch.setattr(services, "rotate_wheel", _fail)


def test_concurrent_update_maps_to_conflict(db_session, monkeypatch):
    created = _create(db_session)
    _rotate_raising(
        monkeypatch,
        services.ConcurrentUpdateError(f"Wheel rotation {created.id} was modified by another request; reload and retry"),
    )

    with pytest.raises(HTTPException) as excinfo:
        wheel_router.rotate_wheel(
            wheel_id=created.id,
            payload=schemas.WheelRotateRequest(new_position=90),
            db=db_session,
            current_user=USER,
        )
    assert excinfo.value.status_code == 409
    assert excinfo.value.detail == (
        f"Wheel rotation {created.id} was modified by another request; reload and retry"
    )


def test_invalid_state_maps_to_generic_server_error(db_session, monkeypatch, caplog):
    created = _create(db_session)
    _rotate_raising(monkeypatch, services.InvalidStateError("no base date"))

    with caplog.at_level("ERROR", logger="opsdb.apps.wheel_rotation.router"):
        with pytest.raises(HTTPException) as excinfo:
            wheel_router.rotate_wheel(
                wheel_id=created.id,
                payload=schemas.WheelRotateRequest(new_position=90),
                db=db_session,
                current_user=USER,
            )
    assert excinfo.value.status_code == 500
    assert excinfo.value.detail == "Failed to save wheel rotation"
    assert "no base date" not in excinfo.value.detail
    assert any(record.levelname == "ERROR" for record in caplog.records)


def test_patch_with_null_notes_clears_them(db_session):
    created = _create(db_session, notes="rack 3")

    updated = wheel_router.update_wheel_rotation(
        wheel_id=created.id,
        payload=schemas.WheelRotationUpdate.model_validate({"notes": None}),
        db=db_session,
        current_user=USER,
    )
    assert updated.notes is None
    assert updated.station == "NBO"
