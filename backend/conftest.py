from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parent
sys.path.append(str(ROOT))

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["DATABASE_WRITE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key"

from opsdb.database import Base, enable_sqlite_foreign_keys  # noqa: E402
from opsdb.apps.activity import models as activity_models  # noqa: E402
from opsdb.apps.permissions import models as permissions_models  # noqa: E402
from opsdb.apps.wheel_rotation import models as wheel_rotation_models  # noqa: E402


TEST_TABLES = [
    activity_models.ActivityLog.__table__,
    permissions_models.UserPermission.__table__,
    wheel_rotation_models.WheelRotation.__table__,
    wheel_rotation_models.WheelRotationHistory.__table__,
]


def _make_engine(url: str):
    engine = create_engine(url, connect_args={"check_same_thread": False})
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine, tables=TEST_TABLES)
    return engine


@pytest.fixture()
def db_session():
    engine = _make_engine("sqlite+pysqlite:///:memory:")
    TestingSession = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def session_factory(tmp_path):
    """Independent sessions against one on-disk database (separate connections)."""
    engine = _make_engine(f"sqlite+pysqlite:///{tmp_path / 'opsdb-test.db'}")
    factory = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    try:
        yield factory
    finally:
        engine.dispose()
