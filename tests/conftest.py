from __future__ import annotations

import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

_DEFAULT_TEST_DB = Path(tempfile.gettempdir()) / "bizdirectory-test.sqlite3"
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_DEFAULT_TEST_DB}")
os.environ.setdefault("DB_CONNECT_ATTEMPTS", "1")
for _key in (
    "COURIER_API_BASE_URL",
    "LEOPARDS_API_BASE_URL",
    "CLOUDINARY_CLOUD_NAME",
):
    os.environ.pop(_key, None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402

import bizdirectory.models  # noqa: F401,E402
from bizdirectory.db import Base  # noqa: E402
import bizdirectory.db as db_module  # noqa: E402
import bizdirectory.api as api_module  # noqa: E402
from bizdirectory.models import Business, Category  # noqa: E402

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


@pytest.fixture(scope="session")
def test_database_url() -> str:
    return os.getenv("BIZDIRECTORY_TEST_DATABASE_URL") or os.environ["DATABASE_URL"]


@pytest.fixture(scope="session")
def test_engine(test_database_url: str):
    engine = create_engine(test_database_url, pool_pre_ping=True)
    yield engine
    engine.dispose()


@pytest.fixture(autouse=True)
def _bind_test_db(monkeypatch, test_engine):
    TestSessionLocal = sessionmaker(bind=test_engine, expire_on_commit=False)
    monkeypatch.setattr(db_module, "_engine", test_engine, raising=False)
    monkeypatch.setattr(db_module, "SessionLocal", TestSessionLocal, raising=False)
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def db_session() -> Session:
    session = db_module.SessionLocal()
    try:
        yield session
        session.commit()
    finally:
        session.close()


@pytest.fixture
def make_business(db_session: Session):
    """Insert and commit a business; ``minutes`` offsets created_at from a fixed base."""
    counter = {"n": 0}

    def _make(name: str = "Test Business", minutes: int | None = None, **overrides) -> Business:
        counter["n"] += 1
        offset = counter["n"] if minutes is None else minutes
        values = {
            "name": name,
            "slug": f"{name.lower().replace(' ', '-')}-{counter['n']}",
            "category": "restaurants",
            "province": "Punjab",
            "city": "Lahore",
            "address": "1 Mall Road",
            "phone": "03001234567",
            "email": "owner@example.com",
            "description": "A business used in tests.",
            "status": "approved",
            "created_at": BASE_TIME + timedelta(minutes=offset),
        }
        values.update(overrides)
        row = Business(**values)
        db_session.add(row)
        db_session.commit()
        return row

    return _make


@pytest.fixture
def category(db_session: Session) -> Category:
    row = Category(name="Restaurants", slug="restaurants", icon="🍽️", description="Food and dining establishments")
    db_session.add(row)
    db_session.commit()
    return row


@pytest.fixture
def client():
    app = api_module.create_app()
    with TestClient(app) as test_client:
        yield test_client
