"""Shared test fixtures for the power facilities tracker tests.

Sets up an in-memory SQLite database (foreign keys enforced) with all
tables, and provides a FastAPI TestClient with the DB dependency
overridden. Seeded fixtures insert the small reference data set used
across the aggregation, update and API tests.
"""

import os
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

# Ensure project root is on sys.path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

# Override DATABASE_URL before any app imports
os.environ["DATABASE_URL"] = "sqlite://"
# Point Redis to a non-existent port so caching is disabled during tests
os.environ["REDIS_URL"] = "redis://localhost:16379/0"
os.environ["PGF_API_KEYS"] = "test-key"

from sqlalchemy import create_engine, delete
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# StaticPool so the same in-memory DB is shared across threads
# (TestClient runs handlers in a separate thread).
_engine = create_engine(
    "sqlite://",
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_TestSession = sessionmaker(bind=_engine, autocommit=False, autoflush=False)


def _patched_create_engine(url, **kwargs):
    """Return the test SQLite engine regardless of args."""
    return _engine


# Apply patch before importing app modules
_ce_patch = patch("sqlalchemy.create_engine", side_effect=_patched_create_engine)
_ce_patch.start()

# Force re-import of app.database with our patched create_engine
if "app.database" in sys.modules:
    del sys.modules["app.database"]

import app.database  # noqa: E402
app.database.SessionLocal = _TestSession

from app.main import app  # noqa: E402
from app.database import get_db  # noqa: E402
from app.models import (  # noqa: E402
    Base, Country, FuelSource, Facility, CountryGeneration, DataCenter,
)
from core.fuel_styles import FUEL_STYLES  # noqa: E402

_ce_patch.stop()

# app.database registered the foreign-key pragma on the patched engine
# before the first connection, so create_all runs with FKs on.
Base.metadata.create_all(bind=_engine)

API_HEADERS = {"X-API-Key": "test-key"}


def _clear_tables(session):
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(delete(table))
    session.commit()


@pytest.fixture()
def db_session():
    """DB session on the shared in-memory SQLite DB. Tables are emptied afterwards."""
    session = _TestSession()
    yield session
    session.rollback()
    _clear_tables(session)
    session.close()


@pytest.fixture()
def session_factory():
    return _TestSession


@pytest.fixture()
def client(db_session):
    """FastAPI TestClient with get_db overridden to use the test session."""

    def _override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = _override_get_db

    from fastapi.testclient import TestClient

    with TestClient(app, headers=API_HEADERS) as c:
        yield c

    app.dependency_overrides.clear()


# ── Sample data fixtures ──

@pytest.fixture()
def reference_data(db_session):
    """Countries and all sixteen fuel sources."""
    db_session.add_all([
        Country(country_code="USA", country_long="United States of America"),
        Country(country_code="CAN", country_long="Canada"),
        Country(country_code="MEX", country_long="Mexico"),
    ])
    db_session.add_all([
        FuelSource(fuel_code=code, fuel=style.label) for code, style in FUEL_STYLES.items()
    ])
    db_session.commit()
    return db_session


@pytest.fixture()
def seeded(reference_data):
    """Facilities A, B, C plus generation rows and two data centers.

    A: USA, Hydro, 100 MW. B: USA, Solar, 50 MW (on the micro boundary).
    C: CAN, Hydro, 10 MW (micro).
    """
    session = reference_data
    session.add_all([
        Facility(gppd_idnr="A", name="Alpha Dam", latitude=40.0, longitude=-100.0,
                 capacity_mw=100.0, owner="Owner A", fuel_code=1, country_code="USA"),
        Facility(gppd_idnr="B", name="Bravo Solar", latitude=40.1, longitude=-100.1,
                 capacity_mw=50.0, owner="Owner B", fuel_code=2, country_code="USA"),
        Facility(gppd_idnr="C", name="Charlie Hydro", latitude=45.4, longitude=-75.7,
                 capacity_mw=10.0, owner=None, fuel_code=1, country_code="CAN"),
    ])
    session.add_all([
        CountryGeneration(country_code="USA", year=2019, total_generation=4100.5),
        CountryGeneration(country_code="USA", year=2018, total_generation=4180.0),
        CountryGeneration(country_code="CAN", year=2019, total_generation=640.2),
        CountryGeneration(country_code="MEX", year=2019, total_generation=330.0),
    ])
    session.add_all([
        DataCenter(id="dc-1", name="Abilene Campus", latitude=32.5, longitude=-99.7,
                   owner="Crusoe", users="OpenAI", capacity_mw=300.0, project="Stargate"),
        DataCenter(id="dc-2", name="Ashburn Hall", latitude=39.0, longitude=-77.5,
                   owner=None, users=None, capacity_mw=None, project=None),
    ])
    session.commit()
    return session
