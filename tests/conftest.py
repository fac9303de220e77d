"""
Pytest Configuration and Shared Fixtures
========================================

Shared fixtures for all DoseTrack tests: database sessions, the test
client, and builders for medication and activity snapshots.
"""

import os
import sys
from datetime import datetime, date, timedelta
from typing import Any, Callable, Dict, Generator, List

# Keep the application off the on-disk database
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker, Session

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import Base, create_db_engine, get_db, init_db
from models import Medication, MedicationActivity
from app import app

from tests import TEST_TODAY, TEST_PATIENT_ID


# ==================== DATABASE FIXTURES ====================

@pytest.fixture(scope="function")
def test_engine():
    """Create a test database engine with in-memory SQLite"""
    engine = create_db_engine("sqlite:///:memory:")
    init_db(bind=engine)
    
    yield engine
    
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(test_engine) -> Generator[Session, None, None]:
    """Create a test database session"""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=test_engine
    )
    
    session = TestingSessionLocal()
    
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a FastAPI test client with database override"""
    
    def override_get_db():
        yield db_session
    
    app.dependency_overrides[get_db] = override_get_db
    
    with TestClient(app) as test_client:
        yield test_client
    
    app.dependency_overrides.clear()


# ==================== SNAPSHOT FIXTURES ====================

@pytest.fixture
def today() -> date:
    """Reference day closing every tracking window"""
    return date.fromisoformat(TEST_TODAY)


@pytest.fixture
def make_medication() -> Callable[..., Dict[str, Any]]:
    """Build a medication snapshot as the data store returns it"""
    counter = {"n": 0}
    
    def _make(**overrides) -> Dict[str, Any]:
        counter["n"] += 1
        data = {
            "id": f"med-{counter['n']}",
            "owner_id": TEST_PATIENT_ID,
            "name": "Metformin",
            "dosage": "500mg",
            "frequency": "once_daily",
            "scheduled_time": "08:00",
            "created_at": TEST_TODAY,
        }
        data.update(overrides)
        return data
    
    return _make


@pytest.fixture
def make_activity() -> Callable[..., Dict[str, Any]]:
    """Build a dose activity snapshot"""
    counter = {"n": 0}
    
    def _make(medication_id: str, day, taken: bool = True, **overrides) -> Dict[str, Any]:
        counter["n"] += 1
        data = {
            "id": f"act-{counter['n']}",
            "medication_id": medication_id,
            "owner_id": TEST_PATIENT_ID,
            "date": day.isoformat() if isinstance(day, date) else day,
            "taken": taken,
            "taken_time": "08:05" if taken else None,
            "proof_image_url": None,
        }
        data.update(overrides)
        return data
    
    return _make


@pytest.fixture
def daily_history(make_activity) -> Callable[..., List[Dict[str, Any]]]:
    """One taken dose per day for ``days`` days ending at ``end``"""
    
    def _history(medication_id: str, end: date, days: int, skip=()) -> List[Dict[str, Any]]:
        return [
            make_activity(medication_id, end - timedelta(days=offset))
            for offset in range(days - 1, -1, -1)
            if offset not in skip
        ]
    
    return _history


# ==================== DATABASE ROW FIXTURES ====================

@pytest.fixture
def test_medication(db_session: Session, today: date) -> Medication:
    """A twice daily medication registered four days before today"""
    medication = Medication(
        owner_id=TEST_PATIENT_ID,
        name="Metformin",
        dosage="500mg",
        frequency="twice_daily",
        scheduled_time="08:00",
        created_at=datetime.combine(today - timedelta(days=4), datetime.min.time()),
    )
    db_session.add(medication)
    db_session.commit()
    db_session.refresh(medication)
    return medication


@pytest.fixture
def once_daily_medication(db_session: Session, today: date) -> Medication:
    """A once daily medication registered two days before today"""
    medication = Medication(
        owner_id=TEST_PATIENT_ID,
        name="Lisinopril",
        dosage="10mg",
        frequency="once_daily",
        scheduled_time="09:30",
        created_at=datetime.combine(today - timedelta(days=2), datetime.min.time()),
    )
    db_session.add(medication)
    db_session.commit()
    db_session.refresh(medication)
    return medication


@pytest.fixture
def add_activity(db_session: Session) -> Callable[..., MedicationActivity]:
    """Insert an activity row directly, bypassing the dose limit"""
    
    def _add(medication: Medication, day: date, taken: bool = True, taken_time: str = "08:00"):
        activity = MedicationActivity(
            owner_id=medication.owner_id,
            medication_id=medication.id,
            date=day,
            taken=taken,
            taken_time=taken_time if taken else None,
        )
        db_session.add(activity)
        db_session.commit()
        return activity
    
    return _add


# ==================== PYTEST CONFIGURATION ====================

def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "api: mark test as an API test")
    config.addinivalue_line("markers", "database: mark test as requiring database")
