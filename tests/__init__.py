"""
DoseTrack Test Suite
====================

Test Structure:
- test_tools/: scheduling and adherence core
- test_services/: SQLAlchemy-backed services
- test_api/: API endpoint tests for FastAPI routes
- conftest.py: Shared pytest fixtures

Running Tests:
    # Run all tests
    pytest

    # Run specific test module
    pytest tests/test_api/

    # Run only marked tests
    pytest -m "unit"
    pytest -m "api"
"""

# Fixed reference day so results never depend on the wall clock
TEST_TODAY = "2024-03-31"
TEST_PATIENT_ID = "patient-1"

__all__ = [
    "TEST_TODAY",
    "TEST_PATIENT_ID",
]
