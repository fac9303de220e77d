"""
API Module
FastAPI routers for the DoseTrack application
"""

from api.medications import router as medications_router
from api.adherence import router as adherence_router

from api.deps import (
    get_db,
    patient_ids_param,
    services,
)


__all__ = [
    # Routers
    "medications_router",
    "adherence_router",
    # Dependencies
    "get_db",
    "patient_ids_param",
    "services",
]


def include_routers(app, prefix: str = "/api/v1"):
    """
    Include all API routers in the FastAPI app
    
    Usage:
        from api import include_routers
        include_routers(app)
    """
    app.include_router(medications_router, prefix=prefix)
    app.include_router(adherence_router, prefix=prefix)
