"""
API Dependencies
Common dependencies for FastAPI endpoints
"""

from typing import List
from fastapi import HTTPException, Query, status

from config import adherence_config
from database import get_db


def patient_ids_param(
    ids: List[str] = Query(..., description="Patient IDs")
) -> List[str]:
    """
    Patient IDs from a repeated ``ids`` query parameter, deduplicated
    in request order
    """
    unique = list(dict.fromkeys(i for i in ids if i))
    
    if not unique:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one patient ID is required",
        )
    
    if len(unique) > adherence_config.MAX_PATIENTS_PER_REQUEST:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"At most {adherence_config.MAX_PATIENTS_PER_REQUEST} patients per request",
        )
    
    return unique


class ServiceDependency:
    """
    Dependency injection for services
    """
    
    @staticmethod
    def get_medication_service():
        from services.medication_service import medication_service
        return medication_service
    
    @staticmethod
    def get_medication_activity_service():
        from services.medication_activity_service import medication_activity_service
        return medication_activity_service
    
    @staticmethod
    def get_adherence_service():
        from services.adherence_service import adherence_service
        return adherence_service


# Service dependency instances
services = ServiceDependency()


__all__ = [
    "get_db",
    "patient_ids_param",
    "ServiceDependency",
    "services",
]
