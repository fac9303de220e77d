"""
Adherence API Router
Endpoints for dose scheduling and adherence metrics
"""

from typing import List, Optional
from datetime import date
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.deps import get_db, patient_ids_param, services
from api.schemas.adherence import (
    MetricsRequest,
    NextDoseRequest,
    NextDoseResponse,
    AdherenceMetricsResponse,
    PatientAdherenceResponse,
    PatientAdherenceList,
    ActivitySummaryResponse,
)
from config import settings
from tools.adherence_aggregator import compute_adherence_metrics
from tools.schedule_calculator import next_dose_time, required_doses_per_day


router = APIRouter(prefix="/adherence", tags=["adherence"])


@router.post("/metrics", response_model=AdherenceMetricsResponse)
async def compute_metrics(payload: MetricsRequest):
    """
    Compute adherence metrics from a posted snapshot
    
    - **medications**: every medication of the patient
    - **activities**: the patient's complete activity history
    - **today**: last day of the tracking window
    """
    metrics = compute_adherence_metrics(
        [m.model_dump() for m in payload.medications],
        [a.model_dump() for a in payload.activities],
        payload.today,
        threshold=settings.ADHERENT_DAY_THRESHOLD
    )
    return metrics.to_dict()


@router.post("/next-dose", response_model=NextDoseResponse)
async def get_next_dose(payload: NextDoseRequest):
    """
    Next expected dose time of a medication today
    """
    required = required_doses_per_day(
        payload.frequency,
        strict=settings.STRICT_FREQUENCY_VALIDATION
    )
    taken = len(payload.taken_times)
    
    return NextDoseResponse(
        next_dose_time=next_dose_time(
            payload.scheduled_time, payload.frequency, payload.taken_times
        ),
        required_doses=required,
        doses_taken=taken,
        is_complete_for_day=taken >= required
    )


@router.get("/patients", response_model=PatientAdherenceList)
async def get_patients_adherence(
    ids: List[str] = Depends(patient_ids_param),
    today: Optional[date] = Query(None, description="Last day of the window"),
    db: Session = Depends(get_db)
):
    """
    Adherence metrics for several patients
    """
    adherence_service = services.get_adherence_service()
    
    results = await adherence_service.get_patients_adherence(ids, today, db=db)
    
    return PatientAdherenceList(
        patients=[r.to_dict() for r in results],
        total=len(results)
    )


@router.get("/patients/{owner_id}/metrics", response_model=PatientAdherenceResponse)
async def get_patient_metrics(
    owner_id: str,
    today: Optional[date] = Query(None, description="Last day of the window"),
    db: Session = Depends(get_db)
):
    """
    Adherence metrics of one patient over the lifetime of their medications
    """
    adherence_service = services.get_adherence_service()
    
    results = await adherence_service.get_patients_adherence([owner_id], today, db=db)
    return results[0].to_dict()


@router.get("/patients/{owner_id}/summary", response_model=ActivitySummaryResponse)
async def get_activity_summary(
    owner_id: str,
    today: Optional[date] = Query(None, description="Reference day"),
    db: Session = Depends(get_db)
):
    """
    Record-level summary of the last 30 days, as shown on the patient list
    """
    adherence_service = services.get_adherence_service()
    
    summary = await adherence_service.get_activity_summary(owner_id, today, db=db)
    return ActivitySummaryResponse(patient_id=owner_id, **summary.to_dict())
