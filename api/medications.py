"""
Medications API Router
Endpoints for medication management and dose confirmation
"""

from typing import Optional
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from api.deps import get_db, services
from api.schemas.medication import (
    MedicationCreate,
    MedicationUpdate,
    MedicationResponse,
    MedicationList,
    DoseTakenRequest,
    DoseTakenResponse,
    DailyStatusList,
    CalendarResponse,
    MedicationActivityResponse,
)


router = APIRouter(prefix="/medications", tags=["medications"])


@router.post("/", response_model=MedicationResponse, status_code=status.HTTP_201_CREATED)
async def create_medication(
    medication_data: MedicationCreate,
    db: Session = Depends(get_db)
):
    """
    Add a new medication for a patient
    
    - **owner_id**: Patient ID
    - **name**: Medication name
    - **dosage**: Dosage (e.g., "500mg")
    - **frequency**: e.g. "twice_daily"
    - **scheduled_time**: First dose of the day, "HH:MM"
    """
    medication_service = services.get_medication_service()
    
    return await medication_service.add_medication(
        owner_id=medication_data.owner_id,
        name=medication_data.name,
        dosage=medication_data.dosage,
        frequency=medication_data.frequency,
        scheduled_time=medication_data.scheduled_time,
        created_at=medication_data.created_at,
        db=db
    )


@router.get("/patient/{owner_id}", response_model=MedicationList)
async def list_patient_medications(
    owner_id: str,
    db: Session = Depends(get_db)
):
    """
    Get all medications of a patient, newest first
    """
    medication_service = services.get_medication_service()
    
    medications = await medication_service.get_patient_medications(owner_id, db=db)
    
    return MedicationList(
        medications=[MedicationResponse.model_validate(m) for m in medications],
        total=len(medications)
    )


@router.get("/patient/{owner_id}/status", response_model=DailyStatusList)
async def get_daily_status(
    owner_id: str,
    day: Optional[date] = Query(None, alias="date", description="Day to report"),
    db: Session = Depends(get_db)
):
    """
    Taken doses and next dose time of every medication on one day
    """
    activity_service = services.get_medication_activity_service()
    
    target = day or date.today()
    statuses = await activity_service.get_daily_status(owner_id, target, db=db)
    
    return DailyStatusList(
        owner_id=owner_id,
        date=target,
        statuses=[s.to_dict() for s in statuses],
        is_day_complete=bool(statuses) and all(s.is_complete_for_day for s in statuses)
    )


@router.get("/patient/{owner_id}/calendar", response_model=CalendarResponse)
async def get_calendar(
    owner_id: str,
    db: Session = Depends(get_db)
):
    """
    Days on which the patient took at least one dose
    """
    activity_service = services.get_medication_activity_service()
    
    dates = await activity_service.get_taken_dates(owner_id, db=db)
    return CalendarResponse(owner_id=owner_id, taken_dates=dates)


@router.get("/{medication_id}", response_model=MedicationResponse)
async def get_medication(
    medication_id: str,
    db: Session = Depends(get_db)
):
    """
    Get medication by ID
    """
    medication_service = services.get_medication_service()
    
    medication = await medication_service.get_medication(medication_id, db=db)
    
    if not medication:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Medication {medication_id} not found"
        )
    
    return medication


@router.patch("/{medication_id}", response_model=MedicationResponse)
async def update_medication(
    medication_id: str,
    update_data: MedicationUpdate,
    db: Session = Depends(get_db)
):
    """
    Edit a medication's name, dosage, frequency or time
    """
    medication_service = services.get_medication_service()
    
    return await medication_service.update_medication(
        medication_id,
        db=db,
        **update_data.model_dump(exclude_unset=True)
    )


@router.delete("/{medication_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_medication(
    medication_id: str,
    db: Session = Depends(get_db)
):
    """
    Delete a medication and all of its activity records
    """
    medication_service = services.get_medication_service()
    
    deleted = await medication_service.delete_medication(medication_id, db=db)
    
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Medication {medication_id} not found"
        )


@router.post(
    "/{medication_id}/taken",
    response_model=DoseTakenResponse,
    status_code=status.HTTP_201_CREATED
)
async def mark_dose_taken(
    medication_id: str,
    dose_data: DoseTakenRequest,
    db: Session = Depends(get_db)
):
    """
    Confirm a taken dose
    
    Refused with 409 once every dose of the day is recorded.
    """
    activity_service = services.get_medication_activity_service()
    
    confirmation = await activity_service.mark_dose_taken(
        owner_id=dose_data.owner_id,
        medication_id=medication_id,
        target_date=dose_data.date,
        taken_time=dose_data.taken_time,
        proof_image_url=dose_data.proof_image_url,
        db=db
    )
    
    return DoseTakenResponse(
        message="Medication marked as taken successfully",
        activity=MedicationActivityResponse.model_validate(confirmation.activity),
        next_dose_time=confirmation.next_dose_time,
        is_complete_for_day=confirmation.is_complete_for_day
    )
