"""
Medication Schemas
Pydantic models for medication and dose activity API requests and responses
"""

from typing import Optional, List
from datetime import datetime, date
from datetime import date as date_type
from pydantic import BaseModel, Field, ConfigDict


# 24-hour wall-clock time, zero padded
TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


# ==================== BASE SCHEMAS ====================

class MedicationBase(BaseModel):
    """Base medication schema"""
    name: str = Field(..., min_length=1, max_length=255)
    dosage: str = Field(..., min_length=1, max_length=100)
    frequency: str = Field(..., min_length=1, max_length=50)
    scheduled_time: str = Field(..., pattern=TIME_PATTERN)


# ==================== REQUEST SCHEMAS ====================

class MedicationCreate(MedicationBase):
    """Schema for creating a new medication"""
    owner_id: str = Field(..., min_length=1, max_length=64)
    created_at: Optional[datetime] = None


class MedicationUpdate(BaseModel):
    """Schema for editing a medication"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    dosage: Optional[str] = Field(None, min_length=1, max_length=100)
    frequency: Optional[str] = Field(None, min_length=1, max_length=50)
    scheduled_time: Optional[str] = Field(None, pattern=TIME_PATTERN)


class DoseTakenRequest(BaseModel):
    """Schema for confirming a taken dose"""
    owner_id: str = Field(..., min_length=1, max_length=64)
    # "date" shadows the type inside the class body
    date: Optional[date_type] = None
    taken_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    proof_image_url: Optional[str] = Field(None, max_length=1024)


# ==================== RESPONSE SCHEMAS ====================

class MedicationResponse(BaseModel):
    """Schema for medication response"""
    id: str
    owner_id: str
    name: str
    dosage: str
    frequency: str
    scheduled_time: str
    created_at: datetime
    
    model_config = ConfigDict(from_attributes=True)


class MedicationList(BaseModel):
    """List of a patient's medications"""
    medications: List[MedicationResponse]
    total: int


class MedicationActivityResponse(BaseModel):
    """Schema for a dose activity record"""
    id: str
    owner_id: str
    medication_id: str
    date: date
    taken: bool
    taken_time: Optional[str] = None
    proof_image_url: Optional[str] = None
    
    model_config = ConfigDict(from_attributes=True)


class DoseTakenResponse(BaseModel):
    """Result of confirming a dose"""
    success: bool = True
    message: str
    activity: MedicationActivityResponse
    next_dose_time: Optional[str] = None
    is_complete_for_day: bool


class DailyMedicationStatusResponse(BaseModel):
    """Progress of one medication on one day"""
    medication_id: str
    medication_name: str
    scheduled_time: str
    frequency: str
    dosage: str
    taken_today: bool
    taken_times: List[Optional[str]] = Field(default_factory=list)
    next_dose_time: Optional[str] = None
    is_complete_for_day: bool
    
    model_config = ConfigDict(from_attributes=True)


class DailyStatusList(BaseModel):
    """Daily status of all medications of a patient"""
    owner_id: str
    date: date
    statuses: List[DailyMedicationStatusResponse]
    is_day_complete: bool


class CalendarResponse(BaseModel):
    """Days on which at least one dose was taken"""
    owner_id: str
    taken_dates: List[date]
