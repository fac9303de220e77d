"""
Adherence Schemas
Pydantic models for adherence metrics API requests and responses
"""

from typing import Optional, List
from datetime import datetime, date
from pydantic import BaseModel, Field, ConfigDict


# ==================== REQUEST SCHEMAS ====================

class MedicationSnapshot(BaseModel):
    """A medication as fetched from the data store"""
    id: str
    owner_id: str = ""
    name: str = ""
    dosage: str = ""
    frequency: str
    scheduled_time: str = ""
    # Raw value; "YYYY-MM-DD" or an ISO-8601 timestamp
    created_at: str


class ActivitySnapshot(BaseModel):
    """A dose activity record as fetched from the data store"""
    id: str
    medication_id: str
    owner_id: str = ""
    date: str  # "YYYY-MM-DD"
    taken: bool
    taken_time: Optional[str] = None
    proof_image_url: Optional[str] = None


class MetricsRequest(BaseModel):
    """Complete adherence snapshot of one patient"""
    medications: List[MedicationSnapshot] = Field(default_factory=list)
    activities: List[ActivitySnapshot] = Field(default_factory=list)
    today: str  # "YYYY-MM-DD"


class NextDoseRequest(BaseModel):
    """Today's progress of one medication"""
    scheduled_time: str
    frequency: str
    taken_times: List[str] = Field(default_factory=list)


# ==================== RESPONSE SCHEMAS ====================

class NextDoseResponse(BaseModel):
    """Next expected dose of a medication"""
    next_dose_time: Optional[str] = None
    required_doses: int
    doses_taken: int
    is_complete_for_day: bool


class TrendPoint(BaseModel):
    """Adherence rate of one tracked day"""
    date: str
    rate: int = Field(..., ge=0, le=100)


class AdherenceMetricsResponse(BaseModel):
    """Aggregate adherence metrics"""
    overall_rate: int = Field(..., ge=0, le=100)
    current_streak: int
    longest_streak: int
    missed_doses_this_week: int
    missed_doses_this_month: int
    total_medications: int
    days_tracked: int
    weekly_trend: List[int] = Field(..., min_length=7, max_length=7)
    monthly_trend: List[TrendPoint]
    inferred_missed_this_week: int = 0
    inferred_missed_this_month: int = 0


class PatientAdherenceResponse(BaseModel):
    """Metrics of one patient"""
    patient_id: str
    metrics: AdherenceMetricsResponse
    last_updated: datetime


class PatientAdherenceList(BaseModel):
    """Metrics of several patients"""
    patients: List[PatientAdherenceResponse]
    total: int


class ActivitySummaryResponse(BaseModel):
    """Record-level summary of a patient's recent activity"""
    patient_id: str
    adherence_rate: int = Field(..., ge=0, le=100)
    current_streak: int
    missed_doses: int
    last_taken: Optional[date] = None
    total_medications: int
    
    model_config = ConfigDict(from_attributes=True)
