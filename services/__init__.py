"""
Services Module
Business logic layer for the DoseTrack application
"""

from services.medication_service import MedicationService, medication_service
from services.medication_activity_service import (
    MedicationActivityService,
    DoseConfirmation,
    medication_activity_service,
)
from services.adherence_service import AdherenceService, PatientAdherence, adherence_service


__all__ = [
    # Service classes
    "MedicationService",
    "MedicationActivityService",
    "AdherenceService",
    # Result types
    "DoseConfirmation",
    "PatientAdherence",
    # Singleton instances
    "medication_service",
    "medication_activity_service",
    "adherence_service",
]
