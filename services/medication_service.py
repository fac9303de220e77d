"""
Medication Service
Business logic for medication management
"""

import logging
from typing import List, Optional
from datetime import datetime
from sqlalchemy.orm import Session

from config import settings
from database import get_db_context
import models
from tools.date_helpers import format_time
from tools.errors import NotFoundError
from tools.schedule_calculator import resolve_frequency


logger = logging.getLogger(__name__)


def _normalize_frequency(frequency) -> str:
    # Lenient mode keeps unknown values; they schedule as once daily
    resolved = resolve_frequency(frequency, strict=settings.STRICT_FREQUENCY_VALIDATION)
    if resolved is not None:
        return resolved.value
    return str(getattr(frequency, "value", frequency))


class MedicationService:
    """
    Service for medication-related operations
    """
    
    async def add_medication(
        self,
        owner_id: str,
        name: str,
        dosage: str,
        frequency: str,
        scheduled_time: str,
        created_at: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> models.Medication:
        """
        Add a new medication for a patient
        
        Args:
            owner_id: Patient the medication belongs to
            name: Medication name
            dosage: Dosage (e.g., "500mg")
            frequency: Frequency value (e.g., "twice_daily")
            scheduled_time: Anchor time of the first dose, "HH:MM"
            created_at: Registration time (default: now)
            db: Database session
            
        Returns:
            Created Medication object
            
        Raises:
            InvalidInputError: malformed time, or unknown frequency under
                strict validation
        """
        def _add(session: Session) -> models.Medication:
            medication = models.Medication(
                owner_id=owner_id,
                name=name,
                dosage=dosage,
                frequency=_normalize_frequency(frequency),
                scheduled_time=format_time(scheduled_time),
                created_at=created_at or datetime.now(),
            )
            
            session.add(medication)
            session.commit()
            session.refresh(medication)
            
            logger.info(f"Added medication {name} for patient {owner_id}")
            return medication
        
        if db:
            return _add(db)
        
        with get_db_context() as session:
            return _add(session)
    
    async def get_medication(
        self,
        medication_id: str,
        db: Optional[Session] = None
    ) -> Optional[models.Medication]:
        """Get medication by ID"""
        def _get(session: Session) -> Optional[models.Medication]:
            return session.query(models.Medication).filter(
                models.Medication.id == medication_id
            ).first()
        
        if db:
            return _get(db)
        
        with get_db_context() as session:
            return _get(session)
    
    async def get_patient_medications(
        self,
        owner_id: str,
        db: Optional[Session] = None
    ) -> List[models.Medication]:
        """Get all medications of a patient, newest first"""
        def _get(session: Session) -> List[models.Medication]:
            return session.query(models.Medication).filter(
                models.Medication.owner_id == owner_id
            ).order_by(models.Medication.created_at.desc()).all()
        
        if db:
            return _get(db)
        
        with get_db_context() as session:
            return _get(session)
    
    async def update_medication(
        self,
        medication_id: str,
        name: Optional[str] = None,
        dosage: Optional[str] = None,
        frequency: Optional[str] = None,
        scheduled_time: Optional[str] = None,
        db: Optional[Session] = None
    ) -> models.Medication:
        """
        Edit a medication in place.
        
        The new frequency and time apply to every day, past days included;
        no history of earlier schedules is kept.
        """
        def _update(session: Session) -> models.Medication:
            medication = session.query(models.Medication).filter(
                models.Medication.id == medication_id
            ).first()
            
            if not medication:
                raise NotFoundError(f"Medication {medication_id} not found")
            
            if name is not None:
                medication.name = name
            if dosage is not None:
                medication.dosage = dosage
            if frequency is not None:
                medication.frequency = _normalize_frequency(frequency)
            if scheduled_time is not None:
                medication.scheduled_time = format_time(scheduled_time)
            
            session.commit()
            session.refresh(medication)
            
            logger.info(f"Updated medication {medication_id}")
            return medication
        
        if db:
            return _update(db)
        
        with get_db_context() as session:
            return _update(session)
    
    async def delete_medication(
        self,
        medication_id: str,
        db: Optional[Session] = None
    ) -> bool:
        """Delete a medication together with all of its activity records"""
        def _delete(session: Session) -> bool:
            medication = session.query(models.Medication).filter(
                models.Medication.id == medication_id
            ).first()
            
            if not medication:
                return False
            
            session.delete(medication)
            session.commit()
            
            logger.info(f"Deleted medication {medication_id} and its activity")
            return True
        
        if db:
            return _delete(db)
        
        with get_db_context() as session:
            return _delete(session)


# Singleton instance
medication_service = MedicationService()
