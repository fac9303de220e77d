"""
Medication Activity Service
Recording confirmed doses and the per-day dose status of a patient
"""

import logging
from dataclasses import dataclass
from typing import List, Optional
from datetime import datetime, date
from sqlalchemy.orm import Session
from sqlalchemy import and_

from database import get_db_context
import models
from tools.adherence_aggregator import taken_dates
from tools.date_helpers import parse_date, format_time
from tools.errors import DoseLimitReachedError, InvalidInputError, NotFoundError
from tools.schedule_calculator import (
    DailyMedicationStatus,
    build_daily_status,
    is_day_complete as medication_day_complete,
    next_dose_time,
    required_doses_per_day,
)


logger = logging.getLogger(__name__)


@dataclass
class DoseConfirmation:
    """Result of recording a taken dose"""
    activity: models.MedicationActivity
    next_dose_time: Optional[str]
    is_complete_for_day: bool


class MedicationActivityService:
    """
    Service for dose activity tracking
    """
    
    def _query_activities(
        self,
        session: Session,
        owner_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
        medication_id: Optional[str] = None,
        taken_only: bool = False
    ) -> List[models.MedicationActivity]:
        query = session.query(models.MedicationActivity).filter(
            models.MedicationActivity.owner_id == owner_id
        )
        
        if start:
            query = query.filter(models.MedicationActivity.date >= start)
        if end:
            query = query.filter(models.MedicationActivity.date <= end)
        if medication_id:
            query = query.filter(
                models.MedicationActivity.medication_id == medication_id
            )
        if taken_only:
            query = query.filter(models.MedicationActivity.taken.is_(True))
        
        return query.order_by(
            models.MedicationActivity.date,
            models.MedicationActivity.created_at
        ).all()
    
    async def get_activities(
        self,
        owner_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
        medication_id: Optional[str] = None,
        db: Optional[Session] = None
    ) -> List[models.MedicationActivity]:
        """Get a patient's activity records, oldest first"""
        def _get(session: Session) -> List[models.MedicationActivity]:
            return self._query_activities(
                session, owner_id, start, end, medication_id
            )
        
        if db:
            return _get(db)
        
        with get_db_context() as session:
            return _get(session)
    
    async def get_daily_status(
        self,
        owner_id: str,
        target_date: Optional[date] = None,
        db: Optional[Session] = None
    ) -> List[DailyMedicationStatus]:
        """
        Status of every medication of a patient on one day
        
        Args:
            owner_id: Patient ID
            target_date: Day to report (default: today)
            db: Database session
            
        Returns:
            One DailyMedicationStatus per medication
        """
        def _get(session: Session) -> List[DailyMedicationStatus]:
            day = parse_date(target_date or date.today())
            
            medications = session.query(models.Medication).filter(
                models.Medication.owner_id == owner_id
            ).order_by(models.Medication.created_at).all()
            
            if not medications:
                return []
            
            activities = self._query_activities(session, owner_id, day, day)
            return build_daily_status(medications, activities, day)
        
        if db:
            return _get(db)
        
        with get_db_context() as session:
            return _get(session)
    
    async def mark_dose_taken(
        self,
        owner_id: str,
        medication_id: str,
        target_date: Optional[date] = None,
        taken_time: Optional[str] = None,
        proof_image_url: Optional[str] = None,
        db: Optional[Session] = None
    ) -> DoseConfirmation:
        """
        Record a taken dose
        
        Args:
            owner_id: Patient ID
            medication_id: Medication taken
            target_date: Day the dose belongs to (default: today)
            taken_time: Confirmation time "HH:MM" (default: now)
            proof_image_url: Optional reference to an uploaded photo
            db: Database session
            
        Returns:
            DoseConfirmation with the stored record and the next dose time
            
        Raises:
            NotFoundError: unknown medication for this patient
            InvalidInputError: the day is before the medication was added or in the future
            DoseLimitReachedError: every dose of the day is already recorded
        """
        def _mark(session: Session) -> DoseConfirmation:
            day = parse_date(target_date or date.today())
            confirmed_at = format_time(taken_time or datetime.now().strftime("%H:%M"))
            
            medication = session.query(models.Medication).filter(
                and_(
                    models.Medication.id == medication_id,
                    models.Medication.owner_id == owner_id
                )
            ).first()
            
            if not medication:
                raise NotFoundError(
                    f"Medication {medication_id} not found for patient {owner_id}"
                )
            
            added_on = parse_date(medication.created_at)
            if day < added_on:
                raise InvalidInputError(
                    f"Medication {medication_id} was added on {added_on.isoformat()}, "
                    f"cannot record a dose for {day.isoformat()}"
                )
            if day > date.today():
                raise InvalidInputError(
                    f"Cannot record a dose for future day {day.isoformat()}"
                )
            
            taken_times = [
                a.taken_time for a in self._query_activities(
                    session, owner_id, day, day, medication_id, taken_only=True
                )
            ]
            
            if medication_day_complete(medication.frequency, taken_times):
                raise DoseLimitReachedError(
                    medication_id,
                    day.isoformat(),
                    required_doses_per_day(medication.frequency)
                )
            
            activity = models.MedicationActivity(
                owner_id=owner_id,
                medication_id=medication_id,
                date=day,
                taken=True,
                taken_time=confirmed_at,
                proof_image_url=proof_image_url,
            )
            session.add(activity)
            session.commit()
            session.refresh(activity)
            
            taken_times.append(confirmed_at)
            logger.info(
                f"Recorded dose {len(taken_times)} of medication {medication_id} "
                f"for patient {owner_id} on {day.isoformat()}"
            )
            
            return DoseConfirmation(
                activity=activity,
                next_dose_time=next_dose_time(
                    medication.scheduled_time, medication.frequency, taken_times
                ),
                is_complete_for_day=medication_day_complete(medication.frequency, taken_times),
            )
        
        if db:
            return _mark(db)
        
        with get_db_context() as session:
            return _mark(session)
    
    async def is_day_complete(
        self,
        owner_id: str,
        target_date: Optional[date] = None,
        db: Optional[Session] = None
    ) -> bool:
        """Whether every medication of the patient is complete for the day"""
        statuses = await self.get_daily_status(owner_id, target_date, db=db)
        if not statuses:
            return False
        return all(s.is_complete_for_day for s in statuses)
    
    async def get_taken_dates(
        self,
        owner_id: str,
        db: Optional[Session] = None
    ) -> List[date]:
        """Days on which the patient took at least one dose, oldest first"""
        def _get(session: Session) -> List[date]:
            earliest = session.query(models.Medication.created_at).filter(
                models.Medication.owner_id == owner_id
            ).order_by(models.Medication.created_at).first()
            
            if not earliest:
                return []
            
            since = parse_date(earliest[0])
            activities = self._query_activities(
                session, owner_id, start=since, taken_only=True
            )
            return sorted(taken_dates(activities, since=since))
        
        if db:
            return _get(db)
        
        with get_db_context() as session:
            return _get(session)


# Singleton instance
medication_activity_service = MedicationActivityService()
