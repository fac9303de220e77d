"""
Adherence Service
Loads patient snapshots from the store and computes adherence metrics
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple
from datetime import datetime, date
from sqlalchemy.orm import Session
from sqlalchemy import and_

from config import settings, adherence_config
from database import get_db_context
import models
from tools.adherence_aggregator import (
    AdherenceMetrics,
    PatientActivitySummary,
    compute_adherence_metrics,
    summarize_recent_activity,
)
from tools.date_helpers import parse_date, days_ago


logger = logging.getLogger(__name__)


@dataclass
class PatientAdherence:
    """Metrics of one patient as shown on the caretaker dashboard"""
    patient_id: str
    metrics: AdherenceMetrics
    last_updated: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "patient_id": self.patient_id,
            "metrics": self.metrics.to_dict(),
            "last_updated": self.last_updated.isoformat(),
        }


class AdherenceService:
    """
    Service for adherence tracking and analysis
    """
    
    def _load_snapshot(
        self,
        session: Session,
        owner_id: str,
        start: Optional[date],
        end: date
    ) -> Tuple[List[models.Medication], List[models.MedicationActivity]]:
        """Medications of a patient and their activity up to ``end``"""
        medications = session.query(models.Medication).filter(
            models.Medication.owner_id == owner_id
        ).all()
        
        if not medications:
            return [], []
        
        if start is None:
            start = min(parse_date(m.created_at) for m in medications)
        
        activities = session.query(models.MedicationActivity).filter(
            and_(
                models.MedicationActivity.owner_id == owner_id,
                models.MedicationActivity.date >= start,
                models.MedicationActivity.date <= end
            )
        ).order_by(models.MedicationActivity.date).all()
        
        return medications, activities
    
    async def get_adherence_metrics(
        self,
        owner_id: str,
        today: Optional[date] = None,
        db: Optional[Session] = None
    ) -> AdherenceMetrics:
        """
        Calculate adherence metrics for a patient
        
        Args:
            owner_id: Patient ID
            today: Last day of the tracking window (default: today)
            db: Database session
            
        Returns:
            AdherenceMetrics over the lifetime of the patient's medications
        """
        def _calculate(session: Session) -> AdherenceMetrics:
            reference = parse_date(today or date.today())
            medications, activities = self._load_snapshot(
                session, owner_id, None, reference
            )
            
            metrics = compute_adherence_metrics(
                medications,
                activities,
                reference,
                threshold=settings.ADHERENT_DAY_THRESHOLD
            )
            
            logger.debug(
                f"Adherence for patient {owner_id}: {metrics.overall_rate}% "
                f"over {metrics.days_tracked} days"
            )
            return metrics
        
        if db:
            return _calculate(db)
        
        with get_db_context() as session:
            return _calculate(session)
    
    async def get_patients_adherence(
        self,
        owner_ids: Sequence[str],
        today: Optional[date] = None,
        db: Optional[Session] = None
    ) -> List[PatientAdherence]:
        """
        Adherence metrics for several patients at once
        
        Each patient is computed independently from its own snapshot.
        """
        if not owner_ids:
            return []
        
        async def _one(owner_id: str) -> PatientAdherence:
            metrics = await self.get_adherence_metrics(owner_id, today, db=db)
            return PatientAdherence(patient_id=owner_id, metrics=metrics)
        
        results = await asyncio.gather(*(_one(owner_id) for owner_id in owner_ids))
        logger.info(f"Computed adherence for {len(results)} patients")
        return list(results)
    
    async def get_activity_summary(
        self,
        owner_id: str,
        today: Optional[date] = None,
        days: int = adherence_config.RECENT_ACTIVITY_DAYS,
        db: Optional[Session] = None
    ) -> PatientActivitySummary:
        """Record-level summary of a patient's recent activity"""
        def _get(session: Session) -> PatientActivitySummary:
            reference = parse_date(today or date.today())
            medications, activities = self._load_snapshot(
                session, owner_id, days_ago(reference, days), reference
            )
            
            if not medications:
                # Activity of deleted medications is gone with them
                return PatientActivitySummary()
            
            return summarize_recent_activity(medications, activities, reference, days)
        
        if db:
            return _get(db)
        
        with get_db_context() as session:
            return _get(session)


# Singleton instance
adherence_service = AdherenceService()
