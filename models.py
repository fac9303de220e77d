"""
Database Models
SQLAlchemy ORM models for DoseTrack
"""

import uuid
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Date, Index
from sqlalchemy.orm import relationship
from datetime import datetime

from config import TableNames
from database import Base
from tools.schedule_calculator import Frequency


def _new_id() -> str:
    return str(uuid.uuid4())


class Medication(Base):
    """A prescribed regimen owned by a patient"""
    __tablename__ = TableNames.MEDICATIONS
    
    id = Column(String(36), primary_key=True, default=_new_id)
    owner_id = Column(String(64), nullable=False, index=True)
    
    name = Column(String(255), nullable=False)
    dosage = Column(String(100), nullable=False)  # free text, e.g. "500mg"
    frequency = Column(String(50), nullable=False, default=Frequency.ONCE_DAILY.value)
    scheduled_time = Column(String(8), nullable=False)  # "HH:MM" anchor dose
    
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
    
    # Relationships
    activities = relationship(
        "MedicationActivity",
        back_populates="medication",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class MedicationActivity(Base):
    """One confirmed dose; a dose with no row has not been taken"""
    __tablename__ = TableNames.MEDICATION_ACTIVITY
    
    id = Column(String(36), primary_key=True, default=_new_id)
    owner_id = Column(String(64), nullable=False)
    medication_id = Column(
        String(36),
        ForeignKey(f"{TableNames.MEDICATIONS}.id", ondelete="CASCADE"),
        nullable=False,
    )
    
    date = Column(Date, nullable=False)  # calendar day, groups doses of one day
    taken = Column(Boolean, nullable=False, default=False)
    taken_time = Column(String(8))  # "HH:MM", only when taken
    proof_image_url = Column(String(1024))
    
    created_at = Column(DateTime, default=datetime.now)
    
    # Relationships
    medication = relationship("Medication", back_populates="activities")
    
    __table_args__ = (
        Index("ix_activity_owner_date", "owner_id", "date"),
        Index("ix_activity_medication_date", "medication_id", "date"),
    )
