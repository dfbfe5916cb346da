# intelliconsult/db/models/health/medical_record.py
from typing import Optional, List, Dict, Any
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON, DateTime
from datetime import datetime, date
import uuid

from ....utils import utcnow


class MedicalRecord(SQLModel, table=True):
    __tablename__ = "medical_records"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    appointment_id: str = Field(foreign_key="appointments.id", unique=True, index=True)
    patient_id: str = Field(foreign_key="users.id", index=True)
    doctor_id: str = Field(foreign_key="users.id", index=True)
    diagnosis: str = Field(max_length=1000)
    notes: str = Field(default="", max_length=2000)
    prescription: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))
    follow_up_required: bool = Field(default=False)
    follow_up_date: Optional[date] = Field(default=None)
    follow_up_notes: str = Field(default="", max_length=500)
    created_by: str = Field(foreign_key="users.id")
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
