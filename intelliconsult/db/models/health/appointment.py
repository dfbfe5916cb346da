# intelliconsult/db/models/health/appointment.py
from typing import Optional, Dict, Any
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON, Index, Text, text, DateTime
from datetime import datetime, date
import uuid

from ....utils import utcnow


class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    __table_args__ = (
        # One live booking per doctor slot; cancelled rows release the slot
        Index(
            "uq_appointments_active_slot",
            "doctor_id",
            "appointment_date",
            "appointment_time",
            unique=True,
            sqlite_where=text("status != 'cancelled'"),
            postgresql_where=text("status != 'cancelled'"),
        ),
    )

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    patient_id: str = Field(foreign_key="users.id", index=True)
    doctor_id: str = Field(foreign_key="users.id", index=True)
    appointment_date: date
    appointment_time: str = Field(max_length=8)  # "10:00 AM"
    intake: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    consultation_fee_at_booking: int = Field(default=0)
    status: str = Field(default="upcoming", max_length=10, index=True)

    payment_status: str = Field(default="pending", max_length=10)
    order_id: Optional[str] = Field(default=None, max_length=64, unique=True)
    payment_id: Optional[str] = Field(default=None, max_length=64)

    triage_priority: Optional[str] = Field(default=None, max_length=2)
    triage_label: Optional[str] = Field(default=None, max_length=100)
    # Doctor-facing intake summary, generated once
    doctor_summary: Optional[str] = Field(default=None, sa_type=Text)
    summary_generated_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))

    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    completed_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    cancelled_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
