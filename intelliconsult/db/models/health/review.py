# intelliconsult/db/models/health/review.py
from typing import Optional
from sqlmodel import SQLModel, Field
from sqlalchemy import DateTime
from datetime import datetime
import uuid

from ....utils import utcnow


class Review(SQLModel, table=True):
    __tablename__ = "reviews"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    doctor_id: str = Field(foreign_key="users.id", index=True)
    patient_id: str = Field(foreign_key="users.id")
    appointment_id: str = Field(foreign_key="appointments.id", unique=True)
    rating: int
    comment: Optional[str] = Field(default=None, max_length=1000)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
