# intelliconsult/db/models/health/schedule.py
from sqlmodel import SQLModel, Field
from sqlalchemy import DateTime
from datetime import datetime, date
import uuid

from ....utils import utcnow


class BlockedTime(SQLModel, table=True):
    __tablename__ = "blocked_times"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    doctor_id: str = Field(foreign_key="users.id", index=True)
    reason: str = Field(max_length=200)
    block_date: date
    start_time: str = Field(max_length=5)  # "HH:MM"
    end_time: str = Field(max_length=5)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
