# intelliconsult/schemas/schedule/schedule.py
from pydantic import BaseModel, Field, validator
from typing import Dict, Optional
from datetime import datetime


class DayHours(BaseModel):
    enabled: bool = False
    start: Optional[str] = Field(None, description="HH:MM")
    end: Optional[str] = Field(None, description="HH:MM")


class WorkingHoursRequest(BaseModel):
    working_hours: Dict[str, DayHours]


class WorkingHoursResponse(BaseModel):
    working_hours: Dict[str, DayHours]


class BlockedTimeRequest(BaseModel):
    reason: str = Field(..., max_length=200)
    date: str  # YYYY-MM-DD
    start_time: str  # HH:MM
    end_time: str  # HH:MM

    @validator("date")
    def validate_date(cls, v):
        try:
            datetime.strptime(v, "%Y-%m-%d")
        except ValueError:
            raise ValueError("Invalid date format. Use YYYY-MM-DD")
        return v

    @validator("start_time", "end_time")
    def validate_time(cls, v):
        try:
            datetime.strptime(v, "%H:%M")
        except ValueError:
            raise ValueError("Invalid time format. Use HH:MM")
        return v


class BlockedTimeResponse(BaseModel):
    id: str
    reason: str
    date: str
    start_time: str
    end_time: str
    created_at: datetime

    @classmethod
    def from_dto(cls, b) -> "BlockedTimeResponse":
        return cls(
            id=b.id,
            reason=b.reason,
            date=b.block_date.strftime("%Y-%m-%d"),
            start_time=b.start_time,
            end_time=b.end_time,
            created_at=b.created_at,
        )
