# intelliconsult/schemas/reviews/review.py
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class CreateReviewRequest(BaseModel):
    appointment_id: str
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)


class ReviewResponse(BaseModel):
    id: str
    doctor_id: str
    patient_id: str
    appointment_id: str
    rating: int
    comment: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_dto(cls, r) -> "ReviewResponse":
        return cls(**vars(r))
