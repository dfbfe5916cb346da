# intelliconsult/schemas/doctors/doctor.py
from pydantic import BaseModel
from typing import Optional, Dict, Any


class DoctorResponse(BaseModel):
    id: str
    full_name: str
    specialization: Optional[str] = None
    experience: Optional[int] = None
    bio: Optional[str] = None
    consultation_fee: int = 0
    average_rating: float = 0.0
    review_count: int = 0
    working_hours: Dict[str, Any] = {}

    @classmethod
    def from_dto(cls, user) -> "DoctorResponse":
        profile = user.doctor
        return cls(
            id=user.id,
            full_name=user.full_name,
            specialization=profile.specialization if profile else None,
            experience=profile.experience if profile else None,
            bio=profile.bio if profile else None,
            consultation_fee=profile.consultation_fee if profile else 0,
            average_rating=profile.average_rating if profile else 0.0,
            review_count=profile.review_count if profile else 0,
            working_hours=profile.working_hours if profile else {},
        )
