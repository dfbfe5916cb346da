# intelliconsult/schemas/users/user.py
from pydantic import BaseModel, Field, validator
from typing import Optional, Dict, Any
from datetime import datetime


class DoctorProfileResponse(BaseModel):
    specialization: Optional[str] = None
    experience: Optional[int] = None
    license_number: Optional[str] = None
    bio: Optional[str] = None
    consultation_fee: int = 0
    working_hours: Dict[str, Any] = {}
    average_rating: float = 0.0
    review_count: int = 0
    approved_at: Optional[datetime] = None


class UserResponse(BaseModel):
    id: str
    user_type: str
    full_name: str
    email: str
    is_email_verified: bool
    is_verified: bool
    is_profile_complete: bool
    created_at: datetime
    doctor: Optional[DoctorProfileResponse] = None

    @classmethod
    def from_dto(cls, user) -> "UserResponse":
        # Never copies password or token hashes
        return cls(
            id=user.id,
            user_type=user.user_type,
            full_name=user.full_name,
            email=user.email,
            is_email_verified=user.is_email_verified,
            is_verified=user.is_verified,
            is_profile_complete=user.is_profile_complete,
            created_at=user.created_at,
            doctor=DoctorProfileResponse(**vars(user.doctor)) if user.doctor else None,
        )


class UpdateProfileRequest(BaseModel):
    full_name: Optional[str] = Field(None, min_length=2, max_length=100)


class CompleteProfileRequest(BaseModel):
    full_name: Optional[str] = Field(None, min_length=2, max_length=100)
    specialization: Optional[str] = Field(None, max_length=100)
    experience: Optional[int] = Field(None, ge=0, le=70)
    license_number: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = Field(None, max_length=2000)
    consultation_fee: Optional[int] = Field(None, ge=0)

    @validator("specialization", "license_number")
    def strip_text(cls, v):
        return v.strip() if v is not None else v
