# intelliconsult/db/models/users/user.py
from typing import Optional, Dict, Any
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON, DateTime
from datetime import datetime
import uuid

from ....utils import utcnow


class User(SQLModel, table=True):
    __tablename__ = "users"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    user_type: str = Field(max_length=10, index=True)  # patient | doctor | admin
    full_name: str = Field(max_length=100)
    # Unique across every role: one email, one account
    email: str = Field(max_length=255, unique=True, index=True)
    password_hash: Optional[str] = Field(default=None, max_length=255)
    google_id: Optional[str] = Field(default=None, max_length=255, unique=True)

    is_email_verified: bool = Field(default=False)
    is_verified: bool = Field(default=True)
    is_profile_complete: bool = Field(default=True)

    email_verification_token_hash: Optional[str] = Field(default=None, max_length=64, index=True)
    email_verification_expires: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    password_reset_token_hash: Optional[str] = Field(default=None, max_length=64, index=True)
    password_reset_expires: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))

    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))


class DoctorProfile(SQLModel, table=True):
    __tablename__ = "doctor_profiles"
    user_id: str = Field(foreign_key="users.id", primary_key=True)
    specialization: Optional[str] = Field(default=None, max_length=100, index=True)
    experience: Optional[int] = Field(default=None)
    license_number: Optional[str] = Field(default=None, max_length=100, unique=True)
    bio: Optional[str] = Field(default=None)
    # Whole currency units; payment orders are created in subunits
    consultation_fee: int = Field(default=0)
    working_hours: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    average_rating: float = Field(default=0.0)
    review_count: int = Field(default=0)
    approved_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
