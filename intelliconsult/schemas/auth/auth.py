# intelliconsult/schemas/auth/auth.py
from pydantic import BaseModel, Field, validator
from typing import Optional
import re

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _validate_email(v: str) -> str:
    v = v.strip().lower()
    if not EMAIL_PATTERN.match(v):
        raise ValueError("Invalid email address")
    return v


class SignupRequest(BaseModel):
    user_type: str = Field(..., description="patient | doctor | admin")
    full_name: str = Field(..., min_length=2, max_length=100)
    email: str
    password: str = Field(..., min_length=8, max_length=128)

    # Doctor professional details, optional at signup
    specialization: Optional[str] = Field(None, max_length=100)
    experience: Optional[int] = Field(None, ge=0, le=70)
    license_number: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = Field(None, max_length=2000)
    consultation_fee: Optional[int] = Field(None, ge=0)

    @validator("email")
    def validate_email(cls, v):
        return _validate_email(v)

    @validator("full_name")
    def validate_full_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Full name is required")
        return v


class LoginRequest(BaseModel):
    email: str
    password: str
    user_type: str

    @validator("email")
    def validate_email(cls, v):
        return v.strip().lower()


class ForgotPasswordRequest(BaseModel):
    email: str

    @validator("email")
    def validate_email(cls, v):
        return _validate_email(v)


class ResetPasswordRequest(BaseModel):
    password: str = Field(..., min_length=8, max_length=128)
