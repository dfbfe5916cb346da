from dataclasses import dataclass, field
from typing import Protocol, Optional, List, Dict, Any
from datetime import datetime, date


USER_TYPES = ("patient", "doctor", "admin")


@dataclass
class DoctorProfileInput:
    specialization: Optional[str] = None
    experience: Optional[int] = None
    license_number: Optional[str] = None
    bio: Optional[str] = None
    consultation_fee: Optional[int] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.specialization) and self.experience is not None \
            and bool(self.license_number) and bool(self.consultation_fee)


@dataclass
class DoctorProfileDto:
    specialization: Optional[str]
    experience: Optional[int]
    license_number: Optional[str]
    bio: Optional[str]
    consultation_fee: int
    working_hours: Dict[str, Any]
    average_rating: float
    review_count: int
    approved_at: Optional[datetime]


@dataclass
class UserDto:
    id: str
    user_type: str
    full_name: str
    email: str
    password_hash: Optional[str]
    google_id: Optional[str]
    is_email_verified: bool
    is_verified: bool
    is_profile_complete: bool
    created_at: datetime
    updated_at: datetime
    email_verification_expires: Optional[datetime] = None
    password_reset_expires: Optional[datetime] = None
    doctor: Optional[DoctorProfileDto] = None


@dataclass
class NewUser:
    user_type: str
    full_name: str
    email: str
    password_hash: Optional[str] = None
    google_id: Optional[str] = None
    is_email_verified: bool = False
    is_verified: bool = True
    is_profile_complete: bool = True
    doctor: Optional[DoctorProfileInput] = None


@dataclass
class UserSearch:
    name_prefix: Optional[str] = None
    email_prefix: Optional[str] = None
    license_prefix: Optional[str] = None
    specialization: Optional[str] = None
    is_verified: Optional[bool] = None
    created_from: Optional[date] = None
    created_to: Optional[date] = None


class UserRepository(Protocol):
    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        ...

    def get_by_email(self, email: str) -> Optional[UserDto]:
        ...

    def get_by_email_and_role(self, email: str, user_type: str) -> Optional[UserDto]:
        ...

    def create(self, new_user: NewUser) -> UserDto:
        ...

    def delete(self, user_id: str) -> None:
        ...

    def set_email_verification(self, user_id: str, token_hash: Optional[str], expires: Optional[datetime]) -> None:
        ...

    def find_by_email_token(self, token_hash: str) -> Optional[UserDto]:
        ...

    def mark_email_verified(self, user_id: str) -> None:
        ...

    def set_password_reset(self, user_id: str, token_hash: Optional[str], expires: Optional[datetime]) -> None:
        ...

    def find_by_reset_token(self, token_hash: str) -> Optional[UserDto]:
        ...

    def update_password(self, user_id: str, password_hash: str) -> None:
        ...

    def set_verified(self, user_id: str, is_verified: bool) -> Optional[UserDto]:
        ...

    def update_profile(self, user_id: str, full_name: Optional[str]) -> Optional[UserDto]:
        ...

    def complete_profile(self, user_id: str, full_name: Optional[str], doctor: Optional[DoctorProfileInput]) -> Optional[UserDto]:
        ...

    def search(self, user_type: str, filters: UserSearch) -> List[UserDto]:
        ...

    def set_working_hours(self, doctor_id: str, working_hours: Dict[str, Any]) -> None:
        ...

    def set_rating(self, doctor_id: str, average_rating: float, review_count: int) -> None:
        ...
