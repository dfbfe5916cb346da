from dataclasses import dataclass
from typing import Optional

from ..ports.user_repo import UserRepository, UserDto, DoctorProfileInput
from .access_control import Caller
from ...exceptions import NotFound, ValidationError


@dataclass
class ProfileService:
    user_repo: UserRepository

    def get_profile(self, caller: Caller) -> UserDto:
        user = self.user_repo.get_by_id(caller.user_id)
        if not user:
            raise NotFound("User not found")
        return user

    def update_profile(self, caller: Caller, full_name: Optional[str]) -> UserDto:
        if full_name is not None and not full_name.strip():
            raise ValidationError("Full name cannot be empty.")
        user = self.user_repo.update_profile(caller.user_id, full_name.strip() if full_name else None)
        if not user:
            raise NotFound("User not found")
        return user

    def complete_profile(self, caller: Caller, full_name: Optional[str], doctor: Optional[DoctorProfileInput]) -> UserDto:
        user = self.get_profile(caller)
        if full_name is not None and not full_name.strip():
            raise ValidationError("Full name cannot be empty.")
        if user.user_type == "doctor":
            if doctor is None or not doctor.is_complete:
                raise ValidationError("Specialization, experience, license number and consultation fee are required.")
            if doctor.experience < 0 or doctor.consultation_fee < 0:
                raise ValidationError("Experience and consultation fee cannot be negative.")
        else:
            doctor = None
        updated = self.user_repo.complete_profile(caller.user_id, full_name.strip() if full_name else None, doctor)
        if not updated:
            raise NotFound("User not found")
        return updated
