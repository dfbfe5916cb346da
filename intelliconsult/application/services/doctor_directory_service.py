from dataclasses import dataclass
from typing import List, Optional

from ..ports.user_repo import UserRepository, UserDto, UserSearch
from ...exceptions import NotFound


@dataclass
class DoctorDirectoryService:
    user_repo: UserRepository

    def list_doctors(self, search: Optional[str] = None, specialty: Optional[str] = None) -> List[UserDto]:
        """Approved doctors only; pending or suspended doctors are invisible to patients."""
        filters = UserSearch(
            name_prefix=(search or "").strip() or None,
            specialization=(specialty or "").strip() or None,
            is_verified=True,
        )
        return self.user_repo.search("doctor", filters)

    def get_doctor(self, doctor_id: str) -> UserDto:
        doctor = self.user_repo.get_by_id(doctor_id)
        if not doctor or doctor.user_type != "doctor" or not doctor.is_verified:
            raise NotFound("Doctor not found.")
        return doctor
