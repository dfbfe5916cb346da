from dataclasses import dataclass
from typing import Any

from ...exceptions import AccessDenied


@dataclass(frozen=True)
class Caller:
    """Identity established by the session token and passed explicitly to every service call."""
    user_id: str
    user_type: str

    @property
    def is_admin(self) -> bool:
        return self.user_type == "admin"


def can_access(caller: Caller, record: Any) -> bool:
    """Owning doctor or owning patient of an appointment or medical record; nobody else."""
    if caller.user_type == "doctor":
        return caller.user_id == record.doctor_id
    if caller.user_type == "patient":
        return caller.user_id == record.patient_id
    return False


def ensure_owner(caller: Caller, record: Any) -> None:
    if not can_access(caller, record):
        raise AccessDenied("Access denied. You are not authorized to view this record.")


def ensure_owning_doctor(caller: Caller, record: Any) -> None:
    if caller.user_type != "doctor" or caller.user_id != record.doctor_id:
        raise AccessDenied("Access denied. You are not assigned to this appointment.")


def ensure_owning_patient(caller: Caller, record: Any) -> None:
    if caller.user_type != "patient" or caller.user_id != record.patient_id:
        raise AccessDenied("Access denied. This appointment does not belong to you.")


def require_role(caller: Caller, *user_types: str) -> None:
    if caller.user_type not in user_types:
        raise AccessDenied(f"Access denied. Only {' or '.join(user_types)} accounts can do this.")
