import logging
from dataclasses import dataclass
from typing import List, Optional

from ..ports.user_repo import UserRepository, UserDto, UserSearch
from ..ports.appointments_repo import AppointmentsRepository, AppointmentDto
from ..ports.notifier import Notifier
from ..ports.audit_logger import AuditLogger
from .access_control import Caller, require_role
from . import email_templates
from ...exceptions import NotFound, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class AdminService:
    user_repo: UserRepository
    appointments_repo: AppointmentsRepository
    notifier: Optional[Notifier] = None
    audit: Optional[AuditLogger] = None

    def _user_of_type(self, user_id: str, user_type: str) -> UserDto:
        user = self.user_repo.get_by_id(user_id)
        if not user or user.user_type != user_type:
            raise NotFound(f"{user_type.capitalize()} not found.")
        return user

    def _after_status_change(self, caller: Caller, user: UserDto, status: str) -> None:
        if self.audit:
            self.audit.log(f"admin_{status}_{user.user_type}", user.email, user_id=user.id,
                           details={"admin_id": caller.user_id})
        if self.notifier:
            subject, html = email_templates.account_status_email(user.full_name, status)
            self.notifier.notify(user.email, subject, html)

    def list_users(self, caller: Caller, user_type: str, filters: UserSearch) -> List[UserDto]:
        require_role(caller, "admin")
        if user_type not in ("doctor", "patient"):
            raise ValidationError("user_type must be 'doctor' or 'patient'.")
        return self.user_repo.search(user_type, filters)

    def list_appointments(self, caller: Caller) -> List[AppointmentDto]:
        require_role(caller, "admin")
        return self.appointments_repo.list_all()

    def get_user(self, caller: Caller, user_id: str) -> UserDto:
        require_role(caller, "admin")
        user = self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFound("User not found.")
        return user

    def verify_doctor(self, caller: Caller, doctor_id: str) -> UserDto:
        require_role(caller, "admin")
        self._user_of_type(doctor_id, "doctor")
        updated = self.user_repo.set_verified(doctor_id, True)
        logger.info(f"Doctor {doctor_id} verified by admin {caller.user_id}")
        self._after_status_change(caller, updated, "verified")
        return updated

    def suspend_doctor(self, caller: Caller, doctor_id: str) -> UserDto:
        """Suspended doctors keep their record; they just cannot log in or be booked."""
        require_role(caller, "admin")
        self._user_of_type(doctor_id, "doctor")
        updated = self.user_repo.set_verified(doctor_id, False)
        logger.info(f"Doctor {doctor_id} suspended by admin {caller.user_id}")
        self._after_status_change(caller, updated, "suspended")
        return updated

    def reject_doctor(self, caller: Caller, doctor_id: str) -> None:
        require_role(caller, "admin")
        doctor = self._user_of_type(doctor_id, "doctor")
        if doctor.is_verified or (doctor.doctor and doctor.doctor.approved_at):
            raise ValidationError("Only pending doctors can be rejected. Suspend this account instead.")
        self.user_repo.delete(doctor_id)
        logger.info(f"Pending doctor {doctor_id} rejected by admin {caller.user_id}")
        self._after_status_change(caller, doctor, "rejected")

    def verify_patient(self, caller: Caller, patient_id: str) -> UserDto:
        require_role(caller, "admin")
        self._user_of_type(patient_id, "patient")
        updated = self.user_repo.set_verified(patient_id, True)
        self._after_status_change(caller, updated, "verified")
        return updated

    def suspend_patient(self, caller: Caller, patient_id: str) -> UserDto:
        require_role(caller, "admin")
        self._user_of_type(patient_id, "patient")
        updated = self.user_repo.set_verified(patient_id, False)
        self._after_status_change(caller, updated, "suspended")
        return updated
