from dataclasses import dataclass
from datetime import time
from typing import List, Optional

from ..ports.appointments_repo import AppointmentsRepository, AppointmentDto
from .access_control import Caller, ensure_owner, ensure_owning_doctor, ensure_owning_patient, require_role
from .booking_service import slot_datetime
from ...exceptions import NotFound, InvalidTransition, ValidationError

TRIAGE_PRIORITIES = ("P1", "P2", "P3", "P4")


def triage_order_key(appt: AppointmentDto):
    """P1..P4 first, unannotated last, then by slot."""
    rank = TRIAGE_PRIORITIES.index(appt.triage_priority) if appt.triage_priority in TRIAGE_PRIORITIES else len(TRIAGE_PRIORITIES)
    try:
        starts_at = slot_datetime(appt.appointment_date, appt.appointment_time)
    except ValueError:
        starts_at = None
    return (rank, appt.appointment_date, starts_at.time() if starts_at else time.max)


@dataclass
class AppointmentsService:
    repo: AppointmentsRepository

    def _get(self, appointment_id: str) -> AppointmentDto:
        appt = self.repo.get_by_id(appointment_id)
        if not appt:
            raise NotFound("Appointment not found")
        return appt

    def list_for_caller(self, caller: Caller) -> List[AppointmentDto]:
        if caller.user_type == "patient":
            return self.repo.list_for_patient(caller.user_id)
        if caller.user_type == "doctor":
            return self.repo.list_for_doctor(caller.user_id)
        require_role(caller, "patient", "doctor")
        return []

    def list_for_patient(self, caller: Caller) -> List[AppointmentDto]:
        require_role(caller, "patient")
        return self.repo.list_for_patient(caller.user_id)

    def list_for_doctor(self, caller: Caller) -> List[AppointmentDto]:
        require_role(caller, "doctor")
        return self.repo.list_for_doctor(caller.user_id)

    def triage_queue(self, caller: Caller) -> List[AppointmentDto]:
        """Actionable appointments only; completed and cancelled never show up here."""
        require_role(caller, "doctor")
        upcoming = self.repo.list_for_doctor(caller.user_id, status="upcoming")
        return sorted(upcoming, key=triage_order_key)

    def get_for_caller(self, caller: Caller, appointment_id: str) -> AppointmentDto:
        appt = self._get(appointment_id)
        ensure_owner(caller, appt)
        return appt

    def complete(self, caller: Caller, appointment_id: str) -> AppointmentDto:
        appt = self._get(appointment_id)
        ensure_owning_doctor(caller, appt)
        if appt.status == "completed":
            # Completing twice changes nothing
            return appt
        if appt.status == "cancelled":
            raise InvalidTransition("Cannot complete an appointment that is already cancelled.")
        if not self.repo.transition_status(appointment_id, "upcoming", "completed"):
            return self._resolve_lost_transition(appointment_id, "completed")
        return self._get(appointment_id)

    def cancel(self, caller: Caller, appointment_id: str) -> AppointmentDto:
        appt = self._get(appointment_id)
        ensure_owning_patient(caller, appt)
        if appt.status == "cancelled":
            return appt
        if appt.status == "completed":
            raise InvalidTransition("Cannot cancel an appointment that is already completed.")
        if not self.repo.transition_status(appointment_id, "upcoming", "cancelled"):
            return self._resolve_lost_transition(appointment_id, "cancelled")
        return self._get(appointment_id)

    def _resolve_lost_transition(self, appointment_id: str, wanted: str) -> AppointmentDto:
        # Another request moved the row first
        current = self._get(appointment_id)
        if current.status == wanted:
            return current
        raise InvalidTransition(f"Cannot change an appointment that is already {current.status}.")

    def annotate_triage(self, caller: Caller, appointment_id: str, priority: Optional[str], label: Optional[str]) -> AppointmentDto:
        appt = self._get(appointment_id)
        ensure_owning_doctor(caller, appt)
        if priority is not None and priority not in TRIAGE_PRIORITIES:
            raise ValidationError(f"Invalid triage priority. Must be one of: {list(TRIAGE_PRIORITIES)}")
        self.repo.set_triage(appointment_id, priority, label.strip() if label else None)
        return self._get(appointment_id)
