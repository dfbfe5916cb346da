from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple, Dict, Any
from datetime import datetime, date


APPOINTMENT_STATUSES = ("upcoming", "completed", "cancelled")


@dataclass
class AppointmentDto:
    id: str
    patient_id: str
    doctor_id: str
    appointment_date: date
    appointment_time: str
    intake: Dict[str, Any]
    consultation_fee_at_booking: int
    status: str
    payment_status: str
    order_id: Optional[str]
    payment_id: Optional[str]
    triage_priority: Optional[str]
    triage_label: Optional[str]
    created_at: datetime
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    doctor_summary: Optional[str] = None
    summary_generated_at: Optional[datetime] = None


@dataclass
class NewAppointment:
    patient_id: str
    doctor_id: str
    appointment_date: date
    appointment_time: str
    consultation_fee_at_booking: int
    intake: Dict[str, Any] = field(default_factory=dict)
    payment_status: str = "pending"
    order_id: Optional[str] = None
    payment_id: Optional[str] = None


class AppointmentsRepository:
    def create(self, new_appointment: NewAppointment) -> AppointmentDto:
        """Raises SlotUnavailable when the slot is held, AlreadyExists when the order was already booked."""
        ...

    def get_by_id(self, appointment_id: str) -> Optional[AppointmentDto]:
        ...

    def get_by_order_id(self, order_id: str) -> Optional[AppointmentDto]:
        ...

    def slot_taken(self, doctor_id: str, appointment_date: date, appointment_time: str) -> bool:
        ...

    def booked_slots(self, doctor_id: str, from_date: date) -> Set[Tuple[date, str]]:
        ...

    def list_for_patient(self, patient_id: str) -> List[AppointmentDto]:
        ...

    def list_for_doctor(self, doctor_id: str, status: Optional[str] = None) -> List[AppointmentDto]:
        ...

    def list_all(self) -> List[AppointmentDto]:
        ...

    def transition_status(self, appointment_id: str, from_status: str, to_status: str) -> bool:
        """Move from_status -> to_status atomically; False when the row was not in from_status."""
        ...

    def set_triage(self, appointment_id: str, priority: Optional[str], label: Optional[str]) -> None:
        ...

    def set_summary(self, appointment_id: str, summary: str, generated_at: datetime) -> None:
        ...
