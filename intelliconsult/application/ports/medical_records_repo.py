from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any
from datetime import datetime, date


@dataclass
class MedicalRecordDto:
    id: str
    appointment_id: str
    patient_id: str
    doctor_id: str
    diagnosis: str
    notes: str
    prescription: List[Dict[str, Any]]
    follow_up_required: bool
    follow_up_date: Optional[date]
    follow_up_notes: str
    created_by: str
    created_at: datetime
    updated_at: datetime


@dataclass
class NewMedicalRecord:
    appointment_id: str
    patient_id: str
    doctor_id: str
    diagnosis: str
    created_by: str
    notes: str = ""
    prescription: List[Dict[str, Any]] = field(default_factory=list)
    follow_up_required: bool = False
    follow_up_date: Optional[date] = None
    follow_up_notes: str = ""


class MedicalRecordRepository:
    def create(self, record: NewMedicalRecord) -> MedicalRecordDto:
        """Raises AlreadyExists when the appointment already has a record."""
        ...

    def get_by_id(self, record_id: str) -> Optional[MedicalRecordDto]:
        ...

    def get_by_appointment(self, appointment_id: str) -> Optional[MedicalRecordDto]:
        ...

    def save(self, record: MedicalRecordDto) -> MedicalRecordDto:
        ...

    def list_for_doctor(self, doctor_id: str) -> List[MedicalRecordDto]:
        ...

    def list_for_patient(self, patient_id: str) -> List[MedicalRecordDto]:
        ...
