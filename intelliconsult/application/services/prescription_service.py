import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from ..ports.medical_records_repo import MedicalRecordRepository, MedicalRecordDto, NewMedicalRecord
from ..ports.appointments_repo import AppointmentsRepository
from ..ports.user_repo import UserRepository
from ..ports.notifier import Notifier
from ..ports.document_renderer import DocumentRenderer, PrescriptionDocument
from .access_control import Caller, ensure_owner, ensure_owning_doctor
from . import email_templates
from ...exceptions import AccessDenied, AlreadyExists, NotFound, ValidationError
from ...utils import utcnow

logger = logging.getLogger(__name__)

ITEM_FIELDS = ("medication", "dosage", "frequency", "duration", "instructions")


def clean_items(items: Optional[Iterable[Dict[str, Any]]]) -> List[Dict[str, str]]:
    cleaned = []
    for item in items or []:
        row = {key: str(item.get(key) or "").strip() for key in ITEM_FIELDS}
        if not row["medication"]:
            raise ValidationError("Each prescription item needs a medication name.")
        cleaned.append(row)
    return cleaned


def normalize_follow_up(record: MedicalRecordDto) -> MedicalRecordDto:
    """Follow-up date and notes only survive while follow-up is required."""
    if record.follow_up_required:
        return record
    return replace(record, follow_up_date=None, follow_up_notes="")


@dataclass
class PrescriptionService:
    records_repo: MedicalRecordRepository
    appointments_repo: AppointmentsRepository
    user_repo: UserRepository
    notifier: Optional[Notifier] = None
    renderer: Optional[DocumentRenderer] = None

    def create(self, caller: Caller, appointment_id: str, diagnosis: str, notes: str = "",
               prescription: Optional[List[Dict[str, Any]]] = None, follow_up_required: bool = False,
               follow_up_date: Optional[date] = None, follow_up_notes: str = "") -> MedicalRecordDto:
        appointment_id = (appointment_id or "").strip()
        diagnosis = (diagnosis or "").strip()
        if not appointment_id or not diagnosis:
            raise ValidationError("Appointment ID and diagnosis are required.")

        appt = self.appointments_repo.get_by_id(appointment_id)
        if not appt:
            raise NotFound("Appointment not found")
        ensure_owning_doctor(caller, appt)
        if appt.status == "cancelled":
            raise ValidationError("Cannot issue a prescription for a cancelled appointment.")
        if self.records_repo.get_by_appointment(appointment_id):
            raise AlreadyExists("Prescription already exists for this appointment. Use update instead.")

        record = self.records_repo.create(NewMedicalRecord(
            appointment_id=appt.id,
            patient_id=appt.patient_id,
            doctor_id=appt.doctor_id,
            diagnosis=diagnosis,
            created_by=caller.user_id,
            notes=(notes or "").strip(),
            prescription=clean_items(prescription),
            follow_up_required=bool(follow_up_required),
            follow_up_date=follow_up_date if follow_up_required else None,
            follow_up_notes=(follow_up_notes or "").strip() if follow_up_required else "",
        ))
        logger.info(f"Medical record {record.id} created for appointment {appt.id}")
        self._send_summary(record)
        return record

    def update(self, caller: Caller, record_id: str, changes: Dict[str, Any]) -> MedicalRecordDto:
        """Partial merge: only keys present in `changes` are applied. A null value counts as not sent."""
        changes = {key: value for key, value in changes.items() if value is not None}
        record = self.records_repo.get_by_id(record_id)
        if not record:
            raise NotFound("Prescription not found")
        ensure_owning_doctor(caller, record)

        merged = record
        if "diagnosis" in changes:
            diagnosis = (changes["diagnosis"] or "").strip()
            if not diagnosis:
                raise ValidationError("Diagnosis cannot be empty.")
            merged = replace(merged, diagnosis=diagnosis)
        if "notes" in changes:
            merged = replace(merged, notes=(changes["notes"] or "").strip())
        if "prescription" in changes:
            merged = replace(merged, prescription=clean_items(changes["prescription"]))
        if "follow_up_required" in changes:
            merged = replace(merged, follow_up_required=bool(changes["follow_up_required"]))
        if "follow_up_date" in changes:
            merged = replace(merged, follow_up_date=changes["follow_up_date"])
        if "follow_up_notes" in changes:
            merged = replace(merged, follow_up_notes=(changes["follow_up_notes"] or "").strip())

        merged = replace(normalize_follow_up(merged), updated_at=utcnow())
        saved = self.records_repo.save(merged)

        if "follow_up_date" in changes and saved.follow_up_required and saved.follow_up_date:
            self._send_follow_up(saved)
        return saved

    def get_by_appointment(self, caller: Caller, appointment_id: str) -> MedicalRecordDto:
        appt = self.appointments_repo.get_by_id(appointment_id)
        if not appt:
            raise NotFound("Appointment not found")
        ensure_owner(caller, appt)
        record = self.records_repo.get_by_appointment(appointment_id)
        if not record:
            raise NotFound("No prescription found for this appointment")
        return record

    def get_by_id(self, caller: Caller, record_id: str) -> MedicalRecordDto:
        record = self.records_repo.get_by_id(record_id)
        if not record:
            raise NotFound("Prescription not found")
        ensure_owner(caller, record)
        return record

    def list_for_caller(self, caller: Caller) -> List[MedicalRecordDto]:
        if caller.user_type == "doctor":
            return self.records_repo.list_for_doctor(caller.user_id)
        if caller.user_type == "patient":
            return self.records_repo.list_for_patient(caller.user_id)
        raise AccessDenied()

    def build_document(self, caller: Caller, record_id: str) -> PrescriptionDocument:
        record = self.get_by_id(caller, record_id)
        patient = self.user_repo.get_by_id(record.patient_id)
        doctor = self.user_repo.get_by_id(record.doctor_id)
        appt = self.appointments_repo.get_by_id(record.appointment_id)
        return PrescriptionDocument(
            record_id=record.id,
            patient_name=patient.full_name if patient else "Unknown patient",
            patient_email=patient.email if patient else None,
            doctor_name=doctor.full_name if doctor else "Unknown doctor",
            doctor_specialization=doctor.doctor.specialization if doctor and doctor.doctor else None,
            visit_date=appt.appointment_date if appt else None,
            visit_time=appt.appointment_time if appt else None,
            diagnosis=record.diagnosis,
            notes=record.notes,
            prescription=record.prescription,
            follow_up_required=record.follow_up_required,
            follow_up_date=record.follow_up_date,
            follow_up_notes=record.follow_up_notes,
        )

    def render_pdf(self, caller: Caller, record_id: str) -> bytes:
        document = self.build_document(caller, record_id)
        return self.renderer.render_prescription(document)

    def _send_summary(self, record: MedicalRecordDto) -> None:
        if not self.notifier:
            return
        try:
            patient = self.user_repo.get_by_id(record.patient_id)
            doctor = self.user_repo.get_by_id(record.doctor_id)
            if not patient:
                return
            subject, html = email_templates.prescription_summary_email(
                patient.full_name,
                doctor.full_name if doctor else "",
                record.diagnosis,
                len(record.prescription),
                record.follow_up_date if record.follow_up_required else None,
            )
            self.notifier.notify(patient.email, subject, html)
        except Exception as e:
            logger.error(f"Could not queue prescription summary for record {record.id}: {e}")

    def _send_follow_up(self, record: MedicalRecordDto) -> None:
        if not self.notifier:
            return
        try:
            patient = self.user_repo.get_by_id(record.patient_id)
            doctor = self.user_repo.get_by_id(record.doctor_id)
            if not patient:
                return
            subject, html = email_templates.follow_up_reminder_email(
                patient.full_name, doctor.full_name if doctor else "", record.follow_up_date, record.follow_up_notes
            )
            self.notifier.notify(patient.email, subject, html)
        except Exception as e:
            logger.error(f"Could not queue follow-up reminder for record {record.id}: {e}")
