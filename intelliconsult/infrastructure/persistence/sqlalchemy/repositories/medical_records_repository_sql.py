from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .....db.models import MedicalRecord
from .....application.ports.medical_records_repo import (
    MedicalRecordRepository,
    MedicalRecordDto,
    NewMedicalRecord,
)
from .....exceptions import AlreadyExists, NotFound
from .....utils import as_utc


class SqlMedicalRecordRepository(MedicalRecordRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, r: MedicalRecord) -> MedicalRecordDto:
        return MedicalRecordDto(
            id=r.id,
            appointment_id=r.appointment_id,
            patient_id=r.patient_id,
            doctor_id=r.doctor_id,
            diagnosis=r.diagnosis,
            notes=r.notes or "",
            prescription=[dict(item) for item in (r.prescription or [])],
            follow_up_required=bool(r.follow_up_required),
            follow_up_date=r.follow_up_date,
            follow_up_notes=r.follow_up_notes or "",
            created_by=r.created_by,
            created_at=as_utc(r.created_at),
            updated_at=as_utc(r.updated_at),
        )

    def create(self, record: NewMedicalRecord) -> MedicalRecordDto:
        row = MedicalRecord(
            appointment_id=record.appointment_id,
            patient_id=record.patient_id,
            doctor_id=record.doctor_id,
            diagnosis=record.diagnosis,
            notes=record.notes,
            prescription=list(record.prescription),
            follow_up_required=record.follow_up_required,
            follow_up_date=record.follow_up_date,
            follow_up_notes=record.follow_up_notes,
            created_by=record.created_by,
        )
        self.session.add(row)
        try:
            self.session.commit()
        except IntegrityError:
            # Lost the race against a concurrent create for the same appointment
            self.session.rollback()
            raise AlreadyExists("Prescription already exists for this appointment. Use update instead.")
        self.session.refresh(row)
        return self._to_dto(row)

    def get_by_id(self, record_id: str) -> Optional[MedicalRecordDto]:
        r = self.session.exec(select(MedicalRecord).where(MedicalRecord.id == record_id)).first()
        return self._to_dto(r) if r else None

    def get_by_appointment(self, appointment_id: str) -> Optional[MedicalRecordDto]:
        r = self.session.exec(select(MedicalRecord).where(MedicalRecord.appointment_id == appointment_id)).first()
        return self._to_dto(r) if r else None

    def save(self, record: MedicalRecordDto) -> MedicalRecordDto:
        r = self.session.exec(select(MedicalRecord).where(MedicalRecord.id == record.id)).first()
        if not r:
            raise NotFound("Prescription not found")
        # appointment, patient, doctor and author never change
        r.diagnosis = record.diagnosis
        r.notes = record.notes
        r.prescription = list(record.prescription)
        r.follow_up_required = record.follow_up_required
        r.follow_up_date = record.follow_up_date
        r.follow_up_notes = record.follow_up_notes
        r.updated_at = record.updated_at
        self.session.add(r)
        self.session.commit()
        self.session.refresh(r)
        return self._to_dto(r)

    def list_for_doctor(self, doctor_id: str) -> List[MedicalRecordDto]:
        rows = self.session.exec(
            select(MedicalRecord).where(MedicalRecord.doctor_id == doctor_id).order_by(MedicalRecord.created_at.desc())
        ).all()
        return [self._to_dto(r) for r in rows]

    def list_for_patient(self, patient_id: str) -> List[MedicalRecordDto]:
        rows = self.session.exec(
            select(MedicalRecord).where(MedicalRecord.patient_id == patient_id).order_by(MedicalRecord.created_at.desc())
        ).all()
        return [self._to_dto(r) for r in rows]
