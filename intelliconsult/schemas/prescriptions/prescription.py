# intelliconsult/schemas/prescriptions/prescription.py
from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import date, datetime


class PrescriptionItem(BaseModel):
    medication: str = Field(..., max_length=200)
    dosage: str = ""
    frequency: str = ""
    duration: str = ""
    instructions: str = ""

    @validator("medication")
    def validate_medication(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Medication name is required")
        return v


class CreatePrescriptionRequest(BaseModel):
    appointment_id: str
    diagnosis: str = Field(..., max_length=1000)
    notes: str = Field("", max_length=2000)
    prescription: List[PrescriptionItem] = []
    follow_up_required: bool = False
    follow_up_date: Optional[date] = None
    follow_up_notes: Optional[str] = Field("", max_length=500)

    @validator("follow_up_date", pre=True)
    def blank_date(cls, v):
        return None if v == "" else v


class UpdatePrescriptionRequest(BaseModel):
    diagnosis: Optional[str] = Field(None, max_length=1000)
    notes: Optional[str] = Field(None, max_length=2000)
    prescription: Optional[List[PrescriptionItem]] = None
    follow_up_required: Optional[bool] = None
    follow_up_date: Optional[date] = None
    follow_up_notes: Optional[str] = Field(None, max_length=500)

    @validator("follow_up_date", pre=True)
    def blank_date(cls, v):
        return None if v == "" else v


class MedicalRecordResponse(BaseModel):
    id: str
    appointment_id: str
    patient_id: str
    doctor_id: str
    diagnosis: str
    notes: str
    prescription: List[PrescriptionItem]
    follow_up_required: bool
    follow_up_date: Optional[date] = None
    follow_up_notes: str = ""
    created_by: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_dto(cls, r) -> "MedicalRecordResponse":
        return cls(
            id=r.id,
            appointment_id=r.appointment_id,
            patient_id=r.patient_id,
            doctor_id=r.doctor_id,
            diagnosis=r.diagnosis,
            notes=r.notes,
            prescription=[PrescriptionItem(**item) for item in r.prescription],
            follow_up_required=r.follow_up_required,
            follow_up_date=r.follow_up_date,
            follow_up_notes=r.follow_up_notes,
            created_by=r.created_by,
            created_at=r.created_at,
            updated_at=r.updated_at,
        )


class PrescriptionResponse(BaseModel):
    success: bool = True
    message: str
    record: MedicalRecordResponse
