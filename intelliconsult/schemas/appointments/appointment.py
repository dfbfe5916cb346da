# intelliconsult/schemas/appointments/appointment.py
from pydantic import BaseModel, Field, validator
from typing import List, Optional, Dict, Any
from datetime import datetime
import re


def _parse_date(v: str) -> str:
    try:
        datetime.strptime(v, "%Y-%m-%d")
    except (TypeError, ValueError):
        raise ValueError("Invalid date format. Use YYYY-MM-DD")
    return v


class VisitIntake(BaseModel):
    patient_name_for_visit: str = Field(..., max_length=100)
    phone_number: str
    email: Optional[str] = None
    birth_date: str  # YYYY-MM-DD
    sex: Optional[str] = None
    primary_language: Optional[str] = None
    primary_reason: str = Field(..., max_length=1000)
    symptoms_list: List[str] = []
    symptoms_other: Optional[str] = None
    symptoms_begin: Optional[str] = None
    severe_symptoms_check: List[str]
    pre_existing_conditions: List[str] = []
    pre_existing_conditions_other: Optional[str] = None
    past_surgeries: Optional[str] = None
    family_history: List[str] = []
    family_history_other: Optional[str] = None
    allergies: Optional[str] = None
    medications: Optional[str] = None
    consent_to_ai: bool = False
    emergency_disclaimer_acknowledged: bool

    @validator("patient_name_for_visit", "primary_reason")
    def required_text(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("This field is required")
        return v

    @validator("phone_number")
    def validate_phone(cls, v):
        digits = re.sub(r"\D", "", v or "")
        if len(digits) != 10:
            raise ValueError("Phone number must be exactly 10 digits")
        return digits

    @validator("birth_date")
    def validate_birth_date(cls, v):
        v = _parse_date(v)
        if datetime.strptime(v, "%Y-%m-%d").date() > datetime.now().date():
            raise ValueError("Birth date cannot be in the future")
        return v

    @validator("severe_symptoms_check")
    def validate_severe_symptoms(cls, v):
        if not v:
            raise ValueError("Please answer the severe symptoms checklist")
        return v

    @validator("emergency_disclaimer_acknowledged")
    def validate_disclaimer(cls, v):
        if v is not True:
            raise ValueError("You must acknowledge the emergency disclaimer")
        return v


class SlotResponse(BaseModel):
    date: str  # YYYY-MM-DD
    time: str  # hh:mm AM


class SlotRequest(BaseModel):
    doctor_id: str
    date: str  # YYYY-MM-DD
    time: str  # hh:mm AM
    intake: VisitIntake

    @validator("date")
    def validate_date(cls, v):
        return _parse_date(v)


class CreatePaymentOrderRequest(SlotRequest):
    pass


class BookAppointmentRequest(SlotRequest):
    pass


class PaymentOrderResponse(BaseModel):
    success: bool = True
    order_id: str
    amount: int
    currency: str
    key_id: Optional[str] = None


class VerifyPaymentRequest(BaseModel):
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str


class TriageUpdateRequest(BaseModel):
    priority: Optional[str] = Field(None, description="P1 | P2 | P3 | P4")
    label: Optional[str] = Field(None, max_length=100)


class AppointmentResponse(BaseModel):
    id: str
    patient_id: str
    doctor_id: str
    date: str
    time: str
    intake: Dict[str, Any] = {}
    consultation_fee_at_booking: int
    status: str
    payment_status: str
    order_id: Optional[str] = None
    payment_id: Optional[str] = None
    triage_priority: Optional[str] = None
    triage_label: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    @classmethod
    def from_dto(cls, a) -> "AppointmentResponse":
        return cls(
            id=a.id,
            patient_id=a.patient_id,
            doctor_id=a.doctor_id,
            date=a.appointment_date.strftime("%Y-%m-%d"),
            time=a.appointment_time,
            intake=a.intake,
            consultation_fee_at_booking=a.consultation_fee_at_booking,
            status=a.status,
            payment_status=a.payment_status,
            order_id=a.order_id,
            payment_id=a.payment_id,
            triage_priority=a.triage_priority,
            triage_label=a.triage_label,
            created_at=a.created_at,
            completed_at=a.completed_at,
            cancelled_at=a.cancelled_at,
        )


class BookingResponse(BaseModel):
    success: bool = True
    message: str
    created: bool = True
    appointment: AppointmentResponse


class AppointmentActionResponse(BaseModel):
    message: str
    appointment: AppointmentResponse


class TriageResult(BaseModel):
    priority: str  # RED | YELLOW | GREEN | BLACK
    priority_level: str  # P1 .. P4
    label: str


class TriageResponse(BaseModel):
    success: bool = True
    triage: TriageResult
    cached: bool


class SummaryResponse(BaseModel):
    success: bool = True
    summary: str
    generated_at: Optional[datetime] = None
    cached: bool
