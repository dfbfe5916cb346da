from typing import List
from fastapi import APIRouter, Depends, HTTPException, Response
import logging

from ..core.dependencies import get_current_caller, get_prescription_service
from ..application.services.access_control import Caller
from ..exceptions import AccessDenied
from ..application.services.prescription_service import PrescriptionService
from ..schemas.prescriptions.prescription import (
    CreatePrescriptionRequest,
    MedicalRecordResponse,
    PrescriptionResponse,
    UpdatePrescriptionRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/prescriptions", tags=["Prescriptions"])


@router.post("", response_model=PrescriptionResponse, status_code=201)
def create_prescription(
    payload: CreatePrescriptionRequest,
    caller: Caller = Depends(get_current_caller),
    service: PrescriptionService = Depends(get_prescription_service),
):
    try:
        record = service.create(
            caller,
            appointment_id=payload.appointment_id,
            diagnosis=payload.diagnosis,
            notes=payload.notes,
            prescription=[item.model_dump() for item in payload.prescription],
            follow_up_required=payload.follow_up_required,
            follow_up_date=payload.follow_up_date,
            follow_up_notes=payload.follow_up_notes or "",
        )
        return PrescriptionResponse(message="Prescription created successfully", record=MedicalRecordResponse.from_dto(record))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating prescription: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to create prescription")


@router.get("/doctor", response_model=List[MedicalRecordResponse])
def doctor_prescriptions(
    caller: Caller = Depends(get_current_caller),
    service: PrescriptionService = Depends(get_prescription_service),
):
    if caller.user_type != "doctor":
        raise AccessDenied("Access denied. Not a doctor.")
    return [MedicalRecordResponse.from_dto(r) for r in service.list_for_caller(caller)]


@router.get("/patient", response_model=List[MedicalRecordResponse])
def patient_prescriptions(
    caller: Caller = Depends(get_current_caller),
    service: PrescriptionService = Depends(get_prescription_service),
):
    if caller.user_type != "patient":
        raise AccessDenied("Access denied. Not a patient.")
    return [MedicalRecordResponse.from_dto(r) for r in service.list_for_caller(caller)]


@router.get("/appointment/{appointment_id}", response_model=MedicalRecordResponse)
def prescription_for_appointment(
    appointment_id: str,
    caller: Caller = Depends(get_current_caller),
    service: PrescriptionService = Depends(get_prescription_service),
):
    return MedicalRecordResponse.from_dto(service.get_by_appointment(caller, appointment_id))


@router.put("/{record_id}", response_model=PrescriptionResponse)
def update_prescription(
    record_id: str,
    payload: UpdatePrescriptionRequest,
    caller: Caller = Depends(get_current_caller),
    service: PrescriptionService = Depends(get_prescription_service),
):
    # Only fields the client actually sent take part in the merge
    changes = payload.model_dump(exclude_unset=True)
    record = service.update(caller, record_id, changes)
    return PrescriptionResponse(message="Prescription updated successfully", record=MedicalRecordResponse.from_dto(record))


@router.get("/{record_id}", response_model=MedicalRecordResponse)
def get_prescription(
    record_id: str,
    caller: Caller = Depends(get_current_caller),
    service: PrescriptionService = Depends(get_prescription_service),
):
    return MedicalRecordResponse.from_dto(service.get_by_id(caller, record_id))


@router.get("/{record_id}/pdf")
def prescription_pdf(
    record_id: str,
    caller: Caller = Depends(get_current_caller),
    service: PrescriptionService = Depends(get_prescription_service),
):
    try:
        pdf = service.render_pdf(caller, record_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"PDF generation failed for record {record_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to generate prescription PDF")
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="prescription-{record_id}.pdf"'},
    )
