from typing import List, Optional
from datetime import date
from fastapi import APIRouter, Depends, Query
import logging

from ..core.dependencies import require_admin, get_admin_service
from ..application.ports.user_repo import UserSearch
from ..application.services.access_control import Caller
from ..application.services.admin_service import AdminService
from ..exceptions import ValidationError
from ..schemas.admin.admin import AdminActionResponse, UserListResponse
from ..schemas.appointments.appointment import AppointmentResponse
from ..schemas.users.user import UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])

STATUS_FILTERS = {"verified": True, "pending": False, "all": None}


@router.get("/users", response_model=UserListResponse)
def list_users(
    user_type: str = Query("doctor"),
    name: Optional[str] = Query(None),
    email: Optional[str] = Query(None),
    license: Optional[str] = Query(None),
    specialization: Optional[str] = Query(None),
    status: str = Query("all"),
    created_from: Optional[date] = Query(None),
    created_to: Optional[date] = Query(None),
    admin: Caller = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    if status not in STATUS_FILTERS:
        raise ValidationError("status must be one of: verified, pending, all")
    filters = UserSearch(
        name_prefix=name or None,
        email_prefix=email or None,
        license_prefix=license or None,
        specialization=specialization or None,
        is_verified=STATUS_FILTERS[status],
        created_from=created_from,
        created_to=created_to,
    )
    users = service.list_users(admin, user_type, filters)
    return UserListResponse(user_type=user_type, count=len(users), users=[UserResponse.from_dto(u) for u in users])


@router.get("/appointments", response_model=List[AppointmentResponse])
def list_appointments(admin: Caller = Depends(require_admin), service: AdminService = Depends(get_admin_service)):
    return [AppointmentResponse.from_dto(a) for a in service.list_appointments(admin)]


@router.get("/user/{user_id}", response_model=UserResponse)
def get_user(user_id: str, admin: Caller = Depends(require_admin), service: AdminService = Depends(get_admin_service)):
    return UserResponse.from_dto(service.get_user(admin, user_id))


@router.put("/verify-doctor/{doctor_id}", response_model=AdminActionResponse)
def verify_doctor(doctor_id: str, admin: Caller = Depends(require_admin), service: AdminService = Depends(get_admin_service)):
    user = service.verify_doctor(admin, doctor_id)
    return AdminActionResponse(message="Doctor verified successfully.", user=UserResponse.from_dto(user))


@router.put("/suspend-doctor/{doctor_id}", response_model=AdminActionResponse)
def suspend_doctor(doctor_id: str, admin: Caller = Depends(require_admin), service: AdminService = Depends(get_admin_service)):
    user = service.suspend_doctor(admin, doctor_id)
    return AdminActionResponse(message="Doctor suspended successfully.", user=UserResponse.from_dto(user))


@router.delete("/reject-doctor/{doctor_id}", response_model=AdminActionResponse)
def reject_doctor(doctor_id: str, admin: Caller = Depends(require_admin), service: AdminService = Depends(get_admin_service)):
    service.reject_doctor(admin, doctor_id)
    return AdminActionResponse(message="Doctor registration rejected and removed.")


@router.put("/verify-patient/{patient_id}", response_model=AdminActionResponse)
def verify_patient(patient_id: str, admin: Caller = Depends(require_admin), service: AdminService = Depends(get_admin_service)):
    user = service.verify_patient(admin, patient_id)
    return AdminActionResponse(message="Patient verified successfully.", user=UserResponse.from_dto(user))


@router.put("/suspend-patient/{patient_id}", response_model=AdminActionResponse)
def suspend_patient(patient_id: str, admin: Caller = Depends(require_admin), service: AdminService = Depends(get_admin_service)):
    user = service.suspend_patient(admin, patient_id)
    return AdminActionResponse(message="Patient suspended successfully.", user=UserResponse.from_dto(user))
