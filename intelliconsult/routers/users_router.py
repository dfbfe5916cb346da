from fastapi import APIRouter, Depends
import logging

from ..core.dependencies import get_current_caller, get_profile_service
from ..application.ports.user_repo import DoctorProfileInput
from ..application.services.access_control import Caller
from ..application.services.profile_service import ProfileService
from ..schemas.users.user import CompleteProfileRequest, UpdateProfileRequest, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("/profile", response_model=UserResponse)
def get_profile(caller: Caller = Depends(get_current_caller), profile_service: ProfileService = Depends(get_profile_service)):
    return UserResponse.from_dto(profile_service.get_profile(caller))


@router.put("/profile", response_model=UserResponse)
def update_profile(
    payload: UpdateProfileRequest,
    caller: Caller = Depends(get_current_caller),
    profile_service: ProfileService = Depends(get_profile_service),
):
    return UserResponse.from_dto(profile_service.update_profile(caller, payload.full_name))


@router.put("/complete-profile", response_model=UserResponse)
def complete_profile(
    payload: CompleteProfileRequest,
    caller: Caller = Depends(get_current_caller),
    profile_service: ProfileService = Depends(get_profile_service),
):
    doctor = DoctorProfileInput(
        specialization=payload.specialization,
        experience=payload.experience,
        license_number=payload.license_number,
        bio=payload.bio,
        consultation_fee=payload.consultation_fee,
    )
    user = profile_service.complete_profile(caller, payload.full_name, doctor)
    logger.info(f"Profile completed for user {caller.user_id}")
    return UserResponse.from_dto(user)
