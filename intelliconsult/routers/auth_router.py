import logging
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import RedirectResponse

from ..core.config import settings
from ..core.dependencies import get_auth_service, auth_rate_limit
from ..application.ports.user_repo import DoctorProfileInput
from ..application.services.auth_service import AuthService
from ..schemas.auth.auth import SignupRequest, LoginRequest, ForgotPasswordRequest, ResetPasswordRequest
from ..schemas.users.user import UserResponse
from ..schemas.common.common import ApiResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/signup", response_model=ApiResponse, status_code=201)
def signup(payload: SignupRequest, auth_service: AuthService = Depends(get_auth_service)):
    doctor = None
    if payload.user_type == "doctor":
        doctor = DoctorProfileInput(
            specialization=payload.specialization,
            experience=payload.experience,
            license_number=payload.license_number,
            bio=payload.bio,
            consultation_fee=payload.consultation_fee,
        )
    try:
        user = auth_service.signup(payload.user_type, payload.full_name, payload.email, payload.password, doctor=doctor)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Signup failed: {e}")
        raise HTTPException(status_code=500, detail="Signup failed")
    return ApiResponse(
        message="Signup successful. Please check your email to verify your account.",
        data={"user": UserResponse.from_dto(user).model_dump(mode="json")},
    )


@router.get("/verify-email/{token}")
def verify_email(token: str, auth_service: AuthService = Depends(get_auth_service)):
    # Outcome is reported through the redirect, never as an error response
    verified = auth_service.verify_email(token)
    return RedirectResponse(url=f"{settings.CLIENT_URL}/login?verified={'true' if verified else 'false'}")


@router.post("/forgot-password", response_model=ApiResponse, dependencies=[Depends(auth_rate_limit)])
def forgot_password(payload: ForgotPasswordRequest, auth_service: AuthService = Depends(get_auth_service)):
    message = auth_service.request_password_reset(payload.email)
    return ApiResponse(message=message)


@router.put("/reset-password/{token}", response_model=ApiResponse)
def reset_password(token: str, payload: ResetPasswordRequest, auth_service: AuthService = Depends(get_auth_service)):
    auth_service.reset_password(token, payload.password)
    return ApiResponse(message="Password has been reset successfully. You can now log in.")


@router.post("/login", response_model=ApiResponse, dependencies=[Depends(auth_rate_limit)])
def login(payload: LoginRequest, auth_service: AuthService = Depends(get_auth_service)):
    result = auth_service.login(payload.email, payload.password, payload.user_type)
    return ApiResponse(
        message="Please complete your profile." if result.profile_incomplete else "Login successful",
        data={
            "token": result.token,
            "token_type": "bearer",
            "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            "profile_incomplete": result.profile_incomplete,
            "user": UserResponse.from_dto(result.user).model_dump(mode="json"),
        },
    )
