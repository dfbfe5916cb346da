import logging
from functools import lru_cache
from typing import Optional
from fastapi import BackgroundTasks, Depends, HTTPException, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session

from .config import settings
from ..database import get_session
from ..exceptions import NotFound, TooManyRequests
from ..utils import decode_jwt_token
from ..application.ports.ai_provider import AIProvider
from ..application.ports.email_sender import EmailSender
from ..application.ports.payment_gateway import PaymentGateway
from ..application.ports.rate_limiter import RateLimiter
from ..application.services.access_control import Caller, require_role
from ..application.services.auth_service import AuthService
from ..application.services.booking_service import BookingService
from ..application.services.appointments_service import AppointmentsService
from ..application.services.prescription_service import PrescriptionService
from ..application.services.admin_service import AdminService
from ..application.services.profile_service import ProfileService
from ..application.services.schedule_service import ScheduleService
from ..application.services.review_service import ReviewService
from ..application.services.doctor_directory_service import DoctorDirectoryService
from ..application.services.intake_insights_service import IntakeInsightsService
from ..infrastructure.persistence.sqlalchemy.repositories.user_repository_sql import SqlUserRepository
from ..infrastructure.persistence.sqlalchemy.repositories.appointments_repository_sql import SqlAppointmentsRepository
from ..infrastructure.persistence.sqlalchemy.repositories.medical_records_repository_sql import SqlMedicalRecordRepository
from ..infrastructure.persistence.sqlalchemy.repositories.payment_orders_repository_sql import SqlPaymentOrderRepository
from ..infrastructure.persistence.sqlalchemy.repositories.schedule_repository_sql import SqlScheduleRepository
from ..infrastructure.persistence.sqlalchemy.repositories.reviews_repository_sql import SqlReviewRepository
from ..infrastructure.email.console_sender import ConsoleEmailSender
from ..infrastructure.email.smtp_sender import SmtpEmailSender
from ..infrastructure.notifications.email_notifier import EmailNotifier
from ..infrastructure.documents.prescription_pdf import ReportLabPrescriptionRenderer
from ..infrastructure.rate_limit.memory_rate_limiter import InMemoryRateLimiter
from ..infrastructure.audit.std_logger import StdAuditLogger

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


# ------------------------
# Authentication
# ------------------------
def get_current_caller(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> Caller:
    if not credentials or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Authentication required")
    payload = decode_jwt_token(credentials.credentials)
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    user_id = payload.get("sub")
    user_type = payload.get("user_type")
    if not user_id or not user_type:
        logger.warning("JWT token missing subject or user type")
        raise HTTPException(status_code=401, detail="Invalid token")
    return Caller(user_id=str(user_id), user_type=str(user_type))


def require_admin(caller: Caller = Depends(get_current_caller), session: Session = Depends(get_session)) -> Caller:
    """Role is checked once per request; the admin must also still exist."""
    require_role(caller, "admin")
    admin = SqlUserRepository(session).get_by_id(caller.user_id)
    if not admin or admin.user_type != "admin":
        raise NotFound("Admin user not found.")
    return caller


# ------------------------
# Adapters
# ------------------------
def get_email_sender() -> EmailSender:
    if settings.EMAIL_BACKEND == "console":
        return ConsoleEmailSender()
    return SmtpEmailSender(
        host=settings.EMAIL_HOST,
        port=settings.EMAIL_PORT,
        username=settings.EMAIL_USER,
        password=settings.EMAIL_PASSWORD,
        from_email=settings.EMAIL_FROM,
        from_name=settings.EMAIL_FROM_NAME,
        use_ssl=settings.EMAIL_USE_SSL,
    )


def get_payment_gateway() -> Optional[PaymentGateway]:
    if not settings.RAZORPAY_KEY_ID or not settings.RAZORPAY_KEY_SECRET:
        return None
    from ..infrastructure.payments.razorpay_gateway import RazorpayGateway
    return RazorpayGateway(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET)


@lru_cache()
def get_ai_provider() -> Optional[AIProvider]:
    if not settings.GEMINI_API_KEY:
        return None
    from ..infrastructure.ai.gemini_provider import GeminiProvider
    return GeminiProvider(settings.GEMINI_API_KEY, settings.GEMINI_MODEL)


@lru_cache()
def get_rate_limiter() -> RateLimiter:
    if settings.REDIS_URL:
        from ..infrastructure.rate_limit.redis_rate_limiter import RedisRateLimiter
        return RedisRateLimiter(settings.REDIS_URL)
    return InMemoryRateLimiter()


def auth_rate_limit(request: Request, limiter: RateLimiter = Depends(get_rate_limiter)) -> None:
    client_ip = request.client.host if request.client else "unknown"
    key = f"{request.url.path}:{client_ip}"
    if not limiter.allow(key, settings.AUTH_RATE_LIMIT_MAX_REQUESTS, settings.AUTH_RATE_LIMIT_WINDOW_SEC):
        logger.warning(f"Rate limit exceeded for {key}")
        raise TooManyRequests()


def get_notifier(background_tasks: BackgroundTasks, sender: EmailSender = Depends(get_email_sender)) -> EmailNotifier:
    return EmailNotifier(sender, background_tasks)


# ------------------------
# Services
# ------------------------
def get_auth_service(session: Session = Depends(get_session), sender: EmailSender = Depends(get_email_sender)) -> AuthService:
    return AuthService(SqlUserRepository(session), sender, audit=StdAuditLogger())


def get_booking_service(
    session: Session = Depends(get_session),
    gateway: Optional[PaymentGateway] = Depends(get_payment_gateway),
) -> BookingService:
    return BookingService(
        user_repo=SqlUserRepository(session),
        appointments_repo=SqlAppointmentsRepository(session),
        orders_repo=SqlPaymentOrderRepository(session),
        schedule_repo=SqlScheduleRepository(session),
        gateway=gateway,
    )


def get_appointments_service(session: Session = Depends(get_session)) -> AppointmentsService:
    return AppointmentsService(SqlAppointmentsRepository(session))


def get_intake_insights_service(
    session: Session = Depends(get_session),
    ai_provider: Optional[AIProvider] = Depends(get_ai_provider),
) -> IntakeInsightsService:
    return IntakeInsightsService(SqlAppointmentsRepository(session), ai_provider)


def get_prescription_service(
    session: Session = Depends(get_session),
    notifier: EmailNotifier = Depends(get_notifier),
) -> PrescriptionService:
    return PrescriptionService(
        records_repo=SqlMedicalRecordRepository(session),
        appointments_repo=SqlAppointmentsRepository(session),
        user_repo=SqlUserRepository(session),
        notifier=notifier,
        renderer=ReportLabPrescriptionRenderer(font_path=settings.PDF_FONT_PATH, bold_font_path=settings.PDF_BOLD_FONT_PATH),
    )


def get_admin_service(
    session: Session = Depends(get_session),
    notifier: EmailNotifier = Depends(get_notifier),
) -> AdminService:
    return AdminService(SqlUserRepository(session), SqlAppointmentsRepository(session), notifier=notifier, audit=StdAuditLogger())


def get_profile_service(session: Session = Depends(get_session)) -> ProfileService:
    return ProfileService(SqlUserRepository(session))


def get_schedule_service(session: Session = Depends(get_session)) -> ScheduleService:
    return ScheduleService(SqlUserRepository(session), SqlScheduleRepository(session))


def get_review_service(session: Session = Depends(get_session)) -> ReviewService:
    return ReviewService(SqlReviewRepository(session), SqlAppointmentsRepository(session), SqlUserRepository(session))


def get_doctor_directory_service(session: Session = Depends(get_session)) -> DoctorDirectoryService:
    return DoctorDirectoryService(SqlUserRepository(session))
