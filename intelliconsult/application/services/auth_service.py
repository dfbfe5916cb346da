import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional

from ..ports.user_repo import UserRepository, UserDto, NewUser, DoctorProfileInput, USER_TYPES
from ..ports.email_sender import EmailSender
from ..ports.audit_logger import AuditLogger
from . import email_templates
from ...core.config import settings
from ...exceptions import (
    InvalidRole,
    DuplicateIdentity,
    InvalidCredentials,
    ExternalIdentityOnly,
    NoPasswordSet,
    AccountSuspended,
    EmailNotVerified,
    ExternalServiceFailure,
    ValidationError,
)
from ...utils import (
    hash_password,
    verify_password,
    generate_token,
    hash_token,
    create_session_token,
    normalize_email,
    utcnow,
)

logger = logging.getLogger(__name__)

RESET_REQUEST_MESSAGE = "If an account with that email exists, a password reset link has been sent."


@dataclass
class LoginResult:
    token: str
    user: UserDto

    @property
    def profile_incomplete(self) -> bool:
        return not self.user.is_profile_complete


@dataclass
class AuthService:
    user_repo: UserRepository
    email_sender: EmailSender
    audit: Optional[AuditLogger] = None
    now: Callable[[], datetime] = field(default=utcnow)

    def _audit(self, action: str, email: str, user_id: Optional[str] = None, success: bool = True, **details) -> None:
        if self.audit:
            self.audit.log(action, email, user_id=user_id, success=success, details=details or None)

    def signup(self, user_type: str, full_name: str, email: str, password: Optional[str] = None,
               google_id: Optional[str] = None, doctor: Optional[DoctorProfileInput] = None) -> UserDto:
        if user_type not in USER_TYPES:
            raise InvalidRole()
        email = normalize_email(email)
        if not email or not full_name or not full_name.strip():
            raise ValidationError("Full name and email are required.")
        # One email across every role
        if self.user_repo.get_by_email(email):
            self._audit("signup", email, success=False, reason="duplicate")
            raise DuplicateIdentity()

        new_user = NewUser(
            user_type=user_type,
            full_name=full_name.strip(),
            email=email,
            password_hash=hash_password(password) if password else None,
            google_id=google_id,
            # Doctors wait for admin approval
            is_verified=user_type != "doctor",
        )
        if user_type == "doctor":
            new_user.doctor = doctor or DoctorProfileInput()
            new_user.is_profile_complete = new_user.doctor.is_complete
        elif user_type == "admin":
            new_user.is_profile_complete = google_id is None

        user = self.user_repo.create(new_user)

        token = generate_token()
        expires = self.now() + timedelta(minutes=settings.EMAIL_TOKEN_EXPIRE_MINUTES)
        self.user_repo.set_email_verification(user.id, hash_token(token), expires)
        link = f"{settings.API_BASE_URL}/api/auth/verify-email/{token}"
        subject, html = email_templates.verification_email(user.full_name, link)
        try:
            self.email_sender.send(user.email, subject, html)
        except Exception as e:
            logger.error(f"Verification email failed for user {user.id}, rolling back signup: {e}")
            self.user_repo.delete(user.id)
            self._audit("signup", email, user_id=user.id, success=False, reason="email_failed")
            raise ExternalServiceFailure("Could not send verification email. Please try again later.")

        self._audit("signup", email, user_id=user.id, user_type=user_type)
        return user

    def login(self, email: str, password: str, user_type: str) -> LoginResult:
        # Check order decides which message the user sees; keep it fixed
        if user_type not in USER_TYPES:
            raise InvalidRole()
        email = normalize_email(email)
        user = self.user_repo.get_by_email_and_role(email, user_type)
        if not user:
            self._audit("login", email, success=False, reason="unknown_user")
            raise InvalidCredentials()
        if user.google_id and not user.password_hash:
            raise ExternalIdentityOnly()
        if not user.password_hash:
            raise NoPasswordSet()
        if not verify_password(password or "", user.password_hash):
            self._audit("login", email, user_id=user.id, success=False, reason="bad_password")
            raise InvalidCredentials()
        if not user.is_verified:
            self._audit("login", email, user_id=user.id, success=False, reason="suspended")
            raise AccountSuspended()
        if not user.is_email_verified:
            raise EmailNotVerified()

        token = create_session_token(user.id, user.user_type)
        self._audit("login", email, user_id=user.id)
        return LoginResult(token=token, user=user)

    def verify_email(self, token: str) -> bool:
        """Consume a verification token. Returns False for unknown or expired tokens."""
        user = self.user_repo.find_by_email_token(hash_token(token))
        if not user:
            return False
        if not user.email_verification_expires or user.email_verification_expires < self.now():
            return False
        self.user_repo.mark_email_verified(user.id)
        self._audit("verify_email", user.email, user_id=user.id)
        return True

    def request_password_reset(self, email: str) -> str:
        email = normalize_email(email)
        user = self.user_repo.get_by_email(email)
        if user:
            token = generate_token()
            expires = self.now() + timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES)
            self.user_repo.set_password_reset(user.id, hash_token(token), expires)
            link = f"{settings.CLIENT_URL}/reset-password/{token}"
            subject, html = email_templates.password_reset_email(user.full_name, link)
            try:
                self.email_sender.send(user.email, subject, html)
                self._audit("password_reset_requested", email, user_id=user.id)
            except Exception as e:
                logger.error(f"Password reset email failed for user {user.id}: {e}")
                self.user_repo.set_password_reset(user.id, None, None)
                self._audit("password_reset_requested", email, user_id=user.id, success=False)
        # Same answer whether or not the account exists
        return RESET_REQUEST_MESSAGE

    def reset_password(self, token: str, new_password: str) -> None:
        if not new_password or len(new_password) < 8:
            raise ValidationError("Password must be at least 8 characters long.")
        user = self.user_repo.find_by_reset_token(hash_token(token))
        if not user or not user.password_reset_expires or user.password_reset_expires < self.now():
            raise ValidationError("Password reset token is invalid or has expired.")
        self.user_repo.update_password(user.id, hash_password(new_password))
        self._audit("password_reset", user.email, user_id=user.id)
