from dataclasses import replace
from datetime import timedelta

import pytest

from intelliconsult.application.ports.user_repo import UserDto, DoctorProfileDto
from intelliconsult.application.services.auth_service import AuthService, RESET_REQUEST_MESSAGE
from intelliconsult.exceptions import (
    AccountSuspended,
    DuplicateIdentity,
    EmailNotVerified,
    ExternalIdentityOnly,
    ExternalServiceFailure,
    InvalidCredentials,
    InvalidRole,
    NoPasswordSet,
    ValidationError,
)
from intelliconsult.utils import decode_jwt_token, hash_password, utcnow

from conftest import RecordingEmailSender


class FakeUserRepo:
    def __init__(self):
        self.users = {}
        self.tokens = {}
        self.reset_tokens = {}
        self._id = 0

    def _find(self, pred):
        return next((u for u in self.users.values() if pred(u)), None)

    def get_by_id(self, user_id):
        return self.users.get(user_id)

    def get_by_email(self, email):
        return self._find(lambda u: u.email == email)

    def get_by_email_and_role(self, email, user_type):
        return self._find(lambda u: u.email == email and u.user_type == user_type)

    def create(self, new_user):
        if self.get_by_email(new_user.email):
            raise DuplicateIdentity()
        self._id += 1
        now = utcnow()
        doctor = None
        if new_user.doctor is not None:
            d = new_user.doctor
            doctor = DoctorProfileDto(d.specialization, d.experience, d.license_number, d.bio,
                                      d.consultation_fee or 0, {}, 0.0, 0, None)
        user = UserDto(
            id=f"u{self._id}",
            user_type=new_user.user_type,
            full_name=new_user.full_name,
            email=new_user.email,
            password_hash=new_user.password_hash,
            google_id=new_user.google_id,
            is_email_verified=new_user.is_email_verified,
            is_verified=new_user.is_verified,
            is_profile_complete=new_user.is_profile_complete,
            created_at=now,
            updated_at=now,
            doctor=doctor,
        )
        self.users[user.id] = user
        return user

    def add(self, **fields):
        now = utcnow()
        self._id += 1
        base = dict(id=f"u{self._id}", user_type="patient", full_name="Test User", email="t@example.com",
                    password_hash=hash_password("Password123"), google_id=None, is_email_verified=True,
                    is_verified=True, is_profile_complete=True, created_at=now, updated_at=now)
        base.update(fields)
        user = UserDto(**base)
        self.users[user.id] = user
        return user

    def delete(self, user_id):
        self.users.pop(user_id, None)

    def set_email_verification(self, user_id, token_hash, expires):
        self.tokens[user_id] = token_hash
        self.users[user_id] = replace(self.users[user_id], email_verification_expires=expires)

    def find_by_email_token(self, token_hash):
        user_id = next((uid for uid, h in self.tokens.items() if h == token_hash), None)
        return self.users.get(user_id) if user_id else None

    def mark_email_verified(self, user_id):
        self.tokens.pop(user_id, None)
        self.users[user_id] = replace(self.users[user_id], is_email_verified=True, email_verification_expires=None)

    def set_password_reset(self, user_id, token_hash, expires):
        if token_hash is None:
            self.reset_tokens.pop(user_id, None)
        else:
            self.reset_tokens[user_id] = token_hash
        self.users[user_id] = replace(self.users[user_id], password_reset_expires=expires)

    def find_by_reset_token(self, token_hash):
        user_id = next((uid for uid, h in self.reset_tokens.items() if h == token_hash), None)
        return self.users.get(user_id) if user_id else None

    def update_password(self, user_id, password_hash):
        self.reset_tokens.pop(user_id, None)
        self.users[user_id] = replace(self.users[user_id], password_hash=password_hash, password_reset_expires=None)


class RecordingAudit:
    def __init__(self):
        self.entries = []

    def log(self, action, email, user_id=None, success=True, details=None):
        self.entries.append((action, email, success))


def make_service(repo=None, sender=None):
    return AuthService(repo or FakeUserRepo(), sender or RecordingEmailSender(), audit=RecordingAudit())


# ---- signup ----

def test_signup_rejects_unknown_role():
    svc = make_service()
    with pytest.raises(InvalidRole):
        svc.signup("nurse", "Nina", "nina@example.com", "Password123")


def test_signup_rejects_email_used_by_another_role():
    repo = FakeUserRepo()
    repo.add(email="shared@example.com", user_type="doctor")
    svc = make_service(repo)
    with pytest.raises(DuplicateIdentity):
        svc.signup("patient", "Pat", "Shared@Example.com ", "Password123")
    assert len(repo.users) == 1


def test_signup_patient_sends_verification_and_stores_hashed_token():
    repo = FakeUserRepo()
    sender = RecordingEmailSender()
    svc = make_service(repo, sender)
    user = svc.signup("patient", "Pat", "pat@example.com", "Password123")

    assert user.is_verified is True
    assert user.is_email_verified is False
    token = sender.last_token("/api/auth/verify-email")
    assert token is not None
    # Only the keyed hash is stored
    assert repo.tokens[user.id] != token
    assert len(repo.tokens[user.id]) == 64


def test_signup_doctor_starts_pending_and_incomplete_without_details():
    svc = make_service()
    user = svc.signup("doctor", "Dr. Who", "who@example.com", "Password123")
    assert user.is_verified is False
    assert user.is_profile_complete is False


def test_signup_rolls_back_when_verification_email_fails():
    repo = FakeUserRepo()
    svc = make_service(repo, RecordingEmailSender(fail=True))
    with pytest.raises(ExternalServiceFailure):
        svc.signup("patient", "Pat", "pat@example.com", "Password123")
    assert repo.users == {}


# ---- login check order ----

def test_login_unknown_role_checked_first():
    svc = make_service()
    with pytest.raises(InvalidRole):
        svc.login("nobody@example.com", "x", "superuser")


def test_login_unknown_user():
    svc = make_service()
    with pytest.raises(InvalidCredentials):
        svc.login("nobody@example.com", "Password123", "patient")


def test_login_looks_only_in_requested_role():
    repo = FakeUserRepo()
    repo.add(email="doc@example.com", user_type="doctor")
    svc = make_service(repo)
    with pytest.raises(InvalidCredentials):
        svc.login("doc@example.com", "Password123", "patient")


def test_login_external_identity_only():
    repo = FakeUserRepo()
    repo.add(email="g@example.com", password_hash=None, google_id="google-123")
    with pytest.raises(ExternalIdentityOnly):
        make_service(repo).login("g@example.com", "whatever", "patient")


def test_login_no_password_set():
    repo = FakeUserRepo()
    repo.add(email="np@example.com", password_hash=None)
    with pytest.raises(NoPasswordSet):
        make_service(repo).login("np@example.com", "whatever", "patient")


def test_login_wrong_password():
    repo = FakeUserRepo()
    repo.add(email="p@example.com")
    with pytest.raises(InvalidCredentials):
        make_service(repo).login("p@example.com", "WrongPassword", "patient")


def test_suspended_and_unverified_reports_suspended():
    repo = FakeUserRepo()
    repo.add(email="s@example.com", is_verified=False, is_email_verified=False)
    with pytest.raises(AccountSuspended):
        make_service(repo).login("s@example.com", "Password123", "patient")


def test_unverified_email_blocks_login():
    repo = FakeUserRepo()
    repo.add(email="u@example.com", is_email_verified=False)
    with pytest.raises(EmailNotVerified) as exc:
        make_service(repo).login("u@example.com", "Password123", "patient")
    assert exc.value.status_code == 401


def test_login_issues_token_with_identity_and_flags_incomplete_profile():
    repo = FakeUserRepo()
    user = repo.add(email="admin@example.com", user_type="admin", is_profile_complete=False)
    result = make_service(repo).login("admin@example.com", "Password123", "admin")

    payload = decode_jwt_token(result.token)
    assert payload["sub"] == user.id
    assert payload["user_type"] == "admin"
    assert result.profile_incomplete is True


# ---- email verification ----

def test_verify_email_consumes_token_once():
    repo = FakeUserRepo()
    sender = RecordingEmailSender()
    svc = make_service(repo, sender)
    user = svc.signup("patient", "Pat", "pat@example.com", "Password123")
    token = sender.last_token("/api/auth/verify-email")

    assert svc.verify_email(token) is True
    assert repo.get_by_id(user.id).is_email_verified is True
    assert svc.verify_email(token) is False


def test_verify_email_expired_token_fails():
    repo = FakeUserRepo()
    sender = RecordingEmailSender()
    svc = make_service(repo, sender)
    user = svc.signup("patient", "Pat", "pat@example.com", "Password123")
    token = sender.last_token("/api/auth/verify-email")

    svc.now = lambda: utcnow() + timedelta(minutes=11)
    assert svc.verify_email(token) is False
    assert repo.get_by_id(user.id).is_email_verified is False


# ---- password reset ----

def test_forgot_password_same_message_for_unknown_email():
    repo = FakeUserRepo()
    repo.add(email="known@example.com")
    sender = RecordingEmailSender()
    svc = make_service(repo, sender)

    assert svc.request_password_reset("unknown@example.com") == RESET_REQUEST_MESSAGE
    assert sender.sent == []
    assert svc.request_password_reset("known@example.com") == RESET_REQUEST_MESSAGE
    assert len(sender.sent) == 1


def test_forgot_password_email_failure_clears_token():
    repo = FakeUserRepo()
    user = repo.add(email="known@example.com")
    svc = make_service(repo, RecordingEmailSender(fail=True))
    assert svc.request_password_reset("known@example.com") == RESET_REQUEST_MESSAGE
    assert user.id not in repo.reset_tokens


def test_reset_password_flow():
    repo = FakeUserRepo()
    repo.add(email="known@example.com")
    sender = RecordingEmailSender()
    svc = make_service(repo, sender)
    svc.request_password_reset("known@example.com")
    token = sender.last_token("/reset-password")

    svc.reset_password(token, "NewPassword456")
    assert svc.login("known@example.com", "NewPassword456", "patient").token
    with pytest.raises(ValidationError):
        svc.reset_password(token, "AnotherPassword789")


def test_reset_password_rejects_expired_token():
    repo = FakeUserRepo()
    repo.add(email="known@example.com")
    sender = RecordingEmailSender()
    svc = make_service(repo, sender)
    svc.request_password_reset("known@example.com")
    token = sender.last_token("/reset-password")

    svc.now = lambda: utcnow() + timedelta(minutes=30)
    with pytest.raises(ValidationError):
        svc.reset_password(token, "NewPassword456")
