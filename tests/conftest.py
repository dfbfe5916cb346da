import os

# Must be in place before the package reads its settings
os.environ["JWT_SECRET_KEY"] = "test-secret-key-0123456789abcdef"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["EMAIL_BACKEND"] = "console"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RAZORPAY_KEY_ID"] = ""
os.environ["RAZORPAY_KEY_SECRET"] = ""
os.environ["REDIS_URL"] = ""

import hashlib
import hmac
import re
from datetime import date, timedelta
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel, Session

from intelliconsult.database import build_engine, get_session
from intelliconsult.exceptions import ExternalServiceFailure
from intelliconsult.application.ports.payment_gateway import GatewayOrder
from intelliconsult.application.ports.user_repo import NewUser, DoctorProfileInput
from intelliconsult.infrastructure.persistence.sqlalchemy.repositories.user_repository_sql import SqlUserRepository
from intelliconsult.infrastructure.rate_limit.memory_rate_limiter import InMemoryRateLimiter
from intelliconsult.utils import hash_password, create_session_token

GATEWAY_SECRET = "rzp_test_secret"
WEEKDAY_HOURS = {
    day: {"enabled": True, "start": "09:00", "end": "17:00"}
    for day in ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
}


class RecordingEmailSender:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: List[tuple] = []

    def send(self, to: str, subject: str, html: str) -> None:
        if self.fail:
            raise ExternalServiceFailure("Could not send email.")
        self.sent.append((to, subject, html))

    def last_token(self, path: str) -> Optional[str]:
        for _, _, html in reversed(self.sent):
            match = re.search(path + r"/([0-9a-f]{64})", html)
            if match:
                return match.group(1)
        return None


def expected_signature(order_id: str, payment_id: str, key_secret: str) -> str:
    """What the checkout widget sends back: hex HMAC-SHA256 over "order_id|payment_id"."""
    return hmac.new(key_secret.encode(), f"{order_id}|{payment_id}".encode(), hashlib.sha256).hexdigest()


class FakePaymentGateway:
    def __init__(self, secret: str = GATEWAY_SECRET):
        self.secret = secret
        self.orders = []

    def create_order(self, amount: int, currency: str, receipt: str) -> GatewayOrder:
        order = GatewayOrder(order_id=f"order_test_{len(self.orders) + 1}", amount=amount, currency=currency)
        self.orders.append(order)
        return order

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        return expected_signature(order_id, payment_id, self.secret) == signature


class FakeAIProvider:
    def __init__(self, reply: str = '{"priority": "YELLOW", "priorityLevel": "P2", "label": "Urgent"}', fail: bool = False):
        self.reply = reply
        self.fail = fail
        self.calls: List[dict] = []

    def generate_text(self, prompt: str, temperature: float = 0.0, json_output: bool = False) -> str:
        self.calls.append({"prompt": prompt, "temperature": temperature, "json_output": json_output})
        if self.fail:
            raise RuntimeError("model unavailable")
        return self.reply


def sign(order_id: str, payment_id: str) -> str:
    return expected_signature(order_id, payment_id, GATEWAY_SECRET)


def valid_intake(**overrides) -> dict:
    intake = {
        "patient_name_for_visit": "Asha Rao",
        "phone_number": "98765-43210",
        "birth_date": "1990-05-17",
        "primary_reason": "Persistent headache",
        "symptoms_list": ["headache"],
        "severe_symptoms_check": ["none"],
        "emergency_disclaimer_acknowledged": True,
    }
    intake.update(overrides)
    return intake


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def make_user(session):
    repo = SqlUserRepository(session)
    counter = {"n": 0}

    def _make(user_type: str = "patient", email: Optional[str] = None, password: Optional[str] = "Password123",
              is_verified: bool = True, is_email_verified: bool = True, google_id: Optional[str] = None,
              fee: int = 500, working_hours: Optional[dict] = None, full_name: Optional[str] = None,
              is_profile_complete: bool = True):
        counter["n"] += 1
        n = counter["n"]
        doctor = None
        if user_type == "doctor":
            doctor = DoctorProfileInput(
                specialization="Cardiology",
                experience=10,
                license_number=f"LIC-{n:04d}",
                bio="Heart specialist",
                consultation_fee=fee,
            )
        user = repo.create(NewUser(
            user_type=user_type,
            full_name=full_name or f"{user_type.capitalize()} {n}",
            email=email or f"{user_type}{n}@example.com",
            password_hash=hash_password(password) if password else None,
            google_id=google_id,
            is_email_verified=is_email_verified,
            is_verified=is_verified,
            is_profile_complete=is_profile_complete,
            doctor=doctor,
        ))
        if user_type == "doctor":
            repo.set_working_hours(user.id, WEEKDAY_HOURS if working_hours is None else working_hours)
            if is_verified:
                repo.set_verified(user.id, True)
            user = repo.get_by_id(user.id)
        return user

    return _make


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_session_token(user.id, user.user_type)}"}


@pytest.fixture
def email_sender():
    return RecordingEmailSender()


@pytest.fixture
def gateway():
    return FakePaymentGateway()


@pytest.fixture
def client(engine, email_sender, gateway):
    from intelliconsult.main import app
    from intelliconsult.core import dependencies

    def _session():
        with Session(engine) as s:
            yield s

    limiter = InMemoryRateLimiter()
    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[dependencies.get_email_sender] = lambda: email_sender
    app.dependency_overrides[dependencies.get_payment_gateway] = lambda: gateway
    app.dependency_overrides[dependencies.get_rate_limiter] = lambda: limiter
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def future_weekday_slot(days_ahead: int = 2) -> tuple:
    d = date.today() + timedelta(days=days_ahead)
    return d.strftime("%Y-%m-%d"), "10:00 AM"
