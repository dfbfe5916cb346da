import hashlib
import hmac
import secrets
import jwt
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from passlib.context import CryptContext

from .core.config import settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


# =========================
# Time
# =========================
def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to values read back from backends that drop the offset (SQLite)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# =========================
# Password hashing
# =========================
def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        # Malformed hash in storage
        return False


# =========================
# Single-use tokens (email verification, password reset)
# =========================
def generate_token() -> str:
    """Generate a URL-safe random token that is only ever sent to the user."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """Keyed hash of a single-use token; only this value is persisted."""
    return hmac.new(settings.SECRET_KEY.encode(), token.encode(), hashlib.sha256).hexdigest()


# =========================
# JWT Token Handling
# =========================
def create_jwt_token(data: Dict[str, Any], expires_minutes: Optional[int] = None) -> str:
    """Create JWT access token (1 hour unless configured otherwise)"""
    to_encode = data.copy()
    expire = utcnow() + timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire, "type": "access"})

    # Ensure SECRET_KEY is properly set
    if not settings.secret_configured:
        raise ValueError("SECRET_KEY not properly configured")

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_session_token(user_id: str, user_type: str) -> str:
    return create_jwt_token({"sub": user_id, "user_type": user_type})


def decode_jwt_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode and verify JWT token"""
    if not settings.secret_configured:
        return None
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None
    if payload.get("type") != "access":
        return None
    return payload


def hash_email(email: str) -> str:
    """One-way hash used when an email address has to appear in logs"""
    return hashlib.sha256(email.strip().lower().encode()).hexdigest()


def normalize_email(email: str) -> str:
    return email.strip().lower()
