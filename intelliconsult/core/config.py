# intelliconsult/core/config.py
import os
from pydantic_settings import BaseSettings
from pydantic import Field
from pydantic_settings import SettingsConfigDict
from typing import Optional, List
from functools import lru_cache
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Application Settings
    APP_NAME: str = "IntelliConsult API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    DOCS_ENABLED: bool = True

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = int(os.environ.get("PORT", 8000))

    # Database Settings
    DATABASE_URL: str = "sqlite:///./intelliconsult.db"

    # Security Settings
    SECRET_KEY: str = Field(default="change-me-in-prod", alias="JWT_SECRET_KEY")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    EMAIL_TOKEN_EXPIRE_MINUTES: int = 10
    RESET_TOKEN_EXPIRE_MINUTES: int = 10
    BCRYPT_ROUNDS: int = 12

    # Links used in emails and redirects
    CLIENT_URL: str = "http://localhost:5173"
    API_BASE_URL: str = "http://localhost:8000"

    # CORS Settings
    ALLOWED_ORIGINS: str = "*"
    CORS_ALLOW_CREDENTIALS: bool = True

    # Middleware settings
    MAX_REQUEST_SIZE: int = 1024 * 1024  # 1MB
    GZIP_MIN_SIZE: int = 500

    # Email Settings
    EMAIL_BACKEND: str = "smtp"  # smtp | console
    EMAIL_HOST: str = "smtp.sendgrid.net"
    EMAIL_PORT: int = 465
    EMAIL_USE_SSL: bool = True  # False: plain connection upgraded with STARTTLS
    EMAIL_USER: str = "apikey"
    EMAIL_PASSWORD: str = ""
    EMAIL_FROM: str = "no-reply@intelliconsult.app"
    EMAIL_FROM_NAME: str = "IntelliConsult"

    # Payment Settings
    RAZORPAY_KEY_ID: str = ""
    RAZORPAY_KEY_SECRET: str = ""
    PAYMENT_CURRENCY: str = "INR"

    # AI triage and summaries (Gemini); both endpoints answer 502 while the key is unset
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.5-flash"

    # Prescription PDFs (TrueType; a Devanagari-capable system font is used when unset)
    PDF_FONT_PATH: Optional[str] = None
    PDF_BOLD_FONT_PATH: Optional[str] = None

    # Scheduling
    SLOT_DURATION_MINUTES: int = 60
    SLOT_LOOKAHEAD_DAYS: int = 14

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Rate Limiting (login and password reset requests, per client IP)
    AUTH_RATE_LIMIT_MAX_REQUESTS: int = 10
    AUTH_RATE_LIMIT_WINDOW_SEC: int = 900
    REDIS_URL: Optional[str] = None

    # Helper methods for list envs
    def _split_csv(self, value: str) -> List[str]:
        if value is None:
            return []
        value = value.strip()
        if value == "":
            return []
        return [item.strip() for item in value.split(",")]

    @property
    def allowed_origins_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_ORIGINS)

    @property
    def secret_configured(self) -> bool:
        return bool(self.SECRET_KEY) and self.SECRET_KEY != "change-me-in-prod"


@lru_cache()
def get_settings() -> Settings:
    s = Settings()
    # Normalize ALLOWED_ORIGINS if provided as comma-separated string env var CORS_ORIGINS
    cors_env = os.environ.get("CORS_ORIGINS")
    if cors_env:
        s.ALLOWED_ORIGINS = cors_env
    return s


settings: Settings = get_settings()
