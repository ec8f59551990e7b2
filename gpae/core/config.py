# gpae/core/config.py
import logging
import os
from pathlib import Path
from typing import List, Literal

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import pytz

from .constants import DEFAULT_ALLOWED_ORIGINS, DEFAULT_REFERENCE_TIMEZONE


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).resolve().parents[2] / ".env"
    logger.debug("[CONFIG] Looking for .env at: %s (exists=%s)", env_path, env_path.exists())
    load_dotenv(env_path)


PROD_ENVIRONMENTS = {"prod", "production", "live"}

_DEV_SECRET_KEY = "gpae-dev-secret-key-not-for-production"


class Settings(BaseSettings):
    environment: str = Field(default="development", description="Deployment environment name")
    log_level: str = Field(default="INFO", description="Root log level")

    # Persistence
    database_url: str = Field(
        default="sqlite:///./gpae.db",
        description="SQLAlchemy URL of the reservation store",
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements to the log")

    # Auth
    secret_key: SecretStr = Field(
        default=SecretStr(_DEV_SECRET_KEY),
        description="Secret key for JWT tokens",
    )
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 720  # 12 hours
    bcrypt_rounds: int = Field(default=12, ge=4, le=31, description="bcrypt cost factor")

    # CORS
    allowed_origins: str = Field(
        default=",".join(DEFAULT_ALLOWED_ORIGINS),
        description="Comma-separated list of browser origins allowed by CORS",
    )

    # Scheduling rules
    reference_timezone: str = Field(
        default=DEFAULT_REFERENCE_TIMEZONE,
        description="Timezone used to derive weekday/hour of a slot",
    )
    student_booking_scope: Literal["any", "instructor"] = Field(
        default="any",
        description=(
            "Scope of the student double-booking check: 'any' instructor "
            "or only the same 'instructor'"
        ),
    )
    auto_assign_instructor: bool = Field(
        default=True,
        description="Pick a free instructor when a reservation names none",
    )

    # Email
    email_provider: Literal["console", "resend"] = Field(
        default="console",
        description="Email provider name",
    )
    resend_api_key: str | None = Field(
        default=None,
        description="API key for Resend provider (optional)",
    )
    from_email: str = Field(default="no-reply@auto-ecole-essentiel.fr")
    email_from_name: str = Field(default="Auto-École Essentiel")

    # Rate limiting
    rate_limit_backend: Literal["memory", "redis"] = Field(default="memory")
    redis_url: str = Field(default="redis://localhost:6379/0")
    rate_limit_namespace: str = Field(default="gpae")
    bulk_mail_rate_limit: int = Field(
        default=3, ge=1, description="Bulk sends allowed per admin within the window"
    )
    bulk_mail_rate_window_s: int = Field(
        default=3600, ge=1, description="Bulk send rate-limit window in seconds"
    )

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("reference_timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        try:
            pytz.timezone(value)
        except pytz.UnknownTimeZoneError as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @model_validator(mode="after")
    def _require_real_secret_in_production(self) -> "Settings":
        if self.is_production and self.secret_key.get_secret_value() == _DEV_SECRET_KEY:
            raise ValueError("SECRET_KEY must be set in production")
        return self

    @model_validator(mode="after")
    def _require_resend_key(self) -> "Settings":
        if self.email_provider == "resend" and not self.resend_api_key:
            raise ValueError("RESEND_API_KEY must be set when EMAIL_PROVIDER=resend")
        return self

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in PROD_ENVIRONMENTS

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    def get_database_url(self) -> str:
        return self.database_url


settings = Settings()
