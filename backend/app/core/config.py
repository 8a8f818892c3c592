# backend/app/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import BRAND_NAME

logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.info(f"[CONFIG] Looking for .env at: {env_path} (exists={env_path.exists()})")
    load_dotenv(env_path)

_DEFAULT_SECRET_KEY = SecretStr("studio-dev-secret-change-me")
_DEFAULT_REFRESH_SECRET = SecretStr("studio-dev-refresh-secret-change-me")


class Settings(BaseSettings):
    # Environment
    environment: Literal["development", "staging", "production", "test"] = "development"
    is_testing: bool = Field(default=False, description="Set by the test suite")
    log_level: str = "INFO"
    frontend_url: str = "http://localhost:3000"
    cors_origins: str = Field(
        default="", description="Comma separated extra origins allowed by CORS"
    )

    # Database / broker
    database_url: str = Field(
        default="sqlite:///./studio.db",
        validation_alias=AliasChoices("DATABASE_URL", "database_url"),
    )
    redis_url: str = Field(default="redis://localhost:6379/0")

    # Auth
    secret_key: SecretStr = Field(
        default=_DEFAULT_SECRET_KEY,
        validation_alias=AliasChoices("SECRET_KEY", "JWT_SECRET", "secret_key"),
        description="Secret key for access tokens",
    )
    refresh_secret_key: SecretStr = Field(
        default=_DEFAULT_REFRESH_SECRET,
        validation_alias=AliasChoices("JWT_REFRESH_SECRET", "refresh_secret_key"),
        description="Secret key for refresh tokens",
    )
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7  # 7 days
    refresh_token_expire_minutes: int = 60 * 24 * 30  # 30 days

    # Studio
    studio_name: str = BRAND_NAME
    studio_timezone: str = "Asia/Bangkok"
    studio_open_hour: int = Field(default=7, ge=0, le=23)
    studio_close_hour: int = Field(default=22, ge=1, le=24)
    default_currency: str = "THB"

    # Business rules
    min_booking_hours_advance: int = Field(default=24, ge=0)
    session_duration_minutes: int = Field(default=60, ge=15, le=240)
    cancellation_hours_before: int = Field(
        default=12, ge=0, description="Free cancellation at or above this many hours"
    )
    cancellation_request_hours_before: int = Field(
        default=6, ge=0, description="Cancellation requests accepted at or above this many hours"
    )
    auto_confirm_after_hours: int = Field(default=12, ge=1)
    max_concurrent_teachers: int = Field(default=2, ge=1)
    package_validity_months: int = Field(default=12, ge=1)
    max_availability_days: int = 31

    # LINE Messaging API
    line_channel_access_token: Optional[SecretStr] = None
    line_channel_secret: Optional[SecretStr] = None
    line_api_base_url: str = "https://api.line.me/v2/bot"
    line_request_timeout_seconds: float = 10.0

    # Worker
    notification_batch_size: int = Field(default=100, ge=1, le=1000)

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("studio_timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        import pytz

        try:
            pytz.timezone(value)
        except pytz.UnknownTimeZoneError as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @model_validator(mode="after")
    def _validate_business_hours(self) -> "Settings":
        if self.studio_close_hour <= self.studio_open_hour:
            raise ValueError("studio_close_hour must be after studio_open_hour")
        if self.cancellation_request_hours_before > self.cancellation_hours_before:
            raise ValueError(
                "cancellation_request_hours_before cannot exceed cancellation_hours_before"
            )
        return self

    @property
    def line_configured(self) -> bool:
        return bool(
            self.line_channel_access_token
            and self.line_channel_access_token.get_secret_value()
            and self.line_channel_secret
            and self.line_channel_secret.get_secret_value()
        )

    @property
    def allowed_origins(self) -> list[str]:
        extra = [o.strip() for o in self.cors_origins.split(",") if o.strip()]
        return [self.frontend_url, *extra]

    def get_database_url(self) -> str:
        """Return the database URL for the current environment."""
        return self.database_url


settings = Settings()
logger.info(
    "[CONFIG] Studio configuration: name=%s timezone=%s hours=%s-%s environment=%s",
    settings.studio_name,
    settings.studio_timezone,
    settings.studio_open_hour,
    settings.studio_close_hour,
    settings.environment,
)
