from typing import Any
from urllib.parse import quote_plus

from pydantic import Field, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application configuration using Pydantic BaseSettings.
    Values are loaded from environment variables and the optional .env file.
    """

    # API Configuration
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Clinicbook Scheduling API"
    PROJECT_DESCRIPTION: str = "Appointment scheduling and completion engine"
    VERSION: str = "0.1.0"

    # Database Settings
    DB_URL: str | None = Field(None, description="Full async database URL (overrides the DB_* parts)")
    DB_HOST: str = Field("localhost", description="PostgreSQL host")
    DB_PORT: int = Field(5432, description="PostgreSQL port")
    DB_NAME: str = Field("clinicbook", description="Database name")
    DB_USER: str = Field("clinicbook", description="Database user")
    DB_PASSWORD: str | None = Field(None, description="Database password")
    DB_ECHO: bool = Field(False, description="Log SQL statements (debug only)")

    # Database connection pool settings
    DB_POOL_SIZE: int = Field(20, description="Connection pool size")
    DB_MAX_OVERFLOW: int = Field(30, description="Maximum pool overflow")
    DB_POOL_RECYCLE: int = Field(3600, description="Recycle connections every N seconds")
    DB_POOL_TIMEOUT: int = Field(30, description="Seconds to wait for a pooled connection")

    # Scheduling policy
    DEFAULT_APPOINTMENT_DURATION_MINUTES: int = Field(
        30, description="Slot length used when neither the request nor the provider sets one"
    )
    SELF_SERVICE_INITIAL_STATUS: str = Field(
        "pending", description="Initial status for patient self-service and assistant bookings"
    )
    STAFF_INITIAL_STATUS: str = Field("confirmed", description="Initial status for staff-created bookings")
    NEXT_AVAILABLE_SEARCH_DAYS: int = Field(14, description="Days scanned when looking for the next free slot")

    # Completion workflow
    SIDE_EFFECT_TIMEOUT_SECONDS: float = Field(
        10.0, description="Timeout for follow-up booking and patient notification steps"
    )
    CURRENCY: str = Field("EUR", description="ISO currency used in billing summaries")

    # Appointment reminders
    REMINDER_LEAD_HOURS: list[int] = Field([24, 2], description="Hours before an appointment when a reminder goes out")
    REMINDER_WINDOW_MINUTES: int = Field(
        15, description="Width of each reminder window; run the reminder job at this interval"
    )

    # Email gateway
    EMAIL_API_URL: str = Field("https://api.resend.com/emails", description="HTTP endpoint of the email API")
    EMAIL_API_KEY: str | None = Field(None, description="Bearer token for the email API")
    EMAIL_FROM_ADDRESS: str = Field("Clinicbook <noreply@clinicbook.local>", description="Sender address")
    EMAIL_TIMEOUT: float = Field(10.0, description="HTTP timeout for the email API in seconds")

    # Logging
    LOG_LEVEL: str = Field("INFO", description="Root log level")
    LOG_FORMAT: str = Field("colored", description="colored, json or plain")

    # Application Settings
    DEBUG: bool = Field(False, description="Debug mode")
    ENVIRONMENT: str = Field("production", description="Runtime environment")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    def __init__(self, **data: Any):
        super().__init__(**data)

    @field_validator("SELF_SERVICE_INITIAL_STATUS", "STAFF_INITIAL_STATUS")
    @classmethod
    def validate_initial_status(cls, v: str) -> str:
        if v not in ("pending", "confirmed"):
            raise ValueError("Initial status must be 'pending' or 'confirmed'")
        return v

    @field_validator("DEFAULT_APPOINTMENT_DURATION_MINUTES", "NEXT_AVAILABLE_SEARCH_DAYS", "REMINDER_WINDOW_MINUTES")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Value must be positive")
        return v

    @field_validator("REMINDER_LEAD_HOURS")
    @classmethod
    def validate_lead_hours(cls, v: list[int]) -> list[int]:
        if any(hours <= 0 for hours in v):
            raise ValueError("Reminder lead hours must be positive")
        return sorted(set(v), reverse=True)

    @field_validator("SIDE_EFFECT_TIMEOUT_SECONDS", "EMAIL_TIMEOUT")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Timeout must be positive")
        return v

    @field_validator("DB_POOL_SIZE")
    @classmethod
    def validate_pool_size(cls, v: int) -> int:
        if v < 1 or v > 100:
            raise ValueError("DB_POOL_SIZE must be between 1 and 100")
        return v

    @computed_field
    @property
    def database_url(self) -> str:
        """Async database URL built from the DB_* settings."""
        if self.DB_URL:
            return self.DB_URL
        user = quote_plus(self.DB_USER)
        if self.DB_PASSWORD:
            password = quote_plus(self.DB_PASSWORD)
            return f"postgresql+asyncpg://{user}:{password}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        return f"postgresql+asyncpg://{user}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT in ("development", "test") or self.DEBUG


# Singleton
_settings_instance = None


def get_settings() -> Settings:
    """
    Return the cached settings instance.
    Avoids reading the environment more than once.
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance


def reset_settings() -> None:
    """Drop the cached instance (used by tests that patch the environment)."""
    global _settings_instance
    _settings_instance = None
