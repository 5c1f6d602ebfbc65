from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator, model_validator
from typing import Any, ClassVar
import json
from pathlib import Path
import os


class Settings(BaseSettings):
    API_V1_STR: str = "/api/v1"

    # JWT verification (tokens are issued by the identity service)
    SECRET_KEY: str = "fallback_secret_for_dev_only"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Database URL
    # Use an absolute path so running the app from different directories
    # (e.g., repo root or backend/) always resolves the same DB file.
    BASE_DIR: ClassVar[Path] = Path(__file__).resolve().parents[2]
    SQLALCHEMY_DATABASE_URL: str = f"sqlite:///{BASE_DIR / 'booking.db'}"

    # Redis connection URL for the available-slots cache.
    # "disabled" (or empty) switches to a no-op client.
    REDIS_URL: str = "redis://localhost:6379/0"

    # CORS origins
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]
    CORS_ALLOW_ALL: bool = False

    LOG_LEVEL: str = "INFO"
    ENABLE_TRACING: bool = False

    # ─── Scheduling rules ───────────────────────────────────────────────────
    # Granularity of generated start times.
    SLOT_QUANTUM_MINUTES: int = 30
    # Slot sweep covers today through today + N days inclusive.
    BOOKING_HORIZON_DAYS: int = 14
    # Minimum gap between "now" and a new or rescheduled booking.
    BOOKING_LEAD_TIME_MINUTES: int = 120
    # Clients may cancel only while at least this far ahead of the booking.
    CANCELLATION_CUTOFF_MINUTES: int = 120
    MAX_ACTIVE_BOOKINGS_PER_CLIENT: int = 10
    AVAILABLE_SLOTS_LIMIT: int = 200
    # Used when a service row carries no duration.
    DEFAULT_SERVICE_DURATION_MINUTES: int = 60
    # Calendar board requests may span at most this many days.
    CALENDAR_MAX_RANGE_DAYS: int = 31
    # Seconds the public available-slots payload stays cached.
    AVAILABILITY_CACHE_TTL: int = 60

    model_config = SettingsConfigDict(
        extra="ignore",
        case_sensitive=True,
    )

    @field_validator("CORS_ORIGINS", mode="before")
    def split_origins(cls, v: Any) -> list[str]:
        """Parse comma-separated or JSON list of origins from environment."""
        if isinstance(v, str):
            try:
                parsed = json.loads(v)
                if isinstance(parsed, list):
                    return parsed
            except json.JSONDecodeError:
                pass
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    @field_validator("LOG_LEVEL", mode="before")
    def normalize_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @model_validator(mode="after")
    def allow_all_if_requested(cls, values: "Settings") -> "Settings":
        if values.CORS_ALLOW_ALL:
            values.CORS_ORIGINS = ["*"]
        return values

    @model_validator(mode="after")
    def check_scheduling_rules(cls, values: "Settings") -> "Settings":
        if values.SLOT_QUANTUM_MINUTES < 1:
            raise ValueError("SLOT_QUANTUM_MINUTES must be >= 1")
        if values.BOOKING_HORIZON_DAYS < 0:
            raise ValueError("BOOKING_HORIZON_DAYS must be >= 0")
        if values.BOOKING_LEAD_TIME_MINUTES < 0 or values.CANCELLATION_CUTOFF_MINUTES < 0:
            raise ValueError("Lead time and cancellation cutoff must be >= 0")
        if values.AVAILABLE_SLOTS_LIMIT < 1:
            raise ValueError("AVAILABLE_SLOTS_LIMIT must be >= 1")
        return values


def load_settings() -> "Settings":
    return Settings(_env_file=os.getenv("ENV_FILE", str(Path(__file__).resolve().parents[3] / ".env")))


settings = load_settings()


def _redis_url() -> str:
    env_url = os.getenv("REDIS_URL")
    if env_url:
        return env_url
    return getattr(settings, "REDIS_URL", "redis://localhost:6379/0")


REDIS_URL = _redis_url()
