"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"

    # App Version (format: a.bc.de - major.feature.patch)
    VERSION: str = "0.01.00"

    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./booking.db"

    # Slot grid (minutes). Shared by availability listing and booking validation.
    SLOT_GRANULARITY_MINUTES: int = 15

    # Default listing horizon when no end date is given (4 weeks)
    AVAILABILITY_WINDOW_DAYS: int = 28
    # Clamp for requested availability ranges
    MAX_AVAILABILITY_RANGE_DAYS: int = 62

    # How far around "now" to look for the appointment in progress
    CURRENT_APPOINTMENT_WINDOW_HOURS: int = 2

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""

    # Rate Limiting
    RATE_LIMIT_API: int = 60  # General API, requests per minute
    RATE_LIMIT_BOOKING: str = "10/minute"
    # Shared limit storage; empty keeps counters in each worker
    REDIS_URL: str = "redis://localhost:6379/0"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
