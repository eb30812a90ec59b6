"""
Application configuration using pydantic-settings.
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


def find_env_file() -> str:
    """Find .env file by checking multiple locations."""
    # Try relative to this file (server/motorai/config.py)
    current_dir = Path(__file__).parent
    candidates = [
        current_dir / ".env",  # server/motorai/.env
        current_dir.parent / ".env",  # server/.env
        current_dir.parent.parent / ".env",  # project root/.env
    ]

    for candidate in candidates:
        if candidate.exists():
            return str(candidate)

    # Default to project root
    return str(current_dir.parent.parent / ".env")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=find_env_file(),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = ""  # Must be set in .env file

    # Redis (VIN decode cache)
    REDIS_URL: str = "redis://localhost:6379/0"
    VIN_CACHE_TTL: int = 604800  # 7 days

    # VIN API
    NHTSA_API_URL: str = "https://vpic.nhtsa.dot.gov/api"
    NHTSA_TIMEOUT: float = 5.0  # seconds

    # Twilio (SMS)
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_PHONE_NUMBER: str = ""

    # SMTP (email)
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = ""
    SMTP_USE_TLS: bool = True

    # Business Logic
    SERVICE_CENTER_NAME: str = "Barry Service Auto"
    AVERAGE_DAILY_MILES: int = 35  # Used to estimate due dates without history


settings = Settings()
