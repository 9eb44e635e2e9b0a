"""
Configuration settings for resilient-http.

All settings are loaded from environment variables prefixed with
RESILIENT_HTTP_ (e.g. RESILIENT_HTTP_NUM_RETRIES=3), with sensible defaults.
Use a .env file for local development.
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from resilient_http.models.enums import BackoffStrategy


class Settings(BaseSettings):
    """Client-wide defaults loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="RESILIENT_HTTP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application ===
    APP_NAME: str = "resilient-http"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # === Requests ===
    BASE_URL: str = ""
    DEFAULT_HEADERS: dict[str, str] = {}
    TIMEOUT: float | None = 30.0  # seconds, per attempt
    FOLLOW_REDIRECTS: bool = True

    # === Retry ===
    NUM_RETRIES: int = 2  # retries after the first attempt
    RETRY_AFTER_CODES: list[int] = [413, 429, 503]  # statuses whose Retry-After is honoured
    RETRY_STRATEGY: BackoffStrategy = BackoffStrategy.EXPONENTIAL
    RETRY_MIN_DELAY: float = 0.5  # seconds
    RETRY_MAX_DELAY: float = 30.0  # seconds
    RETRY_JITTER: bool = True

    @field_validator("NUM_RETRIES")
    @classmethod
    def _non_negative_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError("NUM_RETRIES must be >= 0")
        return v

    @field_validator("TIMEOUT")
    @classmethod
    def _positive_timeout(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError("TIMEOUT must be > 0 (or unset for no timeout)")
        return v


@lru_cache()
def get_settings() -> Settings:
    """
    Get settings singleton.

    Returns:
        Settings instance
    """
    return Settings()
