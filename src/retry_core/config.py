"""
Configuration settings for the retry core.

Settings are loaded from environment variables prefixed with ``RETRY_``
(e.g. ``RETRY_DEFAULT_MAX_ATTEMPTS=8``). A ``.env`` file is read for local
development. Only the default policy and logging consult these values;
explicitly constructed strategies never do.
"""

import math

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Retry core settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="RETRY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Logging ===
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"  # "production" switches to JSON logs

    # === Default policy: max_attempts(N) AND pow_delay(seed, base) ===
    DEFAULT_MAX_ATTEMPTS: int = 5  # Total operation calls, not retries
    DEFAULT_SEED_DELAY: float = 0.1  # seconds
    DEFAULT_BACKOFF_BASE: float = math.sqrt(2)

    @field_validator("DEFAULT_MAX_ATTEMPTS")
    @classmethod
    def _check_max_attempts(cls, value: int) -> int:
        if value < 1:
            raise ValueError("DEFAULT_MAX_ATTEMPTS must be >= 1")
        return value

    @field_validator("DEFAULT_SEED_DELAY")
    @classmethod
    def _check_seed_delay(cls, value: float) -> float:
        if value < 0:
            raise ValueError("DEFAULT_SEED_DELAY must be >= 0")
        return value

    @field_validator("DEFAULT_BACKOFF_BASE")
    @classmethod
    def _check_backoff_base(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("DEFAULT_BACKOFF_BASE must be > 0")
        return value


# Global settings instance
settings = Settings()
