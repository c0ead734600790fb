# lesson_reports/core/config.py
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Global application configuration.

    Values are loaded from environment variables at runtime.

    These settings are used for:
    - API metadata and environment detection
    - Logging level
    - Defaults applied to report settings that the caller leaves out
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    APP_NAME: str = "Lesson Reports"
    APP_ENV: str = Field("local", description="Environment name: local/dev/stage/prod")

    LOG_LEVEL: str = Field(
        "INFO",
        description="Root logging level (DEBUG, INFO, WARNING, ...).",
    )

    # --- Report policy defaults ---
    DEFAULT_TARDINESS_LIMIT_MINUTES: int = Field(
        default=5,
        ge=0,
        description="Teacher tardiness (minutes) above which a session counts as late.",
    )
    DEFAULT_CANCELLATION_WINDOW_HOURS: float = Field(
        default=24,
        ge=0,
        description="Cancellations closer than this many hours to the start are last-minute.",
    )
    DEFAULT_STUDENT_NO_SHOW_RATE_PERCENT: float = Field(
        default=50,
        ge=0,
        le=100,
        description="Share of a session paid to the teacher when every student is a no-show.",
    )
    DEFAULT_DURATION_FILTER: list[int] = Field(
        default=[30, 60],
        description="Session durations (minutes) preselected for the compensation report.",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Cached accessor for application settings.

    Using LRU cache ensures settings are read and validated only once,
    while still being easily importable across the app.
    """
    return Settings()
