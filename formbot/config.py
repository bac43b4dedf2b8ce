"""Configuration management for pdf-formbot.

This module uses Pydantic Settings to load configuration from environment
variables (or a .env file). Settings are validated once before a batch
starts so a missing credential fails the run before any work is done.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    The Gemini API key must be provided via the environment or a .env file.
    Everything else has a default suitable for a polite, sequential batch.
    """

    # Gemini API Configuration
    gemini_api_key: str = Field(
        ...,
        description="Google Gemini API key used to classify documents"
    )

    # AI Model Configuration
    model_name: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model used for form analysis"
    )

    # Batch pacing
    request_delay_seconds: float = Field(
        default=1.0,
        ge=0.0,
        description="Minimum delay between two documents in a batch"
    )
    poll_max_attempts: int = Field(
        default=30,
        ge=1,
        description="How many times to poll an uploaded file that is still PROCESSING"
    )
    poll_interval_seconds: float = Field(
        default=2.0,
        ge=0.0,
        description="Delay between two file state polls"
    )

    # Download
    download_user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        description="User-Agent header sent when downloading PDFs"
    )

    # Reporting
    review_confidence_threshold: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Results below this confidence are marked for human review"
    )
    output_dir: str = Field(
        default=".",
        description="Directory where result files are written"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level for console and transcript output"
    )

    # Model configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        protected_namespaces=(),
    )

    @field_validator("gemini_api_key")
    @classmethod
    def validate_gemini_api_key(cls, v: str) -> str:
        """Validate that GEMINI_API_KEY is present and non-empty."""
        if not v or not v.strip():
            raise ValueError(
                "GEMINI_API_KEY must be set in environment variables. "
                "Get your API key from https://ai.google.dev/"
            )
        return v.strip()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that LOG_LEVEL names a standard logging level."""
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"LOG_LEVEL must be a standard logging level (got: {v})")
        return level


@lru_cache
def get_settings() -> Settings:
    """Get cached Settings instance.

    Settings are read once per process and treated as read-only for the
    rest of the run.

    Returns:
        Settings: Validated application settings

    Raises:
        ValueError: If required environment variables are missing or invalid
    """
    return Settings()
