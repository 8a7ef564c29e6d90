"""Application settings using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="coursekit", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: Literal["development", "staging", "production", "testing"] = Field(
        default="development", description="Environment name"
    )

    # Backend API
    api_base_url: str = Field(
        default="https://localhost:7104", description="Course backend base URL"
    )
    api_timeout_seconds: float = Field(
        default=30.0, description="Per-request timeout in seconds"
    )
    api_verify_ssl: bool = Field(
        default=True, description="Verify TLS certificates of the backend"
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", description="Log format"
    )
    log_include_caller_info: bool = Field(
        default=False, description="Include caller info"
    )
    log_to_file: bool = Field(default=False, description="Also write JSON log files")
    log_dir: str = Field(default="logs", description="Directory for log files")
    log_file_max_bytes: int = Field(
        default=10 * 1024 * 1024, description="Max size per log file (10MB default)"
    )
    log_file_backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )

    # Quiz authoring
    quiz_default_points: int = Field(
        default=10, gt=0, description="Points assigned to a new question"
    )
    quiz_default_answer_count: int = Field(
        default=2, ge=2, description="Empty answers created with a new question"
    )
    quiz_min_answers: int = Field(default=2, ge=2, description="Minimum answers")
    quiz_max_answers: int = Field(default=10, ge=2, description="Maximum answers")

    # Quiz completion
    completion_retry_attempts: int = Field(
        default=2,
        ge=1,
        description="Attempts to mark a quiz lesson completed after scoring",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
