"""Configuration management for taskapi."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage
    sqlite_db_path: str = Field(default="taskapi.db", description="Path to the SQLite database file")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")
    environment: str = Field(default="development", description="Deployment environment name")

    # Auto-completion worker
    worker_enabled: bool = Field(default=True, description="Start the auto-completion worker with the app")
    auto_complete_minutes: int = Field(
        default=30, ge=0, description="Minutes after creation before an open task is auto-completed"
    )
    scan_interval_seconds: float = Field(default=60.0, gt=0, description="Seconds between eligibility scans")
    scan_on_start: bool = Field(default=False, description="Run the first scan immediately instead of after one interval")
    scan_batch_limit: int = Field(default=500, ge=1, description="Maximum candidates fetched per scan")
    queue_capacity: int = Field(default=100, ge=1, description="Capacity of the completion queue")
    scan_enqueue_timeout_seconds: float = Field(
        default=0.1, gt=0, description="How long a scan waits on a full queue before giving a task back"
    )
    submit_timeout_seconds: float = Field(
        default=5.0, gt=0, description="How long a direct submission waits on a full queue before failing"
    )
    store_timeout_seconds: float = Field(default=30.0, gt=0, description="Upper bound for a single store call")


# Application Constants
class Constants:
    """Application-wide constants."""

    SERVICE_NAME: str = "taskapi"
    SERVICE_VERSION: str = "0.1.0"

    # Pagination Defaults
    DEFAULT_PER_PAGE_LIMIT: int = 100

    # Paths
    PROJECT_ROOT: Path = Path(__file__).parent.parent.parent


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
