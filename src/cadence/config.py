"""Configuration management for cadence."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JOBS_FILE = Path("jobs.yaml")


class Settings(BaseSettings):
    """Scheduler settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CADENCE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Run loop settings
    max_idle_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Longest single sleep of the run loop, in seconds",
    )

    # Dispatch settings
    parallel_dispatch: bool = Field(
        default=False,
        description="Run job actions on a worker pool instead of inline",
    )
    max_workers: int = Field(
        default=4,
        ge=1,
        description="Worker threads for parallel dispatch",
    )
    max_pending: int = Field(
        default=100,
        ge=1,
        description="Firings that may wait for a worker before new ones are dropped",
    )

    # CLI settings
    jobs_file: Path | None = Field(
        default=None,
        description="YAML jobs file for the CLI (default: ./jobs.yaml)",
    )

    def get_jobs_file(self) -> Path:
        """Get the jobs file path, using default if not set."""
        if self.jobs_file:
            return self.jobs_file
        return DEFAULT_JOBS_FILE


# Global settings instance
settings = Settings()
