"""
Indexing worker pool settings.

Dependencies: pydantic, pydantic_settings
System role: Concurrency and retry bounds for background indexing
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class WorkerSettings(BaseSettings):
    """Background indexing worker configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="INDEXING_",
        case_sensitive=False,
        extra="ignore",
    )

    concurrency: int = Field(default=4, description="Number of concurrent indexing workers")
    max_attempts: int = Field(default=3, description="Attempts per indexing job")
    backoff_initial: float = Field(default=1.0, description="Initial retry backoff in seconds")
    backoff_max: float = Field(default=30.0, description="Maximum retry backoff in seconds")
    queue_size: int = Field(default=1000, description="Maximum queued indexing jobs")
