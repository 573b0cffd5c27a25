"""
Root settings shared by the retrieval core.

Holds the process-wide values that are not owned by one subsystem: the
deployment environment name and the log level used when a process entry
point (the reconcile CLI, an embedding host) configures logging. Subsystem
settings (database, vector store, embeddings, cache, workers, retrieval)
live in their own modules with their own environment prefixes.

Dependencies: pydantic, pydantic_settings
System role: Base class of the aggregated Settings
"""

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings as PydanticBaseSettings, SettingsConfigDict


class BaseSettings(PydanticBaseSettings):
    """Unprefixed settings read from the environment or .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: str = Field(
        default="development",
        description="Deployment the retrieval core runs in (development, staging, production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level for indexing, search and reconciliation logs",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Normalize to an upper-case level name known to logging."""
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level
