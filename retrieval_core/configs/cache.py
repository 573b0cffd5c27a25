"""
Usage cache settings.

Dependencies: pydantic, pydantic_settings
System role: Storage selection for search history and document usage analytics
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CacheSettings(BaseSettings):
    """Analytics cache configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CACHE_",
        case_sensitive=False,
        extra="ignore",
    )

    backend: str = Field(default="redis", description="Cache backend: 'redis' or 'memory'")
    redis_url: str = Field(default="redis://localhost:6379/0", description="Redis URL")
    key_prefix: str = Field(default="retrieval", description="Prefix for all cache keys")
    max_search_history: int = Field(
        default=1000,
        description="Search history entries kept per organization",
    )
