"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.

Dependencies: All config modules
System role: Central configuration aggregator for the retrieval core
"""

from functools import lru_cache

from retrieval_core.configs.base import BaseSettings
from retrieval_core.configs.cache import CacheSettings
from retrieval_core.configs.database import DatabaseSettings
from retrieval_core.configs.embeddings import EmbeddingSettings
from retrieval_core.configs.retrieval import RetrievalSettings
from retrieval_core.configs.vector_store import VectorStoreSettings
from retrieval_core.configs.workers import WorkerSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    # Aggregated settings
    database: DatabaseSettings = DatabaseSettings()
    vector_store: VectorStoreSettings = VectorStoreSettings()
    embeddings: EmbeddingSettings = EmbeddingSettings()
    retrieval: RetrievalSettings = RetrievalSettings()
    workers: WorkerSettings = WorkerSettings()
    cache: CacheSettings = CacheSettings()


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Environment variables are loaded once and cached.

    Returns:
        Settings: Application settings instance

    Usage:
        from retrieval_core.configs import get_settings
        settings = get_settings()
    """
    return Settings()
