"""
Retrieval behaviour settings.

Chunking geometry and default search parameters.

Dependencies: pydantic, pydantic_settings
System role: Tunables for chunking and search
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RetrievalSettings(BaseSettings):
    """Chunking and search defaults."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RETRIEVAL_",
        case_sensitive=False,
        extra="ignore",
    )

    chunk_size: int = Field(default=1000, description="Target chunk size in characters")
    chunk_overlap: int = Field(default=200, description="Overlap between consecutive chunks")

    semantic_limit: int = Field(default=5, description="Default semantic search limit")
    semantic_threshold: float = Field(
        default=0.7,
        description="Default minimum cosine similarity for semantic search",
    )
    default_limit: int = Field(default=10, description="Default hybrid search limit")
    hybrid_semantic_weight: float = Field(
        default=0.7,
        description="Default semantic weight for hybrid search (0.0-1.0)",
    )
    hybrid_threshold: float = Field(
        default=0.6,
        description="Default semantic score threshold applied inside hybrid search",
    )
    keyword_candidate_cap: int = Field(
        default=500,
        description="Maximum chunks fetched from the metadata store per keyword query",
    )
    suggestion_limit: int = Field(default=5, description="Default number of search suggestions")
