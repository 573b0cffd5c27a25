"""
Vector store configuration settings.

Manages Qdrant connection, collection layout and call bounds.

Dependencies: pydantic, pydantic_settings
System role: Vector database configuration for retrieval
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class VectorStoreSettings(BaseSettings):
    """Vector store configuration (Qdrant server, or in-process Qdrant for dev)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="VECTOR_STORE_",
        case_sensitive=False,
        extra="ignore",
    )

    store_type: str = Field(
        default="qdrant",
        description="Vector store type: 'qdrant' for a server, 'memory' for local in-process mode",
    )
    url: str = Field(default="http://localhost:6333", description="Qdrant server URL")
    api_key: str | None = Field(default=None, description="Qdrant API key")
    collection_name: str = Field(default="knowledge_base", description="Qdrant collection name")
    vector_size: int = Field(
        default=768,
        description="Embedding vector dimension (768 for nomic-embed-text)",
    )
    timeout_seconds: float = Field(
        default=30.0,
        description="Upper bound for every vector store call",
    )
    scroll_page_size: int = Field(
        default=100,
        description="Page size used when scrolling the collection",
    )
    upsert_batch_size: int = Field(
        default=64,
        description="Maximum points per upsert request",
    )
