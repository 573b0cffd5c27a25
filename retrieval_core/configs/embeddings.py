"""
Embedding service configuration settings.

Dependencies: pydantic, pydantic_settings
System role: Embedding provider selection and call bounds
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EmbeddingSettings(BaseSettings):
    """Embedding provider configuration (Ollama by default, Google Gemini optional)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="EMBEDDING_",
        case_sensitive=False,
        extra="ignore",
    )

    provider: str = Field(
        default="ollama",
        description="Embedding provider: 'ollama' or 'google'",
    )
    model: str = Field(default="nomic-embed-text", description="Embedding model name")
    base_url: str = Field(
        default="http://localhost:11434",
        description="Ollama server URL (ignored by the google provider)",
    )
    dimension: int = Field(
        default=768,
        description="Output dimensionality requested from providers that support it",
    )
    batch_size: int = Field(default=32, description="Texts per embedding request")
    timeout_seconds: float = Field(
        default=30.0,
        description="Upper bound for a single embedding request",
    )
