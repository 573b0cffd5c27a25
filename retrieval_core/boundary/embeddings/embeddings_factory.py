"""
Embedding model factory.

Selects the LangChain embeddings backend from EMBEDDING_PROVIDER:
- "ollama": local Ollama server (nomic-embed-text, 768-dim)
- "google": Google Generative AI embeddings with fixed output dimensionality

Dependencies: langchain_ollama, langchain_google_genai, python-dotenv, retrieval_core.configs
System role: Embedding backend instantiation and selection
"""

import logging

from dotenv import load_dotenv
from langchain_core.embeddings import Embeddings
from langchain_google_genai import GoogleGenerativeAIEmbeddings
from langchain_ollama import OllamaEmbeddings

from retrieval_core.boundary.embeddings.embedding_client import EmbeddingClient
from retrieval_core.configs import get_settings
from retrieval_core.configs.embeddings import EmbeddingSettings

load_dotenv()
logger = logging.getLogger(__name__)


def get_embeddings(config: EmbeddingSettings | None = None) -> Embeddings:
    """
    Build the configured LangChain embeddings model.

    Args:
        config: Embedding settings (read from environment if None)

    Returns:
        Embeddings: Provider-specific embeddings instance

    Raises:
        ValueError: If provider is invalid
    """
    config = config or get_settings().embeddings
    provider = config.provider.lower()

    if provider == "ollama":
        logger.info(
            f"{__name__}:get_embeddings - Using Ollama model={config.model} at {config.base_url}"
        )
        return OllamaEmbeddings(model=config.model, base_url=config.base_url)

    if provider == "google":
        logger.info(
            f"{__name__}:get_embeddings - Using Google model={config.model}, "
            f"output_dimensionality={config.dimension}"
        )
        return GoogleGenerativeAIEmbeddings(
            model=config.model,
            output_dimensionality=config.dimension,
        )

    raise ValueError(
        f"Invalid EMBEDDING_PROVIDER: {provider}. Must be 'ollama' or 'google'."
    )


def get_embedding_client(config: EmbeddingSettings | None = None) -> EmbeddingClient:
    """
    Build an EmbeddingClient over the configured provider.

    Args:
        config: Embedding settings (read from environment if None)

    Returns:
        EmbeddingClient: Batched, time-bounded embedding client
    """
    config = config or get_settings().embeddings
    return EmbeddingClient(
        embeddings=get_embeddings(config),
        batch_size=config.batch_size,
        timeout_seconds=config.timeout_seconds,
        dimension=config.dimension,
    )
