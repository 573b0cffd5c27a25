"""
Embedding boundary: client wrapper and provider factory.
"""

from retrieval_core.boundary.embeddings.embedding_client import EmbeddingClient
from retrieval_core.boundary.embeddings.embeddings_factory import (
    get_embedding_client,
    get_embeddings,
)

__all__ = ["EmbeddingClient", "get_embedding_client", "get_embeddings"]
