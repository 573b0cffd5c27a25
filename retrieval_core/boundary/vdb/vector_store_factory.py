"""
Vector store factory for selecting between a Qdrant server and local Qdrant.

Depends on VECTOR_STORE_STORE_TYPE environment variable.
Both modes go through QdrantVectorStore, so behaviour is identical apart
from persistence.

Dependencies: qdrant_client, retrieval_core.configs
System role: Vector store instantiation and selection
"""

import logging

from qdrant_client import AsyncQdrantClient

from retrieval_core.boundary.vdb.qdrant_store import QdrantVectorStore
from retrieval_core.configs import get_settings
from retrieval_core.configs.vector_store import VectorStoreSettings

logger = logging.getLogger(__name__)


def get_vector_store(config: VectorStoreSettings | None = None) -> QdrantVectorStore:
    """
    Factory function to get vector store based on environment configuration.

    Args:
        config: Vector store settings (read from environment if None)

    Returns:
        QdrantVectorStore: Configured vector store instance

    Raises:
        ValueError: If store_type is invalid
    """
    config = config or get_settings().vector_store
    store_type = config.store_type.lower()

    if store_type == "memory":
        logger.info(
            f"{__name__}:get_vector_store - Creating in-process Qdrant store (local dev mode)"
        )
        client = AsyncQdrantClient(location=":memory:")
        create_payload_indexes = False

    elif store_type == "qdrant":
        logger.info(f"{__name__}:get_vector_store - Connecting to Qdrant at {config.url}")
        client = AsyncQdrantClient(
            url=config.url,
            api_key=config.api_key,
            timeout=int(config.timeout_seconds),
        )
        create_payload_indexes = True

    else:
        raise ValueError(
            f"Invalid VECTOR_STORE_STORE_TYPE: {store_type}. "
            f"Must be 'qdrant' (server) or 'memory' (local)."
        )

    return QdrantVectorStore(
        client=client,
        collection_name=config.collection_name,
        vector_size=config.vector_size,
        timeout_seconds=config.timeout_seconds,
        upsert_batch_size=config.upsert_batch_size,
        create_payload_indexes=create_payload_indexes,
    )
