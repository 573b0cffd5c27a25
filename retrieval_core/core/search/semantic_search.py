"""
Semantic search.

Embeds the query and runs a nearest-neighbour query against the vector
store, filtered by organization.

Dependencies: retrieval_core.boundary.embeddings, retrieval_core.boundary.vdb
System role: Similarity retrieval path of hybrid search
"""

import logging

from pydantic import ValidationError as PydanticValidationError

from retrieval_core.boundary.embeddings.embedding_client import EmbeddingClient
from retrieval_core.boundary.vdb.qdrant_store import QdrantVectorStore
from retrieval_core.core.document_processing.models import ChunkMetadata
from retrieval_core.core.exceptions import ValidationError
from retrieval_core.core.search.models import SearchResult

logger = logging.getLogger(__name__)


class SemanticSearch:
    """Nearest-neighbour search over chunk embeddings."""

    def __init__(self, embedding_client: EmbeddingClient, vector_store: QdrantVectorStore) -> None:
        self._embedding_client = embedding_client
        self._vector_store = vector_store

    async def search_similar(
        self,
        query: str,
        organization_id: str,
        limit: int = 5,
        score_threshold: float = 0.7,
    ) -> list[SearchResult]:
        """
        Find chunks similar to the query within one organization.

        Args:
            query: Query text
            organization_id: Tenant id
            limit: Maximum number of results
            score_threshold: Minimum cosine similarity

        Returns:
            list[SearchResult]: At most limit results, score descending,
            ties broken by chunk id; empty when nothing clears the threshold

        Raises:
            ValidationError: On invalid arguments
            EmbeddingServiceError: If the query cannot be embedded
            VectorStoreError: If the vector store query fails
        """
        if limit < 1:
            raise ValidationError("limit must be >= 1", field="limit")
        if not organization_id:
            raise ValidationError("organization_id is required", field="organization_id")
        if not query.strip():
            return []

        vector = await self._embedding_client.embed_query(query)
        hits = await self._vector_store.search(
            vector=vector,
            organization_id=organization_id,
            limit=limit,
            score_threshold=score_threshold,
        )

        results: list[SearchResult] = []
        for hit in hits:
            payload = hit.payload
            # Never return another tenant's chunk
            if payload.get("organization_id") != organization_id or hit.score < score_threshold:
                continue
            results.append(
                SearchResult(
                    chunk_id=hit.id,
                    document_id=str(payload.get("document_id", "")),
                    content=payload.get("content", ""),
                    score=hit.score,
                    title=payload.get("title", ""),
                    chunk_index=payload.get("chunk_index"),
                    metadata=_metadata(payload.get("metadata")),
                )
            )

        results.sort(key=lambda r: (-r.score, r.chunk_id))
        logger.info(
            f"{__name__}:search_similar - {len(results)} results for organization "
            f"{organization_id} (limit={limit}, threshold={score_threshold})"
        )
        return results[:limit]


def _metadata(raw: object) -> ChunkMetadata:
    """Parse stored payload metadata, tolerating records written by older versions."""
    if not isinstance(raw, dict):
        return ChunkMetadata()
    try:
        return ChunkMetadata.model_validate(raw)
    except PydanticValidationError:
        logger.warning(f"{__name__}:_metadata - Ignoring invalid payload metadata: {raw}")
        return ChunkMetadata()
