"""
Document indexer.

Loads a document's chunks in order, embeds them in batches and upserts one
vector record per chunk keyed by the chunk id. Re-running overwrites the
same ids, so indexing is idempotent and documents can be indexed
concurrently without coordination.

Dependencies: retrieval_core.boundary.db, retrieval_core.boundary.embeddings,
    retrieval_core.boundary.vdb
System role: Bridge from the metadata store to the vector store
"""

import logging
import time
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from retrieval_core.boundary.db.CRUD.chunk_crud import chunk_crud
from retrieval_core.boundary.db.CRUD.document_crud import document_crud
from retrieval_core.boundary.embeddings.embedding_client import EmbeddingClient
from retrieval_core.boundary.vdb.qdrant_store import QdrantVectorStore
from retrieval_core.boundary.vdb.vector_schemas import VectorPayload, VectorRecord
from retrieval_core.core.exceptions import NotFoundError

logger = logging.getLogger(__name__)


class Indexer:
    """Embed a document's chunks and write them to the vector store."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        embedding_client: EmbeddingClient,
        vector_store: QdrantVectorStore,
        batch_size: int = 32,
    ) -> None:
        """
        Initialize the indexer.

        Args:
            session_factory: Factory for metadata store sessions
            embedding_client: Embedding service client
            vector_store: Vector store adapter
            batch_size: Chunks embedded and upserted per round trip
        """
        self._session_factory = session_factory
        self._embedding_client = embedding_client
        self._vector_store = vector_store
        self._batch_size = batch_size

    async def index_document(self, document_id: UUID, organization_id: str) -> int:
        """
        Index every chunk of a document.

        Args:
            document_id: Document UUID
            organization_id: Owning tenant

        Returns:
            int: Number of vector records written

        Raises:
            NotFoundError: If the document does not exist for the tenant
            EmbeddingServiceError: If embedding fails or times out
            VectorStoreError: If the upsert fails or times out
        """
        start = time.perf_counter()

        async with self._session_factory() as session:
            document = await document_crud.get_for_organization(
                session, document_id, organization_id
            )
            if document is None:
                raise NotFoundError("document", str(document_id))
            chunks = await chunk_crud.list_by_document(session, document_id)

        if not chunks:
            logger.info(f"{__name__}:index_document - Document {document_id} has no chunks")
            return 0

        written = 0
        for offset in range(0, len(chunks), self._batch_size):
            batch = chunks[offset:offset + self._batch_size]
            vectors = await self._embedding_client.embed_documents([c.content for c in batch])
            records = [
                VectorRecord(
                    id=str(chunk.id),
                    vector=vector,
                    payload=VectorPayload(
                        document_id=str(document.id),
                        organization_id=document.organization_id,
                        chunk_id=str(chunk.id),
                        chunk_index=chunk.chunk_index,
                        content=chunk.content,
                        title=document.title,
                        content_type=document.content_type,
                        metadata=chunk.metadata_model,
                    ),
                )
                for chunk, vector in zip(batch, vectors)
            ]
            written += await self._vector_store.upsert(records)

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"{__name__}:index_document - Indexed {written} chunks for document "
            f"{document_id} in {elapsed_ms:.1f}ms",
            extra={"document_id": str(document_id), "organization_id": organization_id},
        )
        return written
