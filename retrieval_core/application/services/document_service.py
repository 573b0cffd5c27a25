"""
Document service orchestrator.

Coordinates document processing, chunk retrieval, reindexing and deletion.

Processing walks the state machine PENDING → PROCESSING → COMPLETED | FAILED.
COMPLETED is reached once chunks are persisted; indexing is then handed to
the worker pool without waiting, and its outcome lands in index_status.

Deletion removes vectors first and then the metadata rows, and the metadata
delete happens even when the vector delete fails. Vectors left behind are
removed later by the reconciler.

Dependencies: retrieval_core.boundary.db, retrieval_core.boundary.vdb,
    retrieval_core.core.document_processing, retrieval_core.workers
System role: Document lifecycle orchestration
"""

import hashlib
import logging
import time
from typing import Sequence
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from retrieval_core.boundary.db.CRUD.chunk_crud import chunk_crud
from retrieval_core.boundary.db.CRUD.document_crud import document_crud
from retrieval_core.boundary.db.models import ChunkModel, DocumentModel, DocumentStatus, IndexStatus
from retrieval_core.boundary.vdb.qdrant_store import QdrantVectorStore
from retrieval_core.core.document_processing.models import ProcessingResult
from retrieval_core.core.document_processing.tasks import (
    ChunkingTask,
    ExtractionTask,
    normalize_content_type,
)
from retrieval_core.core.exceptions import NotFoundError, ValidationError, VectorStoreError
from retrieval_core.observability.correlation import get_correlation_id
from retrieval_core.observability.log_utils import log_exception_with_context
from retrieval_core.workers.indexing_pool import IndexingWorkerPool

logger = logging.getLogger(__name__)


class DeletionResult(BaseModel):
    """Outcome of deleting a document from both stores."""

    document_id: UUID
    chunks_deleted: int
    vectors_deleted: int | None = None
    vector_error: str | None = None


class DocumentService:
    """
    Document service orchestrator.

    Holds a session factory rather than a session: processing, background
    indexing and deletion each run their own short transactions.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        vector_store: QdrantVectorStore,
        indexing_pool: IndexingWorkerPool,
        extraction_task: ExtractionTask | None = None,
        chunking_task: ChunkingTask | None = None,
    ) -> None:
        """
        Initialize document service.

        Args:
            session_factory: Factory for metadata store sessions
            vector_store: Vector store adapter
            indexing_pool: Worker pool that indexes processed documents
            extraction_task: Text extractor (default ExtractionTask())
            chunking_task: Chunker (default ChunkingTask())
        """
        self._session_factory = session_factory
        self._vector_store = vector_store
        self._indexing_pool = indexing_pool
        self._extraction = extraction_task or ExtractionTask()
        self._chunking = chunking_task or ChunkingTask()

    async def process_document(
        self,
        organization_id: str,
        title: str,
        content_type: str,
        data: bytes,
    ) -> ProcessingResult:
        """
        Extract, chunk and persist a document, then queue it for indexing.

        Steps:
        1. Create document record with PENDING status
        2. Move to PROCESSING, extract text and chunk it
        3. Persist chunks and mark COMPLETED with chunk_count in one transaction
        4. Submit the document to the indexing pool (not awaited)

        Args:
            organization_id: Owning tenant
            title: Document title
            content_type: MIME type of data
            data: Raw uploaded bytes

        Returns:
            ProcessingResult: Status, chunk count and timing

        Raises:
            ValidationError: If organization_id or title is empty
            ExtractionError: If the content is unsupported or unreadable;
                the document is left FAILED with the error recorded
        """
        if not organization_id:
            raise ValidationError("organization_id is required", field="organization_id")
        if not title:
            raise ValidationError("title is required", field="title")

        start = time.perf_counter()
        logger.info(f"{__name__}:process_document - Processing document: {title}")

        async with self._session_factory() as session:
            document = await document_crud.create(
                session,
                organization_id=organization_id,
                title=title,
                content_type=normalize_content_type(content_type),
                content_hash=hashlib.sha256(data).hexdigest(),
                status=DocumentStatus.PENDING,
            )
            await session.commit()
        document_id = document.id

        try:
            async with self._session_factory() as session:
                await document_crud.mark_processing(session, document_id)
                await session.commit()

            extracted = self._extraction.extract(data, content_type, source=title)
            chunks = self._chunking.chunk(extracted)

            async with self._session_factory() as session:
                await chunk_crud.create_many(session, document_id, chunks)
                completed = await document_crud.mark_completed(session, document_id, len(chunks))
                await session.commit()
        except Exception as e:
            log_exception_with_context(
                logger,
                f"{__name__}:process_document - Error processing document {title}",
                e,
                document_id=document_id,
                organization_id=organization_id,
            )
            await self._mark_failed(document_id, str(e))
            raise

        self._indexing_pool.submit(document_id, organization_id, get_correlation_id() or None)

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"{__name__}:process_document - Successfully processed document: {title} "
            f"({len(chunks)} chunks)"
        )
        return ProcessingResult(
            document_id=document_id,
            organization_id=organization_id,
            status=completed.status.value if completed else DocumentStatus.COMPLETED.value,
            index_status=IndexStatus.PENDING.value,
            chunk_count=len(chunks),
            processing_time_ms=elapsed_ms,
        )

    async def _mark_failed(self, document_id: UUID, error_message: str) -> None:
        try:
            async with self._session_factory() as session:
                await document_crud.mark_failed(session, document_id, error_message)
                await session.commit()
        except Exception as e:
            log_exception_with_context(
                logger,
                f"{__name__}:_mark_failed - Could not record failure",
                e,
                document_id=document_id,
            )

    async def get_document(self, document_id: UUID, organization_id: str) -> DocumentModel:
        """
        Retrieve a document owned by the organization.

        Raises:
            NotFoundError: If absent or owned by another organization
        """
        async with self._session_factory() as session:
            document = await document_crud.get_for_organization(session, document_id, organization_id)
        if document is None:
            raise NotFoundError("document", str(document_id))
        return document

    async def list_documents(
        self,
        organization_id: str,
        status: DocumentStatus | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[DocumentModel]:
        """List an organization's documents, newest first."""
        async with self._session_factory() as session:
            return await document_crud.list_by_organization(
                session, organization_id, status=status, limit=limit, offset=offset
            )

    async def get_document_chunks(self, document_id: UUID, organization_id: str) -> Sequence[ChunkModel]:
        """
        Retrieve all chunks of a document in original order.

        Args:
            document_id: Document UUID
            organization_id: Owning tenant

        Returns:
            Sequence[ChunkModel]: Chunks ordered by chunk_index

        Raises:
            NotFoundError: If the document does not exist for the tenant
        """
        async with self._session_factory() as session:
            if not await document_crud.exists_for_organization(session, document_id, organization_id):
                raise NotFoundError("document", str(document_id))
            return await chunk_crud.list_by_document(session, document_id)

    async def delete_document(self, document_id: UUID, organization_id: str) -> DeletionResult:
        """
        Delete a document's vectors, then the document and its chunks.

        The metadata delete is authoritative and happens even when the vector
        delete fails; surviving vectors are orphans for the reconciler.

        Args:
            document_id: Document UUID
            organization_id: Owning tenant

        Returns:
            DeletionResult: Chunks removed, vectors removed or the vector error

        Raises:
            NotFoundError: If the document does not exist for the tenant
        """
        logger.info(f"{__name__}:delete_document - Deleting document: {document_id}")

        async with self._session_factory() as session:
            if not await document_crud.exists_for_organization(session, document_id, organization_id):
                raise NotFoundError("document", str(document_id))

        result = DeletionResult(document_id=document_id, chunks_deleted=0)
        try:
            result.vectors_deleted = await self._vector_store.delete_by_document(str(document_id))
            logger.info(
                f"{__name__}:delete_document - Deleted {result.vectors_deleted} vectors "
                f"for document {document_id}"
            )
        except VectorStoreError as e:
            result.vector_error = str(e)
            logger.error(
                f"{__name__}:delete_document - Failed to delete vectors for document "
                f"{document_id}, leaving them for reconciliation: {e}"
            )

        async with self._session_factory() as session:
            chunks_deleted = await document_crud.delete_for_organization(
                session, document_id, organization_id
            )
            await session.commit()
        result.chunks_deleted = chunks_deleted or 0

        logger.info(
            f"{__name__}:delete_document - Deleted document {document_id} "
            f"({result.chunks_deleted} chunks)"
        )
        return result

    async def reindex_document(self, document_id: UUID, organization_id: str) -> bool:
        """
        Queue a completed document for indexing again.

        Raises:
            NotFoundError: If the document does not exist for the tenant
            ValidationError: If the document has not completed processing

        Returns:
            bool: True if the job was queued
        """
        async with self._session_factory() as session:
            document = await document_crud.get_for_organization(session, document_id, organization_id)
            if document is None:
                raise NotFoundError("document", str(document_id))
            if document.status != DocumentStatus.COMPLETED:
                raise ValidationError(
                    f"Document {document_id} is {document.status.value}; only completed "
                    f"documents can be reindexed",
                    field="status",
                )
            await document_crud.set_index_status(session, document_id, IndexStatus.PENDING)
            await session.commit()

        return self._indexing_pool.submit(document_id, organization_id, get_correlation_id() or None)

    async def reindex_all(self, organization_id: str) -> int:
        """
        Queue every completed document of an organization for indexing.

        Returns:
            int: Number of documents queued
        """
        async with self._session_factory() as session:
            document_ids = await document_crud.list_ids_by_organization(session, organization_id)
            for document_id in document_ids:
                await document_crud.set_index_status(session, document_id, IndexStatus.PENDING)
            await session.commit()

        queued = sum(
            1
            for document_id in document_ids
            if self._indexing_pool.submit(document_id, organization_id, get_correlation_id() or None)
        )
        logger.info(
            f"{__name__}:reindex_all - Queued {queued}/{len(document_ids)} documents "
            f"for organization {organization_id}"
        )
        return queued
