"""
Integration tests for IndexingWorkerPool.

Tests retry on transient failures, index_status recording on success and
exhaustion, non-retryable failures, vanished documents, queue limits and
the start/submit/join lifecycle with a real Indexer.
Dependencies: pytest, tenacity, retrieval_core.workers
System role: Background indexing verification
"""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

from retrieval_core.boundary.db.CRUD import document_crud
from retrieval_core.boundary.db.models import IndexStatus
from retrieval_core.core.exceptions import EmbeddingServiceError, NotFoundError, VectorStoreError
from retrieval_core.core.indexing import Indexer
from retrieval_core.workers import IndexingJob, IndexingWorkerPool


def _pool(indexer, session_factory, **overrides) -> IndexingWorkerPool:
    options = {"concurrency": 1, "max_attempts": 3, "backoff_initial": 0.0, "backoff_max": 0.0}
    options.update(overrides)
    return IndexingWorkerPool(indexer, session_factory, **options)


@pytest.fixture
def mock_indexer() -> MagicMock:
    indexer = MagicMock()
    indexer.index_document = AsyncMock(return_value=2)
    return indexer


async def _index_state(session_factory, document_id):
    async with session_factory() as session:
        document = await document_crud.get_by_id(session, document_id)
        return document.index_status, document.index_error, document.indexed_at


class TestIndexingWorkerPoolRunJob:
    """Test suite for IndexingWorkerPool.run_job()."""

    @pytest.mark.asyncio
    async def test_run_job_should_record_indexed(
        self, mock_indexer, seed_document, session_factory, organization_id
    ) -> None:
        # Arrange
        document = await seed_document(organization_id, ["text"])
        pool = _pool(mock_indexer, session_factory)

        # Act
        status = await pool.run_job(IndexingJob(document.id, organization_id))

        # Assert
        assert status == IndexStatus.INDEXED
        index_status, index_error, indexed_at = await _index_state(session_factory, document.id)
        assert index_status == IndexStatus.INDEXED
        assert index_error is None
        assert indexed_at is not None

    @pytest.mark.asyncio
    async def test_run_job_should_retry_transient_failures(
        self, mock_indexer, seed_document, session_factory, organization_id
    ) -> None:
        """Test an embedding timeout followed by success ends INDEXED."""
        # Arrange
        document = await seed_document(organization_id, ["text"])
        mock_indexer.index_document.side_effect = [
            EmbeddingServiceError("timed out", operation="embed_documents"),
            VectorStoreError("unavailable", operation="upsert"),
            1,
        ]
        pool = _pool(mock_indexer, session_factory)

        # Act
        status = await pool.run_job(IndexingJob(document.id, organization_id))

        # Assert
        assert status == IndexStatus.INDEXED
        assert mock_indexer.index_document.await_count == 3

    @pytest.mark.asyncio
    async def test_run_job_should_record_failed_after_exhausting_attempts(
        self, mock_indexer, seed_document, session_factory, organization_id
    ) -> None:
        # Arrange
        document = await seed_document(organization_id, ["text"])
        mock_indexer.index_document.side_effect = VectorStoreError("unavailable", operation="upsert")
        pool = _pool(mock_indexer, session_factory, max_attempts=2)

        # Act
        status = await pool.run_job(IndexingJob(document.id, organization_id))

        # Assert
        assert status == IndexStatus.FAILED
        assert mock_indexer.index_document.await_count == 2
        index_status, index_error, _ = await _index_state(session_factory, document.id)
        assert index_status == IndexStatus.FAILED
        assert "unavailable" in index_error

    @pytest.mark.asyncio
    async def test_run_job_should_not_retry_unexpected_errors(
        self, mock_indexer, seed_document, session_factory, organization_id
    ) -> None:
        document = await seed_document(organization_id, ["text"])
        mock_indexer.index_document.side_effect = ValueError("bad chunk")
        pool = _pool(mock_indexer, session_factory)

        status = await pool.run_job(IndexingJob(document.id, organization_id))

        assert status == IndexStatus.FAILED
        assert mock_indexer.index_document.await_count == 1

    @pytest.mark.asyncio
    async def test_run_job_should_skip_vanished_documents(self, mock_indexer, session_factory) -> None:
        mock_indexer.index_document.side_effect = NotFoundError("document", "gone")
        pool = _pool(mock_indexer, session_factory)

        assert await pool.run_job(IndexingJob(uuid.uuid4(), "org-1")) is None


class TestIndexingWorkerPoolLifecycle:
    """Test suite for queueing and workers."""

    def test_submit_should_reject_when_queue_full(self, mock_indexer, session_factory) -> None:
        pool = _pool(mock_indexer, session_factory, queue_size=1)

        assert pool.submit(uuid.uuid4(), "org-1") is True
        assert pool.submit(uuid.uuid4(), "org-1") is False
        assert pool.pending == 1

    @pytest.mark.asyncio
    async def test_workers_should_index_submitted_documents(
        self, seed_document, session_factory, embedding_client, vector_store, organization_id
    ) -> None:
        # Arrange
        document = await seed_document(organization_id, ["first chunk", "second chunk"])
        indexer = Indexer(session_factory, embedding_client, vector_store)
        pool = _pool(indexer, session_factory)
        await pool.start()

        # Act
        assert pool.submit(document.id, organization_id)
        await pool.join()
        await pool.stop()

        # Assert
        assert not pool.running
        assert await vector_store.count(document_id=str(document.id)) == 2
        index_status, _, _ = await _index_state(session_factory, document.id)
        assert index_status == IndexStatus.INDEXED
