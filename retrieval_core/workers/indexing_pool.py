"""
Indexing worker pool.

Queue-backed asyncio workers that run Indexer.index_document for submitted
documents. Transient embedding and vector store failures are retried with
bounded exponential backoff (tenacity). The outcome is written to the
document's index_status; failures are logged and never reach the submitter.

Dependencies: tenacity, retrieval_core.core.indexing, retrieval_core.boundary.db
System role: Background indexing with retry and status tracking
"""

import asyncio
import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from retrieval_core.boundary.db.CRUD.document_crud import document_crud
from retrieval_core.boundary.db.models.document_model import IndexStatus
from retrieval_core.core.exceptions import (
    EmbeddingServiceError,
    NotFoundError,
    VectorStoreError,
)
from retrieval_core.core.indexing.indexer import Indexer
from retrieval_core.observability.correlation import clear_correlation_id, set_correlation_id
from retrieval_core.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (EmbeddingServiceError, VectorStoreError)


@dataclass(frozen=True)
class IndexingJob:
    """A request to (re)index one document."""

    document_id: UUID
    organization_id: str
    correlation_id: str | None = None


class IndexingWorkerPool:
    """Fixed-size pool of asyncio workers draining an indexing queue."""

    def __init__(
        self,
        indexer: Indexer,
        session_factory: async_sessionmaker[AsyncSession],
        concurrency: int = 4,
        max_attempts: int = 3,
        backoff_initial: float = 1.0,
        backoff_max: float = 30.0,
        queue_size: int = 1000,
    ) -> None:
        """
        Initialize the pool (workers start with start()).

        Args:
            indexer: Indexer executing the jobs
            session_factory: Factory for sessions used to record index_status
            concurrency: Number of workers
            max_attempts: Attempts per job before it is marked failed
            backoff_initial: First retry delay in seconds
            backoff_max: Upper bound for a retry delay in seconds
            queue_size: Maximum pending jobs
        """
        self._indexer = indexer
        self._session_factory = session_factory
        self._concurrency = concurrency
        self._max_attempts = max_attempts
        self._backoff_initial = backoff_initial
        self._backoff_max = backoff_max
        self._queue: asyncio.Queue[IndexingJob] = asyncio.Queue(maxsize=queue_size)
        self._workers: list[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return bool(self._workers)

    @property
    def pending(self) -> int:
        """Jobs waiting in the queue."""
        return self._queue.qsize()

    async def start(self) -> None:
        """Start the workers; calling it twice is a no-op."""
        if self._workers:
            return
        self._workers = [
            asyncio.create_task(self._worker(n), name=f"indexing-worker-{n}")
            for n in range(self._concurrency)
        ]
        logger.info(f"{__name__}:start - Started {self._concurrency} indexing workers")

    async def stop(self) -> None:
        """Cancel the workers; queued jobs that were not started are dropped."""
        for task in self._workers:
            task.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        logger.info(f"{__name__}:stop - Indexing workers stopped ({self.pending} jobs dropped)")

    async def join(self) -> None:
        """Wait until every submitted job has been processed."""
        await self._queue.join()

    def submit(self, document_id: UUID, organization_id: str, correlation_id: str | None = None) -> bool:
        """
        Enqueue a document for indexing without waiting for it.

        Args:
            document_id: Document UUID
            organization_id: Owning tenant
            correlation_id: Correlation id propagated to the job's log lines

        Returns:
            bool: False if the queue is full and the job was rejected
        """
        try:
            self._queue.put_nowait(IndexingJob(document_id, organization_id, correlation_id))
        except asyncio.QueueFull:
            logger.error(
                f"{__name__}:submit - Queue full, indexing job for {document_id} rejected",
                extra={"document_id": str(document_id), "organization_id": organization_id},
            )
            return False
        logger.debug(f"{__name__}:submit - Queued document {document_id}")
        return True

    async def _worker(self, number: int) -> None:
        while True:
            job = await self._queue.get()
            try:
                await self.run_job(job)
            except Exception as e:
                log_exception_with_context(
                    logger,
                    f"{__name__}:_worker - Worker {number} crashed on document {job.document_id}",
                    e,
                )
            finally:
                clear_correlation_id()
                self._queue.task_done()

    async def run_job(self, job: IndexingJob) -> IndexStatus | None:
        """
        Index one document with retry and record the outcome.

        Args:
            job: Job to run

        Returns:
            IndexStatus recorded for the document, or None when the document
            disappeared before indexing finished
        """
        set_correlation_id(job.correlation_id)
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential_jitter(
                initial=self._backoff_initial,
                max=self._backoff_max,
                jitter=self._backoff_initial,
            ),
            before_sleep=lambda retry_state: logger.warning(
                f"{__name__}:run_job - Retry {retry_state.attempt_number}/{self._max_attempts} "
                f"for document {job.document_id}: {retry_state.outcome.exception()}"
            ),
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    written = await self._indexer.index_document(job.document_id, job.organization_id)
        except NotFoundError:
            logger.warning(
                f"{__name__}:run_job - Document {job.document_id} no longer exists, skipping"
            )
            return None
        except Exception as e:
            log_exception_with_context(
                logger,
                f"{__name__}:run_job - Indexing failed for document {job.document_id}",
                e,
                document_id=job.document_id,
                organization_id=job.organization_id,
            )
            await self._record_status(job, IndexStatus.FAILED, str(e))
            return IndexStatus.FAILED

        logger.info(f"{__name__}:run_job - Document {job.document_id} indexed ({written} vectors)")
        await self._record_status(job, IndexStatus.INDEXED)
        return IndexStatus.INDEXED

    async def _record_status(self, job: IndexingJob, status: IndexStatus, error: str | None = None) -> None:
        try:
            async with self._session_factory() as session:
                await document_crud.set_index_status(session, job.document_id, status, error)
                await session.commit()
        except SQLAlchemyError as e:
            log_exception_with_context(
                logger,
                f"{__name__}:_record_status - Could not record index_status={status.value}",
                e,
                document_id=job.document_id,
            )
