"""
Composition root.

Builds the adapters, core components and services from Settings and
exposes the operations upstream modules call: indexing, semantic and
hybrid search, similar and duplicate documents, related queries, vector
deletion and orphan reconciliation.

Dependencies: retrieval_core.configs, retrieval_core.boundary, retrieval_core.core,
    retrieval_core.application, retrieval_core.workers
System role: Wiring for the retrieval core
"""

import asyncio
import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from retrieval_core.application.services import AnalyticsService, DocumentService, SearchService
from retrieval_core.boundary.cache import UsageCache, get_usage_cache
from retrieval_core.boundary.db.connection import get_async_engine, get_async_session_factory
from retrieval_core.boundary.db.models import IndexStatus
from retrieval_core.boundary.embeddings import EmbeddingClient, get_embedding_client
from retrieval_core.boundary.vdb import CollectionInfo, QdrantVectorStore, get_vector_store
from retrieval_core.configs import Settings, get_settings
from retrieval_core.core.document_processing.tasks import ChunkingTask
from retrieval_core.core.indexing import Indexer
from retrieval_core.core.reconciliation import Reconciler, ReconciliationReport
from retrieval_core.core.search import (
    DocumentSimilarity,
    DuplicateGroup,
    HybridRanker,
    HybridSearchResult,
    KeywordSearch,
    SearchResult,
    SemanticSearch,
    SimilarDocument,
    expand_query,
)
from retrieval_core.workers import IndexingJob, IndexingWorkerPool

logger = logging.getLogger(__name__)


class RetrievalCore:
    """
    Wired retrieval core.

    Collaborators default to the ones described by settings; tests pass
    their own session factory, vector store, embedding client or cache.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        vector_store: QdrantVectorStore | None = None,
        embedding_client: EmbeddingClient | None = None,
        usage_cache: UsageCache | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._engine: AsyncEngine | None = None
        if session_factory is None:
            self._engine = get_async_engine(self.settings.database)
            session_factory = get_async_session_factory(self._engine)
        self.session_factory = session_factory
        self.vector_store = vector_store or get_vector_store(self.settings.vector_store)
        self.embedding_client = embedding_client or get_embedding_client(self.settings.embeddings)
        self.usage_cache = usage_cache or get_usage_cache(self.settings.cache)

        retrieval = self.settings.retrieval
        workers = self.settings.workers

        self.indexer = Indexer(
            session_factory,
            self.embedding_client,
            self.vector_store,
            batch_size=self.settings.embeddings.batch_size,
        )
        self.semantic_search = SemanticSearch(self.embedding_client, self.vector_store)
        self.keyword_search = KeywordSearch(session_factory, candidate_cap=retrieval.keyword_candidate_cap)
        self.hybrid_ranker = HybridRanker(self.semantic_search, self.keyword_search)
        self.document_similarity = DocumentSimilarity(session_factory, self.semantic_search)
        self.reconciler = Reconciler(
            session_factory, self.vector_store, page_size=self.settings.vector_store.scroll_page_size
        )
        self.indexing_pool = IndexingWorkerPool(
            self.indexer,
            session_factory,
            concurrency=workers.concurrency,
            max_attempts=workers.max_attempts,
            backoff_initial=workers.backoff_initial,
            backoff_max=workers.backoff_max,
            queue_size=workers.queue_size,
        )

        self.analytics_service = AnalyticsService(
            self.usage_cache, session_factory, max_history=self.settings.cache.max_search_history
        )
        self.document_service = DocumentService(
            session_factory,
            self.vector_store,
            self.indexing_pool,
            chunking_task=ChunkingTask(retrieval.chunk_size, retrieval.chunk_overlap),
        )
        self.search_service = SearchService(
            session_factory,
            self.semantic_search,
            self.keyword_search,
            self.hybrid_ranker,
            analytics=self.analytics_service,
            config=retrieval,
        )

    async def start(self) -> None:
        """Create the vector collection if needed and start the indexing workers."""
        await self.vector_store.ensure_collection()
        await self.indexing_pool.start()

    async def close(self) -> None:
        """Stop workers and release every connection."""
        await self.indexing_pool.stop()
        await self.vector_store.close()
        await self.usage_cache.close()
        if self._engine is not None:
            await self._engine.dispose()

    async def index_document(self, document_id: UUID, organization_id: str) -> IndexStatus | None:
        """
        Index a document now, with retry.

        Failures are recorded on the document's index_status and never raised.

        Returns:
            IndexStatus recorded, or None if the document does not exist
        """
        return await self.indexing_pool.run_job(IndexingJob(document_id, organization_id))

    async def search_similar(
        self,
        query: str,
        organization_id: str,
        limit: int | None = None,
        score_threshold: float | None = None,
    ) -> list[SearchResult]:
        return await self.search_service.search_similar(query, organization_id, limit, score_threshold)

    async def hybrid_search(
        self,
        query: str,
        organization_id: str,
        limit: int | None = None,
        semantic_weight: float | None = None,
        score_threshold: float | None = None,
    ) -> list[HybridSearchResult]:
        return await self.search_service.hybrid_search(
            query, organization_id, limit, semantic_weight, score_threshold
        )

    async def delete_document_vectors(self, document_id: UUID) -> dict[str, int]:
        """
        Delete every vector of a document.

        Returns:
            dict: {"deleted": number of vectors removed}

        Raises:
            VectorStoreError: If the vector store call fails
        """
        deleted = await self.vector_store.delete_by_document(str(document_id))
        return {"deleted": deleted}

    async def cleanup_orphaned_vectors(
        self,
        organization_id: str,
        deadline_seconds: float | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> ReconciliationReport:
        return await self.reconciler.cleanup_orphaned_vectors(
            organization_id, deadline_seconds=deadline_seconds, cancel_event=cancel_event
        )

    async def get_collection_info(self) -> CollectionInfo:
        return await self.vector_store.collection_info()

    async def get_vector_document_ids(self, organization_id: str) -> set[str]:
        """Distinct document ids that have vectors for the organization."""
        return await self.vector_store.document_ids(
            organization_id, page_size=self.settings.vector_store.scroll_page_size
        )

    async def find_similar_documents(
        self,
        document_id: UUID,
        organization_id: str,
        limit: int = 5,
    ) -> list[SimilarDocument]:
        return await self.document_similarity.find_similar_documents(document_id, organization_id, limit)

    async def find_duplicates(self, organization_id: str) -> list[DuplicateGroup]:
        return await self.document_similarity.find_duplicates(organization_id)

    async def related_queries(self, query: str, organization_id: str, limit: int = 5) -> list[str]:
        """Queries from the organization's search history that share words with query."""
        return await self.analytics_service.related_queries(query, organization_id, limit)

    def expand_query(self, query: str) -> list[str]:
        return expand_query(query)
