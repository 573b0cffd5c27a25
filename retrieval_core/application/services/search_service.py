"""
Search service.

Entry point for retrieval queries: fills defaults from settings, delegates
to semantic, keyword or hybrid search, and records analytics for each
query. Also serves query suggestions from chunk content.

Dependencies: retrieval_core.core.search, retrieval_core.application.services.analytics_service
System role: Retrieval orchestration for upstream consumers
"""

import logging
import re

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from retrieval_core.application.services.analytics_service import AnalyticsService
from retrieval_core.boundary.db.CRUD.chunk_crud import chunk_crud
from retrieval_core.configs.retrieval import RetrievalSettings
from retrieval_core.core.exceptions import ValidationError
from retrieval_core.core.search import (
    HybridRanker,
    HybridSearchResult,
    KeywordMatch,
    KeywordSearch,
    SearchResult,
    SemanticSearch,
)

logger = logging.getLogger(__name__)

_SENTENCE_BOUNDARY = re.compile(r"[.!?]+")
SUGGESTION_MIN_LENGTH = 10
SUGGESTION_MAX_LENGTH = 100
SUGGESTION_CHUNK_SCAN = 10


class SearchService:
    """Retrieval facade with analytics recording."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        semantic_search: SemanticSearch,
        keyword_search: KeywordSearch,
        hybrid_ranker: HybridRanker,
        analytics: AnalyticsService | None = None,
        config: RetrievalSettings | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._semantic = semantic_search
        self._keyword = keyword_search
        self._hybrid = hybrid_ranker
        self._analytics = analytics
        self._config = config or RetrievalSettings()

    async def search_similar(
        self,
        query: str,
        organization_id: str,
        limit: int | None = None,
        score_threshold: float | None = None,
        user_id: str | None = None,
    ) -> list[SearchResult]:
        """
        Semantic search with settings defaults (limit 5, threshold 0.7).

        Returns:
            list[SearchResult]: Score-descending results
        """
        results = await self._semantic.search_similar(
            query,
            organization_id,
            limit=limit or self._config.semantic_limit,
            score_threshold=(
                self._config.semantic_threshold if score_threshold is None else score_threshold
            ),
        )
        await self._record(query, organization_id, [(r.document_id, r.score) for r in results], user_id)
        return results

    async def keyword_search(
        self,
        query: str,
        organization_id: str,
        limit: int | None = None,
    ) -> list[KeywordMatch]:
        """Keyword search with the default limit from settings."""
        return await self._keyword.keyword_search(
            query, organization_id, limit=limit or self._config.default_limit
        )

    async def hybrid_search(
        self,
        query: str,
        organization_id: str,
        limit: int | None = None,
        semantic_weight: float | None = None,
        score_threshold: float | None = None,
        user_id: str | None = None,
    ) -> list[HybridSearchResult]:
        """
        Hybrid search with settings defaults (limit 10, weight 0.7, threshold 0.6).

        Returns:
            list[HybridSearchResult]: Fused results in final order
        """
        results = await self._hybrid.hybrid_search(
            query,
            organization_id,
            limit=limit or self._config.default_limit,
            semantic_weight=(
                self._config.hybrid_semantic_weight if semantic_weight is None else semantic_weight
            ),
            score_threshold=(
                self._config.hybrid_threshold if score_threshold is None else score_threshold
            ),
        )
        await self._record(
            query, organization_id, [(r.document_id, r.hybrid_score) for r in results], user_id
        )
        return results

    async def search_suggestions(
        self,
        query: str,
        organization_id: str,
        limit: int | None = None,
    ) -> list[str]:
        """
        Suggest sentences from the organization's chunks that contain the query.

        Sentences are split on '.', '!' and '?', trimmed, kept when longer than
        10 and shorter than 100 characters, and deduplicated in order.

        Args:
            query: Partial query text
            organization_id: Tenant id
            limit: Maximum suggestions

        Returns:
            list[str]: Suggestions
        """
        limit = limit or self._config.suggestion_limit
        if limit < 1:
            raise ValidationError("limit must be >= 1", field="limit")
        needle = query.strip().lower()
        if not needle:
            return []

        async with self._session_factory() as session:
            contents = await chunk_crud.find_containing(
                session, organization_id, needle, limit=SUGGESTION_CHUNK_SCAN
            )

        suggestions: dict[str, None] = {}
        for content in contents:
            for sentence in _SENTENCE_BOUNDARY.split(content):
                sentence = sentence.strip()
                if needle not in sentence.lower():
                    continue
                if SUGGESTION_MIN_LENGTH < len(sentence) < SUGGESTION_MAX_LENGTH:
                    suggestions.setdefault(sentence, None)
        return list(suggestions)[:limit]

    async def _record(
        self,
        query: str,
        organization_id: str,
        sources: list[tuple[str, float]],
        user_id: str | None,
    ) -> None:
        if self._analytics is None:
            return
        avg_score = sum(score for _, score in sources) / len(sources) if sources else None
        await self._analytics.record_search(
            query, organization_id, len(sources), user_id=user_id, avg_score=avg_score
        )
        await self._analytics.track_document_usage(sources)
