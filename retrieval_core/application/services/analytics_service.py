"""
Search analytics service.

Search history (popular, recent and related queries, per-organization stats) and
document usage tracking, stored in an injected UsageCache so the data is
shared between instances and survives restarts. Recording is fail-open:
a cache outage is logged and never breaks a search.

Dependencies: redis, retrieval_core.boundary.cache, retrieval_core.boundary.db
System role: Usage analytics for the knowledge base
"""

import logging
from datetime import datetime, timezone
from typing import Iterable

from pydantic import BaseModel
from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from retrieval_core.boundary.cache.usage_cache import UsageCache
from retrieval_core.boundary.db.CRUD.document_crud import document_crud

logger = logging.getLogger(__name__)

RELATED_QUERY_CANDIDATES = 50


class SearchHistoryEntry(BaseModel):
    query: str
    timestamp: datetime
    organization_id: str
    results_count: int
    user_id: str | None = None
    avg_score: float | None = None


class PopularQuery(BaseModel):
    query: str
    count: int
    last_searched: datetime
    avg_results: float


class SearchStats(BaseModel):
    total_searches: int = 0
    unique_queries: int = 0
    avg_results_per_search: float = 0.0
    avg_score: float = 0.0


class DocumentUsageStats(BaseModel):
    document_id: str
    document_title: str
    times_used: int
    avg_score: float
    last_used: datetime | None = None


class AnalyticsService:
    """Search history and document usage analytics over a UsageCache."""

    def __init__(
        self,
        cache: UsageCache,
        session_factory: async_sessionmaker[AsyncSession],
        max_history: int = 1000,
    ) -> None:
        """
        Initialize analytics.

        Args:
            cache: Shared usage cache
            session_factory: Factory for metadata store sessions (document titles)
            max_history: Search entries kept per organization
        """
        self._cache = cache
        self._session_factory = session_factory
        self._max_history = max_history

    async def record_search(
        self,
        query: str,
        organization_id: str,
        results_count: int,
        user_id: str | None = None,
        avg_score: float | None = None,
    ) -> None:
        """Append a search to the organization's history."""
        entry = SearchHistoryEntry(
            query=query,
            timestamp=datetime.now(timezone.utc),
            organization_id=organization_id,
            results_count=results_count,
            user_id=user_id,
            avg_score=avg_score,
        )
        try:
            await self._cache.push_search(
                organization_id, entry.model_dump(mode="json"), self._max_history
            )
        except RedisError as e:
            logger.warning(f"{__name__}:record_search - Cache unavailable, search not recorded: {e}")
            return
        logger.debug(f'{__name__}:record_search - Recorded search: "{query}" ({results_count} results)')

    async def _history(self, organization_id: str, limit: int | None = None) -> list[SearchHistoryEntry]:
        raw = await self._cache.list_searches(organization_id, limit)
        return [SearchHistoryEntry.model_validate(item) for item in raw]

    async def recent_searches(self, organization_id: str, limit: int = 10) -> list[SearchHistoryEntry]:
        """Most recent searches first."""
        return await self._history(organization_id, limit)

    async def popular_queries(self, organization_id: str, limit: int = 10) -> list[PopularQuery]:
        """
        Aggregate history by normalized query text.

        Returns:
            list[PopularQuery]: Most frequent first, then most recent
        """
        aggregated: dict[str, dict] = {}
        for entry in await self._history(organization_id):
            normalized = entry.query.lower().strip()
            bucket = aggregated.setdefault(
                normalized, {"count": 0, "last_searched": entry.timestamp, "total_results": 0}
            )
            bucket["count"] += 1
            bucket["total_results"] += entry.results_count
            if entry.timestamp > bucket["last_searched"]:
                bucket["last_searched"] = entry.timestamp

        popular = [
            PopularQuery(
                query=query,
                count=data["count"],
                last_searched=data["last_searched"],
                avg_results=data["total_results"] / data["count"],
            )
            for query, data in aggregated.items()
        ]
        popular.sort(key=lambda p: (-p.count, -p.last_searched.timestamp(), p.query))
        return popular[:limit]

    async def related_queries(self, query: str, organization_id: str, limit: int = 5) -> list[str]:
        """
        Popular queries sharing at least one word with the query.

        Args:
            query: Query to relate
            organization_id: Tenant id
            limit: Maximum related queries

        Returns:
            list[str]: Most shared words first, then by popularity; never
            the query itself
        """
        if limit < 1:
            return []
        normalized = query.lower().strip()
        words = set(normalized.split())
        related: list[tuple[int, str]] = []
        for popular in await self.popular_queries(organization_id, limit=RELATED_QUERY_CANDIDATES):
            if popular.query == normalized:
                continue
            overlap = len(words & set(popular.query.split()))
            if overlap:
                related.append((overlap, popular.query))
        # Stable sort keeps popularity order among equal overlaps
        related.sort(key=lambda item: -item[0])
        return [text for _, text in related[:limit]]

    async def search_stats(self, organization_id: str) -> SearchStats:
        """Totals and averages over the organization's retained history."""
        history = await self._history(organization_id)
        if not history:
            return SearchStats()

        scored = [e.avg_score for e in history if e.avg_score is not None]
        return SearchStats(
            total_searches=len(history),
            unique_queries=len({e.query.lower() for e in history}),
            avg_results_per_search=sum(e.results_count for e in history) / len(history),
            avg_score=sum(scored) / len(scored) if scored else 0.0,
        )

    async def clear_history(self, organization_id: str | None = None) -> None:
        """Drop search history for one organization, or for all of them."""
        await self._cache.clear_searches(organization_id)
        logger.info(
            f"{__name__}:clear_history - Cleared search history for "
            f"{organization_id or 'all organizations'}"
        )

    async def track_document_usage(self, sources: Iterable[tuple[str, float]]) -> None:
        """
        Count each (document_id, score) pair as one use of the document.

        Args:
            sources: Document ids with the score they were returned with
        """
        used_at = datetime.now(timezone.utc).isoformat()
        tracked = 0
        try:
            for document_id, score in sources:
                await self._cache.record_usage(document_id, score, used_at)
                tracked += 1
        except RedisError as e:
            logger.warning(f"{__name__}:track_document_usage - Cache unavailable: {e}")
            return
        logger.debug(f"{__name__}:track_document_usage - Tracked usage for {tracked} documents")

    async def document_stats(self, organization_id: str) -> list[DocumentUsageStats]:
        """
        Usage statistics for the organization's documents that were used.

        Returns:
            list[DocumentUsageStats]: Most used first
        """
        async with self._session_factory() as session:
            documents = await document_crud.list_by_organization(session, organization_id)
        titles = {str(doc.id): doc.title for doc in documents}
        usage = await self._cache.get_usage(list(titles))

        stats = [
            DocumentUsageStats(
                document_id=document_id,
                document_title=titles[document_id],
                times_used=data["count"],
                avg_score=data["total_score"] / data["count"] if data["count"] else 0.0,
                last_used=datetime.fromisoformat(data["last_used"]) if data.get("last_used") else None,
            )
            for document_id, data in usage.items()
        ]
        stats.sort(key=lambda s: (-s.times_used, s.document_id))
        return stats

    async def top_documents(self, organization_id: str, limit: int = 10) -> list[DocumentUsageStats]:
        """The limit most used documents of the organization."""
        return (await self.document_stats(organization_id))[:limit]

    async def clear_usage(self, document_id: str | None = None) -> None:
        """Drop usage counters for one document, or all of them."""
        await self._cache.clear_usage(document_id)
        logger.info(
            f"{__name__}:clear_usage - Cleared analytics for {document_id or 'all documents'}"
        )
