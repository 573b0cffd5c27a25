"""
Integration tests for SearchService and AnalyticsService.

Tests settings defaults, search history and document usage recording
through the Redis usage cache, fail-open analytics, query suggestions and
the analytics aggregations including related queries.
Dependencies: pytest, fakeredis, redis, retrieval_core.application.services
System role: Search facade and analytics verification
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from retrieval_core.application.services import AnalyticsService, SearchService
from retrieval_core.boundary.cache import RedisUsageCache
from retrieval_core.configs.retrieval import RetrievalSettings
from retrieval_core.core.indexing import Indexer
from retrieval_core.core.search import HybridRanker, KeywordSearch, SemanticSearch

CHUNKS = [
    "Vector search is fast. Vector search scales to millions of chunks! Tiny.",
    "Keyword search needs exact words. Vector search finds paraphrases too?",
]


@pytest.fixture
def usage_cache(redis_client) -> RedisUsageCache:
    return RedisUsageCache(redis_client, key_prefix="test")


@pytest.fixture
def analytics(usage_cache, session_factory) -> AnalyticsService:
    return AnalyticsService(usage_cache, session_factory, max_history=50)


@pytest.fixture
def search_service(session_factory, embedding_client, vector_store, analytics) -> SearchService:
    semantic = SemanticSearch(embedding_client, vector_store)
    keyword = KeywordSearch(session_factory)
    return SearchService(
        session_factory,
        semantic,
        keyword,
        HybridRanker(semantic, keyword),
        analytics=analytics,
        config=RetrievalSettings(semantic_threshold=0.1, hybrid_threshold=0.1),
    )


@pytest.fixture
async def indexed_document(seed_document, session_factory, embedding_client, vector_store, organization_id):
    document = await seed_document(organization_id, CHUNKS, title="Search Guide")
    await Indexer(session_factory, embedding_client, vector_store).index_document(document.id, organization_id)
    return document


class TestSearchServiceSearches:
    """Test suite for searches with analytics recording."""

    @pytest.mark.asyncio
    async def test_search_similar_should_record_history_and_usage(
        self, search_service, analytics, indexed_document, organization_id
    ) -> None:
        # Act
        results = await search_service.search_similar("vector search", organization_id, user_id="u-1")

        # Assert
        assert results
        recent = await analytics.recent_searches(organization_id)
        assert recent[0].query == "vector search"
        assert recent[0].results_count == len(results)
        assert recent[0].user_id == "u-1"
        stats = await analytics.document_stats(organization_id)
        assert stats[0].document_title == "Search Guide"
        assert stats[0].times_used == len(results)

    @pytest.mark.asyncio
    async def test_hybrid_search_should_use_settings_defaults(
        self, search_service, indexed_document, organization_id
    ) -> None:
        results = await search_service.hybrid_search("keyword exact words", organization_id)

        assert results[0].content == CHUNKS[1]
        assert len(results) <= RetrievalSettings().default_limit

    @pytest.mark.asyncio
    async def test_keyword_search_should_not_require_embeddings(
        self, search_service, seed_document, organization_id
    ) -> None:
        await seed_document(organization_id, CHUNKS)

        matches = await search_service.keyword_search("paraphrases", organization_id)

        assert [m.content for m in matches] == [CHUNKS[1]]

    @pytest.mark.asyncio
    async def test_search_should_succeed_when_cache_is_down(
        self, session_factory, embedding_client, vector_store, indexed_document, organization_id
    ) -> None:
        """Test analytics failures never break a search."""
        # Arrange
        broken_cache = MagicMock()
        broken_cache.push_search = AsyncMock(side_effect=RedisConnectionError("down"))
        broken_cache.record_usage = AsyncMock(side_effect=RedisConnectionError("down"))
        semantic = SemanticSearch(embedding_client, vector_store)
        keyword = KeywordSearch(session_factory)
        service = SearchService(
            session_factory,
            semantic,
            keyword,
            HybridRanker(semantic, keyword),
            analytics=AnalyticsService(broken_cache, session_factory),
            config=RetrievalSettings(hybrid_threshold=0.1),
        )

        # Act
        results = await service.hybrid_search("vector search", organization_id)

        # Assert
        assert results
        broken_cache.push_search.assert_awaited_once()


class TestSearchServiceSuggestions:
    """Test suite for SearchService.search_suggestions()."""

    @pytest.mark.asyncio
    async def test_search_suggestions_should_return_matching_sentences(
        self, search_service, seed_document, organization_id
    ) -> None:
        # Arrange
        await seed_document(organization_id, CHUNKS)

        # Act
        suggestions = await search_service.search_suggestions("vector search", organization_id)

        # Assert
        assert suggestions == [
            "Vector search is fast",
            "Vector search scales to millions of chunks",
            "Vector search finds paraphrases too",
        ]

    @pytest.mark.asyncio
    async def test_search_suggestions_should_apply_limit(self, search_service, seed_document, organization_id) -> None:
        await seed_document(organization_id, CHUNKS)

        assert len(await search_service.search_suggestions("vector", organization_id, limit=2)) == 2

    @pytest.mark.asyncio
    async def test_search_suggestions_should_deduplicate(self, search_service, seed_document, organization_id) -> None:
        await seed_document(organization_id, ["Repeated sentence here. Repeated sentence here."])

        assert await search_service.search_suggestions("repeated", organization_id) == ["Repeated sentence here"]

    @pytest.mark.asyncio
    async def test_search_suggestions_should_return_empty_for_blank_query(self, search_service, organization_id) -> None:
        assert await search_service.search_suggestions("  ", organization_id) == []


class TestAnalyticsService:
    """Test suite for analytics aggregations."""

    @pytest.mark.asyncio
    async def test_popular_queries_should_group_normalized_queries(self, analytics, organization_id) -> None:
        # Arrange
        await analytics.record_search("Revenue", organization_id, 4)
        await analytics.record_search(" revenue ", organization_id, 2)
        await analytics.record_search("churn", organization_id, 1)

        # Act
        popular = await analytics.popular_queries(organization_id)

        # Assert
        assert popular[0].query == "revenue"
        assert popular[0].count == 2
        assert popular[0].avg_results == pytest.approx(3.0)
        assert popular[1].query == "churn"

    @pytest.mark.asyncio
    async def test_related_queries_should_rank_by_shared_words(self, analytics, organization_id) -> None:
        """Test related queries share words, skip the query itself and keep popularity order on ties."""
        # Arrange
        await analytics.record_search("reset db password", organization_id, 3)
        await analytics.record_search("reset db password", organization_id, 3)
        await analytics.record_search("db backup", organization_id, 1)
        await analytics.record_search("reset password now", organization_id, 2)
        await analytics.record_search("glacier", organization_id, 1)
        await analytics.record_search("Reset Password", organization_id, 2)

        # Act
        related = await analytics.related_queries("reset password", organization_id)

        # Assert
        assert related == ["reset db password", "reset password now"]

    @pytest.mark.asyncio
    async def test_related_queries_should_apply_limit(self, analytics, organization_id) -> None:
        await analytics.record_search("db backup", organization_id, 1)
        await analytics.record_search("db restore", organization_id, 1)

        assert len(await analytics.related_queries("db", organization_id, limit=1)) == 1
        assert await analytics.related_queries("db", organization_id, limit=0) == []

    @pytest.mark.asyncio
    async def test_search_stats_should_average_history(self, analytics, organization_id) -> None:
        await analytics.record_search("a query", organization_id, 4, avg_score=0.5)
        await analytics.record_search("b query", organization_id, 2, avg_score=0.7)

        stats = await analytics.search_stats(organization_id)

        assert stats.total_searches == 2
        assert stats.unique_queries == 2
        assert stats.avg_results_per_search == pytest.approx(3.0)
        assert stats.avg_score == pytest.approx(0.6)

    @pytest.mark.asyncio
    async def test_search_stats_should_be_zero_without_history(self, analytics, organization_id) -> None:
        assert (await analytics.search_stats(organization_id)).total_searches == 0

    @pytest.mark.asyncio
    async def test_history_should_be_capped(self, usage_cache, session_factory, organization_id) -> None:
        analytics = AnalyticsService(usage_cache, session_factory, max_history=3)
        for n in range(5):
            await analytics.record_search(f"q{n}", organization_id, 0)

        recent = await analytics.recent_searches(organization_id, limit=10)

        assert [e.query for e in recent] == ["q4", "q3", "q2"]

    @pytest.mark.asyncio
    async def test_top_documents_should_rank_by_usage(
        self, analytics, seed_document, organization_id
    ) -> None:
        # Arrange
        first = await seed_document(organization_id, ["x"], title="First")
        second = await seed_document(organization_id, ["y"], title="Second")
        await analytics.track_document_usage([(str(second.id), 0.9), (str(second.id), 0.7), (str(first.id), 0.5)])

        # Act
        top = await analytics.top_documents(organization_id, limit=1)

        # Assert
        assert len(top) == 1
        assert top[0].document_title == "Second"
        assert top[0].times_used == 2
        assert top[0].avg_score == pytest.approx(0.8)
        assert top[0].last_used is not None

    @pytest.mark.asyncio
    async def test_clear_history_and_usage_should_reset(
        self, analytics, seed_document, organization_id
    ) -> None:
        document = await seed_document(organization_id, ["x"])
        await analytics.record_search("query", organization_id, 1)
        await analytics.track_document_usage([(str(document.id), 0.5)])

        await analytics.clear_history(organization_id)
        await analytics.clear_usage()

        assert await analytics.recent_searches(organization_id) == []
        assert await analytics.document_stats(organization_id) == []
