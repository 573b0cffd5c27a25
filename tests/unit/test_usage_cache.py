"""
Unit tests for usage cache implementations.

Runs the same behaviour checks against the Redis cache (fakeredis) and the
in-process cache.
Dependencies: pytest, fakeredis, retrieval_core.boundary.cache
System role: Analytics storage verification
"""

import pytest

from retrieval_core.boundary.cache import InMemoryUsageCache, RedisUsageCache, UsageCache


@pytest.fixture(params=["redis", "memory"])
def usage_cache(request, redis_client) -> UsageCache:
    """Provide each usage cache implementation."""
    if request.param == "redis":
        return RedisUsageCache(redis_client, key_prefix="test")
    return InMemoryUsageCache()


class TestUsageCacheSearches:
    """Test suite for search history storage."""

    @pytest.mark.asyncio
    async def test_list_searches_should_return_newest_first(self, usage_cache: UsageCache) -> None:
        # Arrange
        for n in range(3):
            await usage_cache.push_search("org-1", {"query": f"q{n}"}, max_entries=10)

        # Act
        entries = await usage_cache.list_searches("org-1")

        # Assert
        assert [e["query"] for e in entries] == ["q2", "q1", "q0"]

    @pytest.mark.asyncio
    async def test_push_search_should_cap_history(self, usage_cache: UsageCache) -> None:
        """Test only the newest max_entries survive."""
        for n in range(5):
            await usage_cache.push_search("org-1", {"query": f"q{n}"}, max_entries=3)

        entries = await usage_cache.list_searches("org-1")

        assert [e["query"] for e in entries] == ["q4", "q3", "q2"]

    @pytest.mark.asyncio
    async def test_list_searches_should_respect_limit(self, usage_cache: UsageCache) -> None:
        for n in range(4):
            await usage_cache.push_search("org-1", {"query": f"q{n}"}, max_entries=10)

        assert len(await usage_cache.list_searches("org-1", limit=2)) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [0, -1, -5])
    async def test_list_searches_with_non_positive_limit_should_return_empty(
        self, usage_cache: UsageCache, limit: int
    ) -> None:
        """Test a zero or negative limit never falls through to the full history."""
        for n in range(4):
            await usage_cache.push_search("org-1", {"query": f"q{n}"}, max_entries=10)

        assert await usage_cache.list_searches("org-1", limit=limit) == []

    @pytest.mark.asyncio
    async def test_searches_should_be_partitioned_by_organization(self, usage_cache: UsageCache) -> None:
        await usage_cache.push_search("org-1", {"query": "mine"}, max_entries=10)
        await usage_cache.push_search("org-2", {"query": "theirs"}, max_entries=10)

        assert [e["query"] for e in await usage_cache.list_searches("org-1")] == ["mine"]

    @pytest.mark.asyncio
    async def test_clear_searches_should_drop_one_or_all_organizations(self, usage_cache: UsageCache) -> None:
        # Arrange
        await usage_cache.push_search("org-1", {"query": "a"}, max_entries=10)
        await usage_cache.push_search("org-2", {"query": "b"}, max_entries=10)

        # Act & Assert
        await usage_cache.clear_searches("org-1")
        assert await usage_cache.list_searches("org-1") == []
        assert len(await usage_cache.list_searches("org-2")) == 1

        await usage_cache.clear_searches()
        assert await usage_cache.list_searches("org-2") == []


class TestUsageCacheDocumentUsage:
    """Test suite for document usage counters."""

    @pytest.mark.asyncio
    async def test_record_usage_should_accumulate_counters(self, usage_cache: UsageCache) -> None:
        # Arrange
        await usage_cache.record_usage("doc-1", 0.5, "2026-01-01T00:00:00+00:00")
        await usage_cache.record_usage("doc-1", 0.75, "2026-01-02T00:00:00+00:00")

        # Act
        usage = await usage_cache.get_usage(["doc-1", "doc-2"])

        # Assert
        assert set(usage) == {"doc-1"}
        assert usage["doc-1"]["count"] == 2
        assert usage["doc-1"]["total_score"] == pytest.approx(1.25)
        assert usage["doc-1"]["last_used"] == "2026-01-02T00:00:00+00:00"

    @pytest.mark.asyncio
    async def test_clear_usage_should_drop_one_or_all_documents(self, usage_cache: UsageCache) -> None:
        await usage_cache.record_usage("doc-1", 0.5, "2026-01-01T00:00:00+00:00")
        await usage_cache.record_usage("doc-2", 0.5, "2026-01-01T00:00:00+00:00")

        await usage_cache.clear_usage("doc-1")
        assert set(await usage_cache.get_usage(["doc-1", "doc-2"])) == {"doc-2"}

        await usage_cache.clear_usage()
        assert await usage_cache.get_usage(["doc-1", "doc-2"]) == {}

    @pytest.mark.asyncio
    async def test_get_usage_should_return_empty_for_no_ids(self, usage_cache: UsageCache) -> None:
        assert await usage_cache.get_usage([]) == {}
