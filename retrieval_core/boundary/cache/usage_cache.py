"""
Usage cache for search history and document usage analytics.

The analytics service depends only on the UsageCache interface so that
history and counters live outside the process: Redis in deployments,
an in-process implementation for local development.

Dependencies: redis (asyncio client)
System role: Shared storage for analytics that survives restarts
"""

import json
from abc import ABC, abstractmethod
from collections import defaultdict, deque
from typing import Any, Sequence

from redis.asyncio import Redis


class UsageCache(ABC):
    """Storage primitives needed by the analytics service."""

    @abstractmethod
    async def push_search(self, organization_id: str, entry: dict[str, Any], max_entries: int) -> None:
        """Append a search entry, keeping only the newest max_entries."""

    @abstractmethod
    async def list_searches(self, organization_id: str, limit: int | None = None) -> list[dict[str, Any]]:
        """Return search entries, newest first."""

    @abstractmethod
    async def clear_searches(self, organization_id: str | None = None) -> None:
        """Drop search history for one organization, or all of it."""

    @abstractmethod
    async def record_usage(self, document_id: str, score: float, used_at: str) -> None:
        """Increment a document's usage counters."""

    @abstractmethod
    async def get_usage(self, document_ids: Sequence[str]) -> dict[str, dict[str, Any]]:
        """Return usage counters for the documents that have any."""

    @abstractmethod
    async def clear_usage(self, document_id: str | None = None) -> None:
        """Drop usage counters for one document, or all of them."""

    async def close(self) -> None:
        """Release underlying connections."""


class RedisUsageCache(UsageCache):
    """
    Redis-backed usage cache.

    Keys:
        {prefix}:searches:{organization_id}  list of JSON entries, newest at head
        {prefix}:usage:{document_id}         hash {count, total_score, last_used}
    """

    def __init__(self, redis_client: Redis, key_prefix: str = "retrieval") -> None:
        self._redis = redis_client
        self._key_prefix = key_prefix

    def _searches_key(self, organization_id: str) -> str:
        return f"{self._key_prefix}:searches:{organization_id}"

    def _usage_key(self, document_id: str) -> str:
        return f"{self._key_prefix}:usage:{document_id}"

    async def push_search(self, organization_id: str, entry: dict[str, Any], max_entries: int) -> None:
        key = self._searches_key(organization_id)
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.lpush(key, json.dumps(entry))
            pipe.ltrim(key, 0, max_entries - 1)
            await pipe.execute()

    async def list_searches(self, organization_id: str, limit: int | None = None) -> list[dict[str, Any]]:
        if limit is not None and limit < 1:
            return []
        end = -1 if limit is None else limit - 1
        raw = await self._redis.lrange(self._searches_key(organization_id), 0, end)
        entries = []
        for item in raw:
            try:
                payload = json.loads(item)
            except json.JSONDecodeError:
                continue
            if isinstance(payload, dict):
                entries.append(payload)
        return entries

    async def clear_searches(self, organization_id: str | None = None) -> None:
        if organization_id is not None:
            await self._redis.delete(self._searches_key(organization_id))
            return
        await self._delete_matching(f"{self._key_prefix}:searches:*")

    async def record_usage(self, document_id: str, score: float, used_at: str) -> None:
        key = self._usage_key(document_id)
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.hincrby(key, "count", 1)
            pipe.hincrbyfloat(key, "total_score", score)
            pipe.hset(key, "last_used", used_at)
            await pipe.execute()

    async def get_usage(self, document_ids: Sequence[str]) -> dict[str, dict[str, Any]]:
        if not document_ids:
            return {}
        async with self._redis.pipeline(transaction=False) as pipe:
            for document_id in document_ids:
                pipe.hgetall(self._usage_key(document_id))
            rows = await pipe.execute()

        usage: dict[str, dict[str, Any]] = {}
        for document_id, row in zip(document_ids, rows):
            if not row:
                continue
            decoded = {_text(k): _text(v) for k, v in row.items()}
            usage[document_id] = {
                "count": int(decoded.get("count", 0)),
                "total_score": float(decoded.get("total_score", 0.0)),
                "last_used": decoded.get("last_used"),
            }
        return usage

    async def clear_usage(self, document_id: str | None = None) -> None:
        if document_id is not None:
            await self._redis.delete(self._usage_key(document_id))
            return
        await self._delete_matching(f"{self._key_prefix}:usage:*")

    async def _delete_matching(self, pattern: str) -> None:
        keys = [key async for key in self._redis.scan_iter(match=pattern)]
        if keys:
            await self._redis.delete(*keys)

    async def close(self) -> None:
        await self._redis.aclose()


class InMemoryUsageCache(UsageCache):
    """Process-local usage cache for development; not shared between instances."""

    def __init__(self) -> None:
        self._searches: dict[str, deque] = defaultdict(deque)
        self._usage: dict[str, dict[str, Any]] = {}

    async def push_search(self, organization_id: str, entry: dict[str, Any], max_entries: int) -> None:
        history = self._searches[organization_id]
        history.appendleft(dict(entry))
        while len(history) > max_entries:
            history.pop()

    async def list_searches(self, organization_id: str, limit: int | None = None) -> list[dict[str, Any]]:
        if limit is not None and limit < 1:
            return []
        entries = [dict(e) for e in self._searches.get(organization_id, ())]
        return entries if limit is None else entries[:limit]

    async def clear_searches(self, organization_id: str | None = None) -> None:
        if organization_id is None:
            self._searches.clear()
        else:
            self._searches.pop(organization_id, None)

    async def record_usage(self, document_id: str, score: float, used_at: str) -> None:
        usage = self._usage.setdefault(
            document_id, {"count": 0, "total_score": 0.0, "last_used": None}
        )
        usage["count"] += 1
        usage["total_score"] += score
        usage["last_used"] = used_at

    async def get_usage(self, document_ids: Sequence[str]) -> dict[str, dict[str, Any]]:
        return {d: dict(self._usage[d]) for d in document_ids if d in self._usage}

    async def clear_usage(self, document_id: str | None = None) -> None:
        if document_id is None:
            self._usage.clear()
        else:
            self._usage.pop(document_id, None)


def _text(value: bytes | str) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else value
