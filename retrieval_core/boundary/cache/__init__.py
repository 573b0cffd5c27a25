"""
Usage cache boundary: analytics storage abstraction and implementations.
"""

from retrieval_core.boundary.cache.cache_factory import get_usage_cache
from retrieval_core.boundary.cache.usage_cache import (
    InMemoryUsageCache,
    RedisUsageCache,
    UsageCache,
)

__all__ = ["UsageCache", "RedisUsageCache", "InMemoryUsageCache", "get_usage_cache"]
