"""
Usage cache factory.

Dependencies: redis, retrieval_core.configs
System role: Usage cache instantiation and selection
"""

import logging

from redis.asyncio import Redis

from retrieval_core.boundary.cache.usage_cache import (
    InMemoryUsageCache,
    RedisUsageCache,
    UsageCache,
)
from retrieval_core.configs import get_settings
from retrieval_core.configs.cache import CacheSettings

logger = logging.getLogger(__name__)


def get_usage_cache(config: CacheSettings | None = None) -> UsageCache:
    """
    Build the configured usage cache.

    Args:
        config: Cache settings (read from environment if None)

    Returns:
        UsageCache: Redis-backed or in-process cache

    Raises:
        ValueError: If backend is invalid
    """
    config = config or get_settings().cache
    backend = config.backend.lower()

    if backend == "redis":
        logger.info(f"{__name__}:get_usage_cache - Using Redis usage cache")
        return RedisUsageCache(Redis.from_url(config.redis_url), key_prefix=config.key_prefix)

    if backend == "memory":
        logger.info(f"{__name__}:get_usage_cache - Using in-process usage cache")
        return InMemoryUsageCache()

    raise ValueError(f"Invalid CACHE_BACKEND: {backend}. Must be 'redis' or 'memory'.")
