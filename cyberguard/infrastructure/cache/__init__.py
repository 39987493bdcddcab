import logging
from typing import Optional

import redis

from ...application.ports.cache import Cache
from .memory_cache import InMemoryCache
from .redis_cache import RedisCache

logger = logging.getLogger(__name__)


def build_cache(redis_url: Optional[str]) -> Cache:
    """Redis when reachable, otherwise a per-process memory cache."""
    if redis_url:
        try:
            cache = RedisCache(url=redis_url)
            cache.client.ping()
            logger.info("Redis cache initialized")
            return cache
        except redis.RedisError as e:
            logger.warning(f"Redis not available, using memory cache: {e}")
    else:
        logger.info("Using memory-based cache")
    return InMemoryCache()


__all__ = ["build_cache", "InMemoryCache", "RedisCache"]
