import json
import logging
from typing import Any, Optional

import redis

from ...application.ports.cache import Cache

logger = logging.getLogger(__name__)


class RedisCache(Cache):
    """JSON values in Redis. Read errors count as misses; the database stays the source of truth."""

    def __init__(self, url: Optional[str] = None, client: Optional[redis.Redis] = None, prefix: str = "") -> None:
        self.client = client or redis.Redis.from_url(url)
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get(self, key: str) -> Optional[Any]:
        try:
            raw = self.client.get(self._key(key))
        except redis.RedisError as e:
            logger.warning(f"Redis get failed for {key}: {e}")
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            return None

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        try:
            self.client.set(self._key(key), json.dumps(value, default=str), ex=ttl_seconds)
        except redis.RedisError as e:
            logger.warning(f"Redis set failed for {key}: {e}")

    def delete(self, *keys: str) -> None:
        if not keys:
            return
        # Errors propagate: a write must not report success while a stale listing survives
        self.client.delete(*(self._key(k) for k in keys))
