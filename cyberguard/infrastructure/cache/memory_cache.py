import time
from typing import Any, Dict, Optional, Tuple

from ...application.ports.cache import Cache


class InMemoryCache(Cache):
    def __init__(self) -> None:
        self._store: Dict[str, Tuple[float, Any]] = {}

    def get(self, key: str) -> Optional[Any]:
        rec = self._store.get(key)
        if not rec:
            return None
        expires_at, value = rec
        if expires_at <= time.time():
            self._store.pop(key, None)
            return None
        return value

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        self._store[key] = (time.time() + ttl_seconds, value)

    def delete(self, *keys: str) -> None:
        for key in keys:
            self._store.pop(key, None)
