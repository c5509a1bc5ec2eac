"""
TTL cache for parsed quote settings.

Entries are stamped with a monotonic clock so wall-clock changes cannot
extend or cut short their lifetime.
"""

import asyncio
import time
from datetime import timedelta
from typing import Any, Dict, Optional, Tuple
from app.services.logger_service import get_logger


class CacheService:
    """In-memory key/value cache with a single TTL, shared by coroutines on one loop."""

    def __init__(self, ttl: timedelta = timedelta(seconds=60)):
        self.ttl_seconds = ttl.total_seconds()
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._lock = asyncio.Lock()
        self.logger = get_logger("cache_service", log_level="DEBUG")

    def _is_fresh(self, stored_at: float) -> bool:
        return time.monotonic() - stored_at <= self.ttl_seconds

    async def get(self, key: str) -> Optional[Any]:
        """Cached value, or None when missing or older than the TTL."""
        async with self._lock:
            entry = self._entries.get(key)
            hit = entry is not None and self._is_fresh(entry[1])
            if entry is not None and not hit:
                del self._entries[key]
            self.logger.log_cache(
                operation="get",
                key=key,
                cache_hit=hit,
                ttl_seconds=int(self.ttl_seconds)
            )
            return entry[0] if hit else None

    async def set(self, key: str, value: Any) -> None:
        async with self._lock:
            self._entries[key] = (value, time.monotonic())
            self.logger.log_cache(operation="set", key=key, cache_hit=False)

    async def invalidate(self, prefix: Optional[str] = None) -> int:
        """
        Drop entries whose key starts with `prefix` (all entries if None).

        Returns:
            Number of entries dropped
        """
        async with self._lock:
            stale = [k for k in self._entries if prefix is None or k.startswith(prefix)]
            for key in stale:
                del self._entries[key]
            self.logger.log_cache(operation="invalidate", key=prefix or "*", cache_hit=False)
            return len(stale)

    def get_stats(self) -> Dict[str, Any]:
        return {
            "total_entries": len(self._entries),
            "ttl_seconds": self.ttl_seconds,
            "keys": sorted(self._entries)
        }


_cache_service: Optional[CacheService] = None


def get_cache_service(ttl: timedelta = timedelta(seconds=60)) -> CacheService:
    """Process-wide cache; `ttl` applies only when the cache is first created."""
    global _cache_service
    if _cache_service is None:
        _cache_service = CacheService(ttl)
    return _cache_service
