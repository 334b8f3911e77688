"""
HealthRisk lookup cache

Short-lived cache for identifier resolution. A miss, an expired entry or a
backend failure simply means the caller resolves again; nothing here is
required for correctness.
"""

import json
import time
from collections import OrderedDict
from typing import Any, Callable, Optional

import redis.asyncio as redis

from .config import CacheSettings, get_config
from .logging import get_logger

logger = get_logger(__name__)


class LookupCache:
    """
    In-process TTL cache with a fixed capacity

    Entries expire `ttl_seconds` after they are written. When full, the least
    recently used entry is evicted.
    """

    def __init__(
        self,
        ttl_seconds: int = 60,
        capacity: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.ttl_seconds = ttl_seconds
        self.capacity = capacity
        self._clock = clock
        self._entries: "OrderedDict[str, tuple[float, Any]]" = OrderedDict()

    async def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            logger.debug(f"Cache miss: {key}")
            return None

        expires_at, value = entry
        if expires_at <= self._clock():
            del self._entries[key]
            logger.debug(f"Cache expired: {key}")
            return None

        self._entries.move_to_end(key)
        logger.debug(f"Cache hit: {key}")
        return value

    async def set(self, key: str, value: Any) -> bool:
        self._entries[key] = (self._clock() + self.ttl_seconds, value)
        self._entries.move_to_end(key)
        while len(self._entries) > self.capacity:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Cache evicted: {evicted}")
        return True

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    async def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    async def close(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class RedisLookupCache:
    """Redis-backed lookup cache shared between worker processes"""

    def __init__(self, url: str, ttl_seconds: int = 60, prefix: str = "healthrisk"):
        self.url = url
        self.ttl_seconds = ttl_seconds
        self.prefix = prefix
        self._redis: Optional[redis.Redis] = None

    async def connect(self) -> None:
        if self._redis is None:
            self._redis = redis.from_url(
                self.url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
            )
            logger.info(f"Redis lookup cache configured: {self.url}")

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            logger.info("Redis disconnected")
            self._redis = None

    def _make_key(self, key: str) -> str:
        return f"{self.prefix}:lookup:{key}"

    async def get(self, key: str) -> Optional[Any]:
        await self.connect()
        try:
            value = await self._redis.get(self._make_key(key))
        except redis.RedisError as e:
            logger.warning(f"Cache get error for {key}: {e}")
            return None
        if value is None:
            logger.debug(f"Cache miss: {key}")
            return None
        logger.debug(f"Cache hit: {key}")
        return json.loads(value)

    async def set(self, key: str, value: Any) -> bool:
        await self.connect()
        try:
            await self._redis.set(
                self._make_key(key),
                json.dumps(value, ensure_ascii=False),
                ex=self.ttl_seconds,
            )
        except redis.RedisError as e:
            logger.warning(f"Cache set error for {key}: {e}")
            return False
        return True

    async def delete(self, key: str) -> bool:
        await self.connect()
        try:
            return await self._redis.delete(self._make_key(key)) > 0
        except redis.RedisError as e:
            logger.warning(f"Cache delete error for {key}: {e}")
            return False

    async def clear(self) -> int:
        await self.connect()
        try:
            keys = [key async for key in self._redis.scan_iter(match=self._make_key("*"))]
            if not keys:
                return 0
            return await self._redis.delete(*keys)
        except redis.RedisError as e:
            logger.warning(f"Cache clear error: {e}")
            return 0


def create_cache(settings: Optional[CacheSettings] = None):
    """Build the cache selected by configuration, or None when disabled."""
    settings = settings or get_config().cache
    if not settings.enabled:
        return None
    if settings.backend == "redis":
        return RedisLookupCache(settings.redis_url, settings.ttl_seconds, settings.key_prefix)
    return LookupCache(settings.ttl_seconds, settings.capacity)
