"""
Redis-backed cache for resolved media links and the request counter.

Entries are JSON-serialized CacheEntry models stored with SET EX, keyed by
the percent-encoded source URL and the requested format. The request
counter relies on INCR being atomic in Redis; no locking happens here.
"""

import logging
from urllib.parse import quote

from pydantic import ValidationError
from redis import asyncio as aioredis
from redis.exceptions import RedisError

from ..models.cache import CacheEntry
from ..models.enums import MediaFormat
from .errors import StoreUnavailable

logger = logging.getLogger(__name__)

TOTAL_REQUESTS_KEY = "total_requests"


def create_redis_client(redis_url: str) -> aioredis.Redis:
    return aioredis.from_url(redis_url, decode_responses=True)


class MediaCache:
    """Cache of resolved media links keyed by (source url, format)."""

    def __init__(self, redis: aioredis.Redis, key_prefix: str = "instagram"):
        self.redis = redis
        self.key_prefix = key_prefix

    def cache_key(self, url: str, fmt: MediaFormat | str) -> str:
        fmt_value = fmt.value if isinstance(fmt, MediaFormat) else fmt
        return f"{self.key_prefix}:{quote(url, safe='')}:{fmt_value}"

    async def get(self, url: str, fmt: MediaFormat | str) -> CacheEntry | None:
        key = self.cache_key(url, fmt)
        try:
            raw = await self.redis.get(key)
        except RedisError as e:
            raise StoreUnavailable(f"Cache read failed: {e}") from e

        if raw is None:
            return None

        try:
            return CacheEntry.model_validate_json(raw)
        except ValidationError:
            logger.warning("Ignoring malformed cache entry at %s", key)
            return None

    async def set(self, url: str, fmt: MediaFormat | str, entry: CacheEntry, ttl: int) -> None:
        key = self.cache_key(url, fmt)
        try:
            await self.redis.set(key, entry.model_dump_json(), ex=ttl)
        except RedisError as e:
            raise StoreUnavailable(f"Cache write failed: {e}") from e
        logger.info("Cached %s for %ds (storage_id=%s)", key, ttl, entry.storage_id)

    async def increment(self, counter_key: str = TOTAL_REQUESTS_KEY) -> int:
        try:
            return int(await self.redis.incr(counter_key))
        except RedisError as e:
            raise StoreUnavailable(f"Counter update failed: {e}") from e

    async def get_counter(self, counter_key: str = TOTAL_REQUESTS_KEY) -> int:
        try:
            value = await self.redis.get(counter_key)
        except RedisError as e:
            raise StoreUnavailable(f"Counter read failed: {e}") from e
        return int(value) if value else 0

    async def ping(self) -> bool:
        try:
            return bool(await self.redis.ping())
        except RedisError:
            return False

    async def invalidate(self, key: str, storage_id: str) -> bool:
        """Drop the entry at key if it still points at storage_id."""
        try:
            raw = await self.redis.get(key)
            if raw is None:
                return False
            try:
                entry = CacheEntry.model_validate_json(raw)
            except ValidationError:
                entry = None
            if entry is not None and entry.storage_id != storage_id:
                return False
            await self.redis.delete(key)
        except RedisError as e:
            raise StoreUnavailable(f"Cache invalidation failed: {e}") from e
        logger.info("Invalidated %s after deleting %s", key, storage_id)
        return True
