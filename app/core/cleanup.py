"""
Cleanup of the resources an MP3 request leaves behind.

Local temp files are removed synchronously by the request that created
them. Uploaded objects are removed later: the request records a pending
deletion in a Redis sorted set (member = storage id, score = due time) and
a periodic sweep, run by APScheduler, deletes whatever is due. Pending
deletions therefore survive process restarts.

A sweep claims each record with ZREM before calling the object store, so
an object is deleted at most once even with several workers sweeping.
Failed deletions are logged and not retried.

When a deletion is scheduled with the cache key that serves the object,
the sweep drops that cache entry too, so a cache hit never returns a
URL whose object is gone.
"""

import logging
import time
from pathlib import Path

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from redis import asyncio as aioredis
from redis.exceptions import RedisError

from .cache import MediaCache
from .errors import MediaFetchError, StoreUnavailable
from .storage import ObjectStore

logger = logging.getLogger(__name__)

PENDING_DELETIONS_KEY = "cleanup:pending"
CACHE_KEYS_KEY = "cleanup:cache_keys"

_SWEEP_JOB_ID = "remote_object_cleanup"


def remove_temp_files(*paths: Path) -> None:
    """Delete local files, ignoring ones that were never created."""
    for path in paths:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.error("Failed to delete temporary file %s: %s", path, e)
    logger.info("Temporary files deleted: %s", ", ".join(p.name for p in paths))


class CleanupScheduler:
    """Durable, delayed deletion of uploaded objects."""

    def __init__(
        self,
        redis: aioredis.Redis,
        store: ObjectStore,
        delay: int = 60,
        poll_interval: int = 5,
        cache: MediaCache | None = None,
    ):
        self.redis = redis
        self.store = store
        self.cache = cache
        self.delay = delay
        self.poll_interval = poll_interval
        self._scheduler: AsyncIOScheduler | None = None

    async def schedule_deletion(
        self,
        storage_id: str,
        delay: int | None = None,
        cache_key: str | None = None,
    ) -> float:
        """Record that storage_id must be deleted after delay seconds. Returns the due time."""
        due = time.time() + (self.delay if delay is None else delay)
        try:
            if cache_key:
                await self.redis.hset(CACHE_KEYS_KEY, storage_id, cache_key)
            await self.redis.zadd(PENDING_DELETIONS_KEY, {storage_id: due})
        except RedisError as e:
            raise StoreUnavailable(f"Failed to schedule deletion of {storage_id}: {e}") from e
        logger.info("Scheduled deletion of %s in %ds", storage_id, int(due - time.time()))
        return due

    async def pending(self) -> dict[str, float]:
        entries = await self.redis.zrange(PENDING_DELETIONS_KEY, 0, -1, withscores=True)
        return {member: score for member, score in entries}

    async def sweep(self, now: float | None = None) -> list[str]:
        """Delete every object whose deletion is due. Returns the ids deleted."""
        now = time.time() if now is None else now
        try:
            due_ids = await self.redis.zrangebyscore(PENDING_DELETIONS_KEY, "-inf", now)
        except RedisError as e:
            logger.error("Cleanup sweep could not read pending deletions: %s", e)
            return []

        deleted: list[str] = []
        for storage_id in due_ids:
            try:
                claimed = await self.redis.zrem(PENDING_DELETIONS_KEY, storage_id)
            except RedisError as e:
                logger.error("Cleanup sweep could not claim %s: %s", storage_id, e)
                continue
            if not claimed:
                continue  # another worker took it

            await self._invalidate_cache(storage_id)

            try:
                await self.store.delete(storage_id)
            except MediaFetchError as e:
                logger.error("Failed to delete %s from object store: %s", storage_id, e)
                continue
            logger.info("Deleted %s from object store", storage_id)
            deleted.append(storage_id)

        return deleted

    async def _invalidate_cache(self, storage_id: str) -> None:
        try:
            key = await self.redis.hget(CACHE_KEYS_KEY, storage_id)
            if key is None:
                return
            await self.redis.hdel(CACHE_KEYS_KEY, storage_id)
            if self.cache is not None:
                await self.cache.invalidate(key, storage_id)
        except (RedisError, StoreUnavailable) as e:
            logger.error("Could not drop cache entry for %s: %s", storage_id, e)

    def start(self) -> None:
        if self._scheduler is not None:
            return
        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self.sweep,
            IntervalTrigger(seconds=self.poll_interval),
            id=_SWEEP_JOB_ID,
            name="Delete expired uploads from object store",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info("Cleanup sweeper started (every %ds)", self.poll_interval)

    def shutdown(self) -> None:
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Cleanup sweeper stopped")
