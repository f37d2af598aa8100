import json
import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

from hnclone.config import settings

logger = logging.getLogger(__name__)

FEED_KEY_PREFIX = "feeds"


class FeedCache:
    """
    Redis cache for feed slices.

    A slice is the ordered list of news item ids for one
    ``(feed type, limit, skip)`` triple, stored as a JSON array under
    ``feeds:{type}:{limit}:{skip}``.  Item bodies are never cached, so a
    user's upvote and hide state is always read fresh.

    With no Redis connection every lookup is a miss and every write is
    dropped; Redis errors are logged and treated the same way.
    """

    def __init__(self, url: str | None = None, ttl: int | None = None) -> None:
        self.url = url or settings.REDIS_URL
        self.ttl = ttl if ttl is not None else settings.CACHE_TTL_FEED
        self._redis: redis.Redis | None = None
        self._hits = 0
        self._misses = 0
        self._invalidations = 0

    async def connect(self) -> None:
        client = redis.from_url(
            self.url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        try:
            await client.ping()
        except (RedisError, OSError) as exc:
            logger.warning("Redis unavailable at %s, feed cache disabled: %s", self.url, exc)
            await client.aclose()
            return
        self._redis = client
        logger.info("Feed cache connected: %s", self.url)

    async def disconnect(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

    @property
    def connected(self) -> bool:
        return self._redis is not None

    @staticmethod
    def feed_key(feed_type: str, limit: int, skip: int) -> str:
        return f"{FEED_KEY_PREFIX}:{feed_type}:{limit}:{skip}"

    async def get_ids(self, feed_type: str, limit: int, skip: int) -> list[int] | None:
        """Return the cached id slice, or None on a miss."""
        key = self.feed_key(feed_type, limit, skip)
        raw = None
        if self._redis is not None:
            try:
                raw = await self._redis.get(key)
            except RedisError as exc:
                logger.debug("Feed cache read failed for %s: %s", key, exc)
        if raw is None:
            self._misses += 1
            return None
        self._hits += 1
        return json.loads(raw)

    async def store_ids(self, feed_type: str, limit: int, skip: int, ids: list[int]) -> None:
        if self._redis is None:
            return
        key = self.feed_key(feed_type, limit, skip)
        try:
            await self._redis.set(key, json.dumps(ids), ex=self.ttl)
        except RedisError as exc:
            logger.debug("Feed cache write failed for %s: %s", key, exc)

    async def invalidate_feeds(self) -> int:
        """
        Drop every cached slice and return how many keys went.

        Called after a vote or a submission, which can reorder any feed.
        """
        if self._redis is None:
            return 0
        try:
            keys = [key async for key in self._redis.scan_iter(match=f"{FEED_KEY_PREFIX}:*")]
            if keys:
                await self._redis.delete(*keys)
        except RedisError as exc:
            logger.warning("Feed cache invalidation failed: %s", exc)
            return 0
        self._invalidations += 1
        logger.debug("Feed cache dropped %d slice(s)", len(keys))
        return len(keys)

    @property
    def stats(self) -> dict:
        """Counters for the metrics endpoint."""
        lookups = self._hits + self._misses
        return {
            "connected": self.connected,
            "hits": self._hits,
            "misses": self._misses,
            "invalidations": self._invalidations,
            "hit_rate": round(self._hits / lookups * 100, 1) if lookups else 0.0,
        }


cache = FeedCache()
