"""
Redis-backed cache for article detail.

Only the part of an article response that is the same for every caller
(record, tags, author, reaction counts) is stored, as JSON under
``articles:detail:<slug>``.  Writes that change any of it call
``invalidate_article``.  When Redis is down or was never connected, reads
miss and writes are dropped, so the database stays the source of truth.
"""
import json
import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

from quill.config import settings

logger = logging.getLogger(__name__)

DETAIL_PREFIX = "articles:detail:"


def article_detail_key(slug: str) -> str:
    return f"{DETAIL_PREFIX}{slug}"


class CacheManager:
    def __init__(self, url: str | None = None) -> None:
        self.url = url or settings.REDIS_URL
        self._redis: redis.Redis | None = None
        self._counters = {"hits": 0, "misses": 0, "errors": 0}

    @property
    def enabled(self) -> bool:
        return self._redis is not None

    async def connect(self) -> None:
        client = None
        try:
            # from_url raises ValueError for a malformed URL.
            client = redis.from_url(self.url, decode_responses=True, socket_timeout=2)
            await client.ping()
        except (RedisError, ValueError) as exc:
            logger.warning("Redis unavailable at %s, article cache off: %s", self.url, exc)
            if client is not None:
                await client.aclose()
            return
        self._redis = client
        logger.info("Article cache using %s", self.url)

    async def disconnect(self) -> None:
        client, self._redis = self._redis, None
        if client is not None:
            await client.aclose()

    def _failed(self, op: str, key: str, exc: RedisError) -> None:
        self._counters["errors"] += 1
        logger.debug("Redis %s failed for %s: %s", op, key, exc)

    async def get(self, key: str) -> dict | None:
        raw = None
        if self.enabled:
            try:
                raw = await self._redis.get(key)
            except RedisError as exc:
                self._failed("GET", key, exc)
        data = None
        if raw is not None:
            try:
                data = json.loads(raw)
            except ValueError:
                logger.warning("Dropping unreadable cache entry %s", key)
                await self.delete(key)
        self._counters["hits" if data is not None else "misses"] += 1
        return data

    async def set(self, key: str, value: dict, ttl: int | None = None) -> None:
        if not self.enabled:
            return
        try:
            await self._redis.set(key, json.dumps(value, default=str), ex=ttl)
        except RedisError as exc:
            self._failed("SET", key, exc)

    async def delete(self, *keys: str) -> None:
        if not self.enabled or not keys:
            return
        try:
            await self._redis.delete(*keys)
        except RedisError as exc:
            self._failed("DEL", ",".join(keys), exc)

    # --- article detail ---

    async def get_article(self, slug: str) -> dict | None:
        return await self.get(article_detail_key(slug))

    async def set_article(self, slug: str, data: dict) -> None:
        await self.set(article_detail_key(slug), data, ttl=settings.CACHE_TTL_DETAIL)

    async def invalidate_article(self, slug: str) -> None:
        await self.delete(article_detail_key(slug))

    @property
    def stats(self) -> dict:
        """Counters since startup, reported by the metrics endpoint."""
        lookups = self._counters["hits"] + self._counters["misses"]
        rate = round(self._counters["hits"] / lookups * 100, 1) if lookups else 0.0
        return {**self._counters, "enabled": self.enabled, "hit_rate": rate}


cache = CacheManager()
