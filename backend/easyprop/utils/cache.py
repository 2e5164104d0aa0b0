import hashlib
import json
from datetime import timedelta
from typing import Any, Optional

from redis import asyncio as aioredis
from redis.exceptions import RedisError

from easyprop.core.config import settings
from easyprop.core.logging import get_logger

logger = get_logger(__name__)


def generate_etag(data: Any) -> str:
    """Generate ETag for data"""
    data_str = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(data_str.encode()).hexdigest()


class Cache:
    """JSON cache on Redis. Every operation degrades to a miss when Redis is unavailable."""

    def __init__(self, url: Optional[str] = None, enabled: Optional[bool] = None):
        self.url = url if url is not None else settings.REDIS_URL
        self.enabled = settings.cache_enabled if enabled is None else (enabled and bool(self.url))
        self.redis = None
        self.default_ttl = timedelta(seconds=settings.CACHE_TTL_SECONDS)

    async def connect(self):
        """
        Connect to Redis
        """
        if not self.enabled or self.redis:
            return
        try:
            self.redis = aioredis.from_url(
                self.url,
                encoding="utf-8",
                decode_responses=True
            )
            logger.info("Connected to Redis cache")
        except (RedisError, ValueError) as e:
            logger.error("Failed to connect to Redis", error=str(e))
            self.enabled = False

    async def disconnect(self):
        """
        Disconnect from Redis
        """
        if self.redis:
            await self.redis.close()
            self.redis = None
            logger.info("Disconnected from Redis cache")

    async def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache
        """
        if not self.enabled:
            return None
        await self.connect()
        if not self.redis:
            return None
        try:
            value = await self.redis.get(key)
            if value:
                return json.loads(value)
            return None
        except (RedisError, ValueError) as e:
            logger.error("Cache get error", key=key, error=str(e))
            return None

    async def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[timedelta] = None
    ) -> bool:
        """
        Set value in cache
        """
        if not self.enabled:
            return False
        await self.connect()
        if not self.redis:
            return False
        try:
            ttl = ttl or self.default_ttl
            return bool(await self.redis.set(
                key,
                json.dumps(value, default=str),
                ex=int(ttl.total_seconds())
            ))
        except (RedisError, TypeError) as e:
            logger.error("Cache set error", key=key, error=str(e))
            return False

    async def delete(self, key: str) -> bool:
        """
        Delete value from cache
        """
        if not self.enabled:
            return False
        await self.connect()
        if not self.redis:
            return False
        try:
            return bool(await self.redis.delete(key))
        except RedisError as e:
            logger.error("Cache delete error", key=key, error=str(e))
            return False


# Global cache instance
cache = Cache()
