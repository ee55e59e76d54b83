"""
Redis Persistence

Redis-backed provider for persistence shared between processes.

Key pattern:
- {prefix}:persistence:{id} -> stored text

Uses redis.asyncio. An optional TTL is applied on every save.
"""

from __future__ import annotations

import logging

from redis.asyncio import Redis
from redis.exceptions import RedisError

from agentflow.errors import PersistenceError
from agentflow.persistence.ports import PersistenceProvider, PersistenceType

logger = logging.getLogger(__name__)


class RedisPersistenceProvider(PersistenceProvider):
    """Redis provider, one string key per id."""

    type = PersistenceType.REDIS

    def __init__(
        self,
        redis: Redis,
        key_prefix: str = "agentflow",
        ttl_seconds: int | None = None,
    ) -> None:
        """
        Initialize Redis persistence.

        Args:
            redis: Redis async client
            key_prefix: Prefix for all keys
            ttl_seconds: Expiry applied on save (None = keep forever)
        """
        self._redis = redis
        self._prefix = key_prefix
        self._ttl = ttl_seconds

    def _key(self, id: str) -> str:
        return f"{self._prefix}:persistence:{id}"

    async def save(self, id: str, text: str) -> None:
        try:
            await self._redis.set(self._key(id), text, ex=self._ttl)
        except RedisError as e:
            raise PersistenceError(f"Failed to save {id} to Redis: {e}") from e

    async def load(self, id: str) -> str | None:
        try:
            value = await self._redis.get(self._key(id))
        except RedisError as e:
            raise PersistenceError(f"Failed to load {id} from Redis: {e}") from e
        if value is None:
            return None
        return value.decode("utf-8") if isinstance(value, bytes) else value

    async def delete(self, id: str) -> None:
        try:
            await self._redis.delete(self._key(id))
        except RedisError as e:
            raise PersistenceError(f"Failed to delete {id} from Redis: {e}") from e

    async def clear(self) -> None:
        try:
            keys = [key async for key in self._redis.scan_iter(match=self._key("*"))]
            if keys:
                await self._redis.delete(*keys)
        except RedisError as e:
            raise PersistenceError(f"Failed to clear Redis persistence: {e}") from e
        logger.info(f"Cleared {len(keys)} persisted entries under {self._prefix}")

    async def close(self) -> None:
        await self._redis.aclose()
