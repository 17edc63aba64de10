"""Redis (L2) cache tier for VeloStore.

Provides async Redis operations for the distributed tier shared by all
instances. Uses redis-py async client for connection pooling. Every call
is bounded by a short timeout; failures surface as CacheTierError so the
owning service can decide whether a failure is a miss or fatal.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TYPE_CHECKING, TypeVar, cast

import redis.asyncio as redis
from redis.exceptions import RedisError

from velostore.config import settings
from velostore.core.errors import CacheTierError

if TYPE_CHECKING:
    from redis.asyncio import Redis

T = TypeVar("T")

# Module-level connection pool
_redis_client: Redis | None = None

TIER_NAME = "distributed"


async def get_redis() -> Redis:
    """Get or create the Redis client.

    Uses connection pooling for efficient connection management.
    """
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(  # type: ignore[no-untyped-call]
            settings.redis_url,
            decode_responses=False,  # We're storing bytes
        )
    return _redis_client


async def close_redis() -> None:
    """Close Redis connections."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


class RedisCache:
    """Byte-level get/set/delete with per-key TTL.

    Sliding expiration is implemented by re-arming the TTL on read
    (GETEX) and on every write.
    """

    def __init__(self, client: Redis, timeout: float | None = None):
        self.client = client
        self.timeout = settings.cache_tier_timeout if timeout is None else timeout

    async def _run(self, operation: str, key: str, call: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(call, timeout=self.timeout)
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            raise CacheTierError(TIER_NAME, operation, key, e) from e

    async def get(self, key: str) -> bytes | None:
        """Get raw bytes, or None if the key is absent."""
        return cast(bytes | None, await self._run("get", key, self.client.get(key)))

    async def set(self, key: str, value: bytes, ttl: int) -> None:
        """Store bytes with an absolute TTL in seconds."""
        await self._run("set", key, self.client.set(key, value, ex=ttl))

    async def get_sliding(self, key: str, ttl: int) -> bytes | None:
        """Get raw bytes and reset the key's TTL to ``ttl`` seconds."""
        return cast(bytes | None, await self._run("getex", key, self.client.getex(key, ex=ttl)))

    async def set_sliding(self, key: str, value: bytes, ttl: int) -> None:
        """Store bytes; the TTL window restarts on every write and read."""
        await self.set(key, value, ttl)

    async def replace(self, key: str, value: bytes, ttl: int, *drop: str) -> None:
        """Store ``key`` and delete ``drop`` in one MULTI/EXEC transaction.

        Either every command is applied or none is.
        """
        await self._run("replace", key, self._replace(key, value, ttl, drop))

    async def _replace(self, key: str, value: bytes, ttl: int, drop: tuple[str, ...]) -> None:
        async with self.client.pipeline(transaction=True) as pipe:
            pipe.set(key, value, ex=ttl)
            if drop:
                pipe.delete(*drop)
            await pipe.execute()

    async def delete(self, *keys: str) -> int:
        """Delete keys. Returns the number of keys removed."""
        if not keys:
            return 0
        return cast(int, await self._run("delete", ",".join(keys), self.client.delete(*keys)))

    async def health_check(self) -> bool:
        """Check Redis connectivity."""
        try:
            await self._run("ping", "-", cast(Awaitable[bool], self.client.ping()))
            return True
        except CacheTierError:
            return False
