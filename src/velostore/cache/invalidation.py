"""Cross-instance local cache invalidation.

Uses Redis Pub/Sub to broadcast catalog invalidations to every VeloStore
instance. The instance that invalidates removes the L1 and L2 entries
itself; peers only hold L1 copies, which they drop when the message
arrives. Without the broadcaster a peer's L1 copy lives until its TTL.

Example:
    broadcaster = CacheInvalidationBroadcaster()
    broadcaster.add_handler(LocalCacheInvalidator(local_cache).handle_invalidation)
    await broadcaster.start()

    # After a catalog write
    await broadcaster.invalidate_product(42)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Awaitable, Callable, cast

import orjson

from velostore.cache.keys import CacheKeys
from velostore.cache.redis import get_redis

if TYPE_CHECKING:
    from redis.asyncio import Redis
    from redis.asyncio.client import PubSub

    from velostore.cache.local import LocalCache

logger = logging.getLogger(__name__)

# Pub/Sub channel name
INVALIDATION_CHANNEL = "velostore:cache:invalidation"


class InvalidationType(str, Enum):
    """Type of cache invalidation."""

    CATALOG = "catalog"
    PRODUCT = "product"


@dataclass
class InvalidationMessage:
    """Cache invalidation message."""

    type: InvalidationType
    product_id: int | None = None  # For product invalidations
    origin: str | None = None  # Publishing instance; it skips its own messages

    def to_bytes(self) -> bytes:
        """Serialize to JSON bytes."""
        return orjson.dumps(
            {
                "type": self.type.value,
                "product_id": self.product_id,
                "origin": self.origin,
            }
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "InvalidationMessage":
        """Deserialize from JSON bytes."""
        parsed = orjson.loads(data)
        return cls(
            type=InvalidationType(parsed["type"]),
            product_id=parsed.get("product_id"),
            origin=parsed.get("origin"),
        )


# Handler type for invalidation callbacks
InvalidationHandler = Callable[[InvalidationMessage], Awaitable[None]]


class CacheInvalidationBroadcaster:
    """Broadcasts and receives invalidation messages via Redis Pub/Sub.

    When started, it subscribes to the invalidation channel and calls every
    registered handler for each incoming message. Start it during
    application startup and stop it during shutdown.
    """

    def __init__(
        self,
        channel: str = INVALIDATION_CHANNEL,
        origin: str | None = None,
        client: Redis | None = None,
    ):
        self.channel = channel
        self.origin = origin
        self._handlers: list[InvalidationHandler] = []
        self._running = False
        self._task: asyncio.Task[None] | None = None
        self._pubsub: PubSub | None = None
        self._redis: Redis | None = client

    async def _get_redis(self) -> Redis:
        if self._redis is None:
            self._redis = await get_redis()
        return self._redis

    def add_handler(self, handler: InvalidationHandler) -> None:
        """Register a handler for invalidation messages."""
        self._handlers.append(handler)
        handler_name = getattr(handler, "__name__", handler.__class__.__name__)
        logger.info("Registered invalidation handler: %s", handler_name)

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start listening for invalidation messages."""
        if self._running:
            return

        client = await self._get_redis()
        self._pubsub = client.pubsub()
        await self._pubsub.subscribe(self.channel)

        self._running = True
        self._task = asyncio.create_task(self._listen_loop())
        logger.info("Started cache invalidation broadcaster on channel %s", self.channel)

    async def stop(self) -> None:
        """Stop listening for invalidation messages."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._pubsub:
            await self._pubsub.unsubscribe(self.channel)
            await self._pubsub.aclose()
            self._pubsub = None

        logger.info("Stopped cache invalidation broadcaster")

    async def _listen_loop(self) -> None:
        while self._running and self._pubsub:
            try:
                message = await self._pubsub.get_message(
                    ignore_subscribe_messages=True,
                    timeout=1.0,
                )

                if message is None:
                    continue

                if message["type"] == "message":
                    await self.handle_message(message["data"])

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("Error in invalidation listener: %s", e)
                await asyncio.sleep(1)

    async def handle_message(self, data: bytes) -> None:
        """Decode an incoming message and dispatch it to all handlers."""
        try:
            msg = InvalidationMessage.from_bytes(data)
        except (ValueError, KeyError, TypeError) as e:
            logger.error("Failed to parse invalidation message: %s", e)
            return

        if self.origin is not None and msg.origin == self.origin:
            # The publishing instance already dropped its own entries
            return

        logger.debug("Received invalidation: %s %s", msg.type.value, msg.product_id)
        for handler in self._handlers:
            try:
                await handler(msg)
            except Exception as e:
                logger.error("Invalidation handler failed: %s", e)

    async def publish(self, message: InvalidationMessage) -> int:
        """Publish an invalidation message to all instances.

        Returns the number of subscribers that received the message.
        """
        if message.origin is None:
            message.origin = self.origin
        client = await self._get_redis()
        count = cast(int, await client.publish(self.channel, message.to_bytes()))
        logger.debug(
            "Published invalidation %s %s to %d subscribers",
            message.type.value,
            message.product_id,
            count,
        )
        return count

    async def invalidate_catalog(self) -> int:
        """Invalidate the cached catalog listing on every instance."""
        return await self.publish(InvalidationMessage(type=InvalidationType.CATALOG))

    async def invalidate_product(self, product_id: int) -> int:
        """Invalidate one cached product (and the listing) on every instance."""
        return await self.publish(
            InvalidationMessage(type=InvalidationType.PRODUCT, product_id=product_id)
        )


class LocalCacheInvalidator:
    """Drops local (L1) entries in response to broadcast messages."""

    def __init__(self, cache: LocalCache) -> None:
        self._cache = cache

    async def handle_invalidation(self, message: InvalidationMessage) -> None:
        """Handle an invalidation message by clearing local cache entries."""
        if message.type == InvalidationType.PRODUCT and message.product_id is not None:
            self._cache.remove(CacheKeys.product(message.product_id))
            logger.debug("Invalidated local product cache: %s", message.product_id)

        # Both message types affect the listing
        self._cache.remove(CacheKeys.catalog_local())
        logger.debug("Invalidated local catalog listing")
