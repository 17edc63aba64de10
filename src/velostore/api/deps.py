"""Shared FastAPI dependencies for VeloStore routers.

Service objects are cheap wrappers built per request around process-wide
resources: the Redis client, the database session factory and this
instance's LocalCache. Tests replace them with ``app.dependency_overrides``.
"""

from __future__ import annotations

from fastapi import Depends, Request

from velostore.assistant.engines import ReasoningEngine
from velostore.assistant.service import ShoppingAssistant
from velostore.assistant.tools import ToolExecutor
from velostore.cache import CacheInvalidationBroadcaster, LocalCache, RedisCache, get_redis
from velostore.cart.store import CartStore
from velostore.catalog.admin import CatalogWriter
from velostore.catalog.service import CatalogCache
from velostore.catalog.source import SqlSourceStore
from velostore.config import settings
from velostore.core.identity import CartIdentity, resolve_identity
from velostore.persistence.db import get_session_factory

# Process-wide state, set up by the application lifespan
_local_cache: LocalCache | None = None
_broadcaster: CacheInvalidationBroadcaster | None = None
_engine: ReasoningEngine | None = None


def get_local_cache() -> LocalCache:
    """This instance's L1 cache."""
    global _local_cache
    if _local_cache is None:
        _local_cache = LocalCache(maxsize=settings.local_cache_maxsize)
    return _local_cache


def set_broadcaster(broadcaster: CacheInvalidationBroadcaster | None) -> None:
    global _broadcaster
    _broadcaster = broadcaster


def set_reasoning_engine(engine: ReasoningEngine | None) -> None:
    global _engine
    _engine = engine


def get_reasoning_engine() -> ReasoningEngine | None:
    return _engine


# =============================================================================
# Service providers
# =============================================================================


async def get_redis_cache() -> RedisCache:
    """Get Redis cache instance."""
    return RedisCache(await get_redis())


async def get_catalog(
    distributed: RedisCache = Depends(get_redis_cache),
    local: LocalCache = Depends(get_local_cache),
) -> CatalogCache:
    return CatalogCache(
        source=SqlSourceStore(get_session_factory()),
        distributed=distributed,
        local=local,
        broadcaster=_broadcaster,
    )


async def get_catalog_writer(catalog: CatalogCache = Depends(get_catalog)) -> CatalogWriter:
    return CatalogWriter(get_session_factory(), catalog)


async def get_cart_store(distributed: RedisCache = Depends(get_redis_cache)) -> CartStore:
    return CartStore(distributed)


async def get_assistant(
    catalog: CatalogCache = Depends(get_catalog),
    carts: CartStore = Depends(get_cart_store),
    engine: ReasoningEngine | None = Depends(get_reasoning_engine),
) -> ShoppingAssistant:
    return ShoppingAssistant(ToolExecutor(catalog, carts), engine=engine)


# =============================================================================
# Identity
# =============================================================================


def get_identity(request: Request) -> CartIdentity:
    """Cart owner for this request.

    Raises:
        IdentityUnresolvable: If the session middleware resolved neither a
            user nor a guest session
    """
    return resolve_identity(
        getattr(request.state, "user_id", None),
        getattr(request.state, "session_id", None),
    )
