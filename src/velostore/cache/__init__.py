"""Cache layer for VeloStore.

Two tiers in front of the Source Store:
- LocalCache: in-process, per-key TTL (L1)
- RedisCache: shared across instances, per-key or sliding TTL (L2)
- Optional Pub/Sub broadcast so peers drop stale L1 entries
"""

from velostore.cache.invalidation import (
    CacheInvalidationBroadcaster,
    InvalidationMessage,
    InvalidationType,
    LocalCacheInvalidator,
)
from velostore.cache.keys import CacheKeys
from velostore.cache.local import LocalCache
from velostore.cache.redis import RedisCache, close_redis, get_redis

__all__ = [
    # Tiers
    "CacheKeys",
    "LocalCache",
    "RedisCache",
    "get_redis",
    "close_redis",
    # Distributed invalidation
    "CacheInvalidationBroadcaster",
    "InvalidationMessage",
    "InvalidationType",
    "LocalCacheInvalidator",
]
