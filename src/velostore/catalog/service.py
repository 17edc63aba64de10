"""Read-through catalog cache.

CatalogCache fronts the Source Store with two tiers:

    L1 (LocalCache, per instance) -> L2 (Redis, shared) -> Source Store

Reads populate L2 first, then L1. Writes never go through the cache; after
a catalog write the caller invalidates the affected keys. Filtered reads
bypass both tiers because their key space is unbounded.

Failure policy:
- An L2 failure is logged at WARNING and treated as a miss.
- A Source Store failure is logged at ERROR and yields [] or None.
- A non-positive product id is a ContractViolation.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING

import orjson
from pydantic import TypeAdapter, ValidationError

from velostore.cache.keys import CacheKeys
from velostore.cache.local import LocalCache
from velostore.config import settings
from velostore.core.errors import CacheTierError, ContractViolation
from velostore.core.model import CatalogFilter, CatalogItem, SortKey

if TYPE_CHECKING:
    from velostore.cache.invalidation import CacheInvalidationBroadcaster
    from velostore.cache.redis import RedisCache
    from velostore.catalog.source import SourceStore

logger = logging.getLogger(__name__)

_ITEM_LIST = TypeAdapter(list[CatalogItem])


def _encode_items(items: list[CatalogItem]) -> bytes:
    return orjson.dumps([item.model_dump(mode="json", by_alias=True) for item in items])


def _encode_item(item: CatalogItem) -> bytes:
    return orjson.dumps(item.model_dump(mode="json", by_alias=True))


class CatalogCache:
    """Three-tier catalog lookup with explicit invalidation.

    Args:
        source: The persistent catalog
        distributed: L2 tier shared by all instances
        local: L1 tier private to this instance
        broadcaster: Optional Pub/Sub broadcaster telling peers to drop L1
    """

    def __init__(
        self,
        source: SourceStore,
        distributed: RedisCache,
        local: LocalCache | None = None,
        broadcaster: CacheInvalidationBroadcaster | None = None,
        local_ttl: int | None = None,
        distributed_ttl: int | None = None,
        product_ttl: int | None = None,
    ):
        self.source = source
        self.distributed = distributed
        self.local = local if local is not None else LocalCache(settings.local_cache_maxsize)
        self.broadcaster = broadcaster
        self.local_ttl = settings.catalog_local_ttl if local_ttl is None else local_ttl
        self.distributed_ttl = (
            settings.catalog_distributed_ttl if distributed_ttl is None else distributed_ttl
        )
        self.product_ttl = settings.product_ttl if product_ttl is None else product_ttl

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_all(self) -> list[CatalogItem]:
        """Return the full catalog, served from the fastest tier that has it."""
        local_key = CacheKeys.catalog_local()
        cached = self.local.get(local_key)
        if cached is not None:
            logger.debug("Catalog listing served from local cache")
            return list(cached)

        distributed_key = CacheKeys.catalog_distributed()
        items = await self._read_list(distributed_key)
        if items:
            logger.debug("Catalog listing served from distributed cache")
            self.local.set(local_key, tuple(items), self.local_ttl)
            return items

        try:
            items = await self.source.read_all()
        except Exception:
            logger.exception("Source store read_all failed")
            return []

        await self._write(distributed_key, _encode_items(items), self.distributed_ttl)
        self.local.set(local_key, tuple(items), self.local_ttl)
        logger.info("Catalog listing loaded from source store: %d items", len(items))
        return items

    async def get_filtered(
        self,
        query: str | None = None,
        min_price: Decimal | None = None,
        max_price: Decimal | None = None,
        sort: SortKey | str | None = None,
    ) -> list[CatalogItem]:
        """Search the Source Store directly. Results are never cached."""
        criteria = CatalogFilter(
            query=query,
            min_price=min_price,
            max_price=max_price,
            sort=sort if isinstance(sort, SortKey) else SortKey.parse(sort),
        )
        try:
            return await self.source.read_filtered(criteria)
        except Exception:
            logger.exception("Source store read_filtered failed")
            return []

    async def get_by_id(self, product_id: int) -> CatalogItem | None:
        """Return one product, or None if it does not exist."""
        if product_id <= 0:
            raise ContractViolation(f"Product id must be positive, got {product_id}")

        key = CacheKeys.product(product_id)
        cached = self.local.get(key)
        if cached is not None:
            return cached  # type: ignore[no-any-return]

        item = await self._read_item(key)
        if item is not None:
            self.local.set(key, item, self.product_ttl)
            return item

        try:
            item = await self.source.read_by_id(product_id)
        except Exception:
            logger.exception("Source store read_by_id failed for %s", product_id)
            return None

        if item is None:
            logger.debug("Product %s not found", product_id)
            return None

        await self._write(key, _encode_item(item), self.product_ttl)
        self.local.set(key, item, self.product_ttl)
        return item

    # -------------------------------------------------------------------------
    # Invalidation
    # -------------------------------------------------------------------------

    async def invalidate_all(self) -> None:
        """Drop the catalog listing from both tiers."""
        self.local.remove(CacheKeys.catalog_local())
        await self._delete(CacheKeys.catalog_distributed())
        await self._broadcast_catalog()
        logger.info("Catalog listing invalidated")

    async def invalidate_by_id(self, product_id: int) -> None:
        """Drop one product from both tiers, then the listing."""
        key = CacheKeys.product(product_id)
        self.local.remove(key)
        await self._delete(key)
        await self._broadcast_product(product_id)
        logger.info("Product %s invalidated", product_id)
        await self.invalidate_all()

    # -------------------------------------------------------------------------
    # Tier helpers
    # -------------------------------------------------------------------------

    async def _read_list(self, key: str) -> list[CatalogItem] | None:
        try:
            data = await self.distributed.get(key)
        except CacheTierError as e:
            logger.warning("Distributed cache read failed: %s", e)
            return None
        if data is None:
            return None
        try:
            return _ITEM_LIST.validate_python(orjson.loads(data))
        except (orjson.JSONDecodeError, ValidationError) as e:
            logger.warning("Discarding undecodable cache entry %s: %s", key, e)
            return None

    async def _read_item(self, key: str) -> CatalogItem | None:
        try:
            data = await self.distributed.get(key)
        except CacheTierError as e:
            logger.warning("Distributed cache read failed: %s", e)
            return None
        if data is None:
            return None
        try:
            return CatalogItem.model_validate(orjson.loads(data))
        except (orjson.JSONDecodeError, ValidationError) as e:
            logger.warning("Discarding undecodable cache entry %s: %s", key, e)
            return None

    async def _write(self, key: str, data: bytes, ttl: int) -> None:
        try:
            await self.distributed.set(key, data, ttl)
        except CacheTierError as e:
            logger.warning("Distributed cache write failed: %s", e)

    async def _delete(self, key: str) -> None:
        try:
            await self.distributed.delete(key)
        except CacheTierError as e:
            logger.warning("Distributed cache delete failed: %s", e)

    async def _broadcast_catalog(self) -> None:
        if self.broadcaster is None:
            return
        try:
            await self.broadcaster.invalidate_catalog()
        except Exception as e:
            logger.warning("Failed to broadcast catalog invalidation: %s", e)

    async def _broadcast_product(self, product_id: int) -> None:
        if self.broadcaster is None:
            return
        try:
            await self.broadcaster.invalidate_product(product_id)
        except Exception as e:
            logger.warning("Failed to broadcast invalidation for %s: %s", product_id, e)
