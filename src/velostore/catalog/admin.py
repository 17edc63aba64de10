"""Catalog writes with cache invalidation.

The cache is write-around: products are written to the Source Store and the
affected cache keys are invalidated afterwards, never updated in place.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from velostore.catalog.service import CatalogCache
from velostore.core.errors import ContractViolation
from velostore.core.model import CatalogItem
from velostore.persistence.repositories import ProductRepository

logger = logging.getLogger(__name__)

_UPDATABLE = frozenset({"name", "price", "stock", "image_url", "description"})
_REQUIRED = ("name", "price", "stock", "image_url")


class CatalogWriter:
    """Create, update and delete products, then invalidate the cache."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        cache: CatalogCache,
    ):
        self._session_factory = session_factory
        self.cache = cache

    async def create(
        self,
        name: str,
        price: Decimal,
        stock: int = 0,
        image_url: str = "",
        description: str | None = None,
    ) -> CatalogItem:
        if price < 0:
            raise ContractViolation("Price cannot be negative")
        if stock < 0:
            raise ContractViolation("Stock cannot be negative")

        async with self._session_factory() as session:
            item = await ProductRepository(session).create(
                name=name,
                price=price,
                stock=stock,
                image_url=image_url,
                description=description,
            )
            await session.commit()

        logger.info("Created product %s", item.id)
        await self.cache.invalidate_all()
        return item

    async def update(self, product_id: int, **fields: Any) -> CatalogItem | None:
        """Update a product. Returns None if it does not exist."""
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise ContractViolation(f"Unknown product fields: {', '.join(sorted(unknown))}")
        for name in _REQUIRED:
            if name in fields and fields[name] is None:
                raise ContractViolation(f"Product {name} cannot be null")
        if "price" in fields and fields["price"] < 0:
            raise ContractViolation("Price cannot be negative")
        if "stock" in fields and fields["stock"] < 0:
            raise ContractViolation("Stock cannot be negative")

        async with self._session_factory() as session:
            item = await ProductRepository(session).update(product_id, **fields)
            if item is None:
                return None
            await session.commit()

        logger.info("Updated product %s", product_id)
        await self.cache.invalidate_by_id(product_id)
        return item

    async def delete(self, product_id: int) -> bool:
        async with self._session_factory() as session:
            deleted = await ProductRepository(session).delete(product_id)
            if not deleted:
                return False
            await session.commit()

        logger.info("Deleted product %s", product_id)
        await self.cache.invalidate_by_id(product_id)
        return True
