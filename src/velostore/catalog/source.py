"""Source Store interface and its SQL implementation.

The Source Store is the persistent catalog behind both cache tiers. It is
read-only from the cache's point of view; writes go through CatalogWriter.
"""

from __future__ import annotations

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from velostore.core.model import CatalogFilter, CatalogItem
from velostore.persistence.repositories import ProductRepository


class SourceStore(Protocol):
    """Read operations the catalog cache consumes."""

    async def read_all(self) -> list[CatalogItem]: ...

    async def read_filtered(self, criteria: CatalogFilter) -> list[CatalogItem]: ...

    async def read_by_id(self, product_id: int) -> CatalogItem | None: ...


class SqlSourceStore:
    """SourceStore backed by the products table.

    Each call opens its own short-lived session so the store can be shared
    by concurrent requests.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def read_all(self) -> list[CatalogItem]:
        async with self._session_factory() as session:
            return await ProductRepository(session).list_all()

    async def read_filtered(self, criteria: CatalogFilter) -> list[CatalogItem]:
        async with self._session_factory() as session:
            return await ProductRepository(session).list_filtered(criteria)

    async def read_by_id(self, product_id: int) -> CatalogItem | None:
        async with self._session_factory() as session:
            return await ProductRepository(session).get(product_id)
