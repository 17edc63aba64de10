"""Repository for catalog persistence.

ProductRepository wraps one AsyncSession. Reads return CatalogItem
snapshots, never ORM rows, so nothing bound to the session escapes into
the cache layer.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Select, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from velostore.core.model import CatalogFilter, CatalogItem, SortKey
from velostore.persistence.tables import ProductTable

_ORDERING = {
    SortKey.PRICE_ASC: (ProductTable.price.asc(), ProductTable.id.asc()),
    SortKey.PRICE_DESC: (ProductTable.price.desc(), ProductTable.id.asc()),
    SortKey.NAME_ASC: (ProductTable.name.asc(), ProductTable.id.asc()),
    SortKey.NAME_DESC: (ProductTable.name.desc(), ProductTable.id.asc()),
    SortKey.DEFAULT: (ProductTable.id.asc(),),
}


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def apply_filter(
    stmt: Select[tuple[ProductTable]], criteria: CatalogFilter
) -> Select[tuple[ProductTable]]:
    """Apply a CatalogFilter's predicate and ordering to a select."""
    if criteria.query and criteria.query.strip():
        pattern = f"%{_escape_like(criteria.query.strip())}%"
        stmt = stmt.where(
            or_(
                ProductTable.name.ilike(pattern, escape="\\"),
                ProductTable.description.ilike(pattern, escape="\\"),
            )
        )
    if criteria.min_price is not None:
        stmt = stmt.where(ProductTable.price >= criteria.min_price)
    if criteria.max_price is not None:
        stmt = stmt.where(ProductTable.price <= criteria.max_price)
    return stmt.order_by(*_ORDERING[criteria.sort])


class ProductRepository:
    """Repository for catalog products."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def list_all(self) -> list[CatalogItem]:
        """All products ordered by id."""
        stmt = select(ProductTable).order_by(ProductTable.id.asc())
        result = await self.session.execute(stmt)
        return [row.to_model() for row in result.scalars()]

    async def list_filtered(self, criteria: CatalogFilter) -> list[CatalogItem]:
        """Products matching a filter, in the filter's order."""
        stmt = apply_filter(select(ProductTable), criteria)
        result = await self.session.execute(stmt)
        return [row.to_model() for row in result.scalars()]

    async def get(self, product_id: int) -> CatalogItem | None:
        """One product by id, or None."""
        row = await self.session.get(ProductTable, product_id)
        return row.to_model() if row is not None else None

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def create(
        self,
        name: str,
        price: Decimal,
        stock: int = 0,
        image_url: str = "",
        description: str | None = None,
    ) -> CatalogItem:
        """Insert a product and return its snapshot."""
        row = ProductTable(
            name=name,
            price=price,
            stock=stock,
            image_url=image_url,
            description=description,
        )
        self.session.add(row)
        await self.session.flush()
        return row.to_model()

    async def update(self, product_id: int, **fields: object) -> CatalogItem | None:
        """Update columns on a product. Returns None if it doesn't exist."""
        row = await self.session.get(ProductTable, product_id)
        if row is None:
            return None
        for name, value in fields.items():
            if not hasattr(ProductTable, name) or name in ("id", "created_at", "updated_at"):
                raise AttributeError(f"Unknown product field: {name}")
            setattr(row, name, value)
        await self.session.flush()
        return row.to_model()

    async def delete(self, product_id: int) -> bool:
        """Delete a product. Returns True if a row was removed."""
        row = await self.session.get(ProductTable, product_id)
        if row is None:
            return False
        await self.session.delete(row)
        await self.session.flush()
        return True
