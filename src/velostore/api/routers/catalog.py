"""Catalog API router.

- GET /products              - Full listing, or a filtered search when any
                               filter parameter is given
- GET /products/{productId}  - One product
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from fastapi import APIRouter, Depends, Query

from velostore.api.deps import get_catalog
from velostore.api.errors import NotFoundError
from velostore.catalog.service import CatalogCache
from velostore.core.model import CatalogItem

router = APIRouter(prefix="/products", tags=["Catalog"])


def item_body(item: CatalogItem) -> dict[str, Any]:
    return item.model_dump(mode="json", by_alias=True)


@router.get("")
async def list_products(
    q: str | None = Query(
        None, max_length=200, description="Text to match in name or description"
    ),
    min_price: Decimal | None = Query(None, ge=0),
    max_price: Decimal | None = Query(None, ge=0),
    sort: str | None = Query(None, description="price_asc, price_desc, name_asc or name_desc"),
    catalog: CatalogCache = Depends(get_catalog),
) -> list[dict[str, Any]]:
    """List products.

    Without filters the listing is served through the cache tiers. Any
    filter sends the query straight to the database.
    """
    if q is None and min_price is None and max_price is None and sort is None:
        items = await catalog.get_all()
    else:
        items = await catalog.get_filtered(
            query=q, min_price=min_price, max_price=max_price, sort=sort
        )
    return [item_body(item) for item in items]


@router.get("/{product_id}")
async def get_product(
    product_id: int,
    catalog: CatalogCache = Depends(get_catalog),
) -> dict[str, Any]:
    item = await catalog.get_by_id(product_id)
    if item is None:
        raise NotFoundError("Product", product_id)
    return item_body(item)
