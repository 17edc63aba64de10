"""Administrative catalog API.

Mounted only when ``enable_admin_api`` is set. Catalog writes go to the
database and invalidate the cache afterwards.

- POST   /admin/products                 - Create a product
- PATCH  /admin/products/{productId}     - Update some fields
- DELETE /admin/products/{productId}     - Delete a product
- POST   /admin/cache/invalidate         - Drop the cached listing
- POST   /admin/cache/invalidate/{id}    - Drop one cached product and the listing
"""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field

from velostore.api.deps import get_catalog, get_catalog_writer
from velostore.api.errors import BadRequestError, NotFoundError
from velostore.api.routers.catalog import item_body
from velostore.catalog.admin import CatalogWriter
from velostore.catalog.service import CatalogCache

router = APIRouter(prefix="/admin", tags=["Admin"])


class ProductCreate(BaseModel):
    model_config = {"populate_by_name": True}

    name: Annotated[str, Field(min_length=1, max_length=200)]
    price: Annotated[Decimal, Field(ge=0)]
    stock: Annotated[int, Field(ge=0)] = 0
    image_url: str = Field(default="", alias="imageUrl", max_length=500)
    description: str | None = None


class ProductUpdate(BaseModel):
    model_config = {"populate_by_name": True}

    name: Annotated[str | None, Field(min_length=1, max_length=200)] = None
    price: Annotated[Decimal | None, Field(ge=0)] = None
    stock: Annotated[int | None, Field(ge=0)] = None
    image_url: str | None = Field(default=None, alias="imageUrl", max_length=500)
    description: str | None = None


@router.post("/products", status_code=201)
async def create_product(
    body: ProductCreate,
    writer: CatalogWriter = Depends(get_catalog_writer),
) -> dict[str, Any]:
    item = await writer.create(
        name=body.name,
        price=body.price,
        stock=body.stock,
        image_url=body.image_url,
        description=body.description,
    )
    return item_body(item)


@router.patch("/products/{product_id}")
async def update_product(
    product_id: int,
    body: ProductUpdate,
    writer: CatalogWriter = Depends(get_catalog_writer),
) -> dict[str, Any]:
    fields = body.model_dump(exclude_unset=True)
    if not fields:
        raise BadRequestError("No fields to update")
    item = await writer.update(product_id, **fields)
    if item is None:
        raise NotFoundError("Product", product_id)
    return item_body(item)


@router.delete("/products/{product_id}", status_code=204)
async def delete_product(
    product_id: int,
    writer: CatalogWriter = Depends(get_catalog_writer),
) -> Response:
    if not await writer.delete(product_id):
        raise NotFoundError("Product", product_id)
    return Response(status_code=204)


@router.post("/cache/invalidate", status_code=204)
async def invalidate_catalog(catalog: CatalogCache = Depends(get_catalog)) -> Response:
    await catalog.invalidate_all()
    return Response(status_code=204)


@router.post("/cache/invalidate/{product_id}", status_code=204)
async def invalidate_product(
    product_id: int,
    catalog: CatalogCache = Depends(get_catalog),
) -> Response:
    await catalog.invalidate_by_id(product_id)
    return Response(status_code=204)
