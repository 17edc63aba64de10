"""Shopping cart API router.

- GET    /cart                            - Current cart
- GET    /cart/count                      - Units in the cart
- POST   /cart/items                      - Add one unit of a product
- POST   /cart/items/{productId}/increase - One more unit
- POST   /cart/items/{productId}/decrease - One unit fewer
- DELETE /cart                            - Empty the cart
- POST   /cart/merge                      - Fold the guest cart into the user's

The cart owner is the authenticated user when the request carries one,
otherwise the guest session.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, Field

from velostore.api.deps import get_cart_store, get_catalog, get_identity
from velostore.api.errors import BadRequestError, ConflictError, NotFoundError
from velostore.cart.store import CartStore
from velostore.catalog.service import CatalogCache
from velostore.core.errors import IdentityUnresolvable
from velostore.core.identity import CartIdentity
from velostore.core.model import Cart

router = APIRouter(prefix="/cart", tags=["Cart"])


class AddItemRequest(BaseModel):
    model_config = {"populate_by_name": True}

    product_id: int = Field(gt=0, alias="productId")


def cart_body(cart: Cart) -> dict[str, Any]:
    body = cart.model_dump(mode="json", by_alias=True)
    body["count"] = cart.count
    body["total"] = str(cart.total)
    return body


@router.get("")
async def get_cart(
    identity: CartIdentity = Depends(get_identity),
    carts: CartStore = Depends(get_cart_store),
) -> dict[str, Any]:
    return cart_body(await carts.get(identity))


@router.get("/count")
async def get_cart_count(
    identity: CartIdentity = Depends(get_identity),
    carts: CartStore = Depends(get_cart_store),
) -> dict[str, int]:
    return {"count": await carts.count(identity)}


@router.post("/items")
async def add_item(
    body: AddItemRequest,
    identity: CartIdentity = Depends(get_identity),
    carts: CartStore = Depends(get_cart_store),
    catalog: CatalogCache = Depends(get_catalog),
) -> dict[str, Any]:
    """Add one unit of a catalog product.

    Name, price and image are copied from the catalog at this moment.
    """
    product = await catalog.get_by_id(body.product_id)
    if product is None:
        raise NotFoundError("Product", body.product_id)
    if not product.in_stock:
        raise ConflictError(f"Product '{product.name}' is out of stock")

    cart = await carts.add(
        identity,
        product_id=product.id,
        name=product.name,
        price=product.price,
        image_url=product.image_url,
    )
    return cart_body(cart)


@router.post("/items/{product_id}/increase")
async def increase_item(
    product_id: int,
    identity: CartIdentity = Depends(get_identity),
    carts: CartStore = Depends(get_cart_store),
) -> dict[str, Any]:
    return cart_body(await carts.increase(identity, product_id))


@router.post("/items/{product_id}/decrease")
async def decrease_item(
    product_id: int,
    identity: CartIdentity = Depends(get_identity),
    carts: CartStore = Depends(get_cart_store),
) -> dict[str, Any]:
    return cart_body(await carts.decrease(identity, product_id))


@router.delete("", status_code=204)
async def clear_cart(
    identity: CartIdentity = Depends(get_identity),
    carts: CartStore = Depends(get_cart_store),
) -> Response:
    await carts.clear(identity)
    return Response(status_code=204)


@router.post("/merge")
async def merge_guest_cart(
    request: Request,
    identity: CartIdentity = Depends(get_identity),
    carts: CartStore = Depends(get_cart_store),
) -> dict[str, Any]:
    """Login hook: move the guest session's cart into the user's cart."""
    if not identity.is_authenticated:
        raise IdentityUnresolvable("Merging a cart requires an authenticated user")
    session_id = getattr(request.state, "session_id", None)
    if not session_id:
        raise BadRequestError("No guest session to merge")

    await carts.merge_guest_into(identity, session_id)
    return cart_body(await carts.get(identity))
