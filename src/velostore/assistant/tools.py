"""Shopping actions shared by the intent router and the reasoning engine.

Every action goes through CatalogCache or CartStore, so both assistant
paths inherit the cache TTLs, invalidation and identity handling of those
services. ToolExecutor exposes each action twice: as a typed method for
the intent router, and through ``execute()`` which takes a tool call
selected by a reasoning engine and returns a JSON-safe result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from velostore.cart.store import CartStore
from velostore.catalog.service import CatalogCache
from velostore.core.errors import VeloStoreError
from velostore.core.identity import CartIdentity
from velostore.core.model import Cart, CatalogItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolDefinition:
    """Provider-neutral description of one callable action.

    ``parameters`` is a JSON Schema object; engine adapters wrap it in
    whatever envelope their provider expects.
    """

    name: str
    description: str
    parameters: dict[str, Any]


def _product_id_schema(purpose: str) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "productId": {"type": "integer", "description": f"The ID of the product {purpose}"}
        },
        "required": ["productId"],
    }


_NO_PARAMETERS: dict[str, Any] = {"type": "object", "properties": {}, "required": []}

TOOLS: tuple[ToolDefinition, ...] = (
    ToolDefinition(
        name="search_products",
        description=(
            "Search for products by name or description. Use this when the user asks "
            "about finding products, browsing, or looking for specific items."
        ),
        parameters={
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Search query to find products by name or description",
                }
            },
            "required": ["query"],
        },
    ),
    ToolDefinition(
        name="get_product_details",
        description=(
            "Get detailed information about a specific product by ID. Use this when the "
            "user asks about product details, price, or stock availability."
        ),
        parameters=_product_id_schema("to get details for"),
    ),
    ToolDefinition(
        name="get_cart",
        description=(
            "Get the current shopping cart contents. Use this when the user asks about "
            "their cart, what's in it, or the cart total."
        ),
        parameters=_NO_PARAMETERS,
    ),
    ToolDefinition(
        name="add_to_cart",
        description="Add a product to the shopping cart.",
        parameters=_product_id_schema("to add to the cart"),
    ),
    ToolDefinition(
        name="increase_quantity",
        description=(
            "Increase the quantity of a product already in the cart by one."
        ),
        parameters=_product_id_schema("to increase the quantity for"),
    ),
    ToolDefinition(
        name="decrease_quantity",
        description=(
            "Decrease the quantity of a product in the cart by one. The line is "
            "removed when its quantity reaches zero."
        ),
        parameters=_product_id_schema("to decrease the quantity for"),
    ),
    ToolDefinition(
        name="clear_cart",
        description="Remove everything from the shopping cart.",
        parameters=_NO_PARAMETERS,
    ),
)

TOOL_NAMES = frozenset(tool.name for tool in TOOLS)


class AddStatus(str, Enum):
    ADDED = "added"
    NOT_FOUND = "not_found"
    OUT_OF_STOCK = "out_of_stock"


@dataclass(frozen=True)
class AddOutcome:
    """Result of an add-to-cart action."""

    status: AddStatus
    product: CatalogItem | None = None

    @property
    def added(self) -> bool:
        return self.status is AddStatus.ADDED


def _product_summary(item: CatalogItem) -> dict[str, Any]:
    return {"id": item.id, "name": item.name, "price": str(item.price)}


def _product_detail(item: CatalogItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "name": item.name,
        "description": item.description,
        "price": str(item.price),
        "stock": item.stock,
        "inStock": item.in_stock,
    }


def cart_payload(cart: Cart) -> dict[str, Any]:
    """JSON-safe view of a cart."""
    return {
        "itemCount": len(cart.items),
        "total": str(cart.total),
        "items": [
            {
                "productId": line.product_id,
                "productName": line.product_name,
                "price": str(line.price),
                "quantity": line.quantity,
                "subtotal": str(line.subtotal),
            }
            for line in cart.items
        ],
    }


class ToolExecutor:
    """Runs shopping actions against the catalog cache and the cart store."""

    def __init__(self, catalog: CatalogCache, carts: CartStore):
        self.catalog = catalog
        self.carts = carts

    # -------------------------------------------------------------------------
    # Typed actions
    # -------------------------------------------------------------------------

    async def search_products(self, query: str) -> list[CatalogItem]:
        return await self.catalog.get_filtered(query=query)

    async def get_product_details(self, product_id: int) -> CatalogItem | None:
        return await self.catalog.get_by_id(product_id)

    async def get_cart(self, identity: CartIdentity) -> Cart:
        return await self.carts.get(identity)

    async def add_to_cart(self, identity: CartIdentity, product_id: int) -> AddOutcome:
        """Add one unit of a catalog product, refusing unknown or sold-out items."""
        product = await self.catalog.get_by_id(product_id)
        if product is None:
            return AddOutcome(AddStatus.NOT_FOUND)
        if not product.in_stock:
            return AddOutcome(AddStatus.OUT_OF_STOCK, product)
        await self.carts.add(
            identity,
            product_id=product.id,
            name=product.name,
            price=product.price,
            image_url=product.image_url,
        )
        return AddOutcome(AddStatus.ADDED, product)

    async def increase_quantity(self, identity: CartIdentity, product_id: int) -> Cart:
        return await self.carts.increase(identity, product_id)

    async def decrease_quantity(self, identity: CartIdentity, product_id: int) -> Cart:
        return await self.carts.decrease(identity, product_id)

    async def clear_cart(self, identity: CartIdentity) -> None:
        await self.carts.clear(identity)

    # -------------------------------------------------------------------------
    # Tool-call dispatch
    # -------------------------------------------------------------------------

    async def execute(
        self, name: str, arguments: dict[str, Any], identity: CartIdentity
    ) -> dict[str, Any]:
        """Run a tool selected by a reasoning engine.

        Never raises for bad input or failed actions; the error is returned
        to the engine as ``{"success": false, "error": ...}``.
        """
        logger.info("Executing tool: %s", name)
        if name not in TOOL_NAMES:
            return {"success": False, "error": f"Unknown tool: {name}"}
        try:
            return await self._dispatch(name, arguments, identity)
        except (VeloStoreError, ValueError, TypeError, KeyError) as e:
            logger.warning("Tool %s failed: %s", name, e)
            return {"success": False, "error": f"Error executing {name}: {e}"}

    async def _dispatch(
        self, name: str, arguments: dict[str, Any], identity: CartIdentity
    ) -> dict[str, Any]:
        if name == "search_products":
            products = await self.search_products(str(arguments["query"]))
            return {
                "success": True,
                "count": len(products),
                "products": [_product_summary(p) for p in products],
            }

        if name == "get_cart":
            cart = await self.get_cart(identity)
            return {"success": True, **cart_payload(cart)}

        if name == "clear_cart":
            await self.clear_cart(identity)
            return {"success": True, "message": "Cart cleared"}

        product_id = int(arguments["productId"])

        if name == "get_product_details":
            product = await self.get_product_details(product_id)
            if product is None:
                return {"success": False, "error": "Product not found"}
            return {"success": True, "product": _product_detail(product)}

        if name == "add_to_cart":
            outcome = await self.add_to_cart(identity, product_id)
            product = outcome.product
            if outcome.status is AddStatus.NOT_FOUND or product is None:
                return {"success": False, "error": "Product not found"}
            if outcome.status is AddStatus.OUT_OF_STOCK:
                return {"success": False, "error": "Product is out of stock"}
            return {
                "success": True,
                "message": f"{product.name} added to cart",
                "productId": product.id,
                "productName": product.name,
            }

        if name == "increase_quantity":
            await self.increase_quantity(identity, product_id)
            return {"success": True, "message": "Quantity increased"}

        await self.decrease_quantity(identity, product_id)
        return {"success": True, "message": "Quantity decreased"}
