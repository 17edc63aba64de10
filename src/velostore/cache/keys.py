"""Cache key schema for VeloStore.

Catalog key format: {prefix}:{entity}:{selector}[:{tier}]

Where:
- prefix: "velostore" (namespace for a shared Redis)
- entity: "catalog" (the full listing) or "product" (one item)
- selector: "all" or the product id
- tier: "local" for the listing's in-process key

Cart keys are "cart:{identity}" with identity "user:<id>" or "guest:<session>".
"""

from __future__ import annotations


class CacheKeys:
    """Cache key generator following consistent naming convention."""

    PREFIX = "velostore"
    CART_PREFIX = "cart"

    @classmethod
    def catalog_local(cls) -> str:
        """Key for the full listing in the local tier."""
        return f"{cls.PREFIX}:catalog:all:local"

    @classmethod
    def catalog_distributed(cls) -> str:
        """Key for the full listing in the distributed tier."""
        return f"{cls.PREFIX}:catalog:all"

    @classmethod
    def product(cls, product_id: int) -> str:
        """Key for one product; shared by both tiers."""
        return f"{cls.PREFIX}:product:{product_id}"

    @classmethod
    def cart(cls, identity: str) -> str:
        """Key for a cart, identity being "user:<id>" or "guest:<session>"."""
        return f"{cls.CART_PREFIX}:{identity}"
