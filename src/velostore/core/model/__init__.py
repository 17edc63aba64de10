"""Domain models for the catalog and the cart.

All models use Pydantic v2. Cache entries are the camelCase JSON form of
these models (``model_dump(mode="json", by_alias=True)``).
"""

from pydantic import BaseModel


class StrictModel(BaseModel):
    """Base model for all VeloStore domain models.

    extra="forbid" rejects unknown fields, so a cache entry written by an
    incompatible release fails validation and is treated as a miss.
    """

    model_config = {
        "extra": "forbid",
        "populate_by_name": True,
        "validate_default": True,
    }


# ruff: noqa: E402
from velostore.core.model.cart import Cart, CartLine
from velostore.core.model.catalog import CatalogFilter, CatalogItem, SortKey

__all__ = [
    "StrictModel",
    "CatalogItem",
    "CatalogFilter",
    "SortKey",
    "Cart",
    "CartLine",
]
