"""Shopping cart models.

A cart is owned by one identity key (``user:<id>`` or ``guest:<session>``)
and holds at most one line per product. Lines never carry a quantity
below one; removing the last unit removes the line.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated

from pydantic import Field, model_validator

from velostore.core.model import StrictModel


class CartLine(StrictModel):
    """One product in a cart, denormalized at add time."""

    product_id: int = Field(alias="productId")
    product_name: str = Field(default="", alias="productName")
    price: Annotated[Decimal, Field(ge=0)]
    image_url: str = Field(default="", alias="imageUrl")
    quantity: Annotated[int, Field(ge=1)] = 1

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity


class Cart(StrictModel):
    """Cart for a single identity."""

    identity: str
    items: list[CartLine] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_products(self) -> "Cart":
        seen: set[int] = set()
        for line in self.items:
            if line.product_id in seen:
                raise ValueError(f"Duplicate cart line for product {line.product_id}")
            seen.add(line.product_id)
        return self

    def find(self, product_id: int) -> CartLine | None:
        """Return the line for a product, if present."""
        for line in self.items:
            if line.product_id == product_id:
                return line
        return None

    @property
    def count(self) -> int:
        """Total number of units across all lines."""
        return sum(line.quantity for line in self.items)

    @property
    def total(self) -> Decimal:
        return sum((line.subtotal for line in self.items), Decimal("0"))

    @property
    def is_empty(self) -> bool:
        return not self.items
