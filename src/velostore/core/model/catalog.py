"""Catalog item snapshot as served by the catalog cache."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Annotated

from pydantic import Field

from velostore.core.model import StrictModel


class CatalogItem(StrictModel):
    """A product as stored in the Source Store.

    Instances are frozen: the same object may be held by the local cache
    and handed to many concurrent requests.
    """

    model_config = {**StrictModel.model_config, "frozen": True}

    id: Annotated[int, Field(gt=0)]
    name: Annotated[str, Field(min_length=1, max_length=200)]
    price: Annotated[Decimal, Field(ge=0)]
    image_url: str = Field(default="", alias="imageUrl")
    description: str | None = None
    stock: Annotated[int, Field(ge=0)] = 0

    @property
    def in_stock(self) -> bool:
        return self.stock > 0


class SortKey(str, Enum):
    """Sort orders accepted by filtered catalog reads."""

    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    NAME_ASC = "name_asc"
    NAME_DESC = "name_desc"
    DEFAULT = "id"

    @classmethod
    def parse(cls, value: str | None) -> "SortKey":
        """Map a request value to a sort key; unknown values sort by id."""
        if not value:
            return cls.DEFAULT
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.DEFAULT


@dataclass(frozen=True)
class CatalogFilter:
    """Predicate and ordering for a filtered catalog read.

    Filter combinations are unbounded, so these reads always go to the
    Source Store and are never cached.
    """

    query: str | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    sort: SortKey = SortKey.DEFAULT

    @property
    def is_empty(self) -> bool:
        return (
            not (self.query and self.query.strip())
            and self.min_price is None
            and self.max_price is None
            and self.sort is SortKey.DEFAULT
        )
