"""Fixtures shared by the assistant tests."""

from __future__ import annotations

import pytest

from velostore.assistant.tools import ToolExecutor
from velostore.cart.store import CartStore
from velostore.catalog.service import CatalogCache


@pytest.fixture
def tools(catalog: CatalogCache, cart_store: CartStore) -> ToolExecutor:
    return ToolExecutor(catalog, cart_store)
