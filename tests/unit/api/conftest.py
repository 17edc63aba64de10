"""Fixtures for API tests.

The app is created without running its lifespan; service dependencies
are overridden with the in-memory doubles from the root conftest.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from velostore.api import deps
from velostore.api.app import create_app
from velostore.cart.store import CartStore
from velostore.catalog.service import CatalogCache


@pytest.fixture
def app(catalog: CatalogCache, cart_store: CartStore) -> Iterator[FastAPI]:
    application = create_app()
    application.dependency_overrides[deps.get_catalog] = lambda: catalog
    application.dependency_overrides[deps.get_cart_store] = lambda: cart_store
    application.dependency_overrides[deps.get_reasoning_engine] = lambda: None
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)
