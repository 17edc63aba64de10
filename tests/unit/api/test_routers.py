"""Tests for the HTTP routers."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import pytest
from fastapi.testclient import TestClient

from velostore.api import deps
from velostore.api.app import create_app
from velostore.api.routers import health
from velostore.cache.keys import CacheKeys
from velostore.cache.local import LocalCache
from velostore.cart.store import CartStore
from velostore.catalog.service import CatalogCache
from velostore.config import settings
from velostore.core.identity import CartIdentity

COOKIE = "velostore_session"


class TestCatalogRoutes:
    def test_list_products(self, client: TestClient) -> None:
        response = client.get("/products")

        assert response.status_code == 200
        body = response.json()
        assert [p["id"] for p in body] == [1, 2, 3, 4]
        assert body[0]["price"] == "899.00"
        assert body[0]["imageUrl"] == "/img/1.png"

    def test_filtered_listing_bypasses_cache(
        self, client: TestClient, fake_redis: Any, source: Any
    ) -> None:
        response = client.get("/products", params={"q": "bike", "sort": "price_desc"})

        assert [p["id"] for p in response.json()] == [2, 1, 3]
        assert source.reads == ["read_filtered"]
        assert fake_redis.calls == []

    def test_price_range(self, client: TestClient) -> None:
        response = client.get("/products", params={"min_price": "10", "max_price": "100"})
        assert [p["name"] for p in response.json()] == ["Bike Helmet"]

    def test_get_product(self, client: TestClient) -> None:
        response = client.get("/products/2")

        assert response.status_code == 200
        assert response.json()["name"] == "Mountain Bike"

    def test_unknown_product_is_404(self, client: TestClient) -> None:
        response = client.get("/products/99")

        assert response.status_code == 404
        assert response.json()["messages"][0]["code"] == "NotFound"

    def test_non_positive_id_is_400(self, client: TestClient) -> None:
        assert client.get("/products/0").status_code == 400


class TestCartRoutes:
    def test_first_visit_issues_session_cookie(self, client: TestClient) -> None:
        response = client.get("/cart")

        assert response.status_code == 200
        assert COOKIE in response.cookies
        body = response.json()
        assert body["identity"] == f"guest:{response.cookies[COOKIE]}"
        assert body["items"] == []
        assert body["count"] == 0

    def test_guest_cart_flow(self, client: TestClient) -> None:
        client.get("/cart")

        client.post("/cart/items", json={"productId": 1})
        response = client.post("/cart/items", json={"productId": 4})
        assert response.status_code == 200
        assert response.json()["count"] == 2

        client.post("/cart/items/1/increase")
        body = client.post("/cart/items/4/decrease").json()
        assert [(i["productId"], i["quantity"]) for i in body["items"]] == [(1, 2)]
        assert body["total"] == "1798.00"

        assert client.get("/cart/count").json() == {"count": 2}

        assert client.delete("/cart").status_code == 204
        assert client.get("/cart").json()["items"] == []

    def test_line_copies_catalog_data(self, client: TestClient) -> None:
        body = client.post("/cart/items", json={"productId": 2}).json()

        assert body["items"][0] == {
            "productId": 2,
            "productName": "Mountain Bike",
            "price": "1199.50",
            "imageUrl": "/img/2.png",
            "quantity": 1,
        }

    def test_out_of_stock_is_409(self, client: TestClient) -> None:
        response = client.post("/cart/items", json={"productId": 3})

        assert response.status_code == 409
        assert response.json()["messages"][0]["code"] == "Conflict"

    def test_unknown_product_is_404(self, client: TestClient) -> None:
        assert client.post("/cart/items", json={"productId": 99}).status_code == 404

    def test_invalid_product_id_is_422(self, client: TestClient) -> None:
        assert client.post("/cart/items", json={"productId": 0}).status_code == 422

    def test_authenticated_user_owns_cart(self, client: TestClient) -> None:
        body = client.get("/cart", headers={"X-User-Id": "42"}).json()
        assert body["identity"] == "user:42"

    def test_store_down(self, client: TestClient, fake_redis: Any) -> None:
        client.get("/products/1")
        fake_redis.fail = True

        assert client.post("/cart/items", json={"productId": 1}).status_code == 503
        assert client.get("/cart").json()["items"] == []
        assert client.get("/cart/count").json() == {"count": 0}


class TestCartMerge:
    def test_login_merges_guest_cart(
        self, client: TestClient, cart_store: CartStore, fake_redis: Any
    ) -> None:
        client.post("/cart/items", json={"productId": 1})
        client.post("/cart/items", json={"productId": 1})
        session_id = client.cookies[COOKIE]

        response = client.post("/cart/merge", headers={"X-User-Id": "42"})

        assert response.status_code == 200
        body = response.json()
        assert body["identity"] == "user:42"
        assert [(i["productId"], i["quantity"]) for i in body["items"]] == [(1, 2)]
        assert CacheKeys.cart(CartIdentity.guest(session_id).key) not in fake_redis.data

    def test_guest_cannot_merge(self, client: TestClient) -> None:
        response = client.post("/cart/merge")

        assert response.status_code == 401
        assert response.json()["messages"][0]["code"] == "Unauthorized"


class TestAssistantRoute:
    def test_intent_router_reply(self, client: TestClient) -> None:
        response = client.post("/assistant/messages", json={"message": "What's in my cart?"})

        assert response.status_code == 200
        body = response.json()
        assert "empty" in body["response"]
        assert body["tool_calls"] == ["get_cart"]

    def test_add_through_assistant(self, client: TestClient) -> None:
        client.post("/assistant/messages", json={"message": "Add product 1 to cart"})

        assert client.get("/cart/count").json() == {"count": 1}

    def test_empty_message_rejected(self, client: TestClient) -> None:
        assert client.post("/assistant/messages", json={"message": ""}).status_code == 422


class TestHealthRoutes:
    def test_live(self, client: TestClient) -> None:
        response = client.get("/health/live")

        assert response.json() == {"status": "ok"}
        assert COOKIE not in response.cookies

    @pytest.mark.parametrize(("redis_ok", "status_code"), [(True, 200), (False, 503)])
    def test_ready(
        self,
        client: TestClient,
        monkeypatch: pytest.MonkeyPatch,
        redis_ok: bool,
        status_code: int,
    ) -> None:
        async def database() -> health.ComponentHealth:
            return health.ComponentHealth("database", health.HealthStatus.HEALTHY, 1.0)

        async def redis() -> health.ComponentHealth:
            status = health.HealthStatus.HEALTHY if redis_ok else health.HealthStatus.UNHEALTHY
            return health.ComponentHealth("redis", status, 1.0)

        monkeypatch.setattr(health, "_health_cache", None)
        monkeypatch.setattr(health, "check_database", database)
        monkeypatch.setattr(health, "check_redis", redis)

        response = client.get("/health/ready")

        assert response.status_code == status_code
        assert [c["name"] for c in response.json()["components"]] == ["database", "redis"]


class FakeWriter:
    """Records admin calls; product 404 never exists."""

    def __init__(self, product_factory: Any) -> None:
        self.make = product_factory
        self.calls: list[tuple[str, Any]] = []

    async def create(self, **fields: Any) -> Any:
        self.calls.append(("create", fields))
        return self.make(10, fields["name"], str(fields["price"]), fields["stock"])

    async def update(self, product_id: int, **fields: Any) -> Any:
        self.calls.append(("update", fields))
        return None if product_id == 404 else self.make(product_id, "Updated")

    async def delete(self, product_id: int) -> bool:
        self.calls.append(("delete", product_id))
        return product_id != 404


class TestAdminRoutes:
    @pytest.fixture
    def writer(self, product_factory: Any) -> FakeWriter:
        return FakeWriter(product_factory)

    @pytest.fixture
    def admin_client(
        self,
        monkeypatch: pytest.MonkeyPatch,
        catalog: CatalogCache,
        writer: FakeWriter,
    ) -> TestClient:
        monkeypatch.setattr(settings, "enable_admin_api", True)
        app = create_app()
        app.dependency_overrides[deps.get_catalog] = lambda: catalog
        app.dependency_overrides[deps.get_catalog_writer] = lambda: writer
        return TestClient(app)

    def test_admin_not_mounted_by_default(self, client: TestClient) -> None:
        assert client.post("/admin/cache/invalidate").status_code == 404

    def test_create(self, admin_client: TestClient, writer: FakeWriter) -> None:
        response = admin_client.post(
            "/admin/products", json={"name": "Chain", "price": "25.00", "stock": 4}
        )

        assert response.status_code == 201
        assert response.json()["name"] == "Chain"
        assert writer.calls[0][1]["price"] == Decimal("25.00")

    def test_create_rejects_negative_price(self, admin_client: TestClient) -> None:
        response = admin_client.post("/admin/products", json={"name": "Chain", "price": "-1"})
        assert response.status_code == 422

    def test_update(self, admin_client: TestClient, writer: FakeWriter) -> None:
        response = admin_client.patch("/admin/products/1", json={"stock": 9})

        assert response.status_code == 200
        assert writer.calls == [("update", {"stock": 9})]

    def test_update_without_fields_is_400(self, admin_client: TestClient) -> None:
        assert admin_client.patch("/admin/products/1", json={}).status_code == 400

    def test_update_missing_is_404(self, admin_client: TestClient) -> None:
        assert admin_client.patch("/admin/products/404", json={"stock": 1}).status_code == 404

    def test_delete(self, admin_client: TestClient) -> None:
        assert admin_client.delete("/admin/products/1").status_code == 204
        assert admin_client.delete("/admin/products/404").status_code == 404

    def test_invalidate(
        self, admin_client: TestClient, catalog: CatalogCache, local_cache: LocalCache
    ) -> None:
        admin_client.get("/products")
        admin_client.get("/products/2")
        assert CacheKeys.catalog_local() in local_cache

        assert admin_client.post("/admin/cache/invalidate/2").status_code == 204

        assert CacheKeys.catalog_local() not in local_cache
        assert CacheKeys.product(2) not in local_cache

        admin_client.get("/products")
        assert admin_client.post("/admin/cache/invalidate").status_code == 204
        assert CacheKeys.catalog_local() not in local_cache
