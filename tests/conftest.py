"""Global pytest configuration and fixtures.

Provides in-memory doubles for the two external stores:
- FakeRedis: the subset of redis.asyncio.Redis the cache tiers use, with
  TTLs driven by a manual clock
- FakeSourceStore: a catalog held in a dict, counting every read

plus an in-memory SQLite session factory for the persistence tests.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from decimal import Decimal
from typing import Any

import pytest
import pytest_asyncio
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from velostore.cache.local import LocalCache
from velostore.cache.redis import RedisCache
from velostore.cart.store import CartStore
from velostore.catalog.service import CatalogCache
from velostore.core.identity import CartIdentity
from velostore.core.model import CatalogFilter, CatalogItem, SortKey
from velostore.persistence.tables import Base


class ManualClock:
    """Monotonic clock advanced explicitly by tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakePipeline:
    """MULTI/EXEC pipeline over FakeRedis.

    Every queued command is checked for failure before any is applied, so
    a failing command leaves the data untouched.
    """

    def __init__(self, redis: FakeRedis) -> None:
        self.redis = redis
        self.commands: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []

    async def __aenter__(self) -> FakePipeline:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self.commands.clear()

    def set(self, key: str, value: bytes, ex: int | None = None) -> FakePipeline:
        self.commands.append(("set", (key, value), {"ex": ex}))
        return self

    def delete(self, *keys: str) -> FakePipeline:
        self.commands.append(("delete", keys, {}))
        return self

    async def execute(self) -> list[Any]:
        for op, _, _ in self.commands:
            self.redis._check(op)
        results = [
            getattr(self.redis, f"_{op}")(*args, **kwargs) for op, args, kwargs in self.commands
        ]
        self.commands.clear()
        return results


class FakeRedis:
    """In-memory stand-in for redis.asyncio.Redis.

    Set ``fail`` to make every call raise a ConnectionError, or add command
    names to ``fail_ops`` to break only those.
    """

    def __init__(self, clock: ManualClock) -> None:
        self.clock = clock
        self.data: dict[str, tuple[bytes, float | None]] = {}
        self.published: list[tuple[str, bytes]] = []
        self.fail = False
        self.fail_ops: set[str] = set()
        self.calls: list[str] = []

    def _check(self, op: str) -> None:
        self.calls.append(op)
        if self.fail or op in self.fail_ops:
            raise RedisConnectionError("redis unavailable")

    def _live(self, key: str) -> bytes | None:
        entry = self.data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self.clock() >= expires_at:
            del self.data[key]
            return None
        return value

    def _set(self, key: str, value: bytes, ex: int | None = None) -> bool:
        self.data[key] = (value, self.clock() + ex if ex else None)
        return True

    def _delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self._live(key) is not None:
                del self.data[key]
                removed += 1
        return removed

    async def get(self, key: str) -> bytes | None:
        self._check("get")
        return self._live(key)

    async def set(self, key: str, value: bytes, ex: int | None = None) -> bool:
        self._check("set")
        return self._set(key, value, ex)

    async def getex(self, key: str, ex: int | None = None) -> bytes | None:
        self._check("getex")
        value = self._live(key)
        if value is not None and ex:
            self.data[key] = (value, self.clock() + ex)
        return value

    async def delete(self, *keys: str) -> int:
        self._check("delete")
        return self._delete(*keys)

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self)

    async def publish(self, channel: str, message: bytes) -> int:
        self._check("publish")
        self.published.append((channel, message))
        return 1

    async def ping(self) -> bool:
        self._check("ping")
        return True

    def ttl(self, key: str) -> float | None:
        """Seconds until a key expires (test helper, not a coroutine)."""
        if self._live(key) is None:
            return None
        expires_at = self.data[key][1]
        return None if expires_at is None else expires_at - self.clock()


class FakeSourceStore:
    """Catalog held in memory. Set ``fail`` to make reads raise."""

    def __init__(self, items: list[CatalogItem] | None = None) -> None:
        self.items: dict[int, CatalogItem] = {item.id: item for item in items or []}
        self.fail = False
        self.reads: list[str] = []

    def _check(self, op: str) -> None:
        self.reads.append(op)
        if self.fail:
            raise OSError("database unavailable")

    async def read_all(self) -> list[CatalogItem]:
        self._check("read_all")
        return [self.items[key] for key in sorted(self.items)]

    async def read_filtered(self, criteria: CatalogFilter) -> list[CatalogItem]:
        self._check("read_filtered")
        items = list(self.items.values())
        if criteria.query and criteria.query.strip():
            needle = criteria.query.strip().lower()
            items = [
                i
                for i in items
                if needle in i.name.lower() or needle in (i.description or "").lower()
            ]
        if criteria.min_price is not None:
            items = [i for i in items if i.price >= criteria.min_price]
        if criteria.max_price is not None:
            items = [i for i in items if i.price <= criteria.max_price]
        orderings: dict[SortKey, tuple[Any, bool]] = {
            SortKey.PRICE_ASC: (lambda i: (i.price, i.id), False),
            SortKey.PRICE_DESC: (lambda i: (-i.price, i.id), False),
            SortKey.NAME_ASC: (lambda i: (i.name, i.id), False),
            SortKey.NAME_DESC: (lambda i: i.name, True),
            SortKey.DEFAULT: (lambda i: i.id, False),
        }
        key, reverse = orderings[criteria.sort]
        return sorted(items, key=key, reverse=reverse)

    async def read_by_id(self, product_id: int) -> CatalogItem | None:
        self._check("read_by_id")
        return self.items.get(product_id)


def make_item(
    item_id: int,
    name: str | None = None,
    price: str = "10.00",
    stock: int = 5,
    description: str | None = None,
) -> CatalogItem:
    return CatalogItem(
        id=item_id,
        name=name or f"Product {item_id}",
        price=Decimal(price),
        stock=stock,
        image_url=f"/img/{item_id}.png",
        description=description,
    )


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def fake_redis(clock: ManualClock) -> FakeRedis:
    return FakeRedis(clock)


@pytest.fixture
def redis_cache(fake_redis: FakeRedis) -> RedisCache:
    return RedisCache(fake_redis, timeout=1.0)  # type: ignore[arg-type]


@pytest.fixture
def local_cache(clock: ManualClock) -> LocalCache:
    return LocalCache(maxsize=128, timer=clock)


@pytest.fixture
def catalog_items() -> list[CatalogItem]:
    return [
        make_item(1, "Road Bike", "899.00", stock=3, description="Lightweight carbon frame"),
        make_item(2, "Mountain Bike", "1199.50", stock=2, description="Full suspension"),
        make_item(3, "Bike Helmet", "59.99", stock=0, description="MIPS protection"),
        make_item(4, "Water Bottle", "9.99", stock=40),
    ]


@pytest.fixture
def source(catalog_items: list[CatalogItem]) -> FakeSourceStore:
    return FakeSourceStore(catalog_items)


@pytest.fixture
def catalog(
    source: FakeSourceStore, redis_cache: RedisCache, local_cache: LocalCache
) -> CatalogCache:
    return CatalogCache(
        source=source,
        distributed=redis_cache,
        local=local_cache,
        local_ttl=300,
        distributed_ttl=600,
        product_ttl=1800,
    )


@pytest.fixture
def cart_store(redis_cache: RedisCache) -> CartStore:
    return CartStore(redis_cache, sliding_ttl=6 * 3600)


@pytest.fixture
def guest() -> CartIdentity:
    return CartIdentity.guest("sess-123")


@pytest.fixture
def user() -> CartIdentity:
    return CartIdentity.user("42")


@pytest.fixture
def product_factory() -> Any:
    """The ``make_item`` helper, for tests that need extra products."""
    return make_item


@pytest_asyncio.fixture
async def session_factory() -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Session factory over a fresh in-memory SQLite database."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()
