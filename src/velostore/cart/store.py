"""Per-identity shopping carts persisted in the distributed tier.

Carts live only in Redis under ``cart:<identity>`` with a sliding
expiration: every read and every write restarts the window. There is no
database copy, so an expired cart is simply gone.

Mutations are read-modify-write without a lock. Two concurrent mutations
of the same cart are last-write-wins; the losing update is dropped.

A guest-to-user merge writes the user cart and deletes the guest cart in
one MULTI/EXEC transaction.
"""

from __future__ import annotations

import logging
from decimal import Decimal

import orjson
from pydantic import ValidationError

from velostore.cache.keys import CacheKeys
from velostore.cache.redis import RedisCache
from velostore.config import settings
from velostore.core.errors import CacheTierError, CartUnavailable, ContractViolation
from velostore.core.identity import CartIdentity
from velostore.core.model import Cart, CartLine
from velostore.observability.logging import LogContext

logger = logging.getLogger(__name__)


class CartStore:
    """Cart operations keyed by an explicit CartIdentity.

    Args:
        cache: Distributed tier holding the carts
        sliding_ttl: Inactivity window in seconds (default 6 hours)
    """

    def __init__(self, cache: RedisCache, sliding_ttl: int | None = None):
        self.cache = cache
        self.sliding_ttl = settings.cart_sliding_ttl if sliding_ttl is None else sliding_ttl

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get(self, identity: CartIdentity) -> Cart:
        """Return the cart, creating and persisting an empty one on first read.

        A tier failure yields an empty cart that is not persisted.
        """
        key = CacheKeys.cart(identity.key)
        try:
            data = await self.cache.get_sliding(key, self.sliding_ttl)
        except CacheTierError as e:
            logger.warning("Cart read failed for %s: %s", identity, e)
            return Cart(identity=identity.key)

        if data is not None:
            cart = self._decode(identity, data)
            if cart is not None:
                return cart
            return Cart(identity=identity.key)

        cart = Cart(identity=identity.key)
        try:
            await self.cache.set_sliding(key, self._encode(cart), self.sliding_ttl)
        except CacheTierError as e:
            logger.warning("Could not persist new cart for %s: %s", identity, e)
        logger.debug("Created cart for %s", identity)
        return cart

    async def count(self, identity: CartIdentity) -> int:
        """Total units in the cart; 0 if the cart cannot be read."""
        try:
            return (await self.get(identity)).count
        except Exception as e:
            logger.warning("Cart count failed for %s: %s", identity, e)
            return 0

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def add(
        self,
        identity: CartIdentity,
        product_id: int,
        name: str,
        price: Decimal,
        image_url: str = "",
    ) -> Cart:
        """Add one unit of a product, creating the line if needed."""
        if price < 0:
            raise ContractViolation("Price cannot be negative")
        if product_id <= 0:
            raise ContractViolation(f"Product id must be positive, got {product_id}")

        cart = await self._load(identity, "add")
        line = cart.find(product_id)
        if line is not None:
            line.quantity += 1
        else:
            cart.items.append(
                CartLine(
                    product_id=product_id,
                    product_name=name,
                    price=price,
                    image_url=image_url,
                    quantity=1,
                )
            )
        await self._save(identity, cart, "add")
        logger.info("Added product %s to cart %s", product_id, identity)
        return cart

    async def increase(self, identity: CartIdentity, product_id: int) -> Cart:
        """Add one unit to an existing line. Missing lines are left alone."""
        cart = await self._load(identity, "increase")
        line = cart.find(product_id)
        if line is None:
            logger.warning("Product %s not in cart %s; nothing to increase", product_id, identity)
            return cart
        line.quantity += 1
        await self._save(identity, cart, "increase")
        return cart

    async def decrease(self, identity: CartIdentity, product_id: int) -> Cart:
        """Remove one unit; the line disappears when it reaches zero."""
        cart = await self._load(identity, "decrease")
        line = cart.find(product_id)
        if line is None:
            logger.warning("Product %s not in cart %s; nothing to decrease", product_id, identity)
            return cart
        if line.quantity <= 1:
            cart.items.remove(line)
        else:
            line.quantity -= 1
        await self._save(identity, cart, "decrease")
        return cart

    async def clear(self, identity: CartIdentity) -> None:
        """Delete the cart. The next read starts a fresh empty cart."""
        try:
            await self.cache.delete(CacheKeys.cart(identity.key))
        except CacheTierError as e:
            logger.error("Cart clear failed for %s: %s", identity, e)
            raise CartUnavailable(identity.key, "clear") from e
        logger.info("Cleared cart %s", identity)

    async def merge_guest_into(self, user_identity: CartIdentity, guest_session_id: str) -> None:
        """Fold a guest cart into a user's cart after login.

        Quantities of shared products are summed; other guest lines are
        appended. Saving the user cart and deleting the guest cart happen in
        one transaction, so a failed merge leaves both carts as they were
        and a retry cannot count the guest lines twice. Any failure is
        logged and the merge is abandoned; login never fails because of it.
        """
        guest = CartIdentity.guest(guest_session_id)
        with LogContext(identity=user_identity.key):
            try:
                merged = await self._merge(user_identity, guest)
            except Exception:
                logger.exception("Cart merge from %s into %s failed", guest, user_identity)
                return
            if merged:
                logger.info(
                    "Merged %d guest lines from %s into %s", merged, guest, user_identity
                )

    async def _merge(self, user_identity: CartIdentity, guest: CartIdentity) -> int:
        guest_key = CacheKeys.cart(guest.key)
        data = await self.cache.get(guest_key)
        if data is None:
            return 0
        guest_cart = self._decode(guest, data)
        if guest_cart is None or guest_cart.is_empty:
            return 0

        user_cart = await self._load(user_identity, "merge")
        for guest_line in guest_cart.items:
            line = user_cart.find(guest_line.product_id)
            if line is not None:
                line.quantity += guest_line.quantity
            else:
                user_cart.items.append(guest_line.model_copy())

        await self.cache.replace(
            CacheKeys.cart(user_identity.key),
            self._encode(user_cart),
            self.sliding_ttl,
            guest_key,
        )
        return len(guest_cart.items)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _load(self, identity: CartIdentity, operation: str) -> Cart:
        """Load a cart for mutation; a tier failure aborts the mutation."""
        try:
            data = await self.cache.get_sliding(CacheKeys.cart(identity.key), self.sliding_ttl)
        except CacheTierError as e:
            logger.error("Cart %s failed for %s: %s", operation, identity, e)
            raise CartUnavailable(identity.key, operation) from e
        if data is None:
            return Cart(identity=identity.key)
        cart = self._decode(identity, data)
        return cart if cart is not None else Cart(identity=identity.key)

    async def _save(self, identity: CartIdentity, cart: Cart, operation: str) -> None:
        try:
            await self.cache.set_sliding(
                CacheKeys.cart(identity.key), self._encode(cart), self.sliding_ttl
            )
        except CacheTierError as e:
            logger.error("Cart %s failed for %s: %s", operation, identity, e)
            raise CartUnavailable(identity.key, operation) from e

    @staticmethod
    def _encode(cart: Cart) -> bytes:
        return orjson.dumps(cart.model_dump(mode="json", by_alias=True))

    @staticmethod
    def _decode(identity: CartIdentity, data: bytes) -> Cart | None:
        try:
            return Cart.model_validate(orjson.loads(data))
        except (orjson.JSONDecodeError, ValidationError) as e:
            logger.warning("Discarding unreadable cart for %s: %s", identity, e)
            return None
