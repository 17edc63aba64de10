"""Rule-based intent router for the shopping assistant.

Used when no reasoning engine is configured. A message is matched
against INTENTS in order and the first intent whose predicate holds
handles it. Handlers act only through ToolExecutor.

Precedence examples:
    "What's in my cart?"     -> view_cart
    "Add product 1 to cart"  -> add_to_cart (no details word, so not product_details)
    "product 1"              -> fallback (no intent keywords at all)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Awaitable, Callable

from velostore.assistant import intents as kw
from velostore.assistant.intents import contains_any, extract_product_id, extract_search_query
from velostore.assistant.tools import AddStatus, ToolExecutor
from velostore.core.identity import CartIdentity

logger = logging.getLogger(__name__)

MAX_LISTED_PRODUCTS = 10


@dataclass
class RouteResult:
    """Reply text plus the names of the actions that were executed."""

    text: str
    actions: list[str] = field(default_factory=list)


Handler = Callable[["IntentRouter", str, CartIdentity], Awaitable[RouteResult]]


@dataclass(frozen=True)
class Intent:
    name: str
    predicate: Callable[[str], bool]
    handler: Handler


def money(value: Decimal) -> str:
    return f"${value:,.2f}"


class IntentRouter:
    """Maps free text to one shopping action and renders a reply."""

    def __init__(self, tools: ToolExecutor):
        self.tools = tools

    async def route(self, message: str, identity: CartIdentity) -> RouteResult:
        text = kw.normalize(message)
        for intent in INTENTS:
            if intent.predicate(text):
                logger.debug("Routing message to intent %s", intent.name)
                return await intent.handler(self, text, identity)
        logger.debug("No intent matched; using fallback reply")
        return _fallback(message)

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    async def _view_cart(self, text: str, identity: CartIdentity) -> RouteResult:
        cart = await self.tools.get_cart(identity)
        if cart.is_empty:
            return RouteResult(
                "Your shopping cart is currently empty. Would you like to browse our products?",
                ["get_cart"],
            )
        lines = "\n".join(
            f"{i}. {line.product_name} - {line.quantity}x {money(line.price)} each"
            f" = {money(line.subtotal)}"
            for i, line in enumerate(cart.items, start=1)
        )
        return RouteResult(
            f"Your shopping cart contains {len(cart.items)} item(s):\n\n{lines}\n\n"
            f"**Total: {money(cart.total)}**",
            ["get_cart"],
        )

    async def _search(self, text: str, identity: CartIdentity) -> RouteResult:
        query = extract_search_query(text)
        products = await self.tools.search_products(query)
        if not products:
            return RouteResult(
                f"I couldn't find any products matching '{query}'. "
                "Try a different search term or browse all products on the home page.",
                ["search_products"],
            )
        listed = "\n".join(
            f"{i}. **{p.name}** - {money(p.price)} (ID: {p.id})"
            for i, p in enumerate(products[:MAX_LISTED_PRODUCTS], start=1)
        )
        matching = f" matching '{query}'" if query else ""
        reply = f"I found {len(products)} product(s){matching}:\n\n{listed}"
        if len(products) > MAX_LISTED_PRODUCTS:
            reply += (
                f"\n\n... and {len(products) - MAX_LISTED_PRODUCTS} more. "
                "Use the filters on the home page to see all results."
            )
        return RouteResult(reply, ["search_products"])

    async def _product_details(self, text: str, identity: CartIdentity) -> RouteResult:
        product_id = extract_product_id(text)
        if product_id is None:
            return RouteResult(
                "I need a product ID to show you the details. Please specify which product "
                "you'd like to know about (e.g., 'Tell me about product 1')."
            )
        product = await self.tools.get_product_details(product_id)
        if product is None:
            return RouteResult(
                f"I couldn't find product with ID {product_id}. "
                "Please check the product ID and try again.",
                ["get_product_details"],
            )
        reply = f"**{product.name}**\n\n"
        if product.description:
            reply += f"{product.description}\n\n"
        stock = f"{product.stock} available" if product.in_stock else "Out of stock"
        reply += f"Price: {money(product.price)}\nStock: {stock}\nProduct ID: {product.id}"
        return RouteResult(reply, ["get_product_details"])

    async def _add_to_cart(self, text: str, identity: CartIdentity) -> RouteResult:
        product_id = extract_product_id(text)
        if product_id is None:
            return RouteResult(
                "I need a product ID to add it to your cart. "
                "Please specify which product (e.g., 'Add product 1 to cart')."
            )
        outcome = await self.tools.add_to_cart(identity, product_id)
        product = outcome.product
        if outcome.status is AddStatus.NOT_FOUND or product is None:
            return RouteResult(
                f"I couldn't find product with ID {product_id}. Please check the product ID."
            )
        if outcome.status is AddStatus.OUT_OF_STOCK:
            return RouteResult(f"Sorry, **{product.name}** is currently out of stock.")
        return RouteResult(
            f"**{product.name}** has been added to your cart! "
            f"Price: {money(product.price)}",
            ["add_to_cart"],
        )

    async def _increase(self, text: str, identity: CartIdentity) -> RouteResult:
        product_id = extract_product_id(text)
        if product_id is None:
            return RouteResult(
                "I need a product ID to increase the quantity. Please specify which product."
            )
        await self.tools.increase_quantity(identity, product_id)
        return RouteResult(
            f"Quantity increased for product {product_id}.", ["increase_quantity"]
        )

    async def _decrease(self, text: str, identity: CartIdentity) -> RouteResult:
        product_id = extract_product_id(text)
        if product_id is None:
            return RouteResult(
                "I need a product ID to decrease the quantity. Please specify which product."
            )
        await self.tools.decrease_quantity(identity, product_id)
        return RouteResult(
            f"Quantity decreased for product {product_id}.", ["decrease_quantity"]
        )

    async def _clear(self, text: str, identity: CartIdentity) -> RouteResult:
        await self.tools.clear_cart(identity)
        return RouteResult("Your shopping cart has been cleared.", ["clear_cart"])

    async def _greeting(self, text: str, identity: CartIdentity) -> RouteResult:
        return RouteResult(
            "Hello! I'm your VeloStore shopping assistant. I can help you:\n\n"
            "- **View your cart**: ask 'What's in my cart?'\n"
            "- **Search products**: say 'Search for bikes'\n"
            "- **Product details**: ask 'Tell me about product 1'\n"
            "- **Add to cart**: say 'Add product 1 to cart'\n"
            "- **Manage quantities**: 'Increase quantity of product 1'\n"
            "- **Clear cart**: say 'Clear my cart'\n\n"
            "How can I help you today?"
        )


def _fallback(message: str) -> RouteResult:
    return RouteResult(
        f'I understand you\'re asking about: "{message.strip()}"\n\n'
        "I can help you with:\n"
        "- Viewing your shopping cart\n"
        "- Searching for products\n"
        "- Getting product details\n"
        "- Adding items to your cart\n"
        "- Managing cart quantities\n\n"
        "Try asking: 'What's in my cart?' or 'Search for products'"
    )


def _both(first: tuple[str, ...], second: tuple[str, ...]) -> Callable[[str], bool]:
    return lambda text: contains_any(text, first) and contains_any(text, second)


def _any(words: tuple[str, ...]) -> Callable[[str], bool]:
    return lambda text: contains_any(text, words)


INTENTS: tuple[Intent, ...] = (
    Intent("view_cart", _both(kw.CART_WORDS, kw.VIEW_WORDS), IntentRouter._view_cart),
    Intent("search_products", _any(kw.SEARCH_WORDS), IntentRouter._search),
    Intent(
        "product_details",
        _both(kw.DETAIL_WORDS, kw.PRODUCT_WORDS),
        IntentRouter._product_details,
    ),
    Intent("add_to_cart", _both(kw.ADD_WORDS, kw.ADD_TARGET_WORDS), IntentRouter._add_to_cart),
    Intent(
        "increase_quantity",
        _both(kw.INCREASE_WORDS, kw.QUANTITY_WORDS),
        IntentRouter._increase,
    ),
    Intent(
        "decrease_quantity",
        _both(kw.DECREASE_WORDS, kw.DECREASE_TARGET_WORDS),
        IntentRouter._decrease,
    ),
    Intent("clear_cart", _both(kw.CLEAR_WORDS, kw.CLEAR_TARGET_WORDS), IntentRouter._clear),
    Intent("greeting", _any(kw.GREETING_WORDS), IntentRouter._greeting),
)
