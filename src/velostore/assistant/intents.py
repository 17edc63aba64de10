"""Keyword matching and parameter extraction for the intent router.

Keywords match case-insensitively on word boundaries, so "hi" does not
fire inside "this" and "products" does not fire on "product".
"""

from __future__ import annotations

import re
from functools import lru_cache

# Keyword groups, in the order the router evaluates them
CART_WORDS = ("cart", "basket", "what's in", "what is in", "show me my", "my items")
VIEW_WORDS = ("what", "show", "view", "see", "list", "display")
SEARCH_WORDS = ("search", "find", "look for", "show me", "browse", "products", "items")
DETAIL_WORDS = ("details", "detail", "info", "information", "about", "tell me", "describe")
PRODUCT_WORDS = ("product", "item")
ADD_WORDS = ("add", "put", "place")
ADD_TARGET_WORDS = ("cart", "basket")
INCREASE_WORDS = ("increase", "add more", "more", "increment", "up")
QUANTITY_WORDS = ("quantity", "amount", "number")
DECREASE_WORDS = ("decrease", "reduce", "remove", "less", "down", "delete")
DECREASE_TARGET_WORDS = ("quantity", "amount", "number", "item")
CLEAR_WORDS = ("clear", "empty", "remove all", "delete all")
CLEAR_TARGET_WORDS = ("cart", "basket", "everything")
GREETING_WORDS = ("hello", "hi", "hey", "help", "what can you do")

_PRODUCT_ID_PATTERNS = (
    re.compile(r"\bproduct\s+#?(\d+)", re.IGNORECASE),
    re.compile(r"\bitem\s+#?(\d+)", re.IGNORECASE),
    re.compile(r"#(\d+)"),
    re.compile(r"\bid\s+(\d+)", re.IGNORECASE),
    re.compile(r"\b(\d+)\b"),
)

_SEARCH_PATTERNS = (
    re.compile(r"search for (.+)", re.IGNORECASE),
    re.compile(r"find (.+)", re.IGNORECASE),
    re.compile(r"look for (.+)", re.IGNORECASE),
    re.compile(r"show me (.+)", re.IGNORECASE),
    re.compile(r"browse (.+)", re.IGNORECASE),
    re.compile(r"products with (.+)", re.IGNORECASE),
    re.compile(r"items with (.+)", re.IGNORECASE),
)

SEARCH_STOPWORDS = frozenset(
    {"search", "find", "look", "show", "browse", "for", "me", "products", "items", "with"}
)
MAX_SEARCH_TOKENS = 5

_TRAILING_PUNCTUATION = "?!.,;:"


def normalize(message: str) -> str:
    """Lowercase, trim and straighten typographic apostrophes."""
    return message.replace("’", "'").strip().lower()


@lru_cache(maxsize=None)
def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    return re.compile(rf"(?<!\w){re.escape(keyword)}(?!\w)", re.IGNORECASE)


def contains_any(message: str, keywords: tuple[str, ...]) -> bool:
    """True if any keyword occurs in the message as whole words."""
    return any(_keyword_pattern(keyword).search(message) for keyword in keywords)


def extract_product_id(message: str) -> int | None:
    """Find a product id, trying the specific patterns before any bare number.

    Returns None when nothing positive is found; 0 is never an id.
    """
    for pattern in _PRODUCT_ID_PATTERNS:
        for match in pattern.finditer(message):
            value = int(match.group(1))
            if value > 0:
                return value
    return None


def extract_search_query(message: str) -> str:
    """Pull the search terms out of a message.

    Uses the first phrase pattern that matches, else up to five tokens
    that aren't search verbs.
    """
    for pattern in _SEARCH_PATTERNS:
        match = pattern.search(message)
        if match:
            query = match.group(1).strip().rstrip(_TRAILING_PUNCTUATION).strip()
            if query:
                return query

    tokens = [token.strip(_TRAILING_PUNCTUATION) for token in message.split()]
    words = [t for t in tokens if t and t.lower() not in SEARCH_STOPWORDS]
    return " ".join(words[:MAX_SEARCH_TOKENS])
