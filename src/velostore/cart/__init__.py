"""Shopping carts keyed by user or guest session."""

from velostore.cart.store import CartStore

__all__ = ["CartStore"]
