"""API routers."""

from velostore.api.routers import admin, assistant, cart, catalog, health

__all__ = ["admin", "assistant", "cart", "catalog", "health"]
