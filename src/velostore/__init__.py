"""VeloStore: storefront catalog cache, cart store and shopping assistant."""

__version__ = "0.1.0"
