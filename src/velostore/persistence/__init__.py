"""Persistence layer for VeloStore.

This module provides:
- Async engine and session factory
- SQLAlchemy ORM model for catalog products
- Repository returning CatalogItem snapshots
"""

from velostore.persistence.db import get_engine, get_session_factory, init_db
from velostore.persistence.repositories import ProductRepository
from velostore.persistence.tables import Base, ProductTable

__all__ = [
    # DB
    "get_engine",
    "get_session_factory",
    "init_db",
    # Tables
    "Base",
    "ProductTable",
    # Repositories
    "ProductRepository",
]
