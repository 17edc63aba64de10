"""Product catalog: Source Store, read-through cache and writes."""

from velostore.catalog.admin import CatalogWriter
from velostore.catalog.service import CatalogCache
from velostore.catalog.source import SourceStore, SqlSourceStore

__all__ = [
    "CatalogCache",
    "CatalogWriter",
    "SourceStore",
    "SqlSourceStore",
]
