"""
Field catalog package for fieldsync.

This package provides:
- The CatalogStore interface used by the sync engine
- In-memory and PostgreSQL catalog stores
- Catalog schema setup
"""

from .postgres import PostgresCatalogStore
from .schema import CatalogSchemaManager
from .store import CatalogStore, InMemoryCatalogStore, UPDATABLE_COLUMNS

__all__ = [
    "CatalogStore",
    "InMemoryCatalogStore",
    "PostgresCatalogStore",
    "CatalogSchemaManager",
    "UPDATABLE_COLUMNS",
]
