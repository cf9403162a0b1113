"""
Database integration package for fieldsync.

This package provides:
- Async PostgreSQL connection pooling
- Column metadata introspection for physical databases
"""

from .connection import ConnectionConfig, ConnectionPool, DatabaseManager
from .introspection import MetadataSource, PostgresMetadataSource, postgres_base_type

__all__ = [
    "ConnectionConfig",
    "ConnectionPool",
    "DatabaseManager",
    "MetadataSource",
    "PostgresMetadataSource",
    "postgres_base_type",
]
