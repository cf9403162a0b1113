"""
fieldsync: keeps a catalog of database fields in step with live schemas.

fieldsync reads column metadata from physical PostgreSQL databases and
reconciles it into a field catalog, running each sync as a single-flight,
evented operation.
"""

__version__ = "0.1.0"

from .config import FieldSyncConfig
from .exceptions import (
    ConfigurationError,
    DatabaseError,
    FieldSyncError,
    MetadataFetchError,
    PersistenceError,
)

__all__ = [
    "__version__",
    "FieldSyncConfig",
    "FieldSyncError",
    "ConfigurationError",
    "DatabaseError",
    "MetadataFetchError",
    "PersistenceError",
]
