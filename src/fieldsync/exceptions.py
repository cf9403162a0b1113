"""
Exception classes for fieldsync.
"""

from typing import Any, Dict, Optional


class FieldSyncError(Exception):
    """Base exception for all fieldsync errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        result = self.message
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            result += f" [{details_str}]"
        if self.cause:
            result += f" (caused by: {self.cause})"
        return result


class ConfigurationError(FieldSyncError):
    """Raised when there's an error in configuration."""

    pass


class DatabaseError(FieldSyncError):
    """Raised when there's an error with database operations."""

    pass


class DatabaseConnectionError(DatabaseError):
    """Raised when there's an error establishing or maintaining database connections."""

    pass


class DatabaseConfigurationError(DatabaseError):
    """Raised when there's an error in database configuration."""

    pass


class MetadataFetchError(DatabaseError):
    """Raised when column metadata cannot be read from a physical database."""

    def __init__(
        self,
        table_name: str,
        message: str,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(
            f"Failed to fetch metadata for table '{table_name}': {message}",
            {"table": table_name},
            cause,
        )
        self.table_name = table_name


class PersistenceError(DatabaseError):
    """Raised when a write to (or read from) the field catalog fails."""

    def __init__(
        self,
        operation: str,
        message: str,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(
            f"Catalog {operation} failed: {message}",
            {"operation": operation},
            cause,
        )
        self.operation = operation


class SchemaSetupError(DatabaseError):
    """Raised when the catalog schema cannot be created."""

    pass
