"""
Catalog schema management for fieldsync.

Creates the schema and tables that back :class:`PostgresCatalogStore` and
checks that they are present.
"""

import logging
import re
from typing import Any, Dict

from ..database.connection import ConnectionPool
from ..exceptions import SchemaSetupError


logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

TABLE_TABLE = "metadata_table"
FIELD_TABLE = "metadata_field"


def validate_identifier(name: str) -> str:
    """Reject names that can't be interpolated into DDL unquoted."""
    if not name or not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return name


class CatalogSchemaManager:
    """Creates and verifies the catalog tables."""

    def __init__(self, pool: ConnectionPool, schema: str = "fieldsync_catalog"):
        self.pool = pool
        self.schema = validate_identifier(schema)
        self.required_tables = {
            TABLE_TABLE: self._get_table_table_ddl(),
            FIELD_TABLE: self._get_field_table_ddl(),
        }

    async def setup(self) -> Dict[str, Any]:
        """Create the catalog schema, tables and indexes if they don't exist."""
        results = {"schema": self.schema, "tables_created": [], "errors": []}

        try:
            await self.pool.execute(f"CREATE SCHEMA IF NOT EXISTS {self.schema}")
        except Exception as e:
            logger.error(f"Failed to create schema {self.schema}: {e}")
            raise SchemaSetupError(f"Failed to create catalog schema: {e}") from e

        for table_name, ddl in self.required_tables.items():
            try:
                await self.pool.execute(ddl)
                results["tables_created"].append(f"{self.schema}.{table_name}")
            except Exception as e:
                error_msg = f"Failed to create table {table_name}: {e}"
                logger.error(error_msg)
                results["errors"].append(error_msg)

        logger.info(f"Catalog schema setup completed: {len(results['errors'])} errors")
        return results

    async def check_integrity(self) -> Dict[str, Any]:
        """Report which catalog tables are missing."""
        rows = await self.pool.fetch(
            "SELECT table_name FROM information_schema.tables WHERE table_schema = $1",
            self.schema,
        )
        existing = {row["table_name"] for row in rows}
        missing = [name for name in self.required_tables if name not in existing]
        return {
            "schema": self.schema,
            "tables_exist": {name: name in existing for name in self.required_tables},
            "missing_components": [f"table:{name}" for name in missing],
            "is_healthy": not missing,
        }

    def _get_table_table_ddl(self) -> str:
        return f"""
        CREATE TABLE IF NOT EXISTS {self.schema}.{TABLE_TABLE} (
            id SERIAL PRIMARY KEY,
            db_id INTEGER NOT NULL,
            schema VARCHAR(254),
            name VARCHAR(254) NOT NULL,
            active BOOLEAN NOT NULL DEFAULT TRUE,
            visibility_type VARCHAR(32),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            UNIQUE (db_id, schema, name)
        );
        """

    def _get_field_table_ddl(self) -> str:
        return f"""
        CREATE TABLE IF NOT EXISTS {self.schema}.{FIELD_TABLE} (
            id SERIAL PRIMARY KEY,
            table_id INTEGER NOT NULL REFERENCES {self.schema}.{TABLE_TABLE}(id),
            name VARCHAR(254) NOT NULL,
            display_name VARCHAR(254),
            base_type VARCHAR(255) NOT NULL,
            special_type VARCHAR(255),
            parent_id INTEGER REFERENCES {self.schema}.{FIELD_TABLE}(id),
            active BOOLEAN NOT NULL DEFAULT TRUE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );
        CREATE INDEX IF NOT EXISTS idx_{FIELD_TABLE}_table_lower_name
            ON {self.schema}.{FIELD_TABLE} (table_id, lower(name));
        """
