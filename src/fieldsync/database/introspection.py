"""
Column metadata sources.

A metadata source reports the top-level columns of a physical table as
:class:`~fieldsync.models.FieldDescriptor` objects.
"""

import logging
from typing import Dict, List, Protocol, runtime_checkable

from ..exceptions import MetadataFetchError
from ..field_types import FieldType
from ..models import DatabaseRef, FieldDescriptor, TableRef
from ..context import DEFAULT_CONTEXT, SyncContext
from .connection import DatabaseManager


logger = logging.getLogger(__name__)


@runtime_checkable
class MetadataSource(Protocol):
    """Reports the live columns of a physical table."""

    async def fetch(
        self,
        database: DatabaseRef,
        table: TableRef,
        *,
        ctx: SyncContext = DEFAULT_CONTEXT,
    ) -> List[FieldDescriptor]:
        ...


# information_schema.columns.data_type (or udt_name) -> base type
POSTGRES_BASE_TYPES: Dict[str, FieldType] = {
    "smallint": FieldType.INTEGER,
    "integer": FieldType.INTEGER,
    "bigint": FieldType.BIG_INTEGER,
    "smallserial": FieldType.INTEGER,
    "serial": FieldType.INTEGER,
    "bigserial": FieldType.BIG_INTEGER,
    "real": FieldType.FLOAT,
    "double precision": FieldType.FLOAT,
    "numeric": FieldType.DECIMAL,
    "decimal": FieldType.DECIMAL,
    "money": FieldType.DECIMAL,
    "text": FieldType.TEXT,
    "character varying": FieldType.TEXT,
    "varchar": FieldType.TEXT,
    "character": FieldType.TEXT,
    "char": FieldType.TEXT,
    "name": FieldType.TEXT,
    "citext": FieldType.TEXT,
    "boolean": FieldType.BOOLEAN,
    "timestamp without time zone": FieldType.DATE_TIME,
    "timestamp with time zone": FieldType.DATE_TIME,
    "date": FieldType.DATE,
    "time without time zone": FieldType.TIME,
    "time with time zone": FieldType.TIME,
    "uuid": FieldType.UUID,
    "json": FieldType.DICTIONARY,
    "jsonb": FieldType.DICTIONARY,
    "hstore": FieldType.DICTIONARY,
    "ARRAY": FieldType.ARRAY,
    "bytea": FieldType.BINARY,
}


def postgres_base_type(data_type: str, udt_name: str = "") -> FieldType:
    """Map a PostgreSQL column type onto a base field type."""
    return (
        POSTGRES_BASE_TYPES.get(data_type)
        or POSTGRES_BASE_TYPES.get((data_type or "").lower())
        or POSTGRES_BASE_TYPES.get((udt_name or "").lower())
        or FieldType.ANY
    )


class PostgresMetadataSource:
    """Reads column metadata from PostgreSQL's information_schema."""

    COLUMNS_QUERY = """
        SELECT c.column_name, c.data_type, c.udt_name
        FROM information_schema.columns c
        WHERE c.table_schema = $1 AND c.table_name = $2
        ORDER BY c.ordinal_position
    """

    PRIMARY_KEY_QUERY = """
        SELECT kcu.column_name
        FROM information_schema.table_constraints tc
        JOIN information_schema.key_column_usage kcu
          ON tc.constraint_name = kcu.constraint_name
         AND tc.table_schema = kcu.table_schema
         AND tc.table_name = kcu.table_name
        WHERE tc.constraint_type = 'PRIMARY KEY'
          AND tc.table_schema = $1 AND tc.table_name = $2
    """

    def __init__(self, manager: DatabaseManager, default_schema: str = "public"):
        self.manager = manager
        self.default_schema = default_schema

    async def fetch(
        self,
        database: DatabaseRef,
        table: TableRef,
        *,
        ctx: SyncContext = DEFAULT_CONTEXT,
    ) -> List[FieldDescriptor]:
        schema = table.schema or self.default_schema
        try:
            pool = await self.manager.get_pool(database.name)
            ctx.log_query(logger, self.COLUMNS_QUERY, schema, table.name)
            rows = await pool.fetch(self.COLUMNS_QUERY, schema, table.name)
            ctx.log_query(logger, self.PRIMARY_KEY_QUERY, schema, table.name)
            pk_rows = await pool.fetch(self.PRIMARY_KEY_QUERY, schema, table.name)
        except Exception as e:
            logger.error(f"Error fetching columns for {schema}.{table.name}: {e}")
            raise MetadataFetchError(f"{schema}.{table.name}", str(e), cause=e) from e

        primary_keys = {row["column_name"] for row in pk_rows}
        descriptors = [
            FieldDescriptor(
                name=row["column_name"],
                base_type=postgres_base_type(row["data_type"], row["udt_name"]),
                is_primary_key=row["column_name"] in primary_keys,
                source_column_ref=f"{schema}.{table.name}.{row['column_name']}",
            )
            for row in rows
        ]
        ctx.log_db(logger, f"Fetched {len(descriptors)} columns for {table.log_name}")
        return descriptors
