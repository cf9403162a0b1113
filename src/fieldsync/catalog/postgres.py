"""
PostgreSQL-backed field catalog.
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional

import asyncpg

from ..context import DEFAULT_CONTEXT, SyncContext
from ..database.connection import ConnectionPool
from ..exceptions import PersistenceError
from ..field_types import FieldType
from ..models import DatabaseRef, NewField, PersistedField, TableRef
from .schema import FIELD_TABLE, TABLE_TABLE, validate_identifier
from .store import check_update_attrs


logger = logging.getLogger(__name__)


def _to_db(value: Any) -> Any:
    return value.value if isinstance(value, FieldType) else value


def _row_to_field(row: asyncpg.Record) -> PersistedField:
    return PersistedField(
        id=row["id"],
        table_id=row["table_id"],
        name=row["name"],
        display_name=row["display_name"],
        base_type=FieldType.parse(row["base_type"]),
        special_type=FieldType.parse(row["special_type"]),
        parent_id=row["parent_id"],
        active=row["active"],
    )


class PostgresCatalogStore:
    """Catalog store over ``<schema>.metadata_table`` and ``<schema>.metadata_field``."""

    def __init__(self, pool: ConnectionPool, schema: str = "fieldsync_catalog"):
        self.pool = pool
        self.schema = validate_identifier(schema)
        self.tables = f"{self.schema}.{TABLE_TABLE}"
        self.fields = f"{self.schema}.{FIELD_TABLE}"

    async def _fetch(self, operation: str, ctx: SyncContext, query: str, *args) -> List[asyncpg.Record]:
        ctx.log_query(logger, query, *args)
        try:
            return await self.pool.fetch(query, *args)
        except Exception as e:
            raise PersistenceError(operation, str(e), cause=e) from e

    async def _fetchval(self, operation: str, ctx: SyncContext, query: str, *args) -> Any:
        ctx.log_query(logger, query, *args)
        try:
            return await self.pool.fetchval(query, *args)
        except Exception as e:
            raise PersistenceError(operation, str(e), cause=e) from e

    async def _execute(self, operation: str, ctx: SyncContext, query: str, *args) -> str:
        ctx.log_query(logger, query, *args)
        try:
            return await self.pool.execute(query, *args)
        except Exception as e:
            raise PersistenceError(operation, str(e), cause=e) from e

    async def sync_tables(
        self, database: DatabaseRef, *, ctx: SyncContext = DEFAULT_CONTEXT
    ) -> List[TableRef]:
        query = f"""
            SELECT id, db_id, schema, name, active, visibility_type
            FROM {self.tables}
            WHERE db_id = $1 AND active = TRUE AND visibility_type IS NULL
            ORDER BY id
        """
        rows = await self._fetch("sync_tables", ctx, query, database.id)
        return [
            TableRef(
                id=row["id"],
                db_id=row["db_id"],
                schema=row["schema"],
                name=row["name"],
                active=row["active"],
                visibility_type=row["visibility_type"],
            )
            for row in rows
        ]

    async def active_fields(
        self,
        table: TableRef,
        *,
        top_level_only: bool = False,
        ctx: SyncContext = DEFAULT_CONTEXT,
    ) -> List[PersistedField]:
        query = f"""
            SELECT id, table_id, name, display_name, base_type, special_type, parent_id, active
            FROM {self.fields}
            WHERE table_id = $1 AND active = TRUE
        """
        if top_level_only:
            query += " AND parent_id IS NULL"
        rows = await self._fetch("active_fields", ctx, query, table.id)
        return [_row_to_field(row) for row in rows]

    async def find_inactive_by_name(
        self, table: TableRef, name: str, *, ctx: SyncContext = DEFAULT_CONTEXT
    ) -> Optional[int]:
        query = f"""
            SELECT id FROM {self.fields}
            WHERE table_id = $1 AND lower(name) = $2 AND active = FALSE
            ORDER BY id
            LIMIT 1
        """
        return await self._fetchval("find_inactive_by_name", ctx, query, table.id, name.lower())

    async def reactivate(self, field_id: int, *, ctx: SyncContext = DEFAULT_CONTEXT) -> None:
        query = f"UPDATE {self.fields} SET active = TRUE, updated_at = NOW() WHERE id = $1"
        await self._execute("reactivate", ctx, query, field_id)
        ctx.log_db(logger, f"Reactivated field {field_id}")

    async def create(self, new_field: NewField, *, ctx: SyncContext = DEFAULT_CONTEXT) -> int:
        query = f"""
            INSERT INTO {self.fields}
                (table_id, name, display_name, base_type, special_type, parent_id, active)
            VALUES ($1, $2, $3, $4, $5, $6, TRUE)
            RETURNING id
        """
        field_id = await self._fetchval(
            "create",
            ctx,
            query,
            new_field.table_id,
            new_field.name,
            new_field.display_name,
            _to_db(new_field.base_type),
            _to_db(new_field.special_type),
            new_field.parent_id,
        )
        ctx.log_db(logger, f"Created field '{new_field.name}' ({field_id})")
        return field_id

    async def retire_matching(
        self, table: TableRef, names: Iterable[str], *, ctx: SyncContext = DEFAULT_CONTEXT
    ) -> None:
        lowered = sorted({name.lower() for name in names})
        if not lowered:
            return
        query = f"""
            UPDATE {self.fields}
            SET active = FALSE, updated_at = NOW()
            WHERE table_id = $1 AND active = TRUE AND lower(name) = ANY($2::text[])
        """
        await self._execute("retire_matching", ctx, query, table.id, lowered)

    async def update(
        self, field_id: int, attrs: Mapping[str, Any], *, ctx: SyncContext = DEFAULT_CONTEXT
    ) -> None:
        check_update_attrs(attrs)
        if not attrs:
            return
        # column names come from UPDATABLE_COLUMNS only
        columns = sorted(attrs)
        assignments = ", ".join(f"{column} = ${i}" for i, column in enumerate(columns, start=2))
        query = f"UPDATE {self.fields} SET {assignments}, updated_at = NOW() WHERE id = $1"
        await self._execute(
            "update", ctx, query, field_id, *(_to_db(attrs[column]) for column in columns)
        )
