"""
Field catalog storage.

The catalog is the persistent list of tables and fields that mirrors the
physical databases. Fields are soft-deleted: retiring one only clears its
``active`` flag.
"""

import itertools
import logging
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, runtime_checkable

from ..context import DEFAULT_CONTEXT, SyncContext
from ..exceptions import PersistenceError
from ..field_types import FieldType
from ..models import DatabaseRef, NewField, PersistedField, TableRef


logger = logging.getLogger(__name__)

# Columns a sync pass may change with CatalogStore.update
UPDATABLE_COLUMNS = frozenset(
    {"base_type", "special_type", "display_name", "active", "parent_id"}
)


def check_update_attrs(attrs: Mapping[str, Any]) -> None:
    unknown = set(attrs) - UPDATABLE_COLUMNS
    if unknown:
        raise PersistenceError("update", f"Cannot update columns: {sorted(unknown)}")


@runtime_checkable
class CatalogStore(Protocol):
    """Operations the sync engine needs from the field catalog."""

    async def sync_tables(
        self, database: DatabaseRef, *, ctx: SyncContext = DEFAULT_CONTEXT
    ) -> List[TableRef]:
        """Active, visible tables of ``database``."""
        ...

    async def active_fields(
        self,
        table: TableRef,
        *,
        top_level_only: bool = False,
        ctx: SyncContext = DEFAULT_CONTEXT,
    ) -> List[PersistedField]:
        ...

    async def find_inactive_by_name(
        self, table: TableRef, name: str, *, ctx: SyncContext = DEFAULT_CONTEXT
    ) -> Optional[int]:
        """Id of a retired field of ``table`` whose name matches case-insensitively."""
        ...

    async def reactivate(self, field_id: int, *, ctx: SyncContext = DEFAULT_CONTEXT) -> None:
        ...

    async def create(self, new_field: NewField, *, ctx: SyncContext = DEFAULT_CONTEXT) -> int:
        ...

    async def retire_matching(
        self, table: TableRef, names: Iterable[str], *, ctx: SyncContext = DEFAULT_CONTEXT
    ) -> None:
        """Mark active fields of ``table`` with any of ``names`` (any case) inactive."""
        ...

    async def update(
        self, field_id: int, attrs: Mapping[str, Any], *, ctx: SyncContext = DEFAULT_CONTEXT
    ) -> None:
        ...


class InMemoryCatalogStore:
    """Dictionary-backed catalog. Not shared between threads."""

    def __init__(self):
        self.tables: Dict[int, TableRef] = {}
        self.fields: Dict[int, PersistedField] = {}
        self._field_ids = itertools.count(1)

    def add_table(self, table: TableRef) -> TableRef:
        self.tables[table.id] = table
        return table

    def add_field(
        self,
        table: TableRef,
        name: str,
        base_type: FieldType,
        special_type: Optional[FieldType] = None,
        active: bool = True,
        parent_id: Optional[int] = None,
    ) -> PersistedField:
        """Seed a field directly, bypassing sync."""
        field = PersistedField(
            id=next(self._field_ids),
            table_id=table.id,
            name=name,
            base_type=base_type,
            special_type=special_type,
            parent_id=parent_id,
            active=active,
        )
        self.fields[field.id] = field
        return field

    def fields_for(self, table: TableRef) -> List[PersistedField]:
        return [f for f in self.fields.values() if f.table_id == table.id]

    def _get(self, field_id: int, operation: str) -> PersistedField:
        try:
            return self.fields[field_id]
        except KeyError:
            raise PersistenceError(operation, f"Field {field_id} does not exist") from None

    async def sync_tables(self, database, *, ctx=DEFAULT_CONTEXT):
        return sorted(
            (
                t for t in self.tables.values()
                if t.db_id == database.id and t.active and t.visibility_type is None
            ),
            key=lambda t: t.id,
        )

    async def active_fields(self, table, *, top_level_only=False, ctx=DEFAULT_CONTEXT):
        return [
            replace(f)
            for f in self.fields_for(table)
            if f.active and not (top_level_only and f.parent_id is not None)
        ]

    async def find_inactive_by_name(self, table, name, *, ctx=DEFAULT_CONTEXT):
        for field in self.fields_for(table):
            if not field.active and field.name.lower() == name.lower():
                return field.id
        return None

    async def reactivate(self, field_id, *, ctx=DEFAULT_CONTEXT):
        self._get(field_id, "reactivate").active = True
        ctx.log_db(logger, f"Reactivated field {field_id}")

    async def create(self, new_field, *, ctx=DEFAULT_CONTEXT):
        field = PersistedField(
            id=next(self._field_ids),
            table_id=new_field.table_id,
            name=new_field.name,
            display_name=new_field.display_name,
            base_type=new_field.base_type,
            special_type=new_field.special_type,
            parent_id=new_field.parent_id,
        )
        self.fields[field.id] = field
        ctx.log_db(logger, f"Created {field.log_name} ({field.id})")
        return field.id

    async def retire_matching(self, table, names, *, ctx=DEFAULT_CONTEXT):
        lowered = {name.lower() for name in names}
        for field in self.fields_for(table):
            if field.active and field.name.lower() in lowered:
                field.active = False

    async def update(self, field_id, attrs, *, ctx=DEFAULT_CONTEXT):
        check_update_attrs(attrs)
        field = self._get(field_id, "update")
        for column, value in attrs.items():
            setattr(field, column, value)
