"""
Logic for keeping catalog fields in line with the columns of a physical table.

One reconciliation pass for a table runs in three strict phases:

1. create fields that are new, or reactivate retired fields that came back
2. retire active fields the source no longer reports
3. refresh base/special types of active fields from the source

Nested fields (descriptors with a ``parent_id``) are stored as reported but
their children are not walked.
"""

import logging
from typing import Callable, Dict, Iterable, List, Set

from ..catalog.store import CatalogStore
from ..database.introspection import MetadataSource
from ..humanization import name_to_display_name
from ..models import DatabaseRef, FieldDescriptor, NewField, TableRef
from ..context import DEFAULT_CONTEXT, SyncContext
from .diff import diff_fields
from .progress import PROGRESS_WIDTH, ProgressReporter


logger = logging.getLogger(__name__)


class FieldReconciler:
    """Diffs source columns against the catalog and applies the difference."""

    def __init__(
        self,
        source: MetadataSource,
        store: CatalogStore,
        humanizer: Callable[[str], str] = name_to_display_name,
    ):
        self.source = source
        self.store = store
        self.humanizer = humanizer

    async def reconcile(
        self,
        database: DatabaseRef,
        table: TableRef,
        ctx: SyncContext = DEFAULT_CONTEXT,
    ) -> None:
        """Sync the catalog fields of ``table``. Collaborator errors propagate."""
        source_fields = await self.source.fetch(database, table, ctx=ctx)
        local_fields = await self.local_descriptors(table, ctx)

        source_fields = _unique_by_key(table, source_fields)
        new_fields = diff_fields(source_fields, local_fields)
        old_fields = diff_fields(local_fields, source_fields)

        if new_fields:
            await self._create_or_reactivate_fields(table, new_fields, ctx)
        if old_fields:
            await self._retire_fields(table, old_fields, ctx)
        await self._update_metadata(table, source_fields, ctx)

    async def local_descriptors(
        self, table: TableRef, ctx: SyncContext = DEFAULT_CONTEXT
    ) -> List[FieldDescriptor]:
        """Active top-level catalog fields of ``table`` in descriptor shape."""
        fields = await self.store.active_fields(table, top_level_only=True, ctx=ctx)
        return [field.to_descriptor() for field in fields]

    async def _create_or_reactivate_fields(
        self,
        table: TableRef,
        new_fields: List[FieldDescriptor],
        ctx: SyncContext,
    ) -> None:
        logger.info(f"Found new fields for {table.log_name}: {_log_names(new_fields)}")
        for descriptor in new_fields:
            existing_id = await self.store.find_inactive_by_name(table, descriptor.name, ctx=ctx)
            if existing_id is not None:
                # retired earlier; bring it back untouched, the refresh below updates types
                await self.store.reactivate(existing_id, ctx=ctx)
                continue
            await self.store.create(
                NewField(
                    table_id=table.id,
                    name=descriptor.name,
                    display_name=descriptor.display_name or self.humanizer(descriptor.name),
                    base_type=descriptor.base_type,
                    special_type=descriptor.resolved_special_type,
                    parent_id=descriptor.parent_id,
                ),
                ctx=ctx,
            )

    async def _retire_fields(
        self,
        table: TableRef,
        old_fields: List[FieldDescriptor],
        ctx: SyncContext,
    ) -> None:
        logger.info(f"Marking fields of {table.log_name} as inactive: {_log_names(old_fields)}")
        await self.store.retire_matching(table, [field.name for field in old_fields], ctx=ctx)

    async def _update_metadata(
        self,
        table: TableRef,
        source_fields: Iterable[FieldDescriptor],
        ctx: SyncContext,
    ) -> None:
        """Make sure base types and PK status match what the source reports."""
        by_name: Dict[str, FieldDescriptor] = {field.key: field for field in source_fields}
        for field in await self.store.active_fields(table, ctx=ctx):
            metadata = by_name.get(field.name.lower())
            if metadata is None:
                continue
            attrs = {"base_type": metadata.base_type}
            if field.special_type is None:
                attrs["special_type"] = metadata.resolved_special_type
            await self.store.update(field.id, attrs, ctx=ctx)


def _log_names(fields: Iterable[FieldDescriptor]) -> List[str]:
    return [field.log_name for field in fields]


def _unique_by_key(table: TableRef, fields: Iterable[FieldDescriptor]) -> List[FieldDescriptor]:
    """Drop descriptors whose name differs only in case from an earlier one."""
    unique: Dict[str, FieldDescriptor] = {}
    for field in fields:
        kept = unique.setdefault(field.key, field)
        if kept is not field:
            logger.warning(
                f"Ignoring {field.log_name} of {table.log_name}: "
                f"name collides with {kept.log_name}"
            )
    return list(unique.values())


async def sync_fields(
    database: DatabaseRef,
    reconciler: FieldReconciler,
    store: CatalogStore,
    ctx: SyncContext = DEFAULT_CONTEXT,
    progress_width: int = PROGRESS_WIDTH,
) -> Set[int]:
    """
    Reconcile the fields of every sync-eligible table of ``database``.

    Tables are processed one after another; the first failure propagates.
    Returns the ids of the tables that were reconciled.
    """
    tables = await store.sync_tables(database, ctx=ctx)
    if not tables:
        logger.info(f"No tables to sync for {database.log_name}")
        return set()

    progress = ProgressReporter(len(tables), width=progress_width)
    synced: Set[int] = set()
    for table in tables:
        await reconciler.reconcile(database, table, ctx)
        synced.add(table.id)
        logger.info(f"{progress()} Synced fields for {table.log_name}")
    return synced
