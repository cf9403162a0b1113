"""
Tests for fieldsync.sync.service module.
"""

import asyncio
import logging

import pytest

from fieldsync.context import DEFAULT_CONTEXT
from fieldsync.exceptions import MetadataFetchError
from fieldsync.field_types import FieldType
from fieldsync.models import FieldDescriptor, TableRef
from fieldsync.sync.guard import OperationGuard
from fieldsync.sync.service import SYNC_OPERATION, FieldSyncService
from fieldsync.sync.util import OperationStatus


@pytest.fixture
def guard():
    return OperationGuard()


@pytest.fixture
def service(source, store, publisher, guard):
    return FieldSyncService(source, store, publisher, guard=guard, progress_width=10)


class TestSyncDatabaseFields:
    """Test the guarded per-database entry point."""

    @pytest.mark.asyncio
    async def test_syncs_tables_and_publishes_events(
        self, service, source, store, publisher, database, table, users_columns
    ):
        source.fields_by_table[table.id] = users_columns

        status = await service.sync_database_fields(database)

        assert status is OperationStatus.COMPLETED
        assert sorted(f.name for f in store.fields_for(table)) == ["created_at", "id", "name"]
        assert publisher.names == ["sync-begin", "sync-end"]

    @pytest.mark.asyncio
    async def test_collaborators_see_quiet_context(self, service, source, database, table):
        await service.sync_database_fields(database)

        assert source.contexts
        assert all(not ctx.query_logging and not ctx.db_logging for ctx in source.contexts)

    @pytest.mark.asyncio
    async def test_skipped_while_running(self, service, guard, publisher, database):
        guard.try_enter(SYNC_OPERATION, database.id)

        assert await service.sync_database_fields(database) is OperationStatus.SKIPPED
        assert publisher.events == []

    @pytest.mark.asyncio
    async def test_failure_propagates(self, store, publisher, guard, database, table):
        class FailingSource:
            async def fetch(self, database, table, *, ctx=DEFAULT_CONTEXT):
                raise MetadataFetchError(table.full_name, "unreachable")

        service = FieldSyncService(FailingSource(), store, publisher, guard=guard)

        with pytest.raises(MetadataFetchError):
            await service.sync_database_fields(database)
        assert publisher.names == ["sync-begin"]
        assert not guard.is_running(SYNC_OPERATION, database.id)


class TestSyncAll:
    """Test the batch entry point with per-database containment."""

    @pytest.mark.asyncio
    async def test_one_failure_does_not_stop_the_batch(
        self, store, publisher, guard, database, other_database, table, caplog
    ):
        other_table = store.add_table(
            TableRef(id=20, db_id=other_database.id, schema="public", name="events")
        )

        class PartlyBrokenSource:
            async def fetch(self, db, tbl, *, ctx=DEFAULT_CONTEXT):
                if db.id == database.id:
                    raise MetadataFetchError(tbl.full_name, "unreachable")
                return [FieldDescriptor(name="event_id", base_type=FieldType.INTEGER)]

        service = FieldSyncService(PartlyBrokenSource(), store, publisher, guard=guard)

        with caplog.at_level(logging.ERROR, logger="fieldsync.sync.util"):
            results = await service.sync_all([database, other_database])

        assert results == {"warehouse": False, "analytics": True}
        assert [f.name for f in store.fields_for(other_table)] == ["event_id"]
        assert any("Error syncing fields for" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_skipped_database_counts_as_success(self, service, guard, database):
        guard.try_enter(SYNC_OPERATION, database.id)

        assert await service.sync_all([database]) == {"warehouse": True}

    @pytest.mark.asyncio
    async def test_concurrent_batches_coalesce(self, store, publisher, guard, database, table):
        release = asyncio.Event()
        entered = asyncio.Event()

        class SlowSource:
            def __init__(self):
                self.calls = 0

            async def fetch(self, db, tbl, *, ctx=DEFAULT_CONTEXT):
                self.calls += 1
                entered.set()
                await release.wait()
                return []

        slow = SlowSource()
        service = FieldSyncService(slow, store, publisher, guard=guard)

        first = asyncio.create_task(service.sync_database_fields(database))
        await entered.wait()
        second = await service.sync_database_fields(database)
        release.set()

        assert second is OperationStatus.SKIPPED
        assert await first is OperationStatus.COMPLETED
        assert slow.calls == 1
