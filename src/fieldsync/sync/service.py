"""
Field sync entry points used by the CLI and by schedulers.
"""

import logging
from typing import Dict, Iterable, Optional

from ..catalog.store import CatalogStore
from ..database.introspection import MetadataSource
from ..events import EventPublisher
from ..models import DatabaseRef
from ..context import SyncContext
from .fields import FieldReconciler, sync_fields
from .guard import OperationGuard
from .progress import PROGRESS_WIDTH
from .util import OperationStatus, SyncOperationRunner, with_error_handling


logger = logging.getLogger(__name__)

SYNC_OPERATION = "sync"


class FieldSyncService:
    """Runs field sync for databases as guarded, evented sync operations."""

    def __init__(
        self,
        source: MetadataSource,
        store: CatalogStore,
        publisher: EventPublisher,
        guard: Optional[OperationGuard] = None,
        progress_width: int = PROGRESS_WIDTH,
    ):
        self.store = store
        self.reconciler = FieldReconciler(source, store)
        self.runner = SyncOperationRunner(publisher, guard)
        self.progress_width = progress_width

    async def sync_database_fields(self, database: DatabaseRef) -> OperationStatus:
        """Sync fields of every table in ``database``. Failures propagate."""

        async def work(ctx: SyncContext) -> None:
            await sync_fields(
                database, self.reconciler, self.store, ctx, progress_width=self.progress_width
            )

        return await self.runner.run(
            SYNC_OPERATION, database, f"Sync fields for {database.log_name}", work
        )

    async def sync_all(self, databases: Iterable[DatabaseRef]) -> Dict[str, bool]:
        """
        Sync each database in turn, isolating failures.

        Returns a mapping of database name to whether its sync finished
        without raising. Skipped duplicates count as successful.
        """
        results: Dict[str, bool] = {}
        for database in databases:

            async def step(database: DatabaseRef = database) -> None:
                status = await self.sync_database_fields(database)
                if status is OperationStatus.SKIPPED:
                    logger.debug(f"Field sync already running for {database.log_name}, skipped")

            results[database.name] = await with_error_handling(
                step, f"Error syncing fields for {database.log_name}"
            )
        return results
