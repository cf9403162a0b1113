"""
Execution context threaded through sync steps.

Ancillary logging flags live on an immutable value instead of process-wide
state, so a sync step that turns them off cannot leak that choice to anyone
else.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Any, Iterator


@dataclass(frozen=True)
class SyncContext:
    """Logging switches for catalog and driver chatter."""

    db_logging: bool = True
    query_logging: bool = True

    def log_query(self, log: logging.Logger, query: str, *args: Any) -> None:
        """Log a SQL statement at DEBUG unless query logging is disabled."""
        if self.query_logging:
            log.debug(f"Query: {' '.join(query.split())} args={list(args)}")

    def log_db(self, log: logging.Logger, message: str) -> None:
        """Log a database/catalog message at DEBUG unless db logging is disabled."""
        if self.db_logging:
            log.debug(message)


DEFAULT_CONTEXT = SyncContext()


@contextmanager
def db_logging_disabled(ctx: SyncContext = DEFAULT_CONTEXT) -> Iterator[SyncContext]:
    """Yield a copy of ``ctx`` with query and db logging switched off."""
    yield replace(ctx, db_logging=False, query_logging=False)
