"""
Wrappers shared by every sync step.

Each concern is a small coroutine that takes the rest of the step as a
callable. :class:`SyncOperationRunner` composes them, outermost first:

1. duplicate-operation prevention
2. begin/end sync events
3. STARTING/FINISHED logging
4. db/query logging suppression
5. the work itself
"""

import logging
import time
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable, Hashable, Optional

from ..events import EventPublisher
from ..models import DatabaseRef
from ..context import DEFAULT_CONTEXT, SyncContext, db_logging_disabled
from .guard import OPERATION_GUARD, OperationGuard


logger = logging.getLogger(__name__)

Work = Callable[[], Awaitable[None]]
ContextWork = Callable[[SyncContext], Awaitable[None]]


class OperationStatus(str, Enum):
    """Outcome of a guarded sync operation that did not raise."""

    COMPLETED = "completed"
    # Another run for the same (kind, target) was already in flight.
    SKIPPED = "skipped"


_TIME_UNITS = (
    ("ns", 1000.0),
    ("µs", 1000.0),
    ("ms", 1000.0),
    ("s", 60.0),
    ("mins", 60.0),
    ("hours", None),
)


def format_nanoseconds(nanoseconds: float) -> str:
    """Render a duration using the largest sensible unit, e.g. ``'1.5 s'``."""
    value = float(nanoseconds)
    for unit, divisor in _TIME_UNITS:
        if divisor is None or value < divisor:
            return f"{value:.1f} {unit}"
        value /= divisor


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def with_duplicate_ops_prevented(
    guard: OperationGuard,
    kind: str,
    target_id: Hashable,
    work: Work,
) -> bool:
    """
    Run ``work`` unless ``target_id`` is already undergoing ``kind``.

    Returns False, silently, when the run was coalesced into one already in
    flight. The registration is always released once ``work`` finishes,
    whether it returned or raised.
    """
    if not guard.try_enter(kind, target_id):
        return False
    try:
        logger.debug(f"Sync operations in flight: {guard.snapshot()}")
        await work()
    finally:
        guard.leave(kind, target_id)
    return True


async def with_sync_events(
    publisher: EventPublisher,
    kind: str,
    database_id: Hashable,
    work: Work,
) -> None:
    """
    Publish ``<kind>-begin`` and ``<kind>-end`` around ``work``.

    Both events carry the same correlation id. If ``work`` raises, the end
    event is not published.
    """
    start = time.perf_counter_ns()
    correlation_id = str(uuid.uuid4())
    await publisher.publish(
        f"{kind}-begin",
        {
            "database_id": database_id,
            "correlation_id": correlation_id,
            "timestamp": _utc_now(),
        },
    )
    await work()
    duration_ms = int((time.perf_counter_ns() - start) / 1_000_000)
    await publisher.publish(
        f"{kind}-end",
        {
            "database_id": database_id,
            "correlation_id": correlation_id,
            "timestamp": _utc_now(),
            "duration_ms": duration_ms,
        },
    )


async def with_start_and_finish_logging(label: str, work: Work) -> None:
    """Log ``STARTING``, run ``work``, then log ``FINISHED`` with the elapsed time."""
    start = time.perf_counter_ns()
    logger.info(f"STARTING: {label}")
    await work()
    logger.info(f"FINISHED: {label} ({format_nanoseconds(time.perf_counter_ns() - start)})")


async def with_error_handling(work: Work, message: str = "Error running sync step") -> bool:
    """
    Run ``work``, logging and suppressing any exception it raises.

    Meant to sit outside a :class:`SyncOperationRunner` so one failed step
    doesn't abort a batch. Returns True when ``work`` succeeded.
    """
    try:
        await work()
    except Exception as e:
        logger.error(f"{message}: {str(e) or type(e).__name__}", exc_info=True)
        return False
    return True


class SyncOperationRunner:
    """
    Reusable execution wrapper for sync steps.

    Failures from the work propagate: neither the end event nor the FINISHED
    log line is emitted for a failed run, but the guard is still released.
    Wrap :meth:`run` in :func:`with_error_handling` to contain them.
    """

    def __init__(
        self,
        publisher: EventPublisher,
        guard: Optional[OperationGuard] = None,
        context: SyncContext = DEFAULT_CONTEXT,
    ):
        self.publisher = publisher
        self.guard = guard if guard is not None else OPERATION_GUARD
        self.context = context

    async def run(
        self,
        kind: str,
        database: DatabaseRef,
        label: str,
        work: ContextWork,
    ) -> OperationStatus:
        """Run ``work`` as a single-flight ``kind`` operation on ``database``."""

        async def quiet() -> None:
            with db_logging_disabled(self.context) as ctx:
                await work(ctx)

        async def logged() -> None:
            await with_start_and_finish_logging(label, quiet)

        async def evented() -> None:
            await with_sync_events(self.publisher, kind, database.id, logged)

        entered = await with_duplicate_ops_prevented(self.guard, kind, database.id, evented)
        return OperationStatus.COMPLETED if entered else OperationStatus.SKIPPED
