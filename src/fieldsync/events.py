"""
Sync event publishers.

Events are fire-and-forget notifications: a publisher never lets a delivery
problem interrupt the sync step that produced the event.
"""

import json
import logging
from typing import Any, Dict, Protocol, runtime_checkable

from .database.connection import ConnectionPool


logger = logging.getLogger(__name__)


@runtime_checkable
class EventPublisher(Protocol):
    """Notification sink for sync begin/end events."""

    async def publish(self, event_name: str, payload: Dict[str, Any]) -> None:
        ...


class LoggingEventPublisher:
    """Writes events to the log."""

    def __init__(self, level: int = logging.INFO):
        self.level = level

    async def publish(self, event_name: str, payload: Dict[str, Any]) -> None:
        logger.log(self.level, f"Event {event_name}: {json.dumps(payload, default=str)}")


class PgNotifyEventPublisher:
    """Publishes events through PostgreSQL NOTIFY on a single channel."""

    def __init__(self, pool: ConnectionPool, channel: str = "fieldsync_events"):
        self.pool = pool
        self.channel = channel

    async def publish(self, event_name: str, payload: Dict[str, Any]) -> None:
        message = json.dumps({"event": event_name, **payload}, default=str)
        try:
            await self.pool.execute("SELECT pg_notify($1, $2)", self.channel, message)
        except Exception as e:
            logger.warning(f"Failed to publish {event_name} on '{self.channel}': {e}")
