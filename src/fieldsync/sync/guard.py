"""
Single-flight registry for sync operations.

Tracks which targets are currently undergoing which kind of operation, e.g.
``{"sync": {1, 2}, "cache": {2, 3}}``, so that a second request for the same
(kind, target) pair is dropped while the first one is still running.
"""

import threading
from typing import Dict, Hashable, Set


class OperationGuard:
    """Thread-safe mapping of operation kind to in-flight target ids."""

    def __init__(self):
        self._in_flight: Dict[str, Set[Hashable]] = {}
        self._lock = threading.Lock()

    def try_enter(self, kind: str, target_id: Hashable) -> bool:
        """
        Register ``target_id`` under ``kind``.

        Returns False, changing nothing, if it is already registered. The
        membership check and the insert happen under one lock acquisition.
        """
        with self._lock:
            targets = self._in_flight.setdefault(kind, set())
            if target_id in targets:
                return False
            targets.add(target_id)
            return True

    def leave(self, kind: str, target_id: Hashable) -> None:
        """Drop ``target_id`` from ``kind``. Unknown pairs are ignored."""
        with self._lock:
            targets = self._in_flight.get(kind)
            if targets is None:
                return
            targets.discard(target_id)
            if not targets:
                del self._in_flight[kind]

    def is_running(self, kind: str, target_id: Hashable) -> bool:
        with self._lock:
            return target_id in self._in_flight.get(kind, ())

    def snapshot(self) -> Dict[str, Set[Hashable]]:
        """Copy of the registry, for status reporting."""
        with self._lock:
            return {kind: set(targets) for kind, targets in self._in_flight.items()}


# Process-wide registry shared by every runner that isn't handed its own.
OPERATION_GUARD = OperationGuard()
