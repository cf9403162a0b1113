"""
Tests for fieldsync.sync.guard module.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

from fieldsync.sync.guard import OPERATION_GUARD, OperationGuard


class TestOperationGuard:
    """Test single-flight registration."""

    def test_enter_then_reenter(self):
        guard = OperationGuard()

        assert guard.try_enter("sync", 1) is True
        assert guard.try_enter("sync", 1) is False
        assert guard.is_running("sync", 1)

    def test_leave_allows_reentry(self):
        guard = OperationGuard()
        guard.try_enter("sync", 1)

        guard.leave("sync", 1)

        assert not guard.is_running("sync", 1)
        assert guard.try_enter("sync", 1) is True

    def test_kinds_and_targets_are_independent(self):
        guard = OperationGuard()

        assert guard.try_enter("sync", 1)
        assert guard.try_enter("sync", 2)
        assert guard.try_enter("cache", 1)
        assert guard.snapshot() == {"sync": {1, 2}, "cache": {1}}

    def test_failed_enter_changes_nothing(self):
        guard = OperationGuard()
        guard.try_enter("sync", 1)
        before = guard.snapshot()

        guard.try_enter("sync", 1)

        assert guard.snapshot() == before

    def test_leave_unknown_pair_is_noop(self):
        guard = OperationGuard()

        guard.leave("sync", 99)

        assert guard.snapshot() == {}

    def test_empty_kinds_are_dropped(self):
        guard = OperationGuard()
        guard.try_enter("cache", 3)

        guard.leave("cache", 3)

        assert "cache" not in guard.snapshot()

    def test_snapshot_is_a_copy(self):
        guard = OperationGuard()
        guard.try_enter("sync", 1)

        guard.snapshot()["sync"].add(2)

        assert guard.snapshot() == {"sync": {1}}

    def test_only_one_thread_enters(self):
        guard = OperationGuard()
        barrier = threading.Barrier(16)

        def contend(_):
            barrier.wait()
            return guard.try_enter("sync", 1)

        with ThreadPoolExecutor(max_workers=16) as executor:
            results = list(executor.map(contend, range(16)))

        assert results.count(True) == 1

    def test_module_level_guard_exists(self):
        assert isinstance(OPERATION_GUARD, OperationGuard)
