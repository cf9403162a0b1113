"""
Sync engine for fieldsync.

This package provides:
- Case-insensitive field descriptor diffing
- Per-table field reconciliation (create, reactivate, retire, refresh)
- Single-flight operation guard
- Event, logging and error-containment wrappers for sync steps
"""

from ..context import SyncContext, db_logging_disabled
from .diff import diff_fields
from .fields import FieldReconciler, sync_fields
from .guard import OPERATION_GUARD, OperationGuard
from .progress import ProgressReporter
from .service import FieldSyncService
from .util import OperationStatus, SyncOperationRunner, with_error_handling

__all__ = [
    "SyncContext",
    "db_logging_disabled",
    "diff_fields",
    "FieldReconciler",
    "sync_fields",
    "OPERATION_GUARD",
    "OperationGuard",
    "ProgressReporter",
    "FieldSyncService",
    "OperationStatus",
    "SyncOperationRunner",
    "with_error_handling",
]
