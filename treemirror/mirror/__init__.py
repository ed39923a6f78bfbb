# TreeMirror Mirror Module
# Scan, plan, and execute cycles of the one-way mirror

from treemirror.mirror.errors import CopyMismatchError, MirrorError, OperationError, ScanError
from treemirror.mirror.loop import CycleResult, MirrorLoop, MirrorService
from treemirror.mirror.operations import OperationOutcome, apply_operation, delete_entry, write_entry
from treemirror.mirror.planner import (
    DeleteOperation,
    OperationKind,
    OperationSet,
    WriteOperation,
    plan_operations,
)
from treemirror.mirror.pool import CompletionBarrier, execute_operations
from treemirror.mirror.scanner import FileRecord, scan_tree

__all__ = [
    # Errors
    "MirrorError",
    "ScanError",
    "OperationError",
    "CopyMismatchError",
    # Scanner
    "FileRecord",
    "scan_tree",
    # Planner
    "OperationKind",
    "WriteOperation",
    "DeleteOperation",
    "OperationSet",
    "plan_operations",
    # Operations
    "OperationOutcome",
    "apply_operation",
    "write_entry",
    "delete_entry",
    # Pool
    "CompletionBarrier",
    "execute_operations",
    # Loop
    "CycleResult",
    "MirrorLoop",
    "MirrorService",
]
