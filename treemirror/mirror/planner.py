# TreeMirror Diff Planner
# Turns a source and a destination snapshot into Write/Delete operations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Union

from treemirror.mirror.scanner import FileRecord, Snapshot


class OperationKind(str, Enum):
    """Kinds of mirror operations."""

    WRITE = "write"
    DELETE = "delete"


@dataclass(frozen=True)
class WriteOperation:
    """
    Mirror one source entry into the destination tree.

    Issued for every source path; whether bytes are actually copied is
    decided when the operation runs.
    """

    source_root: Path
    dest_root: Path
    record: FileRecord

    kind = OperationKind.WRITE

    @property
    def rel_path(self) -> str:
        return self.record.rel_path

    @property
    def source_path(self) -> Path:
        return self.source_root / self.record.rel_path

    @property
    def dest_path(self) -> Path:
        return self.dest_root / self.record.rel_path


@dataclass(frozen=True)
class DeleteOperation:
    """Remove one orphaned destination entry."""

    dest_root: Path
    record: FileRecord

    kind = OperationKind.DELETE

    @property
    def rel_path(self) -> str:
        return self.record.rel_path

    @property
    def dest_path(self) -> Path:
        return self.dest_root / self.record.rel_path


Operation = Union[WriteOperation, DeleteOperation]


@dataclass
class OperationSet:
    """Operations for one cycle plus the number of completions to wait for."""

    operations: list[Operation] = field(default_factory=list)
    expected: int = 0

    def __len__(self) -> int:
        return len(self.operations)

    def __iter__(self):
        return iter(self.operations)

    @property
    def writes(self) -> list[WriteOperation]:
        """Write operations only."""
        return [op for op in self.operations if op.kind == OperationKind.WRITE]

    @property
    def deletes(self) -> list[DeleteOperation]:
        """Delete operations only."""
        return [op for op in self.operations if op.kind == OperationKind.DELETE]


def plan_operations(
    source_root: Path,
    dest_root: Path,
    source_snapshot: Snapshot,
    dest_snapshot: Snapshot,
) -> OperationSet:
    """
    Compute the operations that reconcile destination with source.

    Every source path yields one Write. Every destination path without a
    source counterpart yields one Delete. Neither snapshot is modified.

    Args:
        source_root: Absolute source tree root.
        dest_root: Absolute destination tree root.
        source_snapshot: Snapshot of the source tree.
        dest_snapshot: Snapshot of the destination tree.

    Returns:
        OperationSet whose expected count equals the number of operations.
    """
    orphans = dict(dest_snapshot)
    operations: list[Operation] = []

    for rel_path, record in source_snapshot.items():
        # Written this cycle, so not an orphan
        orphans.pop(rel_path, None)
        operations.append(WriteOperation(source_root=source_root, dest_root=dest_root, record=record))

    for record in orphans.values():
        operations.append(DeleteOperation(dest_root=dest_root, record=record))

    return OperationSet(operations=operations, expected=len(operations))
