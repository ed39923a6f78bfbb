# TreeMirror File Operations
# Executes a single Write or Delete against the destination tree

from __future__ import annotations

import os
import shutil
import stat
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from treemirror.mirror.errors import CopyMismatchError
from treemirror.mirror.planner import DeleteOperation, Operation, OperationKind, WriteOperation
from treemirror.utils.paths import ancestors_of, permission_bits

if TYPE_CHECKING:
    from treemirror.output.console import Console

# Retries for recursive removal racing with removals of nested entries
_REMOVE_ATTEMPTS = 5


class OperationOutcome(str, Enum):
    """What an executed operation did to the destination tree."""

    WRITTEN = "written"
    CREATED = "created"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    REMOVED = "removed"

    @property
    def changed(self) -> bool:
        """Check if the destination tree was modified."""
        return self in (OperationOutcome.WRITTEN, OperationOutcome.CREATED, OperationOutcome.REMOVED)


def apply_operation(operation: Operation, console: Optional[Console] = None) -> OperationOutcome:
    """
    Execute one mirror operation.

    Args:
        operation: Write or Delete operation.
        console: Optional console for Write/Remove log lines.

    Returns:
        OperationOutcome describing the effect.
    """
    if operation.kind == OperationKind.WRITE:
        return write_entry(operation, console)
    if operation.kind == OperationKind.DELETE:
        return delete_entry(operation, console)
    raise ValueError(f"Unknown operation kind: {operation.kind}")


def write_entry(operation: WriteOperation, console: Optional[Console] = None) -> OperationOutcome:
    """
    Mirror one source entry into the destination.

    Ancestor directories are created or get their permission bits
    reconciled first. Directories are complete after that. Regular files
    are copied only when the destination is missing or its modification
    time differs from the source record.
    """
    record = operation.record

    for rel_dir in ancestors_of(record.rel_path):
        try:
            mode = permission_bits(os.stat(operation.source_root / rel_dir).st_mode)
        except FileNotFoundError:
            return OperationOutcome.SKIPPED
        ensure_directory(operation.dest_root / rel_dir, mode, follow_symlinks=not rel_dir, console=console)

    if record.is_dir:
        created = ensure_directory(operation.dest_path, record.mode, console=console)
        return OperationOutcome.CREATED if created else OperationOutcome.UNCHANGED

    source = operation.source_path
    dest = operation.dest_path

    try:
        source_stat = os.stat(source)
    except FileNotFoundError:
        # Vanished since the scan; the next cycle removes it from destination
        return OperationOutcome.SKIPPED
    if not stat.S_ISREG(source_stat.st_mode):
        return OperationOutcome.SKIPPED

    try:
        dest_stat = os.lstat(dest)
    except FileNotFoundError:
        dest_stat = None

    if dest_stat is not None:
        if stat.S_ISDIR(dest_stat.st_mode):
            remove_tree(dest)
        elif dest_stat.st_mtime_ns == record.mtime_ns:
            return OperationOutcome.UNCHANGED
        else:
            dest.unlink()

    copy_file(source, dest)
    os.chmod(dest, record.mode)
    os.utime(dest, ns=(record.mtime_ns, record.mtime_ns))

    if console is not None:
        console.log_operation("Write", dest)
    return OperationOutcome.WRITTEN


def ensure_directory(
    path: Path,
    mode: int,
    *,
    follow_symlinks: bool = False,
    console: Optional[Console] = None,
) -> bool:
    """
    Make sure path is a directory with the given permission bits.

    A non-directory in the way is removed first. A directory that already
    exists, or that a concurrent operation creates first, only gets its
    permission bits updated.

    Returns:
        True if the directory was created.
    """
    try:
        st = os.stat(path) if follow_symlinks else os.lstat(path)
    except FileNotFoundError:
        st = None

    if st is not None and not stat.S_ISDIR(st.st_mode):
        try:
            path.unlink(missing_ok=True)
        except (IsADirectoryError, PermissionError):
            # Replaced by a directory from a concurrent operation
            if not path.is_dir():
                raise
        st = None

    if st is None:
        try:
            path.mkdir(mode=mode, parents=True)
        except FileExistsError:
            pass
        else:
            # mkdir honours the umask, chmod does not
            os.chmod(path, mode)
            if console is not None:
                console.log_operation("Write", path)
            return True

    os.chmod(path, mode)
    return False


def copy_file(source: Path, dest: Path) -> int:
    """
    Copy file contents byte for byte.

    Returns:
        Number of bytes written.

    Raises:
        CopyMismatchError: If the destination size differs from the source size.
    """
    expected = os.stat(source).st_size
    shutil.copyfile(source, dest)
    written = os.stat(dest).st_size
    if written != expected:
        raise CopyMismatchError(dest, expected=expected, written=written)
    return written


def delete_entry(operation: DeleteOperation, console: Optional[Console] = None) -> OperationOutcome:
    """Remove an orphaned destination file or directory tree."""
    path = operation.dest_path

    if operation.record.is_dir:
        remove_tree(path)
    else:
        try:
            path.unlink()
        except (FileNotFoundError, NotADirectoryError):
            # Already gone with a removed or replaced ancestor
            pass

    if console is not None:
        console.log_operation("Remove", path)
    return OperationOutcome.REMOVED


def remove_tree(path: Path) -> None:
    """
    Recursively remove a directory.

    Entries removed concurrently by other operations of the same cycle
    are tolerated.
    """
    for _ in range(_REMOVE_ATTEMPTS):
        try:
            shutil.rmtree(path)
            return
        except (FileNotFoundError, NotADirectoryError):
            if not os.path.lexists(path):
                return
    shutil.rmtree(path)
