# TreeMirror Tree Scanner
# Walks a directory tree and snapshots file metadata by relative path

import os
import stat
from dataclasses import dataclass
from pathlib import Path

from treemirror.mirror.errors import ScanError
from treemirror.utils.paths import permission_bits, relative_posix


@dataclass(frozen=True)
class FileRecord:
    """
    Metadata for one entry of a scanned tree.

    Captured fresh every cycle and never modified afterwards.
    """

    rel_path: str
    is_dir: bool
    mode: int
    mtime_ns: int
    size: int

    @classmethod
    def from_stat(cls, rel_path: str, st: os.stat_result) -> "FileRecord":
        """Build a record from an lstat() result."""
        return cls(
            rel_path=rel_path,
            is_dir=stat.S_ISDIR(st.st_mode),
            mode=permission_bits(st.st_mode),
            mtime_ns=st.st_mtime_ns,
            size=st.st_size,
        )


Snapshot = dict[str, FileRecord]


def _raise_walk_error(error: OSError) -> None:
    raise ScanError(f"Cannot read directory: {error}", Path(error.filename) if error.filename else None) from error


def scan_tree(root: str | Path, *, missing_ok: bool = False) -> Snapshot:
    """
    Snapshot every file and directory below root.

    The root entry itself is never part of the result. Symlinks are
    recorded but not followed.

    Args:
        root: Directory to scan.
        missing_ok: Return an empty snapshot if root does not exist.

    Returns:
        Mapping of slash-separated relative path to FileRecord.

    Raises:
        ScanError: If root is missing (and missing_ok is False), is not a
            directory, or any entry cannot be read.
    """
    root = Path(root)

    try:
        root_stat = os.stat(root)
    except (FileNotFoundError, NotADirectoryError):
        if missing_ok:
            return {}
        raise ScanError(f"Directory does not exist: {root}", root) from None
    except OSError as e:
        raise ScanError(f"Cannot read directory: {e}", root) from e

    if not stat.S_ISDIR(root_stat.st_mode):
        raise ScanError(f"Not a directory: {root}", root)

    snapshot: Snapshot = {}

    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
        current = Path(dirpath)
        for name in dirnames + filenames:
            path = current / name
            try:
                st = os.lstat(path)
            except OSError as e:
                raise ScanError(f"Cannot stat {path}: {e}", path) from e

            rel_path = relative_posix(path, root)
            snapshot[rel_path] = FileRecord.from_stat(rel_path, st)

    return snapshot
