# TreeMirror Path Utilities
# Path expansion, relative path computation and permission helpers

import os
from pathlib import Path

PERMISSION_MASK = 0o777


def expand_path(path: str | Path) -> Path:
    """
    Expand ~ and environment variables in path.

    Args:
        path: Path string or Path object.

    Returns:
        Expanded Path object.
    """
    path_str = str(path)
    # Expand ~ first, then environment variables
    path_str = os.path.expanduser(path_str)
    path_str = os.path.expandvars(path_str)
    return Path(path_str)


def relative_posix(path: Path, root: Path) -> str:
    """
    Get path relative to root as a slash-separated string.

    Uses component-wise comparison, so a root of ``/data/src`` never
    matches ``/data/src2/file``.

    Raises:
        ValueError: If path is not inside root.
    """
    return path.relative_to(root).as_posix()


def ancestors_of(rel_path: str) -> list[str]:
    """
    List the ancestor directories of a relative path, root first.

    The root itself is represented by the empty string.

    >>> ancestors_of("a/b/c.txt")
    ['', 'a', 'a/b']
    """
    parts = rel_path.split("/")[:-1]
    return [""] + ["/".join(parts[: i + 1]) for i in range(len(parts))]


def permission_bits(mode: int) -> int:
    """Strip file type and special bits from a st_mode value."""
    return mode & PERMISSION_MASK
