# TreeMirror Utilities Module
# Helper functions for path handling

from treemirror.utils.paths import (
    PERMISSION_MASK,
    ancestors_of,
    expand_path,
    permission_bits,
    relative_posix,
)

__all__ = [
    "PERMISSION_MASK",
    "ancestors_of",
    "expand_path",
    "permission_bits",
    "relative_posix",
]
