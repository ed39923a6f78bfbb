# TreeMirror Errors
# Exception types raised by the scan-plan-execute core

from pathlib import Path
from typing import Optional


class MirrorError(Exception):
    """Base exception for mirroring failures."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.message = message
        self.path = path
        super().__init__(message)


class ScanError(MirrorError):
    """A directory tree could not be read."""


class OperationError(MirrorError):
    """A Write or Delete operation failed during a cycle."""

    def __init__(self, message: str, path: Optional[Path] = None, failed: int = 1):
        self.failed = failed
        super().__init__(message, path)


class CopyMismatchError(MirrorError):
    """Copied byte count differs from the source file size."""

    def __init__(self, path: Path, expected: int, written: int):
        self.expected = expected
        self.written = written
        super().__init__(f"written != source size; {written} != {expected}: {path}", path)
