# TreeMirror Operation Tests
# Tests for single Write and Delete execution

import os
import re
import shutil
from pathlib import Path

import pytest

from conftest import SAMPLE_MTIME_NS, console_output, write_file
from treemirror.mirror.errors import CopyMismatchError
from treemirror.mirror.operations import (
    OperationOutcome,
    apply_operation,
    copy_file,
    delete_entry,
    ensure_directory,
    write_entry,
)
from treemirror.mirror.planner import DeleteOperation, WriteOperation
from treemirror.mirror.scanner import scan_tree


def _write_op(source_root: Path, dest_root: Path, rel_path: str) -> WriteOperation:
    return WriteOperation(source_root=source_root, dest_root=dest_root, record=scan_tree(source_root)[rel_path])


def _delete_op(dest_root: Path, rel_path: str) -> DeleteOperation:
    return DeleteOperation(dest_root=dest_root, record=scan_tree(dest_root)[rel_path])


class TestWriteFile:
    """Tests for writing regular files."""

    def test_copy_new_file(self, sample_source: Path, dest_dir: Path):
        """A missing destination file is copied with mode and mtime."""
        outcome = write_entry(_write_op(sample_source, dest_dir, "a.txt"))

        dest = dest_dir / "a.txt"
        assert outcome == OperationOutcome.WRITTEN
        assert dest.read_text(encoding="utf-8") == "X"
        assert dest.stat().st_mode & 0o777 == 0o644
        assert dest.stat().st_mtime_ns == SAMPLE_MTIME_NS

    def test_unchanged_when_mtime_equal(self, sample_source: Path, dest_dir: Path):
        """Equal modification time means no copy, even if content differs."""
        write_file(dest_dir / "a.txt", "different", mtime_ns=SAMPLE_MTIME_NS)

        outcome = write_entry(_write_op(sample_source, dest_dir, "a.txt"))

        assert outcome == OperationOutcome.UNCHANGED
        assert (dest_dir / "a.txt").read_text(encoding="utf-8") == "different"

    def test_stale_file_overwritten(self, sample_source: Path, dest_dir: Path):
        """Any mtime difference triggers a full copy."""
        write_file(dest_dir / "a.txt", "old content", mtime_ns=SAMPLE_MTIME_NS + 1, mode=0o600)

        outcome = write_entry(_write_op(sample_source, dest_dir, "a.txt"))

        dest = dest_dir / "a.txt"
        assert outcome == OperationOutcome.WRITTEN
        assert dest.read_text(encoding="utf-8") == "X"
        assert dest.stat().st_mode & 0o777 == 0o644
        assert dest.stat().st_mtime_ns == SAMPLE_MTIME_NS

    def test_read_only_destination_overwritten(self, sample_source: Path, dest_dir: Path):
        """A stale read-only destination file is still replaced."""
        write_file(dest_dir / "a.txt", "old", mtime_ns=1, mode=0o444)

        write_entry(_write_op(sample_source, dest_dir, "a.txt"))

        assert (dest_dir / "a.txt").read_text(encoding="utf-8") == "X"

    def test_parent_directories_created(self, sample_source: Path, dest_dir: Path):
        """Missing ancestors are created with source permission bits."""
        outcome = write_entry(_write_op(sample_source, dest_dir, "docs/deep/notes.txt"))

        assert outcome == OperationOutcome.WRITTEN
        assert (dest_dir / "docs" / "deep" / "notes.txt").read_text(encoding="utf-8") == "notes"
        assert (dest_dir / "docs").stat().st_mode & 0o777 == 0o750
        source_deep_mode = (sample_source / "docs" / "deep").stat().st_mode & 0o777
        assert (dest_dir / "docs" / "deep").stat().st_mode & 0o777 == source_deep_mode

    def test_existing_parent_permissions_reconciled(self, sample_source: Path, dest_dir: Path):
        """Existing ancestors keep their content and get source permissions."""
        keep = write_file(dest_dir / "docs" / "keep.txt", "keep")
        os.chmod(dest_dir / "docs", 0o700)

        write_entry(_write_op(sample_source, dest_dir, "docs/readme.md"))

        assert keep.exists()
        assert (dest_dir / "docs").stat().st_mode & 0o777 == 0o750

    def test_missing_destination_root_created(self, sample_source: Path, temp_dir: Path):
        """The destination root itself is created on first write."""
        dest_root = temp_dir / "new" / "dest"

        write_entry(_write_op(sample_source, dest_root, "a.txt"))

        assert (dest_root / "a.txt").read_text(encoding="utf-8") == "X"

    def test_directory_replaced_by_file(self, sample_source: Path, dest_dir: Path):
        """A destination directory where the source has a file is replaced."""
        write_file(dest_dir / "a.txt" / "nested.txt", "nested")

        outcome = write_entry(_write_op(sample_source, dest_dir, "a.txt"))

        assert outcome == OperationOutcome.WRITTEN
        assert (dest_dir / "a.txt").is_file()
        assert (dest_dir / "a.txt").read_text(encoding="utf-8") == "X"

    def test_vanished_source_skipped(self, sample_source: Path, dest_dir: Path):
        """A source file deleted after the scan is skipped."""
        op = _write_op(sample_source, dest_dir, "a.txt")
        (sample_source / "a.txt").unlink()

        outcome = write_entry(op)

        assert outcome == OperationOutcome.SKIPPED
        assert not (dest_dir / "a.txt").exists()

    def test_vanished_source_parent_skipped(self, sample_source: Path, dest_dir: Path):
        """A source directory deleted after the scan skips its files."""
        op = _write_op(sample_source, dest_dir, "docs/deep/notes.txt")
        shutil.rmtree(sample_source / "docs")

        outcome = write_entry(op)

        assert outcome == OperationOutcome.SKIPPED
        assert not (dest_dir / "docs" / "deep").exists()

    def test_directory_symlink_skipped(self, sample_source: Path, dest_dir: Path, temp_dir: Path):
        """Symlinks to directories are never mirrored."""
        write_file(temp_dir / "elsewhere" / "inner.txt", "x")
        os.symlink(temp_dir / "elsewhere", sample_source / "linked")

        outcome = write_entry(_write_op(sample_source, dest_dir, "linked"))

        assert outcome == OperationOutcome.SKIPPED
        assert not os.path.lexists(dest_dir / "linked")

    def test_file_symlink_copied_as_file(self, sample_source: Path, dest_dir: Path):
        """Symlinks to files are mirrored as regular files with the target's content."""
        os.symlink(sample_source / "a.txt", sample_source / "alias.txt")

        outcome = write_entry(_write_op(sample_source, dest_dir, "alias.txt"))

        assert outcome == OperationOutcome.WRITTEN
        assert not (dest_dir / "alias.txt").is_symlink()
        assert (dest_dir / "alias.txt").read_text(encoding="utf-8") == "X"

    def test_dangling_symlink_skipped(self, sample_source: Path, dest_dir: Path):
        """Symlinks whose target is missing are skipped."""
        os.symlink(sample_source / "missing.txt", sample_source / "broken")

        outcome = write_entry(_write_op(sample_source, dest_dir, "broken"))

        assert outcome == OperationOutcome.SKIPPED
        assert not os.path.lexists(dest_dir / "broken")

    def test_log_line(self, sample_source: Path, dest_dir: Path, captured_console):
        """Copies are logged as Write with the destination path."""
        write_entry(_write_op(sample_source, dest_dir, "a.txt"), captured_console)

        output = console_output(captured_console)
        assert re.search(rf"^\d\d:\d\d:\d\d \| Write \| {re.escape(str(dest_dir / 'a.txt'))}$", output, re.M)

    def test_no_log_when_unchanged(self, sample_source: Path, dest_dir: Path, captured_console):
        """Unchanged files produce no output."""
        write_file(dest_dir / "a.txt", "X", mtime_ns=SAMPLE_MTIME_NS)

        write_entry(_write_op(sample_source, dest_dir, "a.txt"), captured_console)

        assert console_output(captured_console) == ""


class TestWriteDirectory:
    """Tests for writing directories."""

    def test_create_directory(self, sample_source: Path, dest_dir: Path, captured_console):
        """A missing directory is created, logged, and gets source permissions."""
        outcome = write_entry(_write_op(sample_source, dest_dir, "docs"), captured_console)

        assert outcome == OperationOutcome.CREATED
        assert (dest_dir / "docs").is_dir()
        assert (dest_dir / "docs").stat().st_mode & 0o777 == 0o750
        assert f"| Write | {dest_dir / 'docs'}" in console_output(captured_console)

    def test_existing_directory_only_chmod(self, sample_source: Path, dest_dir: Path):
        """An existing directory is kept and its permission bits reconciled."""
        keep = write_file(dest_dir / "docs" / "other.txt", "other")
        os.chmod(dest_dir / "docs", 0o777)

        outcome = write_entry(_write_op(sample_source, dest_dir, "docs"))

        assert outcome == OperationOutcome.UNCHANGED
        assert keep.exists()
        assert (dest_dir / "docs").stat().st_mode & 0o777 == 0o750

    def test_file_replaced_by_directory(self, sample_source: Path, dest_dir: Path):
        """A destination file where the source has a directory is replaced."""
        write_file(dest_dir / "empty", "not a directory")

        outcome = write_entry(_write_op(sample_source, dest_dir, "empty"))

        assert outcome == OperationOutcome.CREATED
        assert (dest_dir / "empty").is_dir()

    def test_ensure_directory_concurrent_create(self, dest_dir: Path, monkeypatch: pytest.MonkeyPatch):
        """A directory created between the check and mkdir is tolerated."""
        target = dest_dir / "racy"
        real_mkdir = Path.mkdir

        def racing_mkdir(self, *args, **kwargs):
            real_mkdir(self)
            raise FileExistsError(str(self))

        monkeypatch.setattr(Path, "mkdir", racing_mkdir)

        created = ensure_directory(target, 0o700)

        assert created is False
        assert target.stat().st_mode & 0o777 == 0o700

    def test_ensure_directory_file_replaced_concurrently(self, dest_dir: Path, monkeypatch: pytest.MonkeyPatch):
        """A file in the way that another operation turns into a directory is tolerated."""
        target = write_file(dest_dir / "racy", "file in the way")
        real_unlink = Path.unlink

        def racing_unlink(self, missing_ok=False):
            if self == target and target.is_file():
                real_unlink(self)
                os.mkdir(self)
            real_unlink(self, missing_ok=missing_ok)

        monkeypatch.setattr(Path, "unlink", racing_unlink)

        created = ensure_directory(target, 0o700)

        assert created is False
        assert target.is_dir()
        assert target.stat().st_mode & 0o777 == 0o700


class TestDelete:
    """Tests for Delete operations."""

    def test_delete_file(self, dest_dir: Path, captured_console):
        """Orphaned files are removed and logged."""
        write_file(dest_dir / "b.txt", "b")

        outcome = delete_entry(_delete_op(dest_dir, "b.txt"), captured_console)

        assert outcome == OperationOutcome.REMOVED
        assert not (dest_dir / "b.txt").exists()
        assert f"| Remove | {dest_dir / 'b.txt'}" in console_output(captured_console)

    def test_delete_directory_recursive(self, dest_dir: Path):
        """Orphaned directories are removed with their content."""
        write_file(dest_dir / "old" / "x" / "y.txt", "y")

        outcome = delete_entry(_delete_op(dest_dir, "old"))

        assert outcome == OperationOutcome.REMOVED
        assert not (dest_dir / "old").exists()

    def test_delete_already_removed(self, dest_dir: Path):
        """A file removed with its parent directory is not an error."""
        write_file(dest_dir / "old" / "y.txt", "y")
        op = _delete_op(dest_dir, "old/y.txt")
        shutil.rmtree(dest_dir / "old")

        assert delete_entry(op) == OperationOutcome.REMOVED

    def test_delete_directory_already_removed(self, dest_dir: Path):
        """A directory removed with its parent directory is not an error."""
        write_file(dest_dir / "old" / "inner" / "y.txt", "y")
        op = _delete_op(dest_dir, "old/inner")
        shutil.rmtree(dest_dir / "old")

        assert delete_entry(op) == OperationOutcome.REMOVED

    @pytest.mark.skipif(os.geteuid() == 0, reason="root ignores directory permissions")
    def test_delete_failure_raises(self, dest_dir: Path):
        """Removal failures propagate."""
        write_file(dest_dir / "locked" / "f.txt", "f")
        op = _delete_op(dest_dir, "locked/f.txt")
        os.chmod(dest_dir / "locked", 0o500)

        try:
            with pytest.raises(PermissionError):
                delete_entry(op)
        finally:
            os.chmod(dest_dir / "locked", 0o755)


class TestApplyOperation:
    """Tests for apply_operation dispatch."""

    def test_dispatch(self, sample_source: Path, dest_dir: Path):
        """Write and Delete operations reach their handlers."""
        write_file(dest_dir / "orphan.txt", "o")
        delete = _delete_op(dest_dir, "orphan.txt")

        assert apply_operation(_write_op(sample_source, dest_dir, "a.txt")) == OperationOutcome.WRITTEN
        assert apply_operation(delete) == OperationOutcome.REMOVED

    def test_outcome_changed(self):
        """Only modifying outcomes count as changes."""
        assert OperationOutcome.WRITTEN.changed
        assert OperationOutcome.CREATED.changed
        assert OperationOutcome.REMOVED.changed
        assert not OperationOutcome.UNCHANGED.changed
        assert not OperationOutcome.SKIPPED.changed


class TestCopyFile:
    """Tests for copy_file."""

    def test_copy_returns_size(self, temp_dir: Path):
        """The number of copied bytes is returned."""
        source = write_file(temp_dir / "s.bin", "12345")

        assert copy_file(source, temp_dir / "d.bin") == 5

    def test_size_mismatch_raises(self, temp_dir: Path, monkeypatch: pytest.MonkeyPatch):
        """A short copy is fatal."""
        source = write_file(temp_dir / "s.bin", "12345")

        def short_copy(src, dst):
            Path(dst).write_text("123", encoding="utf-8")
            return dst

        monkeypatch.setattr("treemirror.mirror.operations.shutil.copyfile", short_copy)

        with pytest.raises(CopyMismatchError) as exc_info:
            copy_file(source, temp_dir / "d.bin")

        assert exc_info.value.expected == 5
        assert exc_info.value.written == 3
