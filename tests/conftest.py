# TreeMirror Test Fixtures
# Pytest fixtures for TreeMirror tests

import os
import tempfile
from collections.abc import Callable, Generator
from io import StringIO
from pathlib import Path

import pytest
import yaml

from treemirror.config.schema import MirrorConfig
from treemirror.output.console import Console

# Fixed modification time used for sample files: 2024-01-01 00:00:00 UTC
SAMPLE_MTIME_NS = 1704067200 * 1_000_000_000


def write_file(path: Path, content: str, *, mtime_ns: int | None = None, mode: int | None = None) -> Path:
    """Create a file (and its parents) with optional mtime and permission bits."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    if mode is not None:
        os.chmod(path, mode)
    if mtime_ns is not None:
        os.utime(path, ns=(mtime_ns, mtime_ns))
    return path


def tree_state(root: Path) -> dict[str, tuple]:
    """Describe a tree as relative path -> (kind, mode, mtime_ns, content)."""
    state: dict[str, tuple] = {}
    for path in sorted(root.rglob("*")):
        rel = path.relative_to(root).as_posix()
        st = path.lstat()
        if path.is_dir():
            state[rel] = ("dir", st.st_mode & 0o777, None, None)
        else:
            state[rel] = ("file", st.st_mode & 0o777, st.st_mtime_ns, path.read_bytes())
    return state


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def source_dir(temp_dir: Path) -> Path:
    """Create an empty source tree root."""
    source = temp_dir / "source"
    source.mkdir()
    return source


@pytest.fixture
def dest_dir(temp_dir: Path) -> Path:
    """Create an empty destination tree root."""
    dest = temp_dir / "dest"
    dest.mkdir()
    return dest


@pytest.fixture
def sample_source(source_dir: Path) -> Path:
    """Create a small source tree with nested directories."""
    write_file(source_dir / "a.txt", "X", mtime_ns=SAMPLE_MTIME_NS, mode=0o644)
    write_file(source_dir / "docs" / "readme.md", "# Readme\n", mtime_ns=SAMPLE_MTIME_NS, mode=0o600)
    write_file(source_dir / "docs" / "deep" / "notes.txt", "notes", mtime_ns=SAMPLE_MTIME_NS + 5, mode=0o640)
    (source_dir / "empty").mkdir()
    os.chmod(source_dir / "docs", 0o750)
    return source_dir


@pytest.fixture
def captured_console() -> Console:
    """Create a console writing to a string buffer."""
    return Console(colored=False, file=StringIO())


def console_output(console: Console) -> str:
    """Get captured output from a console created by captured_console."""
    stream = console._console.file
    stream.seek(0)
    return stream.read()


@pytest.fixture
def make_config() -> Callable[..., MirrorConfig]:
    """Factory for validated mirror configurations."""

    def _make(source: Path, dest: Path, **general) -> MirrorConfig:
        data = {
            "sourceDirectory": str(source),
            "destinationDirectory": str(dest),
            "loopIntervalMS": 0,
            "maxConcurrentWorkers": 4,
        }
        data.update(general)
        return MirrorConfig.model_validate({"general": data})

    return _make


@pytest.fixture
def sample_config(source_dir: Path, dest_dir: Path) -> dict:
    """Create sample configuration dict."""
    return {
        "general": {
            "sourceDirectory": str(source_dir),
            "destinationDirectory": str(dest_dir),
            "loopIntervalMS": 1500,
            "maxConcurrentWorkers": 8,
        },
    }


@pytest.fixture
def config_file(temp_dir: Path, sample_config: dict) -> Path:
    """Create a configuration file."""
    config_path = temp_dir / "mirror.yml"

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(sample_config, f, default_flow_style=False)

    return config_path
