# TreeMirror Console Output
# Rich-based console output for mirror loops

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import IO, TYPE_CHECKING, Optional

from rich.console import Console as RichConsole
from rich.text import Text

if TYPE_CHECKING:
    from treemirror.config.schema import MirrorConfig
    from treemirror.mirror.loop import CycleResult

TIME_FORMAT = "%H:%M:%S"

_ACTION_STYLES = {
    "Write": "green",
    "Remove": "red",
    "Cycle": "dim",
}


class Console:
    """
    Console output manager using Rich.

    Safe to share between mirror loops and worker threads.
    """

    def __init__(self, *, verbose: bool = False, colored: bool = True, file: Optional[IO[str]] = None):
        """
        Initialize console.

        Args:
            verbose: Print a summary line after every cycle.
            colored: Enable colored output.
            file: Optional output stream (defaults to stdout).
        """
        self.verbose = verbose
        self._console = RichConsole(file=file, no_color=not colored, highlight=False)

    def print(self, *args, **kwargs) -> None:
        """Print to console."""
        self._console.print(*args, **kwargs)

    def print_error(self, message: str) -> None:
        """Print error message."""
        self._console.print(Text.assemble(("Error:", "red"), " ", message), soft_wrap=True)

    def print_warning(self, message: str) -> None:
        """Print warning message."""
        self._console.print(Text.assemble(("Warning:", "yellow"), " ", message), soft_wrap=True)

    def print_success(self, message: str) -> None:
        """Print success message."""
        self._console.print(Text(message, style="green"), soft_wrap=True)

    def print_info(self, message: str) -> None:
        """Print info message."""
        self._console.print(Text(message, style="blue"), soft_wrap=True)

    def print_banner(self, config: MirrorConfig) -> None:
        """Print the startup line of a mirror loop."""
        self._console.print(
            Text(
                f"Watching '{config.source}' and mirroring into '{config.destination}' "
                f"every {config.general.loop_interval_ms}ms"
            ),
            soft_wrap=True,
        )

    def log_operation(self, action: str, path: Path | str) -> None:
        """
        Print a timestamped operation line.

        Format: ``HH:MM:SS | <action> | <path>``. Paths are never
        interpreted as markup.
        """
        text = Text(f"{datetime.now().strftime(TIME_FORMAT)} | ")
        text.append(action, style=_ACTION_STYLES.get(action, ""))
        text.append(f" | {path}")
        self._console.print(text, soft_wrap=True)

    def print_cycle_result(self, config: MirrorConfig, result: CycleResult) -> None:
        """Print a cycle summary (verbose mode only)."""
        if not self.verbose:
            return
        self.log_operation(
            "Cycle",
            f"{config.source} -> {config.destination}: "
            f"{result.written} written, {result.created} dirs created, {result.removed} removed, "
            f"{result.unchanged} unchanged in {result.duration:.2f}s",
        )

    def print_config_check(self, config_path: str, valid: bool, errors: list[str]) -> None:
        """Print the validation result of one configuration file."""
        if valid:
            self._console.print(Text.assemble(("✓", "green"), f" {config_path}"), soft_wrap=True)
            return
        self._console.print(Text.assemble(("✗", "red"), f" {config_path}"), soft_wrap=True)
        for error in errors:
            self._console.print(Text(f"    {error}", style="dim"), soft_wrap=True)


def create_console(*, verbose: bool = False, colored: bool = True) -> Console:
    """
    Create a console instance.

    Args:
        verbose: Print cycle summaries.
        colored: Enable colored output.

    Returns:
        Console instance.
    """
    return Console(verbose=verbose, colored=colored)
