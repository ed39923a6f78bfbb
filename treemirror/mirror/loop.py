# TreeMirror Scan Loop
# Drives scan -> plan -> execute -> sleep cycles for each configuration

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from functools import partial
from typing import Any, Optional

from treemirror.config.schema import MirrorConfig
from treemirror.mirror.operations import OperationOutcome, apply_operation
from treemirror.mirror.planner import OperationSet, plan_operations
from treemirror.mirror.pool import Runner, execute_operations
from treemirror.mirror.scanner import scan_tree
from treemirror.output.console import Console


@dataclass
class CycleResult:
    """Result of one scan-plan-execute cycle."""

    cycle: int
    operations: int = 0
    writes: int = 0
    deletes: int = 0
    written: int = 0
    created: int = 0
    unchanged: int = 0
    skipped: int = 0
    removed: int = 0
    duration: float = 0.0

    @property
    def changed(self) -> int:
        """Number of operations that modified the destination."""
        return self.written + self.created + self.removed

    @classmethod
    def from_outcomes(
        cls,
        cycle: int,
        operation_set: OperationSet,
        outcomes: Iterable[Any],
        duration: float,
    ) -> "CycleResult":
        result = cls(
            cycle=cycle,
            operations=len(operation_set),
            writes=len(operation_set.writes),
            deletes=len(operation_set.deletes),
            duration=duration,
        )
        for outcome in outcomes:
            if outcome == OperationOutcome.WRITTEN:
                result.written += 1
            elif outcome == OperationOutcome.CREATED:
                result.created += 1
            elif outcome == OperationOutcome.UNCHANGED:
                result.unchanged += 1
            elif outcome == OperationOutcome.SKIPPED:
                result.skipped += 1
            elif outcome == OperationOutcome.REMOVED:
                result.removed += 1
        return result


class MirrorLoop:
    """
    Periodic one-way mirror of a source tree into a destination tree.

    Each cycle scans both trees, plans the operations, runs them on the
    worker pool and waits for all of them before sleeping. The next scan
    therefore always sees the settled result of the previous cycle.
    """

    def __init__(
        self,
        config: MirrorConfig,
        console: Optional[Console] = None,
        *,
        runner: Optional[Runner] = None,
    ):
        """
        Initialize mirror loop.

        Args:
            config: Immutable loop configuration.
            console: Output for banner, operation and summary lines.
            runner: Optional replacement for apply_operation.
        """
        self.config = config
        self.console = console or Console()
        self.runner = runner or partial(apply_operation, console=self.console)
        self.cycles = 0
        self._stop = threading.Event()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def run_cycle(self) -> CycleResult:
        """
        Run a single scan-plan-execute cycle.

        Raises:
            ScanError: If a tree cannot be read.
            OperationError: If any operation failed.
        """
        started = time.monotonic()

        source_snapshot = scan_tree(self.config.source)
        # Destination root is created by the first write
        dest_snapshot = scan_tree(self.config.destination, missing_ok=True)

        operation_set = plan_operations(self.config.source, self.config.destination, source_snapshot, dest_snapshot)
        outcomes = execute_operations(operation_set, self.config.max_workers, runner=self.runner)

        self.cycles += 1
        result = CycleResult.from_outcomes(self.cycles, operation_set, outcomes, time.monotonic() - started)
        self.console.print_cycle_result(self.config, result)
        return result

    def run(self, cycles: Optional[int] = None) -> Optional[CycleResult]:
        """
        Run cycles until stopped.

        Args:
            cycles: Optional number of cycles after which to return.

        Returns:
            Result of the last completed cycle.
        """
        self.console.print_banner(self.config)
        result: Optional[CycleResult] = None
        completed = 0

        while not self._stop.is_set():
            result = self.run_cycle()
            completed += 1
            if cycles is not None and completed >= cycles:
                break
            self._stop.wait(self.config.loop_interval)

        return result

    def stop(self) -> None:
        """Stop the loop before its next cycle."""
        self._stop.set()


class MirrorService:
    """
    Runs one mirror loop per configuration, each in its own thread.

    A failure in any loop is fatal for the whole service: wait()
    re-raises it in the calling thread.
    """

    def __init__(
        self,
        configs: Iterable[MirrorConfig],
        console: Optional[Console] = None,
        *,
        loop_factory: Callable[..., MirrorLoop] = MirrorLoop,
    ):
        self.console = console or Console()
        self.loops = [loop_factory(config, self.console) for config in configs]
        self._threads: list[threading.Thread] = []
        self._failed = threading.Event()
        self._failure: Optional[BaseException] = None
        self._lock = threading.Lock()

    @property
    def failure(self) -> Optional[BaseException]:
        return self._failure

    def start(self) -> None:
        """Start every loop in a daemon thread."""
        for index, loop in enumerate(self.loops):
            thread = threading.Thread(
                target=self._run_loop,
                args=(loop,),
                name=f"treemirror-loop-{index}",
                daemon=True,
            )
            self._threads.append(thread)
            thread.start()

    def _run_loop(self, loop: MirrorLoop) -> None:
        try:
            loop.run()
        except Exception as e:
            with self._lock:
                if self._failure is None:
                    self._failure = e
            self._failed.set()

    def wait(self, poll_interval: float = 0.5) -> None:
        """
        Block until a loop fails or every loop has stopped.

        Raises:
            The first exception raised by any loop.
        """
        while not self._failed.wait(poll_interval):
            if not any(thread.is_alive() for thread in self._threads):
                break

        if self._failure is not None:
            raise self._failure

    def stop(self) -> None:
        """Ask every loop to stop after its current cycle."""
        for loop in self.loops:
            loop.stop()

    def run_once(self) -> list[Optional[CycleResult]]:
        """Run a single cycle of every loop, one loop after the other."""
        return [loop.run(cycles=1) for loop in self.loops]
