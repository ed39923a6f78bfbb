# TreeMirror Worker Pool
# Runs a cycle's operations concurrently and blocks until all are done

from __future__ import annotations

import queue
import threading
from collections.abc import Callable
from typing import Any, Optional

from treemirror.mirror.errors import OperationError
from treemirror.mirror.operations import apply_operation
from treemirror.mirror.planner import Operation, OperationSet

Runner = Callable[[Operation], Any]

# Queue item telling a worker thread to exit
_SHUTDOWN = object()


class CompletionBarrier:
    """
    Countdown latch for the operations of one cycle.

    Counted down exactly once per finished operation; waiters are
    released when the count reaches zero.
    """

    def __init__(self, count: int):
        if count < 0:
            raise ValueError(f"Barrier count must not be negative: {count}")
        self._count = count
        self._condition = threading.Condition()

    @property
    def remaining(self) -> int:
        """Number of completions still outstanding."""
        with self._condition:
            return self._count

    def done(self) -> None:
        """Record one completed operation."""
        with self._condition:
            if self._count <= 0:
                raise RuntimeError("Barrier counted down more times than expected")
            self._count -= 1
            if self._count == 0:
                self._condition.notify_all()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until every expected operation has completed.

        Returns:
            True if the count reached zero, False on timeout.
        """
        with self._condition:
            return self._condition.wait_for(lambda: self._count == 0, timeout)


class _CycleRun:
    """Shared state of the operations running in one cycle."""

    def __init__(self, expected: int, runner: Runner):
        self.barrier = CompletionBarrier(expected)
        self.runner = runner
        self.results: list[Any] = []
        self.failures = 0
        self._lock = threading.Lock()
        self._failure: Optional[tuple[Operation, Exception]] = None

    @property
    def aborted(self) -> bool:
        return self._failure is not None

    def run_one(self, operation: Operation) -> None:
        try:
            # After the first failure the rest of the cycle is only counted down
            if not self.aborted:
                result = self.runner(operation)
                with self._lock:
                    self.results.append(result)
        except Exception as e:
            with self._lock:
                self.failures += 1
                if self._failure is None:
                    self._failure = (operation, e)
        finally:
            self.barrier.done()

    def raise_for_failure(self) -> None:
        if self._failure is None:
            return
        operation, error = self._failure
        raise OperationError(
            f"{operation.kind.value.capitalize()} failed for {operation.dest_path}: {error}",
            operation.dest_path,
            failed=self.failures,
        ) from error


def execute_operations(
    operation_set: OperationSet,
    max_workers: int,
    *,
    runner: Runner = apply_operation,
) -> list[Any]:
    """
    Execute every operation of a cycle and wait for all of them.

    Args:
        operation_set: Operations planned for this cycle.
        max_workers: Concurrency limit. Values below 1 start one thread
            per operation without admission control.
        runner: Callable executing a single operation.

    Returns:
        Runner results in completion order.

    Raises:
        OperationError: If any operation failed or a worker thread could
            not be started. Raised only after the barrier is released and
            all workers have exited.
        ValueError: If the expected count does not match the operations.
    """
    if operation_set.expected != len(operation_set.operations):
        raise ValueError(
            f"Expected completion count {operation_set.expected} "
            f"does not match {len(operation_set.operations)} operations"
        )

    if not operation_set.operations:
        return []

    run = _CycleRun(operation_set.expected, runner)

    if max_workers < 1:
        _run_unbounded(operation_set, run)
    else:
        _run_bounded(operation_set, run, max_workers)

    run.raise_for_failure()
    return run.results


def _run_unbounded(operation_set: OperationSet, run: _CycleRun) -> None:
    """One thread per operation."""
    started = 0
    try:
        for operation in operation_set:
            threading.Thread(target=run.run_one, args=(operation,), daemon=True).start()
            started += 1
    except RuntimeError as e:
        # Operations without a thread never run but still count as finished
        unstarted = len(operation_set) - started
        for _ in range(unstarted):
            run.barrier.done()
        run.barrier.wait()
        raise OperationError(f"Cannot start worker thread: {e}", failed=unstarted) from e

    run.barrier.wait()


def _run_bounded(operation_set: OperationSet, run: _CycleRun, max_workers: int) -> None:
    """Fixed pool of workers draining a bounded queue."""
    work: queue.Queue = queue.Queue(maxsize=max_workers)
    workers: list[threading.Thread] = []

    try:
        for i in range(max_workers):
            worker = threading.Thread(
                target=_worker_loop, args=(work, run), name=f"treemirror-worker-{i}", daemon=True
            )
            worker.start()
            workers.append(worker)
    except RuntimeError as e:
        _shutdown_workers(work, workers)
        raise OperationError(f"Cannot start worker thread: {e}", failed=len(operation_set)) from e

    for operation in operation_set:
        work.put(operation)

    run.barrier.wait()
    _shutdown_workers(work, workers)


def _shutdown_workers(work: queue.Queue, workers: list[threading.Thread]) -> None:
    """Shutdown handshake: one sentinel per worker, then wait for each to exit."""
    for _ in workers:
        work.put(_SHUTDOWN)
    for worker in workers:
        worker.join()


def _worker_loop(work: queue.Queue, run: _CycleRun) -> None:
    while True:
        item = work.get()
        if item is _SHUTDOWN:
            return
        run.run_one(item)
