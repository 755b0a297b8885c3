"""
Solver Worker
=============
Thread-safe background wrapper so a caller (e.g. a UI loop) can run a
solve or generation job without blocking.

Provides:
- Background thread execution for any callable
- Clean stop mechanism via threading.Event
- Real-time metrics streaming via queue.Queue
"""

import time
import threading
import queue
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional


@dataclass
class SolverMetrics:
    """Snapshot of solver progress at a point in time."""
    timestamp: float          # wall-clock seconds since solver start
    states_explored: int      # total nodes visited so far
    states_delta: int         # nodes visited since last snapshot
    time_per_step_ms: float   # avg time per node in this window (ms)
    branching_factor: float   # avg legal moves per expanded node in this window
    interval_ms: float        # time since last snapshot (ms)


class SolverWorker:
    """
    Runs a solver job in a background thread with a stop flag and a
    bounded metrics queue.

    Usage:
        worker = SolverWorker.for_puzzle(puzzle, timeout=3.0)
        worker.start()

        while not worker.is_done():
            for m in worker.drain_metrics():
                ...
        result = worker.get_result()
    """

    METRICS_QUEUE_SIZE = 500

    def __init__(
        self,
        solver_fn: Callable[[], Dict[str, Any]],
        label: str = "solver",
        stop_event: Optional[threading.Event] = None,
    ):
        self.solver_fn = solver_fn
        self.label = label

        self.stop_event = stop_event or threading.Event()
        self.done_event = threading.Event()
        self.metrics_queue: queue.Queue = queue.Queue(maxsize=self.METRICS_QUEUE_SIZE)
        self._result: Optional[Dict[str, Any]] = None
        self._thread: Optional[threading.Thread] = None
        self._error: Optional[Exception] = None

    @classmethod
    def for_puzzle(cls, puzzle, timeout=None, max_states=None, count_cap=None,
                   label="path-solver"):
        """
        Worker that solves `puzzle` (or counts its solutions when count_cap
        is given) with its stop flag and metrics queue wired into the solver.
        """
        from pathgrid.solvers.path_solver import PathCoverSolver

        stop_event = threading.Event()
        worker = cls(lambda: None, label=label, stop_event=stop_event)
        solver = PathCoverSolver(
            puzzle,
            stop_event=stop_event,
            timeout=timeout,
            max_states=max_states,
            metrics_queue=worker.metrics_queue,
        )
        if count_cap is None:
            worker.solver_fn = solver.solve
        else:
            worker.solver_fn = lambda: solver.count_solutions(count_cap)
        return worker

    # ── Public API ─────────────────────────────────────────────

    def start(self):
        """Launch the job in a background daemon thread."""
        self.stop_event.clear()
        self.done_event.clear()
        self._result = None
        self._error = None

        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def stop(self):
        """Signal the solver to stop cleanly."""
        self.stop_event.set()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Block until the job finishes; returns False on join timeout."""
        return self.done_event.wait(timeout)

    def is_done(self) -> bool:
        return self.done_event.is_set()

    def get_result(self) -> Optional[Dict[str, Any]]:
        """Return the job's result dict. None if not yet done."""
        if not self.done_event.is_set():
            return None
        return self._result

    def get_error(self) -> Optional[Exception]:
        return self._error

    def drain_metrics(self) -> list:
        """Non-blocking drain of all queued metrics snapshots."""
        items = []
        while True:
            try:
                items.append(self.metrics_queue.get_nowait())
            except queue.Empty:
                break
        return items

    # ── Internal ───────────────────────────────────────────────

    def _run(self):
        start_time = time.perf_counter()
        try:
            result = self.solver_fn()
            elapsed = time.perf_counter() - start_time

            if isinstance(result, dict):
                result.setdefault("time_taken", elapsed)
                result.setdefault("worker_label", self.label)
            self._result = result

        except Exception as e:
            self._error = e
            self._result = {
                "success": False,
                "status": "Error",
                "error": str(e),
                "worker_label": self.label,
            }
        finally:
            self.done_event.set()
