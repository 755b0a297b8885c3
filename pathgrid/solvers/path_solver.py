"""
Path Cover Solver
=================
Backtracking search that threads every path of a puzzle through the grid
so that all cells are covered exactly once.

- Most-constrained path first (fewest legal extensions, ties by path id)
- Candidate cells ordered by Manhattan distance to the path's next target
- Undo-log state: one mutable grid, single-cell deltas applied and reverted
- Stranded-cell and sealed-region pruning around each move
- Hard timeout, max-state limit and external stop via threading.Event
- Optional metrics streaming via queue.Queue

Both puzzle modes share the search. An endpoint pair is a path with one
waypoint (its far end); a checkpoint puzzle is a single path whose
waypoints are checkpoints 2..N in rank order.
"""

import time
import threading
import queue

from pathgrid.geometry import adjacent_positions, in_bounds, manhattan
from pathgrid.puzzle import MODE_CHECKPOINTS, Path
from pathgrid.solver_worker import SolverMetrics
from pathgrid.solvers.solver_errors import (
    DEFAULT_MAX_STATES,
    DEFAULT_TIMEOUT,
    STATUS_NO_SOLUTION,
    STATUS_SUCCESS,
    STATUS_TIMEOUT,
    resolve_max_states,
    resolve_timeout,
)

DEBUG_MODE = False


class PathCoverSolver:
    """
    Solves or counts solutions of a Puzzle.

    Supports:
    - stop_event: threading.Event to request clean stop from outside
    - timeout: wall-clock seconds before auto-stop
    - max_states: maximum nodes visited before auto-stop
    - metrics_queue: optional queue.Queue to push SolverMetrics snapshots
    """

    DEFAULT_TIMEOUT = DEFAULT_TIMEOUT
    DEFAULT_MAX_STATES = DEFAULT_MAX_STATES
    METRICS_PUSH_INTERVAL = 500    # push metrics every N nodes
    YIELD_CHECK_INTERVAL = 200     # check wall clock every N nodes

    def __init__(self, puzzle, stop_event=None, timeout=None,
                 max_states=None, metrics_queue=None):
        self.puzzle = puzzle.validate()
        self.size = puzzle.size

        self.stop_event = stop_event or threading.Event()
        self.timeout = resolve_timeout(timeout)
        self.max_states = resolve_max_states(max_states)
        self.metrics_queue = metrics_queue

        # path id -> start cell, and the ordered cells it must still reach
        self.starts = {}
        self.waypoints = {}
        if puzzle.mode == MODE_CHECKPOINTS:
            cps = puzzle.checkpoints
            self.starts[1] = cps[0].position
            self.waypoints[1] = tuple(cp.position for cp in cps[1:])
        else:
            for ep in puzzle.endpoints:
                self.starts[ep.id] = ep.start
                self.waypoints[ep.id] = (ep.end,)
        self.path_ids = sorted(self.starts)

        self.nodes_visited = 0
        self._timed_out = False
        self._stopped = False
        self._start_time = 0.0
        self._last_metrics_time = 0.0
        self._last_metrics_states = 0
        self._branch_counts = []

    # ── Public API ─────────────────────────────────────────────

    def solve(self):
        """
        Find one full-coverage assignment.

        Returns a dict with keys success, status ("Success", "NoSolution" or
        "Timeout"), paths (list of Path or None), nodes_visited, time_taken
        and timed_out.
        """
        self._begin()
        self._solution = None
        success = self._search(counting=False)
        elapsed = time.perf_counter() - self._start_time

        status = self._status(success)
        if DEBUG_MODE:
            print(f"[SOLVER DEBUG] solve: {status} after {self.nodes_visited} nodes "
                  f"({elapsed:.3f}s)")

        return {
            "success": success,
            "status": status,
            "paths": self._solution if success else None,
            "nodes_visited": self.nodes_visited,
            "time_taken": elapsed,
            "timed_out": self._timed_out or self._stopped,
        }

    def count_solutions(self, cap=2):
        """
        Count distinct solutions, stopping once `cap` is reached.

        When the search is aborted by the budget the count is a lower bound
        and status is "Timeout".
        """
        self._begin()
        self._solution = None
        self._cap = max(1, cap)
        self._count = 0
        self._search(counting=True)
        elapsed = time.perf_counter() - self._start_time

        if self._timed_out or self._stopped:
            status = STATUS_TIMEOUT
        elif self._count > 0:
            status = STATUS_SUCCESS
        else:
            status = STATUS_NO_SOLUTION
        if DEBUG_MODE:
            print(f"[SOLVER DEBUG] count: {self._count} (cap {self._cap}), {status} after "
                  f"{self.nodes_visited} nodes ({elapsed:.3f}s)")

        return {
            "count": self._count,
            "status": status,
            "capped": self._count >= self._cap,
            "nodes_visited": self.nodes_visited,
            "time_taken": elapsed,
            "timed_out": self._timed_out or self._stopped,
        }

    # ── State ──────────────────────────────────────────────────

    def _begin(self):
        self.nodes_visited = 0
        self._timed_out = False
        self._stopped = False
        self._branch_counts = []

        size = self.size
        self.grid = [[None] * size for _ in range(size)]
        owned = 0
        for pid in self.path_ids:
            for r, c in (self.starts[pid],) + self.waypoints[pid]:
                self.grid[r][c] = pid
                owned += 1
        self.empty_count = size * size - owned

        self.paths = {pid: [self.starts[pid]] for pid in self.path_ids}
        self.in_path = {pid: {self.starts[pid]} for pid in self.path_ids}
        self.target_index = {pid: 0 for pid in self.path_ids}
        self.pending = set(self.path_ids)

        self._start_time = time.perf_counter()
        self._last_metrics_time = self._start_time
        self._last_metrics_states = 0

    def _target(self, pid):
        return self.waypoints[pid][self.target_index[pid]]

    def _legal_moves(self, pid):
        """Empty neighbours of the tip, plus the current target if adjacent."""
        tip = self.paths[pid][-1]
        target = self._target(pid)
        moves = []
        for pos in adjacent_positions(tip):
            if not in_bounds(pos, self.size):
                continue
            if self.grid[pos[0]][pos[1]] is None or pos == target:
                moves.append(pos)
        return moves

    def _select_path(self):
        """Most-constrained pending path; ties go to the lowest path id."""
        best_pid = None
        best_moves = None
        for pid in sorted(self.pending):
            moves = self._legal_moves(pid)
            if not moves:
                return pid, moves
            if best_moves is None or len(moves) < len(best_moves):
                best_pid = pid
                best_moves = moves
        return best_pid, best_moves

    def _apply(self, pid, pos):
        r, c = pos
        was_empty = self.grid[r][c] is None
        if was_empty:
            self.grid[r][c] = pid
            self.empty_count -= 1
        self.paths[pid].append(pos)
        self.in_path[pid].add(pos)

        advanced = pos == self._target(pid)
        if advanced:
            self.target_index[pid] += 1
            if self.target_index[pid] == len(self.waypoints[pid]):
                self.pending.discard(pid)
        return was_empty, advanced

    def _revert(self, pid, pos, was_empty, advanced):
        if advanced:
            if self.target_index[pid] == len(self.waypoints[pid]):
                self.pending.add(pid)
            self.target_index[pid] -= 1
        self.paths[pid].pop()
        self.in_path[pid].discard(pos)
        if was_empty:
            self.grid[pos[0]][pos[1]] = None
            self.empty_count += 1

    # ── Pruning ────────────────────────────────────────────────

    def _is_open(self, pos):
        """Whether a path could still enter or leave an empty cell through pos."""
        owner = self.grid[pos[0]][pos[1]]
        if owner is None:
            return True
        if owner not in self.pending:
            return False
        # pending tip, or a waypoint the path has not reached yet
        return pos == self.paths[owner][-1] or pos not in self.in_path[owner]

    def _is_stranded(self, pos):
        open_sides = 0
        for nb in adjacent_positions(pos):
            if in_bounds(nb, self.size) and self._is_open(nb):
                open_sides += 1
                if open_sides >= 2:
                    return False
        return True

    def _strands_around(self, *cells):
        """An empty cell next to any of `cells` that can no longer be threaded."""
        for cell in cells:
            for nb in adjacent_positions(cell):
                if not in_bounds(nb, self.size):
                    continue
                if self.grid[nb[0]][nb[1]] is None and self._is_stranded(nb):
                    return True
        return False

    def _has_sealed_region(self):
        """A connected run of empty cells that no pending path can still enter."""
        size = self.size
        seen = set()
        for r in range(size):
            for c in range(size):
                if self.grid[r][c] is not None or (r, c) in seen:
                    continue

                reachable = False
                seen.add((r, c))
                stack = [(r, c)]
                while stack:
                    cell = stack.pop()
                    for nb in adjacent_positions(cell):
                        if not in_bounds(nb, size):
                            continue
                        if self.grid[nb[0]][nb[1]] is None:
                            if nb not in seen:
                                seen.add(nb)
                                stack.append(nb)
                        elif not reachable and self._is_open(nb):
                            reachable = True
                if not reachable:
                    return True
        return False

    # ── Control ────────────────────────────────────────────────

    def _should_stop(self):
        if self._timed_out or self._stopped:
            return True

        if self.stop_event.is_set():
            self._stopped = True
            return True

        if self.nodes_visited >= self.max_states:
            self._timed_out = True
            return True

        if self.nodes_visited % self.YIELD_CHECK_INTERVAL == 0:
            elapsed = time.perf_counter() - self._start_time
            if elapsed >= self.timeout:
                self._timed_out = True
                return True

        return False

    def _status(self, success):
        if success:
            return STATUS_SUCCESS
        if self._timed_out or self._stopped:
            return STATUS_TIMEOUT
        return STATUS_NO_SOLUTION

    def _push_metrics_if_due(self):
        if self.metrics_queue is None:
            return
        if self.nodes_visited % self.METRICS_PUSH_INTERVAL != 0:
            return

        now = time.perf_counter()
        elapsed_since_last = now - self._last_metrics_time
        states_delta = self.nodes_visited - self._last_metrics_states

        time_per_step_ms = 0.0
        if states_delta > 0:
            time_per_step_ms = (elapsed_since_last * 1000.0) / states_delta

        branching = 0.0
        if self._branch_counts:
            recent = self._branch_counts[-20:]
            branching = sum(recent) / len(recent)
            self._branch_counts = self._branch_counts[-50:]

        metrics = SolverMetrics(
            timestamp=now - self._start_time,
            states_explored=self.nodes_visited,
            states_delta=states_delta,
            time_per_step_ms=time_per_step_ms,
            branching_factor=branching,
            interval_ms=elapsed_since_last * 1000.0,
        )

        try:
            self.metrics_queue.put_nowait(metrics)
        except queue.Full:
            pass

        self._last_metrics_time = now
        self._last_metrics_states = self.nodes_visited

    # ── Search ─────────────────────────────────────────────────

    def _search(self, counting):
        """
        Returns True when the search should unwind: a solution was found
        (solve) or the cap was reached (count).
        """
        if self._timed_out or self._stopped:
            return False

        self.nodes_visited += 1

        if self._should_stop():
            return False

        self._push_metrics_if_due()

        if not self.pending:
            if self.empty_count != 0:
                return False
            if self._solution is None:
                self._solution = self._snapshot()
            if not counting:
                return True
            self._count += 1
            return self._count >= self._cap

        pid, moves = self._select_path()
        if not moves:
            return False

        target = self._target(pid)
        moves.sort(key=lambda p: manhattan(p, target))
        if self.metrics_queue is not None:
            self._branch_counts.append(len(moves))

        for pos in moves:
            old_tip = self.paths[pid][-1]
            was_empty, advanced = self._apply(pid, pos)

            if not self._strands_around(old_tip, pos) and not self._has_sealed_region():
                if self._search(counting):
                    self._revert(pid, pos, was_empty, advanced)
                    return True

            self._revert(pid, pos, was_empty, advanced)

        return False

    def _snapshot(self):
        return [Path(id=pid, cells=tuple(self.paths[pid]), is_complete=True)
                for pid in self.path_ids]


def solve_puzzle(puzzle, timeout=None, max_states=None):
    """One solution as a list of Paths (ordered by path id), or None."""
    result = PathCoverSolver(puzzle, timeout=timeout, max_states=max_states).solve()
    return result["paths"]


def is_valid_puzzle(puzzle, timeout=None, max_states=None):
    return solve_puzzle(puzzle, timeout=timeout, max_states=max_states) is not None


def count_solutions(puzzle, cap=2, timeout=None, max_states=None):
    """Number of distinct solutions found, capped at `cap`."""
    solver = PathCoverSolver(puzzle, timeout=timeout, max_states=max_states)
    return solver.count_solutions(cap)["count"]
