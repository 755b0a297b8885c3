"""
Test Solver Worker
==================
Validates timeout, state limits, metrics streaming, and clean stop
for the background solver wrapper.
"""

import sys
import os
import time
import threading
import queue

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from pathgrid.puzzle import Puzzle
from pathgrid.solver_worker import SolverWorker, SolverMetrics
from pathgrid.solvers.path_solver import PathCoverSolver


def corner_to_corner_10x10():
    # Same-colour corners: no full path exists, and the search is long
    return Puzzle.from_checkpoint_cells(10, [(0, 0), (9, 9)])


def rows_3x3():
    return Puzzle.from_endpoint_pairs(3, [
        ((0, 0), (0, 2)),
        ((1, 0), (1, 2)),
        ((2, 0), (2, 2)),
    ])


def test_timeout_enforcement():
    """Solver must return within timeout with status='Timeout'."""
    print("[TEST] Timeout enforcement...")
    solver = PathCoverSolver(corner_to_corner_10x10(), timeout=0.5, max_states=10_000_000)
    start = time.time()
    result = solver.solve()
    elapsed = time.time() - start

    assert elapsed < 2.0, \
        f"Solver did not respect timeout: {elapsed:.2f}s, status={result['status']}"
    assert result["status"] in ("Timeout", "NoSolution"), \
        f"Expected Timeout/NoSolution, got {result['status']}"
    assert result["success"] is False
    print(f"  PASS: returned in {elapsed:.2f}s, status={result['status']}, nodes={result['nodes_visited']}")


def test_state_limit_enforcement():
    """Solver must stop after max_states is reached."""
    print("[TEST] State limit enforcement...")
    solver = PathCoverSolver(corner_to_corner_10x10(), timeout=30.0, max_states=500)
    result = solver.solve()

    assert result["nodes_visited"] <= 500, \
        f"Solver explored too many states: {result['nodes_visited']}"
    print(f"  PASS: stopped at {result['nodes_visited']} nodes, status={result['status']}")


def test_clean_stop():
    """Solver must stop when stop_event is set."""
    print("[TEST] Clean stop...")
    stop_event = threading.Event()
    solver = PathCoverSolver(corner_to_corner_10x10(), stop_event=stop_event,
                             timeout=30.0, max_states=10_000_000)

    def delayed_stop():
        time.sleep(0.1)
        stop_event.set()

    threading.Thread(target=delayed_stop, daemon=True).start()

    start = time.time()
    result = solver.solve()
    elapsed = time.time() - start

    assert elapsed < 2.0, f"Solver did not stop cleanly: {elapsed:.2f}s"
    assert result["paths"] is None
    print(f"  PASS: stopped in {elapsed:.2f}s after stop_event, nodes={result['nodes_visited']}")


def test_metrics_queue():
    """Metrics must be pushed to queue during long searches."""
    print("[TEST] Metrics queue...")
    mq = queue.Queue()
    solver = PathCoverSolver(corner_to_corner_10x10(), timeout=2.0, max_states=5000,
                             metrics_queue=mq)
    result = solver.solve()

    metrics_count = mq.qsize()
    print(f"  Metrics snapshots pushed: {metrics_count}")
    if result["nodes_visited"] < PathCoverSolver.METRICS_PUSH_INTERVAL:
        print("  SKIP: search ended before the first metrics interval")
        return
    assert metrics_count > 0, "No metrics were pushed to queue"

    # Check a sample
    sample = mq.get()
    assert isinstance(sample, SolverMetrics)
    assert sample.states_explored > 0, "Missing states_explored"
    assert sample.time_per_step_ms >= 0.0
    print(f"  PASS: {metrics_count} metrics pushed, sample: states={sample.states_explored}, "
          f"time/step={sample.time_per_step_ms:.4f}ms")


def test_puzzle_worker():
    """SolverWorker.for_puzzle must solve in the background."""
    print("[TEST] SolverWorker.for_puzzle...")
    worker = SolverWorker.for_puzzle(rows_3x3(), timeout=2.0)
    worker.start()

    assert worker.join(timeout=5.0), "Worker did not finish"
    result = worker.get_result()
    assert result["success"] is True
    assert result["status"] == "Success"
    assert len(result["paths"]) == 3
    assert result["worker_label"] == "path-solver"
    print(f"  PASS: worker solved in {result['time_taken']:.3f}s, nodes={result['nodes_visited']}")


def test_count_worker():
    """count_cap switches the worker to solution counting."""
    print("[TEST] SolverWorker counting...")
    worker = SolverWorker.for_puzzle(rows_3x3(), count_cap=2)
    worker.start()
    assert worker.join(timeout=5.0)
    result = worker.get_result()
    assert result["count"] >= 1
    print(f"  PASS: counted {result['count']} solution(s)")


def test_solver_worker():
    """SolverWorker must wrap any callable in the background."""
    print("[TEST] SolverWorker...")

    def slow_solver():
        time.sleep(0.1)
        return {"success": True, "nodes_visited": 100}

    worker = SolverWorker(slow_solver, label="test")
    worker.start()

    assert not worker.is_done()
    assert worker.get_result() is None
    time.sleep(0.3)
    assert worker.is_done()

    result = worker.get_result()
    assert result["success"] is True
    assert result["worker_label"] == "test"
    print(f"  PASS: worker completed, result={result}")


def test_worker_error():
    """An exception inside the job becomes status='Error'."""
    print("[TEST] SolverWorker error...")

    def broken_solver():
        raise ValueError("bad puzzle")

    worker = SolverWorker(broken_solver, label="broken")
    worker.start()
    assert worker.join(timeout=2.0)

    result = worker.get_result()
    assert result["status"] == "Error"
    assert result["success"] is False
    assert "bad puzzle" in result["error"]
    assert isinstance(worker.get_error(), ValueError)
    print(f"  PASS: error surfaced as {result}")


if __name__ == "__main__":
    print("=" * 60)
    print("Solver Worker Verification Tests")
    print("=" * 60)

    tests = [
        test_timeout_enforcement,
        test_state_limit_enforcement,
        test_clean_stop,
        test_metrics_queue,
        test_puzzle_worker,
        test_count_worker,
        test_solver_worker,
        test_worker_error,
    ]

    passed = 0
    failed = 0
    for test in tests:
        try:
            test()
            passed += 1
        except Exception as e:
            print(f"  FAIL: {e}")
            failed += 1

    print("=" * 60)
    print(f"Results: {passed} passed, {failed} failed, {len(tests)} total")
    print("=" * 60)
