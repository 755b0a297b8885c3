import unittest
import sys
import os
import threading
import queue

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from pathgrid.geometry import all_cells, is_simple_path, snake_path
from pathgrid.puzzle import Endpoint, Puzzle
from pathgrid.solver_worker import SolverMetrics
from pathgrid.solvers.path_solver import (
    PathCoverSolver,
    count_solutions,
    is_valid_puzzle,
    solve_puzzle,
)
from pathgrid.solvers.solver_errors import InvalidPuzzleError
from pathgrid.validators import check_win_condition


def horizontal_3x3():
    return Puzzle.from_endpoint_pairs(3, [
        ((0, 0), (0, 2)),
        ((1, 0), (1, 2)),
        ((2, 0), (2, 2)),
    ])


def crossing_2x2():
    return Puzzle.from_endpoint_pairs(2, [
        ((0, 0), (1, 1)),
        ((0, 1), (1, 0)),
    ])


def unsolvable_10x10_checkpoints():
    # Both corners share a colour, so no 100-cell path can join them
    return Puzzle.from_checkpoint_cells(10, [(0, 0), (9, 9)])


class TestEndpointSolving(unittest.TestCase):

    def test_horizontal_pairs_solved(self):
        puzzle = horizontal_3x3()
        paths = solve_puzzle(puzzle)
        self.assertIsNotNone(paths)
        self.assertEqual(len(paths), 3)
        self.assertEqual([p.id for p in paths], [1, 2, 3])
        self.assertTrue(is_valid_puzzle(puzzle))
        self.assertGreaterEqual(count_solutions(puzzle), 1)

    def test_horizontal_pairs_are_rows(self):
        paths = solve_puzzle(horizontal_3x3())
        for row, path in enumerate(paths):
            self.assertEqual(path.cells, ((row, 0), (row, 1), (row, 2)))

    def test_crossing_pairs_unsolvable(self):
        puzzle = crossing_2x2()
        self.assertIsNone(solve_puzzle(puzzle))
        self.assertFalse(is_valid_puzzle(puzzle))
        self.assertEqual(count_solutions(puzzle), 0)

    def test_solution_joins_endpoints_without_overlap(self):
        puzzle = Puzzle.from_endpoint_pairs(4, [
            ((0, 0), (3, 0)),
            ((0, 1), (0, 3)),
            ((1, 1), (3, 3)),
        ])
        paths = solve_puzzle(puzzle)
        self.assertIsNotNone(paths)

        seen = set()
        for ep, path in zip(puzzle.endpoints, paths):
            self.assertEqual(path.id, ep.id)
            self.assertTrue(is_simple_path(path.cells, puzzle.size))
            self.assertEqual({path.head, path.tail}, set(ep.positions))
            self.assertFalse(seen.intersection(path.cells))
            seen.update(path.cells)
        self.assertEqual(seen, set(all_cells(4)))

        ok, reason = check_win_condition(puzzle, paths)
        self.assertTrue(ok, reason)

    def test_adjacent_pair_detours_through_grid(self):
        # An adjacent pair still has to detour through every other cell
        puzzle = Puzzle.from_endpoint_pairs(2, [((0, 0), (0, 1))])
        paths = solve_puzzle(puzzle)
        self.assertIsNotNone(paths)
        self.assertEqual(len(paths[0].cells), 4)

    def test_dead_cell_is_unsolvable(self):
        # (0,2) only touches two path ends, so nothing can pass through it
        blocked = Puzzle.from_endpoint_pairs(3, [((0, 0), (0, 1)), ((2, 2), (1, 2))])
        self.assertIsNone(solve_puzzle(blocked))
        self.assertEqual(count_solutions(blocked), 0)

    def test_count_is_capped(self):
        # A single pair across an open 4x4 has many covering routes
        puzzle = Puzzle.from_endpoint_pairs(4, [((0, 0), (3, 0))])
        self.assertEqual(count_solutions(puzzle, cap=2), 2)
        self.assertEqual(count_solutions(puzzle, cap=1), 1)

    def test_count_zero_iff_unsolved(self):
        for puzzle in (horizontal_3x3(), crossing_2x2()):
            solved = solve_puzzle(puzzle) is not None
            self.assertEqual(count_solutions(puzzle) == 0, not solved)

    def test_deterministic(self):
        puzzle = Puzzle.from_endpoint_pairs(4, [((0, 0), (3, 3)), ((0, 3), (1, 2))])
        first = solve_puzzle(puzzle)
        second = solve_puzzle(puzzle)
        self.assertEqual(first, second)


class TestCheckpointSolving(unittest.TestCase):

    def test_snake_checkpoints_solved(self):
        snake = snake_path(4)
        puzzle = Puzzle.from_checkpoint_cells(4, [snake[0], snake[5], snake[10], snake[-1]])
        paths = solve_puzzle(puzzle)
        self.assertIsNotNone(paths)
        self.assertEqual(len(paths), 1)
        self.assertEqual(len(paths[0].cells), 16)
        ok, reason = check_win_condition(puzzle, paths)
        self.assertTrue(ok, reason)

    def test_checkpoints_must_be_in_order(self):
        # Checkpoint 3 sits between 1 and 2, so the path must skirt it first
        puzzle = Puzzle.from_checkpoint_cells(4, [(0, 0), (0, 2), (0, 1)])
        paths = solve_puzzle(puzzle)
        self.assertIsNotNone(paths)
        cells = paths[0].cells
        self.assertEqual(len(cells), 16)
        self.assertLess(cells.index((0, 2)), cells.index((0, 1)))
        self.assertEqual(cells[-1], (0, 1))
        ok, reason = check_win_condition(puzzle, paths)
        self.assertTrue(ok, reason)

    def test_parity_blocked_reports_no_solution_or_timeout(self):
        solver = PathCoverSolver(unsolvable_10x10_checkpoints(), max_states=2000)
        result = solver.solve()
        self.assertFalse(result["success"])
        self.assertIn(result["status"], ("Timeout", "NoSolution"))
        self.assertIsNone(result["paths"])


class TestSearchBudget(unittest.TestCase):

    def test_state_limit_is_timeout_not_no_solution(self):
        snake = snake_path(5)
        puzzle = Puzzle.from_checkpoint_cells(5, [snake[0], snake[-1]])
        result = PathCoverSolver(puzzle, max_states=5).solve()
        self.assertEqual(result["status"], "Timeout")
        self.assertTrue(result["timed_out"])
        self.assertLessEqual(result["nodes_visited"], 5)

        counted = PathCoverSolver(puzzle, max_states=5).count_solutions(2)
        self.assertEqual(counted["status"], "Timeout")

    def test_stop_event_already_set(self):
        stop = threading.Event()
        stop.set()
        result = PathCoverSolver(horizontal_3x3(), stop_event=stop).solve()
        self.assertEqual(result["status"], "Timeout")
        self.assertIsNone(result["paths"])

    def test_env_override(self):
        os.environ["PATHGRID_MAX_STATES"] = "7"
        try:
            solver = PathCoverSolver(horizontal_3x3())
            self.assertEqual(solver.max_states, 7)
        finally:
            del os.environ["PATHGRID_MAX_STATES"]

    def test_branch_history_only_kept_for_metrics(self):
        solver = PathCoverSolver(unsolvable_10x10_checkpoints(), max_states=3000)
        solver.solve()
        self.assertEqual(solver._branch_counts, [])

    def test_region_pruning_keeps_solutions(self):
        # Pair 1 can close itself off at once; those branches must be cut, not the answer
        puzzle = Puzzle.from_endpoint_pairs(5, [((0, 0), (0, 1)), ((4, 4), (2, 4))])
        result = PathCoverSolver(puzzle, max_states=200000).solve()
        self.assertTrue(result["success"])
        ok, reason = check_win_condition(puzzle, result["paths"])
        self.assertTrue(ok, reason)

    def test_metrics_pushed_on_long_search(self):
        mq = queue.Queue()
        solver = PathCoverSolver(unsolvable_10x10_checkpoints(), max_states=2000, metrics_queue=mq)
        result = solver.solve()
        if result["nodes_visited"] >= PathCoverSolver.METRICS_PUSH_INTERVAL:
            self.assertGreater(mq.qsize(), 0)
            sample = mq.get()
            self.assertIsInstance(sample, SolverMetrics)
            self.assertGreater(sample.states_explored, 0)


class TestMalformedPuzzles(unittest.TestCase):

    def test_equal_endpoint_positions(self):
        with self.assertRaises(InvalidPuzzleError):
            Endpoint(1, ((0, 0), (0, 0)))

    def test_overlapping_endpoints(self):
        puzzle = Puzzle.from_endpoint_pairs(3, [((0, 0), (0, 2)), ((0, 2), (2, 2))])
        with self.assertRaises(InvalidPuzzleError):
            solve_puzzle(puzzle)

    def test_out_of_bounds(self):
        puzzle = Puzzle.from_endpoint_pairs(3, [((0, 0), (3, 0))])
        with self.assertRaises(InvalidPuzzleError):
            PathCoverSolver(puzzle)

    def test_single_checkpoint(self):
        puzzle = Puzzle.from_checkpoint_cells(4, [(0, 0)])
        with self.assertRaises(InvalidPuzzleError):
            solve_puzzle(puzzle)


if __name__ == '__main__':
    unittest.main()
