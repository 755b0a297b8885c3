import sys
import os
import time
import csv
import argparse
import random
from typing import Dict, Any

# Add project root to path
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

import pathgrid.generators.hamiltonian_generator as ham_mod
import pathgrid.generators.multipath_generator as multi_mod
import pathgrid.solvers.path_solver as solver_mod
from pathgrid.generators.puzzle_generator import DIFFICULTY_NAMES, generate_puzzle_with_difficulty
from pathgrid.puzzle import MODE_CHECKPOINTS, MODE_ENDPOINTS
from pathgrid.solvers.path_solver import PathCoverSolver

# Keep benchmark output clean
ham_mod.DEBUG_MODE = False
multi_mod.DEBUG_MODE = False
solver_mod.DEBUG_MODE = False


def run_single_puzzle(game_id: int, difficulty: str, mode: str, seed: int,
                      solver_timeout: float = 3.0) -> Dict[str, Any]:
    """
    Generates one puzzle, then re-solves it from its clues alone and counts
    solutions up to 2.
    """
    rng = random.Random(seed)

    start_time = time.perf_counter()
    puzzle = generate_puzzle_with_difficulty(difficulty, mode=mode, rng=rng)
    gen_time = time.perf_counter() - start_time

    result = {
        "game_id": game_id,
        "seed": seed,
        "mode": mode,
        "difficulty": difficulty,
        "size": f"{puzzle.size}x{puzzle.size}",
        "provenance": puzzle.provenance,
        "gen_time": gen_time,
        "solve_status": "",
        "solve_nodes": 0,
        "solve_time": 0.0,
        "solutions": 0,
    }

    clues_only = puzzle.without_solution()
    solved = PathCoverSolver(clues_only, timeout=solver_timeout).solve()
    result["solve_status"] = solved["status"]
    result["solve_nodes"] = solved["nodes_visited"]
    result["solve_time"] = solved["time_taken"]

    counted = PathCoverSolver(clues_only, timeout=solver_timeout).count_solutions(2)
    result["solutions"] = counted["count"]
    return result


def main(argv=None):
    parser = argparse.ArgumentParser(description="Benchmark PathGrid puzzle generation")
    parser.add_argument("--games", type=int, default=10, help="Puzzles per difficulty")
    parser.add_argument("--mode", choices=[MODE_CHECKPOINTS, MODE_ENDPOINTS],
                        default=MODE_ENDPOINTS, help="Puzzle mode")
    parser.add_argument("--seed", type=int, default=0, help="Base random seed")
    parser.add_argument("--timeout", type=float, default=3.0, help="Solver timeout per run (s)")
    parser.add_argument("--output", type=str, default="benchmark_results.csv", help="Output CSV file")

    args = parser.parse_args(argv)

    if args.games < 1:
        print("Nothing to benchmark: --games must be at least 1")
        return []

    print(f"Starting Benchmark: {args.games} puzzles per difficulty, mode={args.mode}")

    results = []
    game_id = 0
    for difficulty in DIFFICULTY_NAMES:
        for i in range(args.games):
            game_id += 1
            print(f"Running {difficulty} {i+1}/{args.games}...", end="\r")
            results.append(run_single_puzzle(game_id, difficulty, args.mode,
                                             args.seed + game_id, args.timeout))

    print("\nBenchmark Complete!")

    keys = results[0].keys()
    with open(args.output, "w", newline="") as f:
        dict_writer = csv.DictWriter(f, fieldnames=keys)
        dict_writer.writeheader()
        dict_writer.writerows(results)

    print(f"Results saved to {args.output}")

    print("\nSummary Statistics:")
    print(f"{'Difficulty':<10} | {'Fallback':<9} | {'Avg Gen (s)':<11} | {'Unique':<7} | {'Avg Nodes':<10}")
    print("-" * 60)

    for difficulty in DIFFICULTY_NAMES:
        rows = [r for r in results if r["difficulty"] == difficulty]
        fallback_rate = 100 * sum(1 for r in rows if r["provenance"] == "fallback") / len(rows)
        avg_gen = sum(r["gen_time"] for r in rows) / len(rows)
        unique_rate = 100 * sum(1 for r in rows if r["solutions"] == 1) / len(rows)
        avg_nodes = sum(r["solve_nodes"] for r in rows) / len(rows)

        print(f"{difficulty:<10} | {fallback_rate:>8.1f}% | {avg_gen:>11.4f} | {unique_rate:>6.1f}% | {avg_nodes:>10.1f}")

    return results


if __name__ == "__main__":
    main()
