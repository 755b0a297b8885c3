"""
Benchmark Chart Generator
=========================
Charts generation cost and solver effort per difficulty for both puzzle
modes.
Run:  python generate_benchmark_charts.py --games 5
Output: benchmark_charts/ folder with 3 PNG files.
"""

import sys
import os
import argparse
import numpy as np
from typing import Dict, Any, List
from collections import defaultdict

# Ensure project root is on the path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend for file output
import matplotlib.pyplot as plt

from benchmark_generator import run_single_puzzle
from pathgrid.generators.puzzle_generator import DIFFICULTY_NAMES
from pathgrid.puzzle import MODE_CHECKPOINTS, MODE_ENDPOINTS

# ─────────────────────────────────────────────────────────────
# Color Palette & Styling
# ─────────────────────────────────────────────────────────────
COLORS = {
    MODE_CHECKPOINTS: "#FF6B6B",   # Coral Red
    MODE_ENDPOINTS:   "#339AF0",   # Sky Blue
}
MODE_LABELS = {MODE_CHECKPOINTS: "Checkpoints", MODE_ENDPOINTS: "Endpoints"}
BG_COLOR = "#1A1B26"
CARD_COLOR = "#24283B"
TEXT_COLOR = "#C0CAF5"
GRID_COLOR = "#414868"


def setup_style():
    """Apply a dark, presentation-friendly matplotlib style."""
    plt.rcParams.update({
        "figure.facecolor": BG_COLOR,
        "axes.facecolor": CARD_COLOR,
        "axes.edgecolor": GRID_COLOR,
        "axes.labelcolor": TEXT_COLOR,
        "axes.titleweight": "bold",
        "text.color": TEXT_COLOR,
        "xtick.color": TEXT_COLOR,
        "ytick.color": TEXT_COLOR,
        "grid.color": GRID_COLOR,
        "grid.alpha": 0.3,
        "font.size": 13,
        "axes.titlesize": 16,
        "legend.facecolor": CARD_COLOR,
        "legend.edgecolor": GRID_COLOR,
        "figure.dpi": 150,
        "savefig.dpi": 150,
        "savefig.bbox": "tight",
        "savefig.facecolor": BG_COLOR,
    })


# ─────────────────────────────────────────────────────────────
# Benchmarking Engine
# ─────────────────────────────────────────────────────────────
def run_benchmark(games: int, seed: int, timeout: float) -> Dict[str, Dict[str, List[Dict[str, Any]]]]:
    """Results grouped as results[mode][difficulty] -> list of rows."""
    results = defaultdict(lambda: defaultdict(list))
    total = 2 * len(DIFFICULTY_NAMES) * games
    done = 0

    for mode in (MODE_CHECKPOINTS, MODE_ENDPOINTS):
        for difficulty in DIFFICULTY_NAMES:
            for g in range(games):
                done += 1
                print(f"  [{done}/{total}] {mode}/{difficulty} puzzle {g+1}/{games} ...", end="\r")
                row = run_single_puzzle(done, difficulty, mode, seed + done, timeout)
                results[mode][difficulty].append(row)

    print()
    return results


# ─────────────────────────────────────────────────────────────
# Chart Generators
# ─────────────────────────────────────────────────────────────
def _style_axes(ax):
    ax.grid(axis="y", zorder=0)
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)


def _grouped_bars(ax, results, metric):
    x = np.arange(len(DIFFICULTY_NAMES))
    width = 0.35
    for i, mode in enumerate((MODE_CHECKPOINTS, MODE_ENDPOINTS)):
        values = [metric(results[mode][d]) for d in DIFFICULTY_NAMES]
        ax.bar(x + i * width, values, width, label=MODE_LABELS[mode],
               color=COLORS[mode], edgecolor="none", alpha=0.9, zorder=3)
    ax.set_xticks(x + width / 2)
    ax.set_xticklabels([d.capitalize() for d in DIFFICULTY_NAMES])
    ax.legend(loc="upper left")
    _style_axes(ax)


def chart_1_generation_time(results, out_dir):
    fig, ax = plt.subplots(figsize=(10, 6))
    _grouped_bars(ax, results, lambda rows: np.mean([r["gen_time"] for r in rows]))
    ax.set_ylabel("Average Generation Time (seconds)")
    ax.set_title("Generation Time by Difficulty", pad=15)
    fig.savefig(os.path.join(out_dir, "1_generation_time.png"))
    plt.close(fig)
    print("  Chart 1: Generation Time")


def chart_2_fallback_rate(results, out_dir):
    fig, ax = plt.subplots(figsize=(10, 6))
    _grouped_bars(ax, results,
                  lambda rows: 100 * np.mean([r["provenance"] == "fallback" for r in rows]))
    ax.set_ylabel("Fallback Puzzles (%)")
    ax.set_ylim(0, 105)
    ax.set_title("Fallback Rate by Difficulty", pad=15)
    fig.savefig(os.path.join(out_dir, "2_fallback_rate.png"))
    plt.close(fig)
    print("  Chart 2: Fallback Rate")


def chart_3_solver_nodes(results, out_dir):
    """Box plot of solver node visits per difficulty (endpoint mode)."""
    fig, ax = plt.subplots(figsize=(10, 6))
    data = [np.array([r["solve_nodes"] for r in results[MODE_ENDPOINTS][d]]) for d in DIFFICULTY_NAMES]
    box = ax.boxplot(data, patch_artist=True, zorder=3)
    for patch in box["boxes"]:
        patch.set_facecolor(COLORS[MODE_ENDPOINTS])
        patch.set_alpha(0.8)
    ax.set_xticks(np.arange(1, len(DIFFICULTY_NAMES) + 1))
    ax.set_xticklabels([d.capitalize() for d in DIFFICULTY_NAMES])
    ax.set_yscale("log")
    ax.set_ylabel("Nodes Visited (log scale)")
    ax.set_title("Solver Effort on Endpoint Puzzles", pad=15)
    _style_axes(ax)
    fig.savefig(os.path.join(out_dir, "3_solver_nodes.png"))
    plt.close(fig)
    print("  Chart 3: Solver Nodes")


def print_summary(results):
    print("\nSummary:")
    for mode in (MODE_CHECKPOINTS, MODE_ENDPOINTS):
        print(f"  {MODE_LABELS[mode]}")
        for d in DIFFICULTY_NAMES:
            rows = results[mode][d]
            unique = 100 * np.mean([r["solutions"] == 1 for r in rows])
            avg_t = np.mean([r["gen_time"] for r in rows])
            print(f"     {d:<7} Unique: {unique:5.1f}%  Gen: {avg_t:.3f}s")
    print()


# ─────────────────────────────────────────────────────────────
# Main
# ─────────────────────────────────────────────────────────────
def main():
    parser = argparse.ArgumentParser(description="Generate Benchmark Charts")
    parser.add_argument("--games", type=int, default=5,
                        help="Puzzles per mode and difficulty (default: 5)")
    parser.add_argument("--seed", type=int, default=0, help="Base random seed")
    parser.add_argument("--timeout", type=float, default=3.0,
                        help="Solver timeout in seconds (default: 3)")
    parser.add_argument("--output-dir", type=str, default=None,
                        help="Output folder (default: ./benchmark_charts)")
    args = parser.parse_args()

    out_dir = args.output_dir or os.path.join(os.path.dirname(os.path.abspath(__file__)),
                                              "benchmark_charts")
    os.makedirs(out_dir, exist_ok=True)

    setup_style()

    print(f"  Puzzles per config : {args.games}")
    print(f"  Solver timeout     : {args.timeout}s")
    print(f"  Output folder      : {out_dir}")
    print()

    print("Phase 1/2: Running Benchmarks...")
    results = run_benchmark(args.games, args.seed, args.timeout)

    print("\nPhase 2/2: Generating Charts...")
    chart_1_generation_time(results, out_dir)
    chart_2_fallback_rate(results, out_dir)
    chart_3_solver_nodes(results, out_dir)

    print_summary(results)
    print(f"All charts saved to: {out_dir}")


if __name__ == "__main__":
    main()
