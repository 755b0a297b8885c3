"""
Puzzle Generator
================
Entry points used by the game layer. Both always return a usable Puzzle;
`puzzle.provenance` tells a searched-and-verified layout apart from the
deterministic fallback.
"""

import random

from pathgrid.geometry import clamp, clamp_size
from pathgrid.generators.checkpoint_placement import place_checkpoints
from pathgrid.generators.hamiltonian_generator import HamiltonianPathGenerator
from pathgrid.generators.multipath_generator import MultiPathGenerator
from pathgrid.puzzle import (
    MODE_CHECKPOINTS,
    MODE_ENDPOINTS,
    PROVENANCE_FALLBACK,
    PROVENANCE_GENERATED,
    Path,
    Puzzle,
)

# name -> (size, checkpoint count)
CHECKPOINT_DIFFICULTIES = {
    "easy": (5, 6),
    "medium": (6, 8),
    "hard": (7, 10),
    "expert": (8, 12),
    "master": (9, 14),
}

# name -> (size, path count)
ENDPOINT_DIFFICULTIES = {
    "easy": (5, 4),
    "medium": (6, 5),
    "hard": (7, 6),
    "expert": (8, 7),
    "master": (9, 8),
}

DIFFICULTY_NAMES = ("easy", "medium", "hard", "expert", "master")
DEFAULT_DIFFICULTY = "easy"


def clamp_density(size, density, mode):
    if mode == MODE_ENDPOINTS:
        return clamp(density, 2, (size * size) // 4)
    return clamp(density, 2, size * size)


def generate_puzzle(size=5, density=6, mode=MODE_CHECKPOINTS, rng=None, max_attempts=None):
    """
    Build a puzzle on a size x size grid.

    In checkpoint mode `density` is the number of checkpoints; in endpoint
    mode it is the number of paths. Both size and density are clamped to
    their supported ranges.
    """
    if mode not in (MODE_CHECKPOINTS, MODE_ENDPOINTS):
        mode = MODE_CHECKPOINTS
    rng = rng or random.Random()
    size = clamp_size(size)
    density = clamp_density(size, density, mode)

    if mode == MODE_ENDPOINTS:
        return MultiPathGenerator(size, density, rng=rng, max_attempts=max_attempts).generate()

    generator = HamiltonianPathGenerator(size, rng=rng)
    path = generator.generate()
    checkpoints = place_checkpoints(path, density)

    return Puzzle(
        size=size,
        mode=MODE_CHECKPOINTS,
        checkpoints=tuple(checkpoints),
        solution=(Path(id=1, cells=tuple(path)),),
        provenance=PROVENANCE_FALLBACK if generator.used_fallback else PROVENANCE_GENERATED,
    )


def difficulty_config(name, mode=MODE_CHECKPOINTS):
    table = ENDPOINT_DIFFICULTIES if mode == MODE_ENDPOINTS else CHECKPOINT_DIFFICULTIES
    key = name.lower() if isinstance(name, str) else DEFAULT_DIFFICULTY
    return table.get(key, table[DEFAULT_DIFFICULTY])


def generate_puzzle_with_difficulty(name, mode=MODE_CHECKPOINTS, rng=None):
    """Unrecognised difficulty names fall back to easy."""
    size, density = difficulty_config(name, mode)
    return generate_puzzle(size, density, mode=mode, rng=rng)
