"""
Grid Geometry
=============
Bounds checks, 4-neighbourhood adjacency and distance helpers shared by
the generators, the solver and the validators.

Positions are plain (row, col) tuples, 0-indexed.
"""

from typing import List, Tuple

Position = Tuple[int, int]

MIN_SIZE = 4
MAX_SIZE = 10

# up, down, left, right
DIRECTIONS: Tuple[Position, ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))


def clamp(value, low, high):
    return max(low, min(high, value))


def clamp_size(size: int) -> int:
    """Clamp a requested grid size to the supported [4, 10] range."""
    return clamp(size, MIN_SIZE, MAX_SIZE)


def in_bounds(pos: Position, size: int) -> bool:
    r, c = pos
    return 0 <= r < size and 0 <= c < size


def adjacent_positions(pos: Position) -> List[Position]:
    """All four orthogonal neighbours, including out-of-bounds ones."""
    r, c = pos
    return [(r + dr, c + dc) for dr, dc in DIRECTIONS]


def neighbors_in_bounds(pos: Position, size: int) -> List[Position]:
    return [p for p in adjacent_positions(pos) if in_bounds(p, size)]


def manhattan(a: Position, b: Position) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def are_adjacent(a: Position, b: Position) -> bool:
    return manhattan(a, b) == 1


def all_cells(size: int) -> List[Position]:
    return [(r, c) for r in range(size) for c in range(size)]


def snake_path(size: int) -> List[Position]:
    """
    Boustrophedon traversal: row 0 left to right, row 1 right to left, ...
    Always a Hamiltonian path of the grid.
    """
    path = []
    for r in range(size):
        cols = range(size) if r % 2 == 0 else range(size - 1, -1, -1)
        for c in cols:
            path.append((r, c))
    return path


def is_simple_path(cells, size: int) -> bool:
    """True when cells are in bounds, pairwise distinct and consecutively adjacent."""
    if not cells:
        return False
    if len(set(cells)) != len(cells):
        return False
    if any(not in_bounds(p, size) for p in cells):
        return False
    for i in range(len(cells) - 1):
        if not are_adjacent(cells[i], cells[i + 1]):
            return False
    return True
