"""
Core data structures for path-cover puzzles.

One puzzle type serves both variants:
- "endpoints":   several paths, each joining a fixed pair of cells
- "checkpoints": a single path visiting numbered cells in order
"""
from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

from pathgrid.geometry import Position, in_bounds
from pathgrid.solvers.solver_errors import InvalidPuzzleError

MODE_ENDPOINTS = "endpoints"
MODE_CHECKPOINTS = "checkpoints"
MODES = (MODE_ENDPOINTS, MODE_CHECKPOINTS)

PROVENANCE_GENERATED = "generated"
PROVENANCE_FALLBACK = "fallback"


@dataclass(frozen=True)
class Endpoint:
    """A pair of distinct cells that path `id` must connect"""
    id: int
    positions: Tuple[Position, Position]

    def __post_init__(self):
        a, b = self.positions
        a, b = tuple(a), tuple(b)
        if a == b:
            raise InvalidPuzzleError(
                f"Endpoint {self.id} has identical positions {a}",
                context="endpoint",
            )
        object.__setattr__(self, "positions", (a, b))

    @property
    def start(self) -> Position:
        return self.positions[0]

    @property
    def end(self) -> Position:
        return self.positions[1]


@dataclass(frozen=True)
class Checkpoint:
    """An ordered waypoint; `number` is its 1-based rank"""
    number: int
    position: Position


@dataclass(frozen=True)
class Path:
    """An ordered run of adjacent cells owned by one path id"""
    id: int
    cells: Tuple[Position, ...]
    is_complete: bool = True

    @property
    def head(self) -> Position:
        return self.cells[0]

    @property
    def tail(self) -> Position:
        return self.cells[-1]

    def __len__(self):
        return len(self.cells)


@dataclass(frozen=True)
class Puzzle:
    size: int
    mode: str = MODE_ENDPOINTS
    endpoints: Tuple[Endpoint, ...] = field(default_factory=tuple)
    checkpoints: Tuple[Checkpoint, ...] = field(default_factory=tuple)
    solution: Optional[Tuple[Path, ...]] = None
    provenance: str = PROVENANCE_GENERATED

    @classmethod
    def from_endpoint_pairs(cls, size, pairs, **kwargs):
        """Build an endpoint-mode puzzle from ((r, c), (r, c)) pairs, ids 1..k."""
        endpoints = tuple(Endpoint(i + 1, (a, b)) for i, (a, b) in enumerate(pairs))
        return cls(size=size, mode=MODE_ENDPOINTS, endpoints=endpoints, **kwargs)

    @classmethod
    def from_checkpoint_cells(cls, size, cells, **kwargs):
        """Build a checkpoint-mode puzzle; cells are given in rank order."""
        checkpoints = tuple(Checkpoint(i + 1, tuple(p)) for i, p in enumerate(cells))
        return cls(size=size, mode=MODE_CHECKPOINTS, checkpoints=checkpoints, **kwargs)

    @property
    def total_cells(self) -> int:
        return self.size * self.size

    @property
    def is_fallback(self) -> bool:
        return self.provenance == PROVENANCE_FALLBACK

    def without_solution(self) -> "Puzzle":
        """Copy safe to hand to a player: the solution is stripped."""
        return replace(self, solution=None)

    def solution_cells(self):
        """Flattened solution cells (a single list in checkpoint mode)."""
        if self.solution is None:
            return None
        cells = []
        for path in self.solution:
            cells.extend(path.cells)
        return cells

    def validate(self):
        """Raise InvalidPuzzleError if the puzzle is structurally malformed."""
        if self.size < 1:
            raise InvalidPuzzleError(f"Grid size must be positive, got {self.size}")
        if self.mode not in MODES:
            raise InvalidPuzzleError(f"Unknown puzzle mode {self.mode!r}")

        if self.mode == MODE_ENDPOINTS:
            self._validate_endpoints()
        else:
            self._validate_checkpoints()
        return self

    def _validate_endpoints(self):
        if not self.endpoints:
            raise InvalidPuzzleError("Endpoint puzzle has no endpoints")

        seen_ids = set()
        seen_cells = set()
        for ep in self.endpoints:
            if ep.id in seen_ids:
                raise InvalidPuzzleError(f"Duplicate endpoint id {ep.id}")
            seen_ids.add(ep.id)
            for pos in ep.positions:
                if not in_bounds(pos, self.size):
                    raise InvalidPuzzleError(
                        f"Endpoint {ep.id} position {pos} is outside a {self.size}x{self.size} grid"
                    )
                if pos in seen_cells:
                    raise InvalidPuzzleError(f"Endpoint {ep.id} position {pos} is already used")
                seen_cells.add(pos)

    def _validate_checkpoints(self):
        if len(self.checkpoints) < 2:
            raise InvalidPuzzleError("Checkpoint puzzle needs at least two checkpoints")

        seen_cells = set()
        for expected, cp in enumerate(self.checkpoints, start=1):
            if cp.number != expected:
                raise InvalidPuzzleError(
                    f"Checkpoint numbers must run 1..N without gaps; found {cp.number} at rank {expected}"
                )
            if not in_bounds(cp.position, self.size):
                raise InvalidPuzzleError(f"Checkpoint {cp.number} at {cp.position} is out of bounds")
            if cp.position in seen_cells:
                raise InvalidPuzzleError(f"Checkpoint {cp.number} shares cell {cp.position}")
            seen_cells.add(cp.position)

    def __repr__(self):
        clues = len(self.endpoints) if self.mode == MODE_ENDPOINTS else len(self.checkpoints)
        return (f"Puzzle(size={self.size}, mode={self.mode}, clues={clues}, "
                f"provenance={self.provenance}, solved={self.solution is not None})")
