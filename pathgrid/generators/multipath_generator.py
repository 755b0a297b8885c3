import random

from pathgrid.geometry import all_cells, in_bounds, neighbors_in_bounds, snake_path
from pathgrid.puzzle import PROVENANCE_FALLBACK, PROVENANCE_GENERATED, Path, Puzzle
from pathgrid.solvers.path_solver import PathCoverSolver
from pathgrid.solvers.solver_errors import resolve_max_attempts

DEBUG_MODE = False


class MultiPathGenerator:
    """
    Partitions the grid into `path_count` vertex-disjoint simple paths that
    together cover every cell, then turns each path's ends into an endpoint
    pair.

    Each attempt grows paths with a randomized Warnsdorff walk (from both
    ends once the tail is boxed in), mops up leftover cells by stretching
    path ends or splicing detours, and has the solver confirm the layout.
    Failed attempts restart from an empty grid; after `max_attempts` a
    deterministic snake-segment layout is returned instead.
    """

    MAX_EXTENSION_ATTEMPTS = 100
    VERIFY_TIMEOUT = 1.0
    VERIFY_MAX_STATES = 50000

    def __init__(self, size, path_count, rng=None, max_attempts=None,
                 verify_timeout=None, verify_max_states=None):
        self.size = size
        self.path_count = path_count
        self.rng = rng or random.Random()
        self.max_attempts = resolve_max_attempts(max_attempts)
        self.verify_timeout = verify_timeout or self.VERIFY_TIMEOUT
        self.verify_max_states = verify_max_states or self.VERIFY_MAX_STATES

        total = size * size
        base = total // path_count
        self.min_length = max(3, base - 2)
        self.max_length = base + 3

        self.attempts_used = 0
        self.failures = {"short_path": 0, "stuck_mop_up": 0, "unsolved": 0}

    def generate(self):
        for attempt in range(1, self.max_attempts + 1):
            self.attempts_used = attempt
            puzzle = self.generate_filled_puzzle()
            if puzzle is not None:
                if DEBUG_MODE:
                    print(f"[GEN DEBUG] {self.path_count} paths on {self.size}x{self.size} "
                          f"after {attempt} attempt(s)")
                return puzzle

        if DEBUG_MODE:
            print(f"[GEN DEBUG] Giving up after {self.max_attempts} attempts "
                  f"({self.failures}), using snake segments")
        return self.fallback_puzzle()

    # ── Single attempt ─────────────────────────────────────────

    def generate_filled_puzzle(self):
        """One partition + mop-up + verification attempt. None on failure."""
        grid = [[None] * self.size for _ in range(self.size)]
        paths = []
        remaining = self.size * self.size

        for pid in range(1, self.path_count + 1):
            start = self._pick_start(grid, paths)
            if start is None:
                self.failures["short_path"] += 1
                return None

            target = self._target_length(remaining, self.path_count - pid + 1)
            path = self._grow(grid, pid, start, target)
            if len(path) < self.min_length:
                for r, c in path:
                    grid[r][c] = None
                self.failures["short_path"] += 1
                return None
            paths.append(path)
            remaining -= len(path)

        if not self._mop_up(grid, paths):
            self.failures["stuck_mop_up"] += 1
            return None

        solution = tuple(Path(id=i + 1, cells=tuple(p)) for i, p in enumerate(paths))
        puzzle = Puzzle.from_endpoint_pairs(
            self.size,
            [(p[0], p[-1]) for p in paths],
            solution=solution,
            provenance=PROVENANCE_GENERATED,
        )

        result = PathCoverSolver(
            puzzle,
            timeout=self.verify_timeout,
            max_states=self.verify_max_states,
        ).solve()
        if not result["success"]:
            self.failures["unsolved"] += 1
            return None
        return puzzle

    def _target_length(self, remaining, paths_left):
        """
        Random target in [min_length, max_length], capped so every later
        path still has room for min_length cells. The last path aims to
        take whatever is left.
        """
        if paths_left <= 1:
            return max(remaining, self.min_length)
        target = self.rng.randint(self.min_length, self.max_length)
        cap = remaining - (paths_left - 1) * self.min_length
        return max(self.min_length, min(target, cap))

    def _empty_degree(self, grid, cell):
        return sum(1 for r, c in neighbors_in_bounds(cell, self.size) if grid[r][c] is None)

    def _pick_start(self, grid, paths):
        """
        Empty cell with the fewest empty neighbours, so corners and pockets
        become path ends. Later paths stay next to placed ones so no region
        gets walled off.
        """
        empty = [p for p in all_cells(self.size) if grid[p[0]][p[1]] is None]
        if not empty:
            return None
        if paths:
            frontier = [p for p in empty
                        if any(grid[r][c] is not None for r, c in neighbors_in_bounds(p, self.size))]
            if frontier:
                empty = frontier

        degree = {p: self._empty_degree(grid, p) for p in empty}
        fewest = min(degree.values())
        return self.rng.choice([p for p in empty if degree[p] == fewest])

    def _next_cell(self, grid, cell, steps_left):
        """
        Empty neighbour to walk into, by Warnsdorff's rule with a shuffled
        tie-break. A cell with no onward exits ends the walk, so it is only
        taken on the last step or when nothing else is free.
        """
        options = [nb for nb in neighbors_in_bounds(cell, self.size) if grid[nb[0]][nb[1]] is None]
        if not options:
            return None
        self.rng.shuffle(options)
        degree = {nb: self._empty_degree(grid, nb) for nb in options}
        options.sort(key=lambda nb: degree[nb])

        if steps_left > 1:
            for nb in options:
                if degree[nb] > 0:
                    return nb
        return options[0]

    def _grow(self, grid, pid, start, target):
        """Walk from the tail; once the tail is boxed in, keep going from the head."""
        grid[start[0]][start[1]] = pid
        path = [start]
        at_tail = True
        attempts = 0

        while len(path) < target and attempts < self.MAX_EXTENSION_ATTEMPTS:
            attempts += 1
            end = path[-1] if at_tail else path[0]
            nxt = self._next_cell(grid, end, target - len(path))
            if nxt is None:
                if not at_tail:
                    break
                at_tail = False
                continue

            grid[nxt[0]][nxt[1]] = pid
            if at_tail:
                path.append(nxt)
            else:
                path.insert(0, nxt)
        return path

    def _mop_up(self, grid, paths):
        """
        Stretch path ends into leftover cells until the grid is full. When no
        end can move, detour a path through a pair of leftover cells beside
        one of its steps.
        """
        remaining = sum(1 for row in grid for cell in row if cell is None)

        while remaining > 0:
            order = list(range(len(paths)))
            self.rng.shuffle(order)
            extended = False

            for idx in order:
                path = paths[idx]
                ends = [True, False]  # True = tail
                self.rng.shuffle(ends)
                for at_tail in ends:
                    nxt = self._next_cell(grid, path[-1] if at_tail else path[0], 1)
                    if nxt is None:
                        continue
                    grid[nxt[0]][nxt[1]] = idx + 1
                    if at_tail:
                        path.append(nxt)
                    else:
                        path.insert(0, nxt)
                    remaining -= 1
                    extended = True
                    break

            if not extended:
                absorbed = self._splice(grid, paths)
                if not absorbed:
                    return False
                remaining -= absorbed
        return True

    def _splice(self, grid, paths):
        """
        Replace a step a -> b with a -> x -> y -> b, where x and y are empty
        cells beside a and b. Returns the number of cells absorbed (0 or 2).
        """
        order = list(range(len(paths)))
        self.rng.shuffle(order)

        for idx in order:
            path = paths[idx]
            for i in range(len(path) - 1):
                a, b = path[i], path[i + 1]
                dr, dc = b[0] - a[0], b[1] - a[1]
                # both sides perpendicular to the step
                for sr, sc in ((dc, dr), (-dc, -dr)):
                    x = (a[0] + sr, a[1] + sc)
                    y = (b[0] + sr, b[1] + sc)
                    if not (in_bounds(x, self.size) and in_bounds(y, self.size)):
                        continue
                    if grid[x[0]][x[1]] is None and grid[y[0]][y[1]] is None:
                        grid[x[0]][x[1]] = idx + 1
                        grid[y[0]][y[1]] = idx + 1
                        path[i + 1:i + 1] = [x, y]
                        return 2
        return 0

    # ── Fallback ───────────────────────────────────────────────

    def fallback_puzzle(self):
        """
        The snake traversal cut into `path_count` runs whose lengths differ
        by at most one. With one path per row the pairs span the rows.
        """
        snake = snake_path(self.size)
        base, extra = divmod(len(snake), self.path_count)

        segments = []
        pos = 0
        for i in range(self.path_count):
            length = base + (1 if i < extra else 0)
            segments.append(snake[pos:pos + length])
            pos += length

        solution = tuple(Path(id=i + 1, cells=tuple(s)) for i, s in enumerate(segments))
        return Puzzle.from_endpoint_pairs(
            self.size,
            [(s[0], s[-1]) for s in segments],
            solution=solution,
            provenance=PROVENANCE_FALLBACK,
        )


def generate_filled_puzzle(size, path_count, rng=None):
    """A single generation attempt: a verified Puzzle, or None."""
    return MultiPathGenerator(size, path_count, rng=rng).generate_filled_puzzle()
