import random

from pathgrid.geometry import neighbors_in_bounds, snake_path

DEBUG_MODE = False


class HamiltonianPathGenerator:
    """
    Builds a path that visits every cell of a size x size grid exactly once.

    DFS backtracking from a shuffled list of corner / edge-midpoint starts,
    ordering moves by Warnsdorff's rule (fewest onward unvisited neighbours
    first, random tie-break). Falls back to a boustrophedon snake if every
    start exhausts its step budget, so a path is always returned.
    """

    MAX_STEPS_PER_START = 20000

    def __init__(self, size, rng=None):
        self.size = size
        self.rng = rng or random.Random()
        self.used_fallback = False
        self.steps = 0

    def generate(self):
        self.used_fallback = False

        for start in self._start_candidates():
            path = self._search_from(start)
            if path:
                if DEBUG_MODE:
                    print(f"[GEN DEBUG] Hamiltonian path from {start} in {self.steps} steps")
                return path

        # Every start failed: the snake is always a valid Hamiltonian path
        if DEBUG_MODE:
            print(f"[GEN DEBUG] Hamiltonian search failed on {self.size}x{self.size}, using snake")
        self.used_fallback = True
        return snake_path(self.size)

    def _start_candidates(self):
        n = self.size
        starts = [
            (0, 0), (0, n - 1), (n - 1, 0), (n - 1, n - 1),
            (n // 2, 0), (0, n // 2),
        ]
        # dedupe, keeping order
        starts = list(dict.fromkeys(starts))
        self.rng.shuffle(starts)

        if n % 2 == 1:
            # On odd grids a Hamiltonian path must start on the majority colour
            starts = [s for s in starts if (s[0] + s[1]) % 2 == 0]
        return starts

    def _search_from(self, start):
        total = self.size * self.size
        visited = {start}
        path = [start]
        self.steps = 0

        def onward_degree(cell):
            return sum(1 for nb in neighbors_in_bounds(cell, self.size) if nb not in visited)

        def backtrack(current):
            if len(path) == total:
                return True

            self.steps += 1
            if self.steps > self.MAX_STEPS_PER_START:
                return False

            candidates = [nb for nb in neighbors_in_bounds(current, self.size) if nb not in visited]
            self.rng.shuffle(candidates)
            # Warnsdorff: stable sort keeps the shuffle as tie-break
            candidates.sort(key=onward_degree)

            for nxt in candidates:
                visited.add(nxt)
                path.append(nxt)

                if backtrack(nxt):
                    return True

                # Backtrack (Undo step)
                path.pop()
                visited.remove(nxt)

            return False

        if backtrack(start):
            return list(path)
        return None


def generate_hamiltonian_path(size, rng=None):
    """A list of size*size positions forming a Hamiltonian path."""
    return HamiltonianPathGenerator(size, rng=rng).generate()
