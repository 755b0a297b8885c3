"""
Checkpoint placement along a full-coverage path.
"""

import math
from typing import List, Sequence

from pathgrid.geometry import Position, clamp
from pathgrid.puzzle import Checkpoint


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def place_checkpoints(path: Sequence[Position], count: int) -> List[Checkpoint]:
    """
    Spread `count` ranked checkpoints over `path`.

    Rank 1 sits on the first cell and rank `count` on the last; inner ranks
    land at round(i * L / (count - 1)), held back far enough from the end
    that every later rank still gets its own cell (the last inner rank is
    never past L - 2).
    Spacing is only approximately even when count - 1 does not divide L.
    """
    length = len(path)
    count = clamp(count, 2, length)

    checkpoints = [Checkpoint(number=1, position=tuple(path[0]))]

    spacing = length / (count - 1)
    for i in range(1, count - 1):
        index = min(_round_half_up(spacing * i), length - count + i)
        checkpoints.append(Checkpoint(number=i + 1, position=tuple(path[index])))

    checkpoints.append(Checkpoint(number=count, position=tuple(path[-1])))
    return checkpoints
