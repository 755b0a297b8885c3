"""
Game Validators
===============
Functions to validate player-drawn paths against a puzzle: single-step
move legality, the win condition and completion statistics.
"""

from pathgrid.geometry import are_adjacent, in_bounds, is_simple_path
from pathgrid.puzzle import MODE_CHECKPOINTS


def is_valid_move(puzzle, paths, path_id, to):
    """
    Check if extending path `path_id` onto cell `to` is legal.
    `paths` maps path id -> list of cells drawn so far.
    Returns: (bool, reason)
    """
    cells = paths.get(path_id)
    if not cells:
        return False, "Path has not been started"

    tip = cells[-1]
    if not in_bounds(to, puzzle.size):
        return False, "Out of bounds"
    if not are_adjacent(tip, to):
        return False, "Not adjacent to path tip"

    # Stepping back onto the previous cell undoes the last step
    if len(cells) >= 2 and cells[-2] == to:
        return True, "OK"

    if to in cells:
        return False, "Path would cross itself"

    for other_id, other_cells in paths.items():
        if other_id != path_id and to in other_cells:
            return False, "Cell belongs to another path"

    if puzzle.mode == MODE_CHECKPOINTS:
        return _check_checkpoint_order(puzzle, cells, to)

    for ep in puzzle.endpoints:
        if ep.id != path_id and to in ep.positions:
            return False, "Cell is another path's endpoint"
    return True, "OK"


def _check_checkpoint_order(puzzle, cells, to):
    rank = _checkpoint_ranks(puzzle)
    if to not in rank:
        return True, "OK"
    visited = sum(1 for c in cells if c in rank)
    if rank[to] != visited + 1:
        return False, f"Checkpoint {rank[to]} reached out of order"
    return True, "OK"


def _checkpoint_ranks(puzzle):
    return {cp.position: cp.number for cp in puzzle.checkpoints}


def check_win_condition(puzzle, paths):
    """
    Verify a full answer. `paths` is a sequence of Path objects (the
    solver's output has the same shape).
    Returns: (bool, reason)
    """
    if puzzle.mode == MODE_CHECKPOINTS:
        return _check_checkpoint_win(puzzle, paths)
    return _check_endpoint_win(puzzle, paths)


def _check_checkpoint_win(puzzle, paths):
    if len(paths) != 1:
        return False, "Checkpoint puzzles take exactly one path"
    cells = list(paths[0].cells)

    if not is_simple_path(cells, puzzle.size):
        return False, "Path is not a simple chain of adjacent cells"
    if len(cells) != puzzle.total_cells:
        return False, "Path does not fill every cell"

    index = {cell: i for i, cell in enumerate(cells)}
    positions = [index[cp.position] for cp in puzzle.checkpoints]
    if positions[0] != 0 or positions[-1] != len(cells) - 1:
        return False, "Path must start at the first checkpoint and end at the last"
    for a, b in zip(positions, positions[1:]):
        if b <= a:
            return False, "Checkpoints visited out of order"
    return True, "OK"


def _check_endpoint_win(puzzle, paths):
    by_id = {p.id: p for p in paths}
    covered = set()

    for ep in puzzle.endpoints:
        path = by_id.get(ep.id)
        if path is None:
            return False, f"Path {ep.id} is missing"
        cells = list(path.cells)
        if not is_simple_path(cells, puzzle.size):
            return False, f"Path {ep.id} is not a simple chain of adjacent cells"
        if {cells[0], cells[-1]} != set(ep.positions):
            return False, f"Path {ep.id} does not join its endpoints"
        if covered.intersection(cells):
            return False, f"Path {ep.id} overlaps another path"
        covered.update(cells)

    if len(by_id) != len(puzzle.endpoints):
        return False, "Unknown path ids in answer"
    if len(covered) != puzzle.total_cells:
        return False, "Not every cell is covered"
    return True, "OK"


def get_completion_stats(puzzle, paths):
    """
    Progress summary for partially drawn paths (`paths` maps id -> cells).
    percent_complete weights cell coverage at 70% and clue progress at 30%.
    """
    total_cells = puzzle.total_cells
    filled = set()
    for cells in paths.values():
        filled.update(cells)

    if puzzle.mode == MODE_CHECKPOINTS:
        rank = _checkpoint_ranks(puzzle)
        done = 0
        for cells in paths.values():
            for cell in cells:
                if rank.get(cell) == done + 1:
                    done += 1
        total_clues = len(puzzle.checkpoints)
    else:
        done = 0
        for ep in puzzle.endpoints:
            cells = paths.get(ep.id) or []
            if len(cells) >= 2 and {cells[0], cells[-1]} == set(ep.positions):
                done += 1
        total_clues = len(puzzle.endpoints)

    clue_progress = done / total_clues if total_clues else 0.0
    cell_progress = len(filled) / total_cells
    return {
        "clues_done": done,
        "total_clues": total_clues,
        "cells_filled": len(filled),
        "total_cells": total_cells,
        "percent_complete": round((clue_progress * 0.3 + cell_progress * 0.7) * 100),
    }
