"""
Solver errors and search limits.
"""

from __future__ import annotations

import os
from typing import Any

DEFAULT_MAX_STATES = 200000
DEFAULT_TIMEOUT = 3.0
DEFAULT_MAX_ATTEMPTS = 50

MAX_STATES_ENV = "PATHGRID_MAX_STATES"
TIMEOUT_ENV = "PATHGRID_SOLVER_TIMEOUT"
MAX_ATTEMPTS_ENV = "PATHGRID_MAX_ATTEMPTS"

STATUS_SUCCESS = "Success"
STATUS_NO_SOLUTION = "NoSolution"
STATUS_TIMEOUT = "Timeout"


class InvalidPuzzleError(ValueError):
    """
    Raised when a puzzle is structurally malformed: endpoints that coincide,
    cells outside the grid, or checkpoint numbers that are not 1..N.
    """

    def __init__(self, message: str, *, context: str | None = None) -> None:
        super().__init__(message)
        self.context = context


def resolve_limit(explicit: Any, env_name: str, default, cast=int):
    """
    Resolve a search limit with override support.

    Priority:
    1) explicit argument
    2) env <env_name>
    3) default

    Non-positive or unparsable values fall through to the default.
    """
    raw = explicit
    if raw is None:
        raw = os.getenv(env_name)
    if raw is None:
        return default

    try:
        limit = cast(raw)
        if limit > 0:
            return limit
    except (TypeError, ValueError):
        pass
    return default


def resolve_max_states(explicit: Any = None) -> int:
    return resolve_limit(explicit, MAX_STATES_ENV, DEFAULT_MAX_STATES)


def resolve_timeout(explicit: Any = None) -> float:
    return resolve_limit(explicit, TIMEOUT_ENV, DEFAULT_TIMEOUT, cast=float)


def resolve_max_attempts(explicit: Any = None) -> int:
    return resolve_limit(explicit, MAX_ATTEMPTS_ENV, DEFAULT_MAX_ATTEMPTS)
