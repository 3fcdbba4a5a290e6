"""Error taxonomy for the WFC solver.

Only NoSolution, BudgetExceeded and InvalidConfiguration ever reach a caller.
Contradiction is raised and resolved inside the solver's backtracking loop.
"""

from __future__ import annotations

from block3d.core.types import Position


class SolveError(Exception):
    """Base exception for solver errors."""

    pass


class Contradiction(SolveError):
    """A node's domain emptied. Internal; always resolved by backtracking."""

    def __init__(self, position: Position):
        super().__init__(f"Contradiction at {tuple(position)}")
        self.position = position


class NoSolution(SolveError):
    """Backtracking exhausted the history without a feasible assignment."""

    def __init__(self, message: str = "No solution found", position: Position | None = None):
        super().__init__(message)
        self.position = position


class BudgetExceeded(SolveError):
    """A backtrack or wall-clock cutoff was reached, or the solve was cancelled.

    Distinct from NoSolution: the problem may still be feasible.
    """

    def __init__(self, reason: str, backtracks: int = 0, elapsed: float = 0.0):
        super().__init__(
            f"Solve budget exceeded: {reason} "
            f"(backtracks={backtracks}, elapsed={elapsed:.3f}s)"
        )
        self.reason = reason
        self.backtracks = backtracks
        self.elapsed = elapsed


class InvalidConfiguration(SolveError):
    """Rejected at entry; no grid state was changed."""

    def __init__(self, message: str, position: Position | None = None):
        super().__init__(message)
        self.position = position
