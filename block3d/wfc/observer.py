"""Solver observers for progress reporting and visualization feeds."""

from __future__ import annotations

from typing import Callable, Iterable, Protocol, runtime_checkable

from block3d.core.types import Position

from .state import Candidate


@runtime_checkable
class SolverObserver(Protocol):
    """Receives solver events. Observers must not mutate the grid."""

    def on_collapse(self, position: Position, candidate: Candidate) -> None:
        ...

    def on_propagate(self, positions: Iterable[Position]) -> None:
        ...

    def on_backtrack(self, position: Position, candidate: Candidate) -> None:
        ...


class ProgressObserver:
    """
    Reports the number of collapsed nodes after every collapse or backtrack.

    Usage:
        observer = ProgressObserver(total, lambda done, total: bar.update(...))
    """

    def __init__(self, total: int, callback: Callable[[int, int], None]):
        """
        Args:
            total: Number of nodes in the grid
            callback: Called with (collapsed_count, total)
        """
        self.total = total
        self.callback = callback
        self.collapsed = 0
        self.backtracks = 0

    def on_collapse(self, position: Position, candidate: Candidate) -> None:
        self.collapsed += 1
        self.callback(self.collapsed, self.total)

    def on_propagate(self, positions: Iterable[Position]) -> None:
        pass

    def on_backtrack(self, position: Position, candidate: Candidate) -> None:
        self.backtracks += 1
        self.collapsed = max(0, self.collapsed - 1)
        self.callback(self.collapsed, self.total)
