"""
Heuristics: which node to collapse next, and to what.

Randomness always comes from the random.Random instance the solver passes
in, never from the module-level generator, so two solvers with the same seed
make the same choices even when they run side by side.
"""

from __future__ import annotations

import random
from typing import TYPE_CHECKING, Mapping, Protocol, Sequence, runtime_checkable

from block3d.core.block import BlockKind
from block3d.core.types import Position

from .state import Candidate, NodeState

if TYPE_CHECKING:
    from .grid import Grid


@runtime_checkable
class Heuristic(Protocol):
    """Protocol for node and candidate selection policies."""

    def select_node(self, grid: Grid) -> Position | None:
        """Pick the next node to collapse, or None when all are collapsed."""
        ...

    def select_state(
        self,
        node: NodeState,
        domain: Sequence[Candidate],
        rng: random.Random,
    ) -> Candidate:
        """Pick one candidate from a non-empty eligible domain."""
        ...


class WeightedRandomHeuristic:
    """
    Minimum entropy node selection with weighted random candidate choice.

    select_node() returns the uncollapsed node with the fewest candidates.
    Ties go to the lexicographically smallest position, which is simply the
    first one met in grid order.

    select_state() draws proportionally to a per-kind weight, falling back to
    each block's own weight for kinds that are not listed.
    """

    def __init__(self, kind_weights: Mapping[BlockKind, float] | None = None):
        """
        Args:
            kind_weights: Preference weight per block kind (missing kinds use
                          Block.weight)
        """
        self.kind_weights: dict[BlockKind, float] = dict(kind_weights or {})

    def select_node(self, grid: Grid) -> Position | None:
        best: NodeState | None = None
        for node in grid.uncollapsed():
            if best is None or node.entropy < best.entropy:
                best = node
        return best.position if best is not None else None

    def weight_of(self, candidate: Candidate) -> float:
        return self.kind_weights.get(candidate.block.kind, candidate.block.weight)

    def select_state(
        self,
        node: NodeState,
        domain: Sequence[Candidate],
        rng: random.Random,
    ) -> Candidate:
        if not domain:
            raise ValueError(f"Cannot select from an empty domain at {tuple(node.position)}")
        weights = [self.weight_of(candidate) for candidate in domain]
        if sum(weights) <= 0:
            # Nothing preferred; fall back to a uniform draw
            return domain[rng.randrange(len(domain))]
        return rng.choices(domain, weights=weights, k=1)[0]


class GroundUpHeuristic(WeightedRandomHeuristic):
    """
    Build layer by layer from the floor.

    Selects the lowest uncollapsed layer first, then minimum entropy, then
    position. Gravity-constrained builds hit far fewer contradictions when
    supports are settled before what rests on them.
    """

    def select_node(self, grid: Grid) -> Position | None:
        best: NodeState | None = None
        for node in grid.uncollapsed():
            if best is None or (node.position.y, node.entropy) < (best.position.y, best.entropy):
                best = node
        return best.position if best is not None else None
