"""
Invariants: validity rules that go beyond pairwise adjacency.

An invariant answers two questions:
- check(): may this candidate sit at this node, given the rest of the grid?
- propagate(): when the node at a position changes, which positions other
  than its direct neighbors need to be re-evaluated?

Invariants compose conjunctively: a candidate survives only if every
registered invariant accepts it.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Iterable, Protocol, runtime_checkable

from block3d.core.block import Block
from block3d.core.orientation import ORIENTATIONS, Orientation
from block3d.core.types import Face, Position

from .state import Candidate, NodeState

if TYPE_CHECKING:
    from .compatibility import CompatibilityTable
    from .grid import Grid


@runtime_checkable
class Invariant(Protocol):
    """Protocol for solver invariants."""

    @property
    def name(self) -> str:
        """Human-readable invariant name for logging."""
        ...

    def check(self, candidate: Candidate, node: NodeState, grid: Grid) -> bool:
        """Whether candidate is valid at node given the current grid."""
        ...

    def propagate(self, position: Position, grid: Grid) -> set[Position]:
        """Extra positions to re-evaluate after the node at position changed."""
        ...


class BaseInvariant(ABC):
    """
    Base class for invariants.

    Provides a name derived from the class name and an empty propagate().
    """

    @property
    def name(self) -> str:
        # SupportInvariant -> support
        class_name = self.__class__.__name__
        if class_name.endswith("Invariant"):
            class_name = class_name[:-9]
        return re.sub(r"(?<!^)(?=[A-Z])", "_", class_name).lower()

    @abstractmethod
    def check(self, candidate: Candidate, node: NodeState, grid: Grid) -> bool:
        ...

    def propagate(self, position: Position, grid: Grid) -> set[Position]:
        return set()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


# -----------------------------------------------------------------------------
# Footprint helpers
# -----------------------------------------------------------------------------


def footprint_reach(
    blocks: Iterable[Block],
    orientations: Iterable[Orientation] = ORIENTATIONS,
) -> tuple[int, int, int]:
    """Largest rotated footprint along each axis across a catalog."""
    orientations = tuple(orientations)
    reach = (1, 1, 1)
    for block in blocks:
        for orientation in orientations:
            w, h, d = block.footprint(orientation)
            reach = (max(reach[0], w), max(reach[1], h), max(reach[2], d))
    return reach


def _covers(anchor: Position, candidate: Candidate, cell: Position) -> bool:
    w, h, d = candidate.block.footprint(candidate.orientation)
    return (
        anchor.x <= cell.x < anchor.x + w
        and anchor.y <= cell.y < anchor.y + h
        and anchor.z <= cell.z < anchor.z + d
    )


def covering_block(
    grid: Grid,
    cell: Position,
    reach: tuple[int, int, int],
    ignore: Position | None = None,
) -> Position | None:
    """Anchor of a collapsed solid block whose footprint fills cell, if any."""
    rw, rh, rd = reach
    for x in range(cell.x - rw + 1, cell.x + 1):
        for y in range(cell.y - rh + 1, cell.y + 1):
            for z in range(cell.z - rd + 1, cell.z + 1):
                anchor = Position(x, y, z)
                if anchor == ignore:
                    continue
                node = grid.get_node(anchor)
                if node is None or not node.collapsed:
                    continue
                value = node.value
                if value.block.solid and _covers(anchor, value, cell):
                    return anchor
    return None


def _footprint_span(position: Position, grid: Grid) -> tuple[tuple[int, int], tuple[int, int]]:
    """Half-open x and z ranges covered by the node's value (just the node if uncollapsed)."""
    value = grid.value(position)
    w, _, d = value.block.footprint(value.orientation) if value is not None else (1, 1, 1)
    return (position.x, position.x + w), (position.z, position.z + d)


# -----------------------------------------------------------------------------
# Concrete invariants
# -----------------------------------------------------------------------------


class SupportInvariant(BaseInvariant):
    """
    Gravity: solid blocks must rest on the floor or on something solid.

    A solid candidate is valid if its footprint sits on layer 0, or if at
    least one cell directly beneath its footprint is filled by a collapsed
    solid block or could still hold a solid candidate. With a compatibility
    table, the cell directly beneath the anchor must also be able to mate
    with the candidate's bottom face.

    Non-solid (air) candidates are always valid.
    """

    def __init__(
        self,
        reach: tuple[int, int, int] = (1, 1, 1),
        compatibility: CompatibilityTable | None = None,
    ):
        """
        Args:
            reach: Largest footprint in the catalog (see footprint_reach)
            compatibility: Optional table the direct supporter must satisfy
        """
        self.reach = reach
        self.compatibility = compatibility

    def check(self, candidate: Candidate, node: NodeState, grid: Grid) -> bool:
        if not candidate.block.solid:
            return True
        pos = node.position
        if pos.y == 0:
            return True

        w, _, d = candidate.block.footprint(candidate.orientation)
        for dx in range(w):
            for dz in range(d):
                cell = Position(pos.x + dx, pos.y - 1, pos.z + dz)
                if self._supports(grid, cell, candidate, direct=(dx == 0 and dz == 0)):
                    return True
        return False

    def _supports(self, grid: Grid, cell: Position, candidate: Candidate, direct: bool) -> bool:
        below = grid.get_node(cell)
        if below is None:
            return False
        options = below.domain if not below.collapsed else (below.value,)
        for option in options:
            if option.block.solid and (not direct or self._mates(option, candidate)):
                return True
        # The cell's own value was judged above; only blocks anchored elsewhere remain
        return covering_block(grid, cell, self.reach, ignore=cell) is not None

    def _mates(self, supporter: Candidate, candidate: Candidate) -> bool:
        if self.compatibility is None:
            return True
        return self.compatibility.candidate_compatible(supporter, Face.TOP, candidate)

    def propagate(self, position: Position, grid: Grid) -> set[Position]:
        """
        Every anchor above the node whose footprint could rest on it.

        A multi-cell block anchored beside the column still stands partly
        on this node, so the window reaches back by the catalog's footprint.
        """
        xs, zs = _footprint_span(position, grid)
        rw, _, rd = self.reach
        return {
            Position(x, y, z)
            for x in range(xs[0] - rw + 1, xs[1])
            for y in range(position.y + 1, grid.dimensions.height)
            for z in range(zs[0] - rd + 1, zs[1])
            if Position(x, y, z) in grid
        }


class BoundsInvariant(BaseInvariant):
    """The rotated footprint must fit entirely inside the grid."""

    def check(self, candidate: Candidate, node: NodeState, grid: Grid) -> bool:
        pos = node.position
        w, h, d = candidate.block.footprint(candidate.orientation)
        width, height, depth = grid.dimensions
        return pos.x + w <= width and pos.y + h <= height and pos.z + d <= depth


class CollisionInvariant(BaseInvariant):
    """
    Solid footprints may not overlap.

    A multi-cell block fills the cells beside its anchor; those cells must
    then hold non-solid (air) candidates.
    """

    def __init__(self, reach: tuple[int, int, int] = (1, 1, 1)):
        """
        Args:
            reach: Largest footprint in the catalog (see footprint_reach)
        """
        self.reach = reach

    def check(self, candidate: Candidate, node: NodeState, grid: Grid) -> bool:
        if not candidate.block.solid:
            return True
        for cell in candidate.block.occupied_positions(node.position, candidate.orientation):
            if covering_block(grid, cell, self.reach, ignore=node.position) is not None:
                return False
        return True

    def propagate(self, position: Position, grid: Grid) -> set[Position]:
        """Every anchor whose footprint could reach the collapsed footprint."""
        value = grid.value(position)
        if value is None or not value.block.solid:
            return set()
        w, h, d = value.block.footprint(value.orientation)
        rw, rh, rd = self.reach
        affected = {
            Position(x, y, z)
            for x in range(position.x - rw + 1, position.x + w)
            for y in range(position.y - rh + 1, position.y + h)
            for z in range(position.z - rd + 1, position.z + d)
        }
        affected.discard(position)
        return {pos for pos in affected if pos in grid}
