"""
Grid representation for Wave Function Collapse.

The Grid is the "wave function" - a dense 3D arena of nodes where each node
is in superposition (multiple candidates) until it collapses to a single
definite (block, orientation) pair.

Nodes live in a flat list addressed by Dimensions.index(), so neighbor
lookup is arithmetic and iteration order is the lexicographic position order.
"""

from __future__ import annotations

from typing import Callable, Iterable, Iterator

from block3d.core.types import Dimensions, Face, Position

from .errors import InvalidConfiguration
from .state import Candidate, NodeSnapshot, NodeState

# Called with a node's position and prior state just before the node changes
ChangeHook = Callable[[Position, NodeSnapshot], None]


class Grid:
    """
    The 3D grid of nodes representing the wave function.

    Domains only shrink through constrain()/exclude()/collapse(). The one way
    to grow a domain again is restore(), which puts back a whole snapshot.
    """

    def __init__(
        self,
        dimensions: Dimensions | tuple[int, int, int],
        candidates: Iterable[Candidate] = (),
    ):
        """
        Create a grid with every node in the same initial superposition.

        Args:
            dimensions: (width, height, depth); every component must be positive
            candidates: Initial domain for every node

        Raises:
            InvalidConfiguration: If any dimension is zero or negative
        """
        dims = Dimensions(*dimensions)
        if not dims.is_valid():
            raise InvalidConfiguration(f"Grid dimensions must be positive, got {tuple(dims)}")

        self.dimensions = dims
        domain = tuple(candidates)
        self._nodes: list[NodeState] = [
            NodeState(position=pos, domain=domain) for pos in dims.positions()
        ]
        self.before_change: ChangeHook | None = None

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, pos: object) -> bool:
        return isinstance(pos, tuple) and len(pos) == 3 and self.dimensions.contains(Position(*pos))

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def node(self, pos: Position) -> NodeState:
        """Get the node at a position. Raises KeyError if out of bounds."""
        if not self.dimensions.contains(pos):
            raise KeyError(pos)
        return self._nodes[self.dimensions.index(pos)]

    def get_node(self, pos: Position) -> NodeState | None:
        """Get the node at a position, or None if out of bounds."""
        if self.dimensions.contains(pos):
            return self._nodes[self.dimensions.index(pos)]
        return None

    def domain(self, pos: Position) -> tuple[Candidate, ...]:
        return self.node(pos).domain

    def entropy(self, pos: Position) -> int:
        return self.node(pos).entropy

    def value(self, pos: Position) -> Candidate | None:
        return self.node(pos).value

    def nodes(self) -> Iterator[NodeState]:
        """Iterate over all nodes in position order."""
        yield from self._nodes

    def neighbors(self, pos: Position) -> Iterator[tuple[Position, Face]]:
        """
        Yield in-bounds neighbors of a position with the face they lie across.

        The face is FROM the input position TO the neighbor,
        e.g. (neighbor, Face.TOP) means the neighbor sits directly above.
        """
        for face in Face:
            neighbor = pos + face
            if self.dimensions.contains(neighbor):
                yield neighbor, face

    def uncollapsed(self) -> Iterator[NodeState]:
        return (node for node in self._nodes if not node.collapsed)

    def is_complete(self) -> bool:
        """Check if all nodes have collapsed."""
        return all(node.collapsed for node in self._nodes)

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def _touch(self, node: NodeState) -> None:
        if self.before_change is not None:
            self.before_change(node.position, node.snapshot())

    def constrain(self, pos: Position, keep: Callable[[Candidate], bool]) -> bool:
        """Remove candidates that keep() rejects. Returns True if the domain changed."""
        node = self.node(pos)
        before = node.snapshot()
        if not node.constrain(keep):
            return False
        if self.before_change is not None:
            self.before_change(pos, before)
        return True

    def exclude(self, pos: Position, candidates: Iterable[Candidate]) -> bool:
        """Remove specific candidates from a node's domain."""
        excluded = set(candidates)
        return self.constrain(pos, lambda c: c not in excluded)

    def collapse(self, pos: Position, candidate: Candidate) -> None:
        """Fix a node to one candidate from its current domain."""
        node = self.node(pos)
        if candidate not in node.domain:
            raise ValueError(f"{candidate} is not in the domain of {tuple(pos)}")
        self._touch(node)
        node.collapse_to(candidate)

    def restore(self, pos: Position, snapshot: NodeSnapshot) -> None:
        """Replace a node's state with a prior snapshot (backtracking only)."""
        node = self.node(pos)
        self._touch(node)
        node.restore(snapshot)

