"""
Per-position superposition state.

Each node holds the (block, orientation) candidates still possible at its
position. Before collapse the domain may hold many candidates; after
collapse it holds exactly one.

Domains are tuples kept in catalog x orientation order so that iteration,
weighted choice and tie-breaking are reproducible across runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, NamedTuple

from block3d.core.block import Block
from block3d.core.orientation import Orientation
from block3d.core.types import Position


class Candidate(NamedTuple):
    """A block placed with a specific orientation."""

    block: Block
    orientation: Orientation

    def __str__(self) -> str:
        return f"{self.block.name}@{self.orientation.degrees}"


class NodeSnapshot(NamedTuple):
    """Immutable copy of a node's state, used for exact backtracking."""

    domain: tuple[Candidate, ...]
    collapsed: bool


@dataclass(eq=False)
class NodeState:
    """
    A single node in the WFC grid.

    The "entropy" of a node is how uncertain we are about it.
    Lower entropy = fewer possibilities = more constrained.
    """

    position: Position
    domain: tuple[Candidate, ...] = ()
    collapsed: bool = False

    def __hash__(self):
        """Hash by position - nodes are unique by their grid location."""
        return hash(self.position)

    def __eq__(self, other):
        if not isinstance(other, NodeState):
            return False
        return self.position == other.position

    @property
    def entropy(self) -> int:
        return len(self.domain)

    @property
    def value(self) -> Candidate | None:
        """The chosen candidate, or None if not yet collapsed."""
        if self.collapsed and self.domain:
            return self.domain[0]
        return None

    def collapse_to(self, candidate: Candidate) -> None:
        """Fix this node to a single candidate from its domain."""
        if candidate not in self.domain:
            raise ValueError(f"{candidate} is not in the domain of {tuple(self.position)}")
        self.domain = (candidate,)
        self.collapsed = True

    def constrain(self, keep: Callable[[Candidate], bool]) -> bool:
        """
        Drop every candidate that keep() rejects.

        Only ever removes; returns True if the domain changed.
        """
        remaining = tuple(c for c in self.domain if keep(c))
        if len(remaining) == len(self.domain):
            return False
        self.domain = remaining
        return True

    def exclude(self, candidates: Iterable[Candidate]) -> bool:
        """Remove specific candidates. Returns True if the domain changed."""
        excluded = set(candidates)
        return self.constrain(lambda c: c not in excluded)

    def snapshot(self) -> NodeSnapshot:
        return NodeSnapshot(self.domain, self.collapsed)

    def restore(self, snapshot: NodeSnapshot) -> None:
        """Replace the whole state with a prior snapshot."""
        self.domain = snapshot.domain
        self.collapsed = snapshot.collapsed
