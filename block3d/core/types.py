"""Foundational spatial types for block3d.

This module defines the core types used throughout the system:
- Position: Grid coordinates (x, y, z)
- Face: The six axis-aligned faces of a grid cell, with offsets
- Dimensions: Grid bounds and flat-array indexing
"""

from __future__ import annotations

from enum import Enum
from typing import Iterator, NamedTuple


class Face(Enum):
    """Axis-aligned faces of a grid cell.

    Coordinate system: x increases east, y increases upward (y == 0 is the
    floor), z increases south.
    """

    TOP = "top"
    BOTTOM = "bottom"
    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"

    @property
    def offset(self) -> tuple[int, int, int]:
        """Get the (dx, dy, dz) offset to the cell across this face."""
        return _FACE_OFFSETS[self]

    @property
    def opposite(self) -> Face:
        """Get the face on the other side of the shared boundary."""
        return _FACE_OPPOSITES[self]

    @property
    def is_vertical(self) -> bool:
        """TOP and BOTTOM are unaffected by rotation about the vertical axis."""
        return self in (Face.TOP, Face.BOTTOM)


# Lookup tables for Face properties
_FACE_OFFSETS: dict[Face, tuple[int, int, int]] = {
    Face.TOP: (0, 1, 0),
    Face.BOTTOM: (0, -1, 0),
    Face.NORTH: (0, 0, -1),
    Face.SOUTH: (0, 0, 1),
    Face.EAST: (1, 0, 0),
    Face.WEST: (-1, 0, 0),
}

_FACE_OPPOSITES: dict[Face, Face] = {
    Face.TOP: Face.BOTTOM,
    Face.BOTTOM: Face.TOP,
    Face.NORTH: Face.SOUTH,
    Face.SOUTH: Face.NORTH,
    Face.EAST: Face.WEST,
    Face.WEST: Face.EAST,
}


class Position(NamedTuple):
    """A position in the 3D grid.

    Positions are plain integer triples, so they hash, compare and sort
    lexicographically like tuples.
    """

    x: int
    y: int
    z: int

    def __add__(self, other: object) -> Position:
        """Add a face offset or a 3-tuple to this position."""
        if isinstance(other, Face):
            dx, dy, dz = other.offset
            return Position(self.x + dx, self.y + dy, self.z + dz)
        if isinstance(other, tuple) and len(other) == 3:
            return Position(self.x + other[0], self.y + other[1], self.z + other[2])
        return NotImplemented


class Dimensions(NamedTuple):
    """Grid bounds: width (x), height (y), depth (z).

    Positions map onto a flat array in lexicographic (x, y, z) order, so
    iterating indices in ascending order visits positions in sorted order.
    """

    width: int
    height: int
    depth: int

    @property
    def volume(self) -> int:
        """Total number of cells."""
        return self.width * self.height * self.depth

    def is_valid(self) -> bool:
        """All dimensions must be positive."""
        return self.width > 0 and self.height > 0 and self.depth > 0

    def contains(self, pos: Position) -> bool:
        """Check if a position is within bounds."""
        return (
            0 <= pos.x < self.width
            and 0 <= pos.y < self.height
            and 0 <= pos.z < self.depth
        )

    def index(self, pos: Position) -> int:
        """Flat index of a position (no bounds checking)."""
        return (pos.x * self.height + pos.y) * self.depth + pos.z

    def positions(self) -> Iterator[Position]:
        """Iterate all positions in flat-index order."""
        for x in range(self.width):
            for y in range(self.height):
                for z in range(self.depth):
                    yield Position(x, y, z)
