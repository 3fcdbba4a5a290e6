"""Discrete block orientations.

The default rotation set is the identity plus quarter turns about the
vertical (y) axis. Rotating a block turns its horizontal faces clockwise
when seen from above: NORTH -> EAST -> SOUTH -> WEST -> NORTH.
"""

from __future__ import annotations

from enum import Enum

from .types import Face


# Clockwise order of horizontal faces seen from above
_HORIZONTAL_CYCLE: tuple[Face, ...] = (Face.NORTH, Face.EAST, Face.SOUTH, Face.WEST)


class Orientation(Enum):
    """Quarter-turn rotations about the vertical axis."""

    O0 = 0
    O90 = 90
    O180 = 180
    O270 = 270

    @property
    def degrees(self) -> int:
        return self.value

    @property
    def quarter_turns(self) -> int:
        return self.value // 90

    @classmethod
    def from_degrees(cls, degrees: int) -> Orientation:
        """Build an orientation from any multiple of 90 degrees."""
        if degrees % 90 != 0:
            raise ValueError(f"Invalid discrete orientation: {degrees} degrees")
        return cls(degrees % 360)

    def inverse(self) -> Orientation:
        """The rotation that undoes this one."""
        return Orientation.from_degrees(-self.degrees)

    def rotate_face(self, face: Face) -> Face:
        """Map a block-local face to the world face it points at."""
        if face.is_vertical:
            return face
        i = _HORIZONTAL_CYCLE.index(face)
        return _HORIZONTAL_CYCLE[(i + self.quarter_turns) % 4]

    def rotate_size(self, size: tuple[int, int, int]) -> tuple[int, int, int]:
        """Rotate a (width, height, depth) footprint.

        Quarter and three-quarter turns swap width and depth.
        """
        width, height, depth = size
        if self.quarter_turns % 2:
            return (depth, height, width)
        return (width, height, depth)


# Default orientation set used by the solver
ORIENTATIONS: tuple[Orientation, ...] = tuple(Orientation)
