"""Block descriptors: the pieces a structure is built from.

A Block is an immutable catalog entry. It knows its footprint and which
connector interfaces sit on which of its faces; where it goes and how it is
turned is decided by the solver.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .orientation import Orientation
from .types import Face, Position


class ConnectorInterface(Enum):
    """Interface types that can sit on a block face."""

    STUD = "stud"
    TUBE = "tube"
    AXLE = "axle"
    AXLE_HOLE = "axle_hole"
    PIN = "pin"
    PIN_HOLE = "pin_hole"
    CLIP = "clip"
    BAR = "bar"
    SMOOTH = "smooth"

    def inverse(self) -> ConnectorInterface | None:
        """The natural mating interface, if there is one."""
        return _INTERFACE_INVERSES.get(self)


_INTERFACE_INVERSES: dict[ConnectorInterface, ConnectorInterface] = {
    ConnectorInterface.STUD: ConnectorInterface.TUBE,
    ConnectorInterface.TUBE: ConnectorInterface.STUD,
    ConnectorInterface.AXLE: ConnectorInterface.AXLE_HOLE,
    ConnectorInterface.AXLE_HOLE: ConnectorInterface.AXLE,
    ConnectorInterface.PIN: ConnectorInterface.PIN_HOLE,
    ConnectorInterface.PIN_HOLE: ConnectorInterface.PIN,
    ConnectorInterface.CLIP: ConnectorInterface.BAR,
    ConnectorInterface.BAR: ConnectorInterface.CLIP,
}


class BlockKind(Enum):
    """Kind tag used for preference weights and display."""

    BRICK = "brick"
    PLATE = "plate"
    WALL = "wall"
    FLOOR = "floor"
    DOOR = "door"
    WINDOW = "window"
    ROOF = "roof"
    AIR = "air"


class ConnectionPoint(BaseModel):
    """A connector on one face of a block, in block-local coordinates."""

    model_config = ConfigDict(frozen=True)

    interface: ConnectorInterface
    face: Face
    offset: tuple[int, int, int] = (0, 0, 0)


class Block(BaseModel):
    """An immutable block descriptor.

    Attributes:
        name: Unique catalog name (e.g., "brick_1x1")
        kind: Kind tag, used by heuristics for preference weights
        size: Footprint in grid cells (width, height, depth) at Orientation.O0
        connections: Connector points on the block's faces
        weight: Default preference weight for weighted selection
        symbol: Single character used when printing layouts
    """

    model_config = ConfigDict(frozen=True)

    name: str
    kind: BlockKind = BlockKind.BRICK
    size: tuple[int, int, int] = (1, 1, 1)
    connections: tuple[ConnectionPoint, ...] = Field(default_factory=tuple)
    weight: float = Field(default=1.0, ge=0.0)
    symbol: str = "#"

    @field_validator("size")
    @classmethod
    def _size_is_positive(cls, size: tuple[int, int, int]) -> tuple[int, int, int]:
        if any(component < 1 for component in size):
            raise ValueError(f"Block size must be positive in every dimension, got {size}")
        return size

    @property
    def solid(self) -> bool:
        """AIR blocks fill a cell without occupying volume."""
        return self.kind != BlockKind.AIR

    def footprint(self, orientation: Orientation = Orientation.O0) -> tuple[int, int, int]:
        """Size after rotation."""
        return orientation.rotate_size(self.size)

    def occupied_positions(
        self,
        anchor: Position,
        orientation: Orientation = Orientation.O0,
    ) -> list[Position]:
        """Cells this block fills when its minimum corner sits at anchor.

        Non-solid blocks fill nothing.
        """
        if not self.solid:
            return []
        width, height, depth = self.footprint(orientation)
        return [
            Position(anchor.x + dx, anchor.y + dy, anchor.z + dz)
            for dx in range(width)
            for dy in range(height)
            for dz in range(depth)
        ]

    def interfaces_on(self, face: Face, orientation: Orientation = Orientation.O0) -> frozenset[ConnectorInterface]:
        """Interfaces exposed on a world-space face when placed with orientation."""
        local = orientation.inverse().rotate_face(face)
        return frozenset(point.interface for point in self.connections if point.face == local)

    def __str__(self) -> str:
        return self.name
