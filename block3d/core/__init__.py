"""Core domain models for block3d.

Pure value types with no solver logic. Blocks and connection points are
frozen Pydantic models; positions and dimensions are named tuples.

Usage:
    from block3d.core import Position, Face, Block, Orientation

The stock catalog lives in block3d.core.catalog and is imported from there
directly, since it builds on the solver's rule and invariant types.
"""

# Types
from .types import (
    Face,
    Position,
    Dimensions,
)

# Orientation
from .orientation import Orientation, ORIENTATIONS

# Blocks
from .block import (
    Block,
    BlockKind,
    ConnectionPoint,
    ConnectorInterface,
)

__all__ = [
    # Types
    "Face",
    "Position",
    "Dimensions",
    # Orientation
    "Orientation",
    "ORIENTATIONS",
    # Blocks
    "Block",
    "BlockKind",
    "ConnectionPoint",
    "ConnectorInterface",
]
