"""
Stock LEGO-style block catalog for Wave Function Collapse.

Defines a small set of studded pieces plus an air block:
    brick_1x1, plate_1x1, brick_1x2 (rotatable), air

The pieces stack through stud/tube connectors: every solid piece exposes
studs on its top face and tubes on its bottom face, so anything solid can sit
on anything solid. Air exposes nothing and fits everywhere, which keeps
every grid solvable.
"""

from __future__ import annotations

from typing import Iterable

from block3d.core.block import Block, BlockKind, ConnectionPoint, ConnectorInterface
from block3d.core.orientation import ORIENTATIONS, Orientation
from block3d.core.types import Face
from block3d.wfc.compatibility import CompatibilityTable
from block3d.wfc.invariants import (
    BaseInvariant,
    BoundsInvariant,
    CollisionInvariant,
    SupportInvariant,
    footprint_reach,
)


STUDDED = (
    ConnectionPoint(interface=ConnectorInterface.STUD, face=Face.TOP),
    ConnectionPoint(interface=ConnectorInterface.TUBE, face=Face.BOTTOM),
)


def create_lego_catalog() -> dict[str, Block]:
    """
    Create the stock catalog.

    Returns a dict mapping block name to Block.
    """
    # Higher weight = more common in output
    blocks = [
        Block(
            name="brick_1x1",
            kind=BlockKind.BRICK,
            connections=STUDDED,
            weight=1.0,
            symbol="#",
        ),
        Block(
            name="plate_1x1",
            kind=BlockKind.PLATE,
            connections=STUDDED,
            weight=0.6,
            symbol="=",
        ),
        Block(
            name="brick_1x2",
            kind=BlockKind.BRICK,
            size=(2, 1, 1),           # Spans two cells; rotates onto the z axis
            connections=(
                ConnectionPoint(interface=ConnectorInterface.STUD, face=Face.TOP),
                ConnectionPoint(interface=ConnectorInterface.STUD, face=Face.TOP, offset=(1, 0, 0)),
                ConnectionPoint(interface=ConnectorInterface.TUBE, face=Face.BOTTOM),
                ConnectionPoint(interface=ConnectorInterface.TUBE, face=Face.BOTTOM, offset=(1, 0, 0)),
            ),
            weight=0.8,
            symbol="B",
        ),
        Block(
            name="air",
            kind=BlockKind.AIR,
            weight=2.0,
            symbol=".",
        ),
    ]
    return {block.name: block for block in blocks}


def create_lego_compatibility() -> CompatibilityTable:
    """
    Stud/tube mating rules.

    Studs press into tubes; two stud faces or two tube faces cannot be
    joined.
    """
    table = CompatibilityTable()
    mated: set[ConnectorInterface] = set()
    for interface in ConnectorInterface:
        mate = interface.inverse()
        if mate is not None and mate not in mated:
            table.allow(interface, mate)
            mated.add(interface)
    table.forbid(ConnectorInterface.STUD, ConnectorInterface.STUD)
    table.forbid(ConnectorInterface.TUBE, ConnectorInterface.TUBE)
    return table


def create_lego_invariants(
    catalog: Iterable[Block],
    gravity: bool = True,
    compatibility: CompatibilityTable | None = None,
    orientations: Iterable[Orientation] = ORIENTATIONS,
) -> list[BaseInvariant]:
    """
    Invariants for building with the given catalog.

    Args:
        catalog: Blocks the solver will place (sizes the footprint reach)
        gravity: Include the support invariant
        compatibility: Table the piece directly beneath must mate with
        orientations: Rotations the solver will use

    Returns:
        [bounds, collision] plus support when gravity is on
    """
    reach = footprint_reach(catalog, orientations)
    invariants: list[BaseInvariant] = [
        BoundsInvariant(),
        CollisionInvariant(reach),
    ]
    if gravity:
        invariants.append(SupportInvariant(reach, compatibility))
    return invariants
