"""Tests for the stock LEGO-style catalog."""

import pytest

from block3d.core.block import Block, BlockKind, ConnectionPoint, ConnectorInterface
from block3d.core.catalog import create_lego_catalog, create_lego_compatibility, create_lego_invariants
from block3d.core.orientation import Orientation
from block3d.core.types import Dimensions, Face, Position
from block3d.wfc import (
    BoundsInvariant,
    CollisionInvariant,
    GroundUpHeuristic,
    SolverConfig,
    SupportInvariant,
    WFCSolver,
)
from block3d.wfc.state import Candidate


class TestCatalogCreation:
    """Test catalog contents."""

    def test_creates_expected_blocks(self):
        """Should create the four stock blocks."""
        catalog = create_lego_catalog()
        assert set(catalog.keys()) == {"brick_1x1", "plate_1x1", "brick_1x2", "air"}

    def test_names_match_keys(self):
        """Dict keys should match block names."""
        for name, block in create_lego_catalog().items():
            assert block.name == name

    def test_blocks_have_positive_weights(self):
        """All blocks should have positive weights."""
        for name, block in create_lego_catalog().items():
            assert block.weight > 0, f"{name} has non-positive weight"

    def test_symbols_are_unique_single_characters(self):
        """Each block should render as its own character."""
        symbols = [block.symbol for block in create_lego_catalog().values()]
        assert all(len(symbol) == 1 for symbol in symbols)
        assert len(set(symbols)) == len(symbols)

    def test_air_is_the_only_non_solid_block(self):
        """Air should be the only non-solid block."""
        catalog = create_lego_catalog()
        assert [b.name for b in catalog.values() if not b.solid] == ["air"]
        assert catalog["air"].kind == BlockKind.AIR

    def test_solid_blocks_are_studded(self):
        """Solid blocks should have studs on top and tubes below."""
        for block in create_lego_catalog().values():
            if block.solid:
                assert ConnectorInterface.STUD in block.interfaces_on(Face.TOP)
                assert ConnectorInterface.TUBE in block.interfaces_on(Face.BOTTOM)


class TestCompatibilityRules:
    """Test stud/tube mating."""

    def test_solid_blocks_stack(self):
        """Any solid block should stack on any other."""
        catalog = create_lego_catalog()
        table = create_lego_compatibility()
        solids = [b for b in catalog.values() if b.solid]
        for lower in solids:
            for upper in solids:
                assert table.is_compatible(lower, Orientation.O0, Face.TOP, upper, Orientation.O90, Face.BOTTOM)

    def test_air_fits_everywhere(self):
        """Air should fit beside anything."""
        catalog = create_lego_catalog()
        table = create_lego_compatibility()
        air = Candidate(catalog["air"], Orientation.O0)
        for block in catalog.values():
            for face in Face:
                assert table.candidate_compatible(Candidate(block, Orientation.O0), face, air)

    def test_studs_cannot_face_studs(self):
        """Two stud faces should not join."""
        catalog = create_lego_catalog()
        table = create_lego_compatibility()
        brick = catalog["brick_1x1"]
        assert not table.is_compatible(brick, Orientation.O0, Face.TOP, brick, Orientation.O0, Face.TOP)

    def test_every_interface_mates_with_its_inverse(self):
        """Each connector should join the interface it naturally pairs with."""
        table = create_lego_compatibility()
        for interface in ConnectorInterface:
            mate = interface.inverse()
            if mate is None:
                continue
            lower = Block(name="lower", connections=(ConnectionPoint(interface=interface, face=Face.TOP),))
            upper = Block(name="upper", connections=(ConnectionPoint(interface=mate, face=Face.BOTTOM),))
            assert table.is_compatible(lower, Orientation.O0, Face.TOP, upper, Orientation.O0, Face.BOTTOM)

    def test_each_mating_pair_is_registered_once(self):
        """Mates should add one rule per pair, not one per direction."""
        keys = [rule.key for rule in create_lego_compatibility().rules]
        assert len(keys) == len(set(keys))


class TestInvariantSet:
    def test_gravity_adds_support(self):
        """Gravity should add the support invariant."""
        invariants = create_lego_invariants(create_lego_catalog().values())
        assert [type(inv) for inv in invariants] == [BoundsInvariant, CollisionInvariant, SupportInvariant]

    def test_without_gravity(self):
        """Without gravity there should be no support invariant."""
        invariants = create_lego_invariants(create_lego_catalog().values(), gravity=False)
        assert SupportInvariant not in [type(inv) for inv in invariants]

    def test_reach_covers_rotated_long_brick(self):
        """Reach should cover the long brick in both directions."""
        invariants = create_lego_invariants(create_lego_catalog().values())
        assert invariants[1].reach == (2, 1, 2)


def solve_lego(dimensions, seed, gravity=True):
    catalog = create_lego_catalog()
    table = create_lego_compatibility()
    solver = WFCSolver(
        dimensions,
        catalog.values(),
        invariants=create_lego_invariants(catalog.values(), gravity=gravity, compatibility=table),
        compatibility=table,
        heuristic=GroundUpHeuristic(),
        config=SolverConfig(seed=seed),
    )
    return solver, solver.solve()


class TestLegoSolve:
    """Solve with the stock catalog and verify the structure."""

    @pytest.mark.parametrize("seed", [1, 7, 12345])
    def test_every_cell_is_assigned(self, seed):
        """Every cell should be assigned, in grid order."""
        dims = Dimensions(3, 3, 3)
        _, assignment = solve_lego(dims, seed)
        assert list(assignment.keys()) == list(dims.positions())

    @pytest.mark.parametrize("seed", [1, 7, 12345])
    def test_footprints_fit_and_do_not_overlap(self, seed):
        """Footprints should stay in bounds and never overlap."""
        dims = Dimensions(3, 3, 3)
        _, assignment = solve_lego(dims, seed)
        filled = {}
        for anchor, candidate in assignment.items():
            for cell in candidate.block.occupied_positions(anchor, candidate.orientation):
                assert dims.contains(cell), f"{candidate} at {anchor} leaves the grid"
                assert cell not in filled, f"{candidate} at {anchor} overlaps {filled.get(cell)}"
                filled[cell] = candidate

    @pytest.mark.parametrize("seed", [1, 7, 12345])
    def test_no_floating_blocks(self, seed):
        """Every solid cell above the floor should rest on something."""
        dims = Dimensions(3, 3, 3)
        _, assignment = solve_lego(dims, seed)
        filled = set()
        for anchor, candidate in assignment.items():
            filled.update(candidate.block.occupied_positions(anchor, candidate.orientation))

        for anchor, candidate in assignment.items():
            if not candidate.block.solid or anchor.y == 0:
                continue
            below = [
                Position(cell.x, cell.y - 1, cell.z)
                for cell in candidate.block.occupied_positions(anchor, candidate.orientation)
            ]
            assert any(cell in filled for cell in below), f"{candidate} at {anchor} is floating"

    @pytest.mark.parametrize("seed", [1, 7, 12345])
    def test_neighbors_are_compatible(self, seed):
        """Every adjacent pair should satisfy the mating rules."""
        dims = Dimensions(3, 3, 3)
        solver, assignment = solve_lego(dims, seed)
        for pos, candidate in assignment.items():
            for neighbor, face in solver.grid.neighbors(pos):
                assert solver.compatibility.candidate_compatible(candidate, face, assignment[neighbor])

    def test_same_seed_same_structure(self):
        """The same seed should build the same structure."""
        dims = Dimensions(4, 2, 3)
        _, first = solve_lego(dims, 99)
        _, second = solve_lego(dims, 99)
        assert first == second

    @pytest.mark.slow
    def test_larger_structure(self):
        """A larger grid should still solve with no floating blocks."""
        dims = Dimensions(8, 5, 8)
        _, assignment = solve_lego(dims, 2024)
        assert len(assignment) == dims.volume
