"""Tests for adjacency compatibility rules."""

import pytest

from block3d.core.block import Block, ConnectionPoint, ConnectorInterface
from block3d.core.orientation import Orientation
from block3d.core.types import Face
from block3d.wfc.compatibility import CompatibilityRule, CompatibilityTable
from block3d.wfc.state import Candidate


@pytest.fixture
def clip_block():
    """Block with a clip facing north."""
    return Block(
        name="clip",
        connections=(ConnectionPoint(interface=ConnectorInterface.CLIP, face=Face.NORTH),),
    )


@pytest.fixture
def bar_block():
    """Block with a bar facing south."""
    return Block(
        name="bar",
        connections=(ConnectionPoint(interface=ConnectorInterface.BAR, face=Face.SOUTH),),
    )


class TestCompatibilityTable:
    """Test rule composition and lookup."""

    def test_empty_table_allows_everything(self, red, blue):
        """A table without rules should allow any pair."""
        table = CompatibilityTable()
        assert table.is_compatible(red, Orientation.O0, Face.EAST, blue, Orientation.O0, Face.WEST)

    def test_distinct_neighbors_rule(self, red, blue):
        """A block should not be allowed to touch itself."""
        table = CompatibilityTable([CompatibilityRule.distinct_neighbors()])
        assert table.is_compatible(red, Orientation.O0, Face.EAST, blue, Orientation.O0, Face.WEST)
        assert not table.is_compatible(red, Orientation.O0, Face.EAST, red, Orientation.O90, Face.WEST)

    def test_keyed_rule_applies_across_matching_faces(self, studded):
        """Interface rules should fire when both faces expose the pair."""
        table = CompatibilityTable()
        table.forbid(ConnectorInterface.STUD, ConnectorInterface.TUBE)
        # Lower block's studs meet the upper block's tubes
        assert not table.is_compatible(studded, Orientation.O0, Face.TOP, studded, Orientation.O0, Face.BOTTOM)

    def test_keyed_rule_is_symmetric(self, studded):
        """Interface rules should not depend on argument order."""
        table = CompatibilityTable()
        table.forbid(ConnectorInterface.TUBE, ConnectorInterface.STUD)
        assert not table.is_compatible(studded, Orientation.O0, Face.BOTTOM, studded, Orientation.O0, Face.TOP)

    def test_keyed_rule_ignores_faces_without_interfaces(self, studded):
        """Bare faces should never trigger interface rules."""
        table = CompatibilityTable()
        table.forbid(ConnectorInterface.STUD, ConnectorInterface.TUBE)
        assert table.is_compatible(studded, Orientation.O0, Face.EAST, studded, Orientation.O0, Face.WEST)

    def test_strict_default_rejects_unlisted_pairs(self, clip_block, bar_block, studded):
        """A strict table should reject pairs it has no rule for."""
        table = CompatibilityTable(default=False)
        table.allow(ConnectorInterface.CLIP, ConnectorInterface.BAR)
        assert table.is_compatible(clip_block, Orientation.O0, Face.NORTH, bar_block, Orientation.O0, Face.SOUTH)
        assert not table.is_compatible(studded, Orientation.O0, Face.TOP, studded, Orientation.O0, Face.BOTTOM)

    def test_rotation_moves_interfaces(self, clip_block, bar_block):
        """After a quarter turn the clip faces east, not north."""
        table = CompatibilityTable()
        table.forbid(ConnectorInterface.CLIP, ConnectorInterface.BAR)
        assert not table.is_compatible(clip_block, Orientation.O0, Face.NORTH, bar_block, Orientation.O0, Face.SOUTH)
        assert table.is_compatible(clip_block, Orientation.O90, Face.NORTH, bar_block, Orientation.O0, Face.SOUTH)
        assert not table.is_compatible(
            clip_block, Orientation.O90, Face.EAST, bar_block, Orientation.O90, Face.WEST
        )

    def test_rules_compose_conjunctively(self, studded):
        table = CompatibilityTable()
        table.allow(ConnectorInterface.STUD, ConnectorInterface.TUBE)
        table.forbid(ConnectorInterface.STUD, ConnectorInterface.TUBE)
        assert not table.is_compatible(studded, Orientation.O0, Face.TOP, studded, Orientation.O0, Face.BOTTOM)

    def test_add_rule_invalidates_cache(self, red):
        """Adding a rule should change answers already cached."""
        table = CompatibilityTable()
        assert table.is_compatible(red, Orientation.O0, Face.EAST, red, Orientation.O0, Face.WEST)
        table.add_rule(CompatibilityRule.distinct_neighbors())
        assert not table.is_compatible(red, Orientation.O0, Face.EAST, red, Orientation.O0, Face.WEST)

    def test_candidate_compatible_uses_opposite_face(self, clip_block, bar_block):
        """The neighbor should be checked on the face it shows back."""
        table = CompatibilityTable()
        table.forbid(ConnectorInterface.CLIP, ConnectorInterface.BAR)
        clip = Candidate(clip_block, Orientation.O0)
        bar = Candidate(bar_block, Orientation.O0)
        # The bar sits north of the clip and touches it with its south face
        assert not table.candidate_compatible(clip, Face.NORTH, bar)
        assert table.candidate_compatible(clip, Face.SOUTH, bar)

    def test_custom_predicate(self, red, blue):
        """A custom predicate should see both placements and faces."""
        rule = CompatibilityRule(
            check=lambda a, fa, b, fb: not (fa == Face.TOP and b.block.name == "red"),
            description="nothing red on top",
        )
        table = CompatibilityTable([rule])
        assert not table.is_compatible(blue, Orientation.O0, Face.TOP, red, Orientation.O0, Face.BOTTOM)
        assert table.is_compatible(red, Orientation.O0, Face.TOP, blue, Orientation.O0, Face.BOTTOM)

    def test_rules_property(self, red):
        """Registered rules should be listed in order."""
        table = CompatibilityTable([CompatibilityRule.distinct_neighbors()])
        table.allow(ConnectorInterface.PIN, ConnectorInterface.PIN_HOLE)
        assert len(table.rules) == 2
