"""Tests for the block3d command line."""

import sys

import pytest

from block3d.core.catalog import create_lego_catalog
from block3d.core.orientation import Orientation
from block3d.core.types import Dimensions, Position
from block3d import main as cli
from block3d.main import fill_cells, main, render_layer
from block3d.wfc.state import Candidate


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("BLOCK3D_SEED", "BLOCK3D_MAX_BACKTRACKS", "BLOCK3D_TIME_LIMIT"):
        monkeypatch.delenv(name, raising=False)


class TestRendering:
    def test_fill_cells_expands_footprints(self):
        """Should mark every cell a long brick covers."""
        catalog = create_lego_catalog()
        long = Candidate(catalog["brick_1x2"], Orientation.O90)
        air = Candidate(catalog["air"], Orientation.O0)
        filled = fill_cells({Position(0, 0, 0): long, Position(1, 0, 0): air})
        assert filled == {Position(0, 0, 0): long, Position(0, 0, 1): long}

    def test_render_layer_rows_follow_depth(self):
        """Should print one row per depth step, x across."""
        catalog = create_lego_catalog()
        brick = Candidate(catalog["brick_1x1"], Orientation.O0)
        filled = {Position(1, 0, 0): brick, Position(0, 0, 1): brick}
        text = render_layer(filled, Dimensions(2, 1, 2), 0)
        assert text.plain == ".#\n#."


class TestMain:
    def test_builds_and_prints_layers(self, monkeypatch, capsys, temp_data_dir):
        """Should solve a small grid and exit cleanly."""
        monkeypatch.setattr(sys, "argv", [
            "block3d", "--width", "2", "--height", "2", "--depth", "2",
            "--seed", "3", "--log-dir", str(temp_data_dir),
        ])
        assert main() == 0
        out = capsys.readouterr().out
        assert "Seed: 3" in out
        assert "Layer 1" in out
        assert "Layer 0" in out
        assert (temp_data_dir / "debug.log").exists()

    def test_invalid_dimensions(self, monkeypatch, capsys, temp_data_dir):
        """Should exit with status 2 on a zero dimension."""
        monkeypatch.setattr(sys, "argv", ["block3d", "--width", "0", "--log-dir", str(temp_data_dir)])
        assert main() == 2
        assert "must be positive" in capsys.readouterr().out

    def test_env_seed_is_used(self, monkeypatch, capsys, temp_data_dir):
        """Should pick the seed up from BLOCK3D_SEED."""
        monkeypatch.setenv("BLOCK3D_SEED", "21")
        monkeypatch.setattr(sys, "argv", [
            "block3d", "--width", "1", "--height", "1", "--depth", "1", "--log-dir", str(temp_data_dir),
        ])
        assert main() == 0
        assert "Seed: 21" in capsys.readouterr().out

    def test_cli_logs_under_package_logger(self):
        """The CLI logger should sit under the block3d logger so setup_logging reaches it."""
        assert cli.logger.name == "block3d.main"
