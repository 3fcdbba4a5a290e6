"""Shared test fixtures for block3d."""

import logging
import tempfile
from pathlib import Path

import pytest

from block3d.core.block import Block, BlockKind, ConnectionPoint, ConnectorInterface
from block3d.core.types import Face


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow (skipped by default, run with --run-slow)")


def pytest_addoption(parser):
    """Add --run-slow option to pytest."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="Run slow tests (skipped by default)",
    )


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is passed."""
    if config.getoption("--run-slow"):
        # --run-slow given: don't skip slow tests
        return

    skip_slow = pytest.mark.skip(reason="Slow test (use --run-slow to run)")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


@pytest.fixture
def temp_data_dir() -> Path:
    """Create a temporary data directory for tests."""
    with tempfile.TemporaryDirectory(prefix="block3d_test_") as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def red() -> Block:
    """Plain 1x1x1 block with no connectors."""
    return Block(name="red", symbol="R")


@pytest.fixture
def blue() -> Block:
    """Second plain 1x1x1 block."""
    return Block(name="blue", symbol="U")


@pytest.fixture
def air() -> Block:
    return Block(name="air", kind=BlockKind.AIR, symbol=".")


@pytest.fixture
def studded() -> Block:
    """1x1x1 brick with a stud on top and a tube underneath."""
    return Block(
        name="stud_brick",
        connections=(
            ConnectionPoint(interface=ConnectorInterface.STUD, face=Face.TOP),
            ConnectionPoint(interface=ConnectorInterface.TUBE, face=Face.BOTTOM),
        ),
    )


@pytest.fixture
def long_brick() -> Block:
    """2x1x1 brick."""
    return Block(name="long", size=(2, 1, 1), symbol="L")



@pytest.fixture(autouse=True)
def reset_logging():
    """Detach handlers installed by setup_logging so they don't outlive the test."""
    yield
    root_logger = logging.getLogger("block3d")
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
