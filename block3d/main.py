"""block3d - build a random LEGO-style structure with Wave Function Collapse."""

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
from rich.text import Text
from tqdm import tqdm

from block3d.core.block import BlockKind
from block3d.core.catalog import create_lego_catalog, create_lego_compatibility, create_lego_invariants
from block3d.core.types import Dimensions, Position
from block3d.logging_config import get_logger, setup_logging
from block3d.wfc import (
    BudgetExceeded,
    Candidate,
    GroundUpHeuristic,
    InvalidConfiguration,
    NoSolution,
    ProgressObserver,
    SolverConfig,
    WFCSolver,
)


logger = get_logger(__name__)

KIND_STYLES: dict[BlockKind, str] = {
    BlockKind.BRICK: "bold red",
    BlockKind.PLATE: "yellow",
    BlockKind.AIR: "dim",
}


def fill_cells(assignment: dict[Position, Candidate]) -> dict[Position, Candidate]:
    """Expand anchored placements to every cell their footprint fills."""
    filled: dict[Position, Candidate] = {}
    for anchor, candidate in assignment.items():
        for cell in candidate.block.occupied_positions(anchor, candidate.orientation):
            filled[cell] = candidate
    return filled


def render_layer(filled: dict[Position, Candidate], dimensions: Dimensions, y: int) -> Text:
    """Render one horizontal layer as rows of block symbols (north at the top)."""
    text = Text()
    for z in range(dimensions.depth):
        for x in range(dimensions.width):
            candidate = filled.get(Position(x, y, z))
            if candidate is None:
                text.append(".", style=KIND_STYLES[BlockKind.AIR])
            else:
                block = candidate.block
                text.append(block.symbol, style=KIND_STYLES.get(block.kind, ""))
        if z < dimensions.depth - 1:
            text.append("\n")
    return text


def build(dimensions: Dimensions, config: SolverConfig, gravity: bool) -> int:
    """Solve one structure and print it layer by layer.

    Args:
        dimensions: Grid size
        config: Seed and budget
        gravity: Require solid blocks to be supported

    Returns:
        Exit code
    """
    if not dimensions.is_valid():
        print(f"Error: grid dimensions must be positive, got {tuple(dimensions)}")
        return 2

    console = Console()
    catalog = create_lego_catalog()
    compatibility = create_lego_compatibility()
    invariants = create_lego_invariants(catalog.values(), gravity=gravity, compatibility=compatibility)

    pbar = tqdm(total=dimensions.volume, desc="  Collapsing", unit="cells")

    def update_progress(current: int, total: int) -> None:
        pbar.n = current
        pbar.refresh()

    try:
        solver = WFCSolver(
            dimensions,
            catalog.values(),
            invariants=invariants,
            compatibility=compatibility,
            heuristic=GroundUpHeuristic(),
            config=config,
            observers=[ProgressObserver(dimensions.volume, update_progress)],
        )
        assignment = solver.solve()
    except InvalidConfiguration as e:
        pbar.close()
        print(f"Error: {e}")
        return 2
    except NoSolution as e:
        pbar.close()
        print(f"No solution: {e}")
        return 1
    except BudgetExceeded as e:
        pbar.close()
        print(f"Stopped: {e}")
        return 1
    pbar.close()

    stats = solver.stats
    print(
        f"Solved in {stats.elapsed:.2f}s "
        f"({stats.collapses} collapses, {stats.backtracks} backtracks)"
    )
    print()

    filled = fill_cells(assignment)
    for y in range(dimensions.height - 1, -1, -1):
        console.print(Text(f"Layer {y}", style="bold"))
        console.print(render_layer(filled, dimensions, y))
        console.print()

    solid = sum(1 for candidate in assignment.values() if candidate.block.solid)
    print(f"Placed {solid} blocks in {dimensions.volume} cells")
    return 0


def main() -> int:
    """Main entry point for block3d."""
    # Load environment variables first
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="block3d - Wave Function Collapse for 3D block structures",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  block3d                           # 4x3x4 structure, random seed
  block3d --seed 7                  # Reproducible structure
  block3d --width 8 --depth 8       # Larger footprint
  block3d --no-gravity              # Allow floating blocks
        """,
    )
    parser.add_argument("--width", type=int, default=4, help="Grid width (x, default: 4)")
    parser.add_argument("--height", type=int, default=3, help="Grid height (y, default: 3)")
    parser.add_argument("--depth", type=int, default=4, help="Grid depth (z, default: 4)")
    parser.add_argument(
        "--seed",
        type=int,
        help="Random seed (default: BLOCK3D_SEED or unseeded)",
    )
    parser.add_argument(
        "--max-backtracks",
        type=int,
        metavar="N",
        help="Give up after N backtracks (default: BLOCK3D_MAX_BACKTRACKS or unlimited)",
    )
    parser.add_argument(
        "--time-limit",
        type=float,
        metavar="SECONDS",
        help="Give up after SECONDS (default: BLOCK3D_TIME_LIMIT or unlimited)",
    )
    parser.add_argument(
        "--no-gravity",
        action="store_true",
        help="Do not require blocks to be supported from below",
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        default=Path("logs"),
        help="Log directory (default: logs/)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging to console",
    )

    args = parser.parse_args()

    # Setup logging
    console_level = logging.DEBUG if args.debug else logging.WARNING
    log_path = setup_logging(args.log_dir, console_level=console_level)

    config = SolverConfig.from_env().with_overrides(
        seed=args.seed,
        max_backtracks=args.max_backtracks,
        time_limit=args.time_limit,
    )
    dimensions = Dimensions(args.width, args.height, args.depth)

    from block3d import __version__
    print(f"block3d v{__version__}")
    print(f"Grid: {dimensions.width}x{dimensions.height}x{dimensions.depth}")
    print(f"Seed: {config.seed if config.seed is not None else 'random'}")
    print(f"Log file: {log_path}")
    print()

    logger.info(f"CLI build | dims={tuple(dimensions)} | config={config.model_dump()} | gravity={not args.no_gravity}")
    return build(dimensions, config, gravity=not args.no_gravity)


if __name__ == "__main__":
    sys.exit(main())
