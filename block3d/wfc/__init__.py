"""Wave Function Collapse solver for 3D block grids."""

from .state import Candidate, NodeSnapshot, NodeState
from .grid import Grid
from .errors import (
    SolveError,
    Contradiction,
    NoSolution,
    BudgetExceeded,
    InvalidConfiguration,
)
from .compatibility import CompatibilityRule, CompatibilityTable
from .invariants import (
    Invariant,
    BaseInvariant,
    SupportInvariant,
    BoundsInvariant,
    CollisionInvariant,
    footprint_reach,
)
from .heuristics import Heuristic, WeightedRandomHeuristic, GroundUpHeuristic
from .observer import SolverObserver, ProgressObserver
from .config import SolverConfig
from .solver import WFCSolver, SolverState, SolverStats, HistoryFrame

__all__ = [
    "Candidate",
    "NodeSnapshot",
    "NodeState",
    "Grid",
    "SolveError",
    "Contradiction",
    "NoSolution",
    "BudgetExceeded",
    "InvalidConfiguration",
    "CompatibilityRule",
    "CompatibilityTable",
    "Invariant",
    "BaseInvariant",
    "SupportInvariant",
    "BoundsInvariant",
    "CollisionInvariant",
    "footprint_reach",
    "Heuristic",
    "WeightedRandomHeuristic",
    "GroundUpHeuristic",
    "SolverObserver",
    "ProgressObserver",
    "SolverConfig",
    "WFCSolver",
    "SolverState",
    "SolverStats",
    "HistoryFrame",
]
