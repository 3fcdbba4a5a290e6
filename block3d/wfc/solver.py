"""
Wave Function Collapse solver.

This is the heart of WFC - the loop that observes (collapses) nodes,
propagates constraints and backtracks on contradiction until the whole grid
is determined.

The algorithm:
1. Ask the heuristic for the next node (lowest entropy by default)
2. Filter its domain by invariants and by compatibility with its neighbors
3. No eligible candidate: backtrack to the previous collapse and try
   something else there
4. Collapse it to one candidate (weighted random choice)
5. Propagate: prune neighbors and invariant-linked nodes breadth-first
6. A pruned domain emptied: backtrack as in 3
7. Repeat until complete, exhausted, or out of budget

Every collapse pushes a HistoryFrame. Until the next frame is pushed, the
frame records the prior state of each node the first time it changes, so
popping it restores the grid exactly.
"""

from __future__ import annotations

import logging
import random
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Iterable, Sequence

from block3d.core.block import Block
from block3d.core.orientation import ORIENTATIONS, Orientation
from block3d.core.types import Dimensions, Face, Position
from block3d.logging_config import log_backtrack, log_collapse, log_propagation, log_solve

from .compatibility import CompatibilityTable
from .config import SolverConfig
from .errors import BudgetExceeded, Contradiction, InvalidConfiguration, NoSolution
from .grid import Grid
from .heuristics import Heuristic, WeightedRandomHeuristic
from .invariants import Invariant
from .observer import SolverObserver
from .state import Candidate, NodeSnapshot, NodeState


logger = logging.getLogger(__name__)


class SolverState(Enum):
    """The current state of the WFC solver."""
    RUNNING = auto()          # Still solving, or not started
    SOLVED = auto()           # All nodes collapsed successfully
    CONTRADICTION = auto()    # A domain emptied; resolved by backtracking
    FAILED = auto()           # Backtracking exhausted, no solution exists
    BUDGET_EXCEEDED = auto()  # Backtrack/time cutoff or cancellation


@dataclass
class HistoryFrame:
    """
    One collapse on the backtracking stack.

    Attributes:
        position: Node that was collapsed
        candidate: Candidate it was collapsed to
        excluded: Candidates already tried and rejected at this position
        pinned: Set on frames created by collapse_specific(); automatic
                backtracking never pops a pinned frame
        diff: Prior state of every node changed while this frame was on top
    """
    position: Position
    candidate: Candidate
    excluded: frozenset[Candidate] = frozenset()
    pinned: bool = False
    diff: dict[Position, NodeSnapshot] = field(default_factory=dict)

    def record(self, position: Position, snapshot: NodeSnapshot) -> None:
        """Keep the first (oldest) snapshot of each node."""
        self.diff.setdefault(position, snapshot)


@dataclass
class SolverStats:
    """Counters collected while solving."""

    collapses: int = 0
    backtracks: int = 0
    propagations: int = 0
    passes: int = 0
    max_depth: int = 0
    elapsed: float = 0.0


class WFCSolver:
    """
    The WFC algorithm implementation for 3D block grids.

    Usage:
        solver = WFCSolver((4, 3, 4), catalog, invariants=[SupportInvariant()],
                           compatibility=table, config=SolverConfig(seed=7))
        layout = solver.solve()   # {Position: Candidate}

    Or incrementally, from an editor:
        solver.collapse_specific(Position(0, 0, 0))
        solver.entropy(Position(1, 0, 0))

    solve() raises NoSolution when the search space is exhausted and
    BudgetExceeded when a configured cutoff is hit.
    """

    def __init__(
        self,
        dimensions: Dimensions | tuple[int, int, int],
        catalog: Iterable[Block],
        invariants: Iterable[Invariant] = (),
        compatibility: CompatibilityTable | None = None,
        heuristic: Heuristic | None = None,
        config: SolverConfig | None = None,
        orientations: Iterable[Orientation] = ORIENTATIONS,
        observers: Iterable[SolverObserver] = (),
    ):
        """
        Initialize the solver and pre-filter every node's domain.

        Args:
            dimensions: (width, height, depth) of the grid
            catalog: Blocks that may be placed
            invariants: Validity rules, all of which must accept a candidate
            compatibility: Adjacency rules (default: everything compatible)
            heuristic: Node/candidate selection policy (default: weighted random)
            config: Seed and budget
            orientations: Rotations each block may take
            observers: Receive collapse/propagate/backtrack events

        Raises:
            InvalidConfiguration: Empty catalog or orientation set, non-positive
                dimension, or a node with no candidate that passes the invariants
        """
        self.catalog: tuple[Block, ...] = tuple(dict.fromkeys(catalog))
        if not self.catalog:
            raise InvalidConfiguration("Block catalog is empty")
        self.orientations: tuple[Orientation, ...] = tuple(dict.fromkeys(orientations))
        if not self.orientations:
            raise InvalidConfiguration("Orientation set is empty")

        self.config = config or SolverConfig()
        self.invariants: list[Invariant] = list(invariants)
        self.compatibility = compatibility if compatibility is not None else CompatibilityTable()
        self.heuristic: Heuristic = heuristic if heuristic is not None else WeightedRandomHeuristic()
        self.observers: list[SolverObserver] = list(observers)
        self.rng = random.Random(self.config.seed)

        self.candidates: tuple[Candidate, ...] = tuple(
            Candidate(block, orientation)
            for block in self.catalog
            for orientation in self.orientations
        )
        self._grid = Grid(dimensions, self.candidates)
        self._initial = self._prefilter()

        self._history: list[HistoryFrame] = []
        self._grid.before_change = self._record_change
        self._state = SolverState.RUNNING
        self.stats = SolverStats()
        self._cancel = threading.Event()
        self._started_at: float | None = None

        logger.info(
            f"Solver ready | dims={tuple(self._grid.dimensions)} | blocks={len(self.catalog)} | "
            f"orientations={len(self.orientations)} | invariants={[inv.name for inv in self.invariants]}"
        )

    # -------------------------------------------------------------------------
    # Read-only inspection
    # -------------------------------------------------------------------------

    @property
    def grid(self) -> Grid:
        return self._grid

    @property
    def state(self) -> SolverState:
        return self._state

    @property
    def history(self) -> tuple[HistoryFrame, ...]:
        return tuple(self._history)

    def entropy(self, position: Position) -> int:
        """Number of candidates still possible at a position."""
        return self._grid.entropy(Position(*position))

    def value(self, position: Position) -> Candidate | None:
        """The chosen candidate at a position, or None if not collapsed."""
        return self._grid.value(Position(*position))

    def domain(self, position: Position) -> tuple[Candidate, ...]:
        return self._grid.domain(Position(*position))

    def entropy_map(self) -> dict[Position, int]:
        """Entropy of every node, for uncertainty visualizations."""
        return {node.position: node.entropy for node in self._grid.nodes()}

    def assignment(self) -> dict[Position, Candidate]:
        """Every collapsed node's value, in position order."""
        return {
            node.position: node.value
            for node in self._grid.nodes()
            if node.collapsed
        }

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    def solve(self) -> dict[Position, Candidate]:
        """
        Run the solver to completion.

        Returns:
            Mapping of every position to its (block, orientation) candidate

        Raises:
            NoSolution: No assignment satisfies the catalog, rules and invariants
            BudgetExceeded: max_backtracks/time_limit reached or cancel() called
        """
        self._cancel.clear()
        self._begin()
        try:
            while True:
                self._check_budget()
                position = self.heuristic.select_node(self._grid)
                if position is None:
                    break
                self._collapse_at(position, until_collapsed=False)
        except NoSolution as exc:
            self._state = SolverState.FAILED
            log_solve(logger, "FAILED", len(self._grid), details=str(exc))
            raise
        finally:
            self._finish()

        self._state = SolverState.SOLVED
        log_solve(
            logger, "SOLVED", len(self._grid),
            duration_ms=int(self.stats.elapsed * 1000),
            details=f"collapses={self.stats.collapses} backtracks={self.stats.backtracks}",
        )
        return self.assignment()

    def collapse_specific(self, position: Position, candidate: Candidate | None = None) -> None:
        """
        Collapse a caller-chosen node, optionally to a caller-chosen candidate.

        Runs the same filter/collapse/propagate/backtrack body as solve().
        The resulting frame is pinned: later automatic backtracking will not
        undo it and reports NoSolution instead. Use undo() to revert it.

        Raises:
            InvalidConfiguration: Position out of bounds or candidate not in
                the catalog (nothing is changed)
            NoSolution: No consistent collapse exists without undoing a
                pinned or exhausted history
            BudgetExceeded: A configured cutoff was reached
        """
        position = Position(*position)
        if position not in self._grid:
            raise InvalidConfiguration(f"Position {tuple(position)} is outside the grid", position)
        if candidate is not None and candidate not in self.candidates:
            raise InvalidConfiguration(f"{candidate} is not a catalog candidate", position)
        if self._grid.node(position).collapsed:
            return

        self._begin()
        try:
            self._collapse_at(position, candidate=candidate, pin=True)
        except NoSolution:
            self._state = SolverState.FAILED
            raise
        finally:
            self._finish()
        if self._grid.is_complete():
            self._state = SolverState.SOLVED

    def undo(self) -> Position | None:
        """
        Revert the newest collapse, pinned or not.

        Returns the position that was un-collapsed, or None if there is no
        history.
        """
        if not self._history:
            return None
        frame = self._history[-1]
        self._restore(frame)
        self._history.pop()
        self._state = SolverState.RUNNING
        logger.debug(f"Undo | {tuple(frame.position)} was {frame.candidate}")
        return frame.position

    def cancel(self) -> None:
        """Ask a running solve to stop at the next attempt. Thread-safe."""
        self._cancel.set()

    def reset(self) -> None:
        """Return to the freshly initialized grid and reseed the random stream."""
        self._history.clear()
        for node, snapshot in zip(self._grid.nodes(), self._initial):
            node.restore(snapshot)
        self.rng = random.Random(self.config.seed)
        self.stats = SolverStats()
        self._state = SolverState.RUNNING
        self._cancel.clear()

    def add_observer(self, observer: SolverObserver) -> None:
        self.observers.append(observer)

    # -------------------------------------------------------------------------
    # Initialization
    # -------------------------------------------------------------------------

    def _prefilter(self) -> list[NodeSnapshot]:
        """
        Drop candidates that the invariants reject on the fresh grid.

        All domains are computed before any is written, so a failure leaves
        the grid untouched.
        """
        filtered: list[tuple[Candidate, ...]] = []
        for node in self._grid.nodes():
            domain = tuple(c for c in node.domain if self._passes_invariants(c, node))
            if not domain:
                raise InvalidConfiguration(
                    f"No candidate satisfies the invariants at {tuple(node.position)}",
                    node.position,
                )
            filtered.append(domain)

        initial = [NodeSnapshot(domain, False) for domain in filtered]
        for node, snapshot in zip(self._grid.nodes(), initial):
            node.restore(snapshot)
        return initial

    # -------------------------------------------------------------------------
    # Core loop
    # -------------------------------------------------------------------------

    def _collapse_at(
        self,
        position: Position,
        candidate: Candidate | None = None,
        pin: bool = False,
        until_collapsed: bool = True,
    ) -> None:
        """
        Collapse one node, backtracking as often as needed.

        A backtrack moves the attempt to the position of the popped frame.
        When that retry succeeds, solve() returns to the heuristic; an
        explicit collapse (until_collapsed) goes back to the requested node.
        """
        current = position
        excluded: frozenset[Candidate] = frozenset()

        while True:
            self._check_budget()
            node = self._grid.node(current)
            requested = current == position

            eligible = self._eligible(node)
            if candidate is not None and requested:
                eligible = [candidate] if candidate in eligible else []

            if not eligible:
                logger.debug(f"No eligible candidates at {tuple(current)}")
                current, excluded = self._backtrack()
                continue

            choice = self.heuristic.select_state(node, eligible, self.rng)
            frame = HistoryFrame(current, choice, excluded)
            self._history.append(frame)
            self.stats.max_depth = max(self.stats.max_depth, len(self._history))

            try:
                self._grid.collapse(current, choice)
                self.stats.collapses += 1
                log_collapse(
                    logger, self.stats.collapses, current, str(choice), len(eligible),
                    forced=pin and requested,
                )
                self._notify(lambda o: o.on_collapse(current, choice))
                self._propagate(current)
            except Contradiction as exc:
                self._state = SolverState.CONTRADICTION
                logger.debug(f"{exc} after collapsing {tuple(current)} to {choice}")
                current, excluded = self._backtrack()
                continue

            self._state = SolverState.RUNNING
            if requested:
                frame.pinned = pin
                return
            if not until_collapsed:
                return
            current, excluded = position, frozenset()

    def _eligible(self, node: NodeState) -> list[Candidate]:
        """Candidates that pass every invariant and fit every neighbor."""
        neighbor_domains = [
            (face, self._grid.domain(neighbor))
            for neighbor, face in self._grid.neighbors(node.position)
        ]
        return [
            c for c in node.domain
            if self._passes_invariants(c, node)
            and all(
                any(self.compatibility.candidate_compatible(c, face, other) for other in domain)
                for face, domain in neighbor_domains
            )
        ]

    def _passes_invariants(self, candidate: Candidate, node: NodeState) -> bool:
        return all(inv.check(candidate, node, self._grid) for inv in self.invariants)

    def _propagate(self, origin: Position) -> None:
        """
        Constraint propagation from a collapsed node.

        Runs breadth-first passes until nothing the passes reached is left
        holding a candidate the invariants reject. Every pass needs some
        domain to shrink first, so the loop ends.

        Raises:
            Contradiction: A visited node's domain emptied
        """
        changed: dict[Position, None] = {}
        visited = 0
        sources = [origin]
        while sources:
            reached = self._propagation_pass(sources, changed)
            visited += len(reached) - len(sources)
            sources = self._settle(reached, changed)

        log_propagation(logger, self.stats.collapses, origin, visited, len(changed))
        if changed:
            self._notify(lambda o: o.on_propagate(tuple(changed)))

    def _propagation_pass(
        self,
        sources: Sequence[Position],
        changed: dict[Position, None],
    ) -> list[Position]:
        """
        One breadth-first pass from the given sources.

        Targets of each source are its grid neighbors plus whatever the
        invariants name. Each node is filtered at most once per pass and is
        only enqueued if its domain shrank.

        Returns every position the pass reached, sources first.
        """
        self.stats.passes += 1
        queue: deque[Position] = deque(sources)
        visited: dict[Position, None] = dict.fromkeys(sources)

        while queue:
            source = queue.popleft()
            source_domain = self._grid.domain(source)

            targets: dict[Position, Face | None] = {
                neighbor: face for neighbor, face in self._grid.neighbors(source)
            }
            for inv in self.invariants:
                for extra in sorted(inv.propagate(source, self._grid)):
                    targets.setdefault(extra, None)

            for target, face in targets.items():
                if target in visited:
                    continue
                visited[target] = None
                self.stats.propagations += 1

                node = self._grid.node(target)
                keep = self._survives(node, face, source_domain)
                if self._grid.constrain(target, keep):
                    changed[target] = None
                    if not node.domain:
                        raise Contradiction(target)
                    queue.append(target)

        return list(visited)

    def _settle(self, reached: Iterable[Position], changed: dict[Position, None]) -> list[Position]:
        """
        Re-check everything a pass reached against the invariants.

        A node filtered early in a pass can depend on one that shrank later
        in the same pass. Returns the positions that shrank now, which seed
        the next pass.

        Raises:
            Contradiction: A re-checked domain emptied (including a collapsed
                node whose value lost its support)
        """
        stale: list[Position] = []
        for position in reached:
            node = self._grid.node(position)
            if self._grid.constrain(position, lambda c, node=node: self._passes_invariants(c, node)):
                changed[position] = None
                if not node.domain:
                    raise Contradiction(position)
                stale.append(position)
        if stale:
            logger.debug(f"Re-propagating from {len(stale)} node(s) left stale by the last pass")
        return stale

    def _survives(
        self,
        node: NodeState,
        face: Face | None,
        source_domain: Sequence[Candidate],
    ) -> Callable[[Candidate], bool]:
        """Filter for a propagation target reached across face (None: via an invariant)."""
        def keep(candidate: Candidate) -> bool:
            if face is not None and not any(
                self.compatibility.candidate_compatible(source, face, candidate)
                for source in source_domain
            ):
                return False
            return self._passes_invariants(candidate, node)
        return keep

    # -------------------------------------------------------------------------
    # Backtracking
    # -------------------------------------------------------------------------

    def _record_change(self, position: Position, snapshot: NodeSnapshot) -> None:
        if self._history:
            self._history[-1].record(position, snapshot)

    def _restore(self, frame: HistoryFrame) -> None:
        # The frame is still on top here, so the change hook only re-records
        # positions the frame already holds and leaves older frames alone.
        for position, snapshot in frame.diff.items():
            self._grid.restore(position, snapshot)

    def _backtrack(self) -> tuple[Position, frozenset[Candidate]]:
        """
        Undo the newest collapse and rule out the candidate it chose.

        Returns:
            (position to retry, candidates already excluded there)

        Raises:
            NoSolution: History is empty or its newest frame is pinned
        """
        if not self._history:
            raise NoSolution("Backtracking exhausted all history")
        frame = self._history[-1]
        if frame.pinned:
            raise NoSolution(
                f"Resolving the contradiction would undo the forced collapse at {tuple(frame.position)}",
                frame.position,
            )

        self._restore(frame)
        self._history.pop()
        self.stats.backtracks += 1
        self._grid.exclude(frame.position, [frame.candidate])

        log_backtrack(
            logger, self.stats.collapses, frame.position, str(frame.candidate),
            depth=len(self._history),
            details=f"remaining={self._grid.entropy(frame.position)}",
        )
        self._notify(lambda o: o.on_backtrack(frame.position, frame.candidate))
        return frame.position, frame.excluded | {frame.candidate}

    # -------------------------------------------------------------------------
    # Budget and bookkeeping
    # -------------------------------------------------------------------------

    def _begin(self) -> None:
        self._started_at = time.monotonic()
        self._state = SolverState.RUNNING

    def _finish(self) -> None:
        if self._started_at is not None:
            self.stats.elapsed += time.monotonic() - self._started_at
            self._started_at = None

    def _elapsed(self) -> float:
        running = time.monotonic() - self._started_at if self._started_at is not None else 0.0
        return self.stats.elapsed + running

    def _check_budget(self) -> None:
        """Raise BudgetExceeded if cancelled or past a configured cutoff."""
        reason = None
        if self._cancel.is_set():
            reason = "cancelled"
        elif self.config.max_backtracks is not None and self.stats.backtracks > self.config.max_backtracks:
            reason = f"more than {self.config.max_backtracks} backtracks"
        elif self.config.time_limit is not None and self._elapsed() > self.config.time_limit:
            reason = f"time limit of {self.config.time_limit}s"

        if reason is not None:
            self._state = SolverState.BUDGET_EXCEEDED
            logger.warning(f"Solve stopped: {reason} | backtracks={self.stats.backtracks}")
            raise BudgetExceeded(reason, self.stats.backtracks, self._elapsed())

    def _notify(self, event: Callable[[SolverObserver], None]) -> None:
        for observer in self.observers:
            event(observer)
