"""
Adjacency compatibility between placed blocks.

A CompatibilityTable answers whether two placements may sit next to each
other across a shared face. Rules compose conjunctively:

- Unkeyed rules apply to every pair of placements.
- Keyed rules apply when one face exposes one interface of the rule's pair
  and the other face exposes the other (e.g., STUD against TUBE).
- Interface pairs with no keyed rule fall back to the table default.

A face that exposes no interface never triggers keyed rules.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable

from block3d.core.block import Block, ConnectorInterface
from block3d.core.orientation import Orientation
from block3d.core.types import Face

from .state import Candidate


logger = logging.getLogger(__name__)

# (candidate_a, face_a, candidate_b, face_b) -> compatible?
Predicate = Callable[[Candidate, Face, Candidate, Face], bool]


@dataclass(frozen=True)
class CompatibilityRule:
    """
    An adjacency predicate, optionally keyed by an interface-type pair.

    Attributes:
        check: Predicate over (A, face of A, B, face of B)
        interfaces: Interface pair the rule is keyed on, or None for a rule
                    that applies to every pair of placements
        description: Human-readable summary for logs
    """

    check: Predicate
    interfaces: tuple[ConnectorInterface, ConnectorInterface] | None = None
    description: str | None = None

    @property
    def key(self) -> frozenset[ConnectorInterface] | None:
        if self.interfaces is None:
            return None
        return frozenset(self.interfaces)

    @classmethod
    def interface_pair(
        cls,
        a: ConnectorInterface,
        b: ConnectorInterface,
        compatible: bool,
    ) -> CompatibilityRule:
        """Rule stating whether interface a may face interface b (symmetric)."""
        verb = "mates with" if compatible else "cannot face"
        return cls(
            check=lambda _a, _fa, _b, _fb: compatible,
            interfaces=(a, b),
            description=f"{a.value} {verb} {b.value}",
        )

    @classmethod
    def distinct_neighbors(cls) -> CompatibilityRule:
        """Forbid a block from touching another copy of itself."""
        return cls(
            check=lambda a, _fa, b, _fb: a.block != b.block,
            description="a block may not touch itself",
        )


class CompatibilityTable:
    """
    Registry of compatibility rules with a memoized lookup.

    Read-only during a solve, so one table can be shared between solvers.
    """

    def __init__(self, rules: Iterable[CompatibilityRule] = (), default: bool = True):
        """
        Args:
            rules: Initial rules
            default: Answer for interface pairs with no keyed rule
        """
        self.default = default
        self._generic: list[CompatibilityRule] = []
        self._keyed: dict[frozenset[ConnectorInterface], list[CompatibilityRule]] = {}
        self._cache: dict[tuple, bool] = {}
        for rule in rules:
            self.add_rule(rule)

    @property
    def rules(self) -> list[CompatibilityRule]:
        keyed = [rule for rules in self._keyed.values() for rule in rules]
        return self._generic + keyed

    def add_rule(self, rule: CompatibilityRule) -> None:
        """Register a rule. Invalidates cached answers."""
        key = rule.key
        if key is None:
            self._generic.append(rule)
        else:
            self._keyed.setdefault(key, []).append(rule)
        self._cache.clear()
        logger.debug(f"Compatibility rule added: {rule.description or 'unnamed'}")

    def allow(self, a: ConnectorInterface, b: ConnectorInterface) -> CompatibilityRule:
        """Declare that interfaces a and b may face each other."""
        rule = CompatibilityRule.interface_pair(a, b, compatible=True)
        self.add_rule(rule)
        return rule

    def forbid(self, a: ConnectorInterface, b: ConnectorInterface) -> CompatibilityRule:
        """Declare that interfaces a and b may not face each other."""
        rule = CompatibilityRule.interface_pair(a, b, compatible=False)
        self.add_rule(rule)
        return rule

    def is_compatible(
        self,
        block_a: Block,
        orientation_a: Orientation,
        face_a: Face,
        block_b: Block,
        orientation_b: Orientation,
        face_b: Face,
    ) -> bool:
        """Whether two placements may be adjacent across the given faces."""
        key = (block_a, orientation_a, face_a, block_b, orientation_b, face_b)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        result = self._evaluate(
            Candidate(block_a, orientation_a), face_a,
            Candidate(block_b, orientation_b), face_b,
        )
        self._cache[key] = result
        return result

    def candidate_compatible(self, a: Candidate, face: Face, b: Candidate) -> bool:
        """Whether b may sit across face of a (b touches a with face.opposite)."""
        return self.is_compatible(
            a.block, a.orientation, face,
            b.block, b.orientation, face.opposite,
        )

    def _evaluate(self, a: Candidate, face_a: Face, b: Candidate, face_b: Face) -> bool:
        for rule in self._generic:
            if not rule.check(a, face_a, b, face_b):
                return False

        interfaces_a = a.block.interfaces_on(face_a, a.orientation)
        interfaces_b = b.block.interfaces_on(face_b, b.orientation)
        for ia in interfaces_a:
            for ib in interfaces_b:
                rules = self._keyed.get(frozenset((ia, ib)))
                if rules is None:
                    if not self.default:
                        return False
                    continue
                if not all(rule.check(a, face_a, b, face_b) for rule in rules):
                    return False
        return True
