from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Hashable, Iterable, List, Optional, Sequence, Tuple

import logging

import numpy as np

from .concepts import Concept
from .graphs import DGraph, Node
from .sets import ComparableSet

if TYPE_CHECKING:  # pragma: no cover
    from .concept_lattice import ConceptLattice

logger = logging.getLogger(__name__)


class ClosureSystem:
    """Abstract closure system: a finite universe and a closure operator on it.

    Subclasses provide get_set() and closure(X); the closure must be extensive,
    idempotent and monotone, and map subsets of the universe to subsets of it.
    """

    def get_set(self) -> ComparableSet:  # pragma: no cover
        raise NotImplementedError

    def closure(self, X: Iterable[Hashable]) -> ComparableSet:  # pragma: no cover
        raise NotImplementedError

    def next_closure(self, A: ComparableSet, universe: Optional[Sequence[Hashable]] = None) -> Optional[ComparableSet]:
        """Lectically next closed set after A, or None when A is the last one."""
        if universe is None:
            universe = list(self.get_set())
        pos = {x: i for i, x in enumerate(universe)}
        for i in range(len(universe) - 1, -1, -1):
            x = universe[i]
            if x in A:
                continue
            B = self.closure([y for y in A if pos[y] < i] + [x])
            # accepted iff B adds nothing lectically smaller than x
            if all(pos[y] >= i for y in B if y not in A):
                return B
        return None

    def all_closures(self) -> List[Concept]:
        """Every closed set exactly once, in lectic order (Next Closure).

        Each closed set is returned as a Concept whose set A is the closed set.
        """
        universe = list(self.get_set())
        A: Optional[ComparableSet] = self.closure(ComparableSet())
        closures: List[Concept] = []
        while A is not None:
            closures.append(Concept(A))
            A = self.next_closure(A, universe)
        logger.debug("enumerated %d closed sets over %d elements", len(closures), len(universe))
        return closures

    def precedence_graph(self) -> DGraph:
        """Graph over the elements with x -> y iff x belongs to closure({y}), x != y.

        Not acyclic in general: equivalent elements form cycles.
        """
        prec = DGraph()
        nodes = [Node(x) for x in self.get_set()]
        for n in nodes:
            prec.add_node(n)
        for target in nodes:
            closed = self.closure([target.content])
            for source in nodes:
                if source is not target and source.content in closed:
                    prec.add_edge(source, target)
        return prec

    def closed_set_lattice(self, diagram: bool = True) -> "ConceptLattice":
        """Hasse diagram (diagram=True) or transitively closed lattice of the closed sets."""
        from .concept_lattice import ConceptLattice

        if diagram:
            return ConceptLattice.diagram_lattice(self)
        return ConceptLattice.complete_lattice(self)


@dataclass(frozen=True)
class Rule:
    """Implication premise -> conclusion."""

    premise: ComparableSet
    conclusion: ComparableSet

    def __str__(self) -> str:
        lhs = " ".join(str(x) for x in self.premise)
        rhs = " ".join(str(x) for x in self.conclusion)
        return f"{lhs} -> {rhs}"


class ImplicationalSystem(ClosureSystem):
    """Set of implications over a finite universe; closure by forward chaining."""

    def __init__(
        self,
        elements: Iterable[Hashable] = (),
        rules: Iterable[Tuple[Iterable[Hashable], Iterable[Hashable]]] = (),
    ):
        self._elements = set(elements)
        self._rules: List[Rule] = []
        for premise, conclusion in rules:
            self.add_rule(premise, conclusion)

    def add_element(self, x: Hashable) -> bool:
        if x in self._elements:
            return False
        self._elements.add(x)
        return True

    def add_rule(self, premise: Iterable[Hashable], conclusion: Iterable[Hashable]) -> bool:
        """False when the rule uses elements outside the universe or is already present."""
        rule = Rule(ComparableSet(premise), ComparableSet(conclusion))
        if not (rule.premise.issubset(self._elements) and rule.conclusion.issubset(self._elements)):
            return False
        if rule in self._rules:
            return False
        self._rules.append(rule)
        return True

    def rules(self) -> List[Rule]:
        return list(self._rules)

    def size_rules(self) -> int:
        return len(self._rules)

    def get_set(self) -> ComparableSet:
        return ComparableSet(self._elements)

    def closure(self, X: Iterable[Hashable]) -> ComparableSet:
        cur = set(X)
        changed = True
        while changed:
            changed = False
            for rule in self._rules:
                if rule.premise.issubset(cur) and not rule.conclusion.issubset(cur):
                    cur |= rule.conclusion.frozen()
                    changed = True
        return ComparableSet(cur)

    def is_equivalent_to(self, other: ClosureSystem) -> bool:
        """Same universe and the same closed sets."""
        if self.get_set() != other.get_set():
            return False
        mine = {c.set_a for c in self.all_closures()}
        theirs = {c.set_a for c in other.all_closures()}
        return mine == theirs

    def __str__(self) -> str:
        return "\n".join(str(r) for r in self._rules)


class Context(ClosureSystem):
    """Formal context: a boolean cross-table between objects and attributes.

    The universe is the object set; closure(X) = extent(intent(X)). Concepts
    carry the extent as set A and the intent as set B.
    """

    def __init__(self, objects: Sequence[Hashable], attributes: Sequence[Hashable], incidence):
        self.objects: List[Hashable] = list(objects)
        self.attributes: List[Hashable] = list(attributes)
        self.incidence = np.asarray(incidence, dtype=bool).reshape(len(self.objects), len(self.attributes))
        self._obj_index: Dict[Hashable, int] = {o: i for i, o in enumerate(self.objects)}
        self._attr_index: Dict[Hashable, int] = {a: j for j, a in enumerate(self.attributes)}
        if len(self._obj_index) != len(self.objects) or len(self._attr_index) != len(self.attributes):
            raise ValueError("Context objects and attributes must be unique.")

    def get_set(self) -> ComparableSet:
        return ComparableSet(self.objects)

    def intent(self, objs: Iterable[Hashable]) -> ComparableSet:
        """Attributes shared by all the given objects."""
        rows = np.asarray([self._obj_index[o] for o in objs], dtype=int)
        mask = self.incidence[rows, :].all(axis=0)
        return ComparableSet(a for a, keep in zip(self.attributes, mask) if keep)

    def extent(self, attrs: Iterable[Hashable]) -> ComparableSet:
        """Objects having all the given attributes."""
        cols = np.asarray([self._attr_index[a] for a in attrs], dtype=int)
        mask = self.incidence[:, cols].all(axis=1)
        return ComparableSet(o for o, keep in zip(self.objects, mask) if keep)

    def closure(self, X: Iterable[Hashable]) -> ComparableSet:
        return self.extent(self.intent(X))

    def all_closures(self) -> List[Concept]:
        concepts = super().all_closures()
        for c in concepts:
            c.put_set_b(self.intent(c.set_a))
        return concepts

    def concept_lattice(self, diagram: bool = True) -> "ConceptLattice":
        """Closed-set lattice with every concept's set B filled with its intent."""
        L = self.closed_set_lattice(diagram=diagram)
        for c in L.nodes():
            if not c.has_set_b():
                c.put_set_b(self.intent(c.set_a))
        return L
