"""Concept lattices and closed-set lattices.

Two generators build the closed-set lattice of a closure system:

- `ConceptLattice.complete_lattice` enumerates every closed set (Next Closure) and
  links all comparable pairs, giving the transitively closed lattice;
- `ConceptLattice.diagram_lattice` builds the Hasse diagram directly, starting from
  the bottom closed set and generating immediate successors with an adaptation of
  Bordat's algorithm. While doing so it fills the dependency graph of the closure
  system, which encodes both the minimal generators and the canonical direct basis.

Generation of the diagram costs O(c Cl |S|^3 log g) where S is the universe, c the
number of closed sets, Cl the cost of one closure and g the number of minimal
generators.
"""

from __future__ import annotations

from typing import Callable, Dict, Hashable, Iterable, List, Optional, Set

import logging

import numpy as np

from .closure import ClosureSystem, ImplicationalSystem
from .concepts import Concept
from .graphs import Component, DAGraph, DGraph, Edge, Node
from .lattice import Lattice
from .sets import ComparableSet

logger = logging.getLogger(__name__)


def _add_minimal_valuation(valuations: Set[ComparableSet], new_val: ComparableSet) -> bool:
    """Insert new_val keeping `valuations` an inclusion antichain of minimal sets."""
    if any(v.issubset(new_val) for v in valuations):
        return False
    valuations.difference_update([v for v in valuations if v.issuperset(new_val)])
    valuations.add(new_val)
    return True


class ConceptLattice(Lattice):
    """Lattice whose nodes are all Concepts."""

    def __init__(self, nodes: Optional[Iterable[Concept]] = None):
        self._by_extent: Dict[ComparableSet, Concept] = {}
        self.dependency_graph: Optional[DGraph] = None
        super().__init__(nodes)

    # ----------------------------
    # concept-only nodes and edges
    # ----------------------------

    def add_node(self, n: Node) -> bool:
        if not isinstance(n, Concept):
            return False
        if not super().add_node(n):
            return False
        if n.set_a is not None:
            self._by_extent.setdefault(n.set_a, n)
        return True

    def add_edge_object(self, edge: Edge) -> bool:
        if not (isinstance(edge.from_node, Concept) and isinstance(edge.to_node, Concept)):
            return False
        return super().add_edge_object(edge)

    def remove_node(self, n: Node) -> bool:
        if not super().remove_node(n):
            return False
        self._reindex()
        return True

    def _reindex(self) -> None:
        self._by_extent = {}
        for c in self.nodes():
            if c.set_a is not None:
                self._by_extent.setdefault(c.set_a, c)

    def get_concept(self, extent: Iterable[Hashable]) -> Optional[Concept]:
        """The concept whose set A equals `extent`, or None."""
        key = extent if isinstance(extent, ComparableSet) else ComparableSet(extent)
        c = self._by_extent.get(key)
        if c is not None and c.set_a != key:
            # set A was changed behind our back
            self._reindex()
            c = self._by_extent.get(key)
        return c

    # ----------------------------
    # checks
    # ----------------------------

    def contains_concepts(self) -> bool:
        return all(isinstance(n, Concept) for n in self.nodes())

    def is_concept_lattice(self) -> bool:
        return self.is_lattice() and self.contains_concepts()

    def contains_all_set_a(self) -> bool:
        if not self.contains_concepts():
            return False
        return all(c.has_set_a() for c in self.nodes())

    def contains_all_set_b(self) -> bool:
        if not self.contains_concepts():
            return False
        return all(c.has_set_b() for c in self.nodes())

    def copy(self) -> "ConceptLattice":
        """Deep copy: every concept and edge is a new object."""
        CL = ConceptLattice()
        twin: Dict[int, Concept] = {}
        for c in self.nodes():
            c2 = c.copy()
            twin[c.ident] = c2
            CL.add_node(c2)
        for ed in self.edges():
            CL._add_edge_unchecked(Edge(twin[ed.from_node.ident], twin[ed.to_node.ident], ed.content))
        # the dependency graph is read-only once generated
        CL.dependency_graph = self.dependency_graph
        return CL

    # ----------------------------
    # set A / set B handling
    # ----------------------------

    def remove_all_set_a(self) -> bool:
        if not self.contains_concepts():
            return False
        for c in self.nodes():
            c.put_set_a(None)
        self._reindex()
        return True

    def remove_all_set_b(self) -> bool:
        if not self.contains_concepts():
            return False
        for c in self.nodes():
            c.put_set_b(None)
        return True

    def initialize_set_a_for_join(self) -> bool:
        """Give each join irreducible without set A the singleton of its ident."""
        if not self.contains_concepts():
            return False
        join_irr = set(self.join_irreducibles())
        for c in self.nodes():
            if not c.has_set_a() and c in join_irr:
                c.put_set_a([c.ident])
        self._reindex()
        return True

    def initialize_set_b_for_meet(self) -> bool:
        """Give each meet irreducible without set B the singleton of its ident."""
        if not self.contains_concepts():
            return False
        meet_irr = set(self.meet_irreducibles())
        for c in self.nodes():
            if not c.has_set_b() and c in meet_irr:
                c.put_set_b([c.ident])
        return True

    # ----------------------------
    # reductions
    # ----------------------------

    def make_inclusion_reduction(self) -> bool:
        """Remove from set A what the predecessors already have, and from set B what
        the successors already have.

        Set A is reduced from the top down and set B from the bottom up, so each node
        is compared with neighbours that are not reduced yet.
        """
        if not self.contains_concepts():
            return False
        reduce_a = self.contains_all_set_a()
        reduce_b = self.contains_all_set_b()
        if not reduce_a and not reduce_b:
            return False
        order = self.topological_sort()
        if reduce_a:
            for to in reversed(order):
                for frm in self.predecessors(to):
                    to.set_a = to.set_a - frm.set_a
        if reduce_b:
            for to in order:
                for frm in self.successors(to):
                    to.set_b = to.set_b - frm.set_b
        self._reindex()
        return True

    def make_irreducibles_reduction(self) -> bool:
        """Inclusion reduction, then empty the reduced sets of non irreducible nodes."""
        if not self.make_inclusion_reduction():
            return False
        join_irr = set(self.join_irreducibles())
        meet_irr = set(self.meet_irreducibles())
        for c in self.nodes():
            if c.has_set_a() and c.set_a and c not in join_irr:
                c.set_a = ComparableSet()
            if c.has_set_b() and c.set_b and c not in meet_irr:
                c.set_b = ComparableSet()
        self._reindex()
        return True

    def make_edge_valuation(self) -> bool:
        """Valuate each edge without content by the difference of the set A of its ends."""
        if not self.contains_all_set_a():
            return False
        for ed in self.edges():
            if not ed.has_content():
                ed.content = ed.to_node.set_a - ed.from_node.set_a
        return True

    def _relabel(self, label: Callable[[Concept], Node]) -> Lattice:
        L = Lattice()
        reduced: Dict[int, Node] = {}
        for c in self.nodes():
            reduced[c.ident] = label(c)
            L.add_node(reduced[c.ident])
        for ed in self.edges():
            L._add_edge_unchecked(Edge(reduced[ed.from_node.ident], reduced[ed.to_node.ident]))
        return L

    def get_join_reduction(self) -> Optional[Lattice]:
        """Plain lattice where join irreducibles are labelled by their reduced set A
        element and all other nodes are empty."""
        if not self.contains_all_set_a():
            return None
        CSL = self.copy()
        CSL.make_irreducibles_reduction()
        join_irr = set(CSL.join_irreducibles())

        def label(c: Concept) -> Node:
            if c.has_set_a() and c.set_a and c in join_irr:
                return Node(c.set_a.first())
            return Node()

        return CSL._relabel(label)

    def get_meet_reduction(self) -> Optional[Lattice]:
        """Plain lattice where meet irreducibles are labelled by their reduced set B
        element and all other nodes are empty."""
        if not self.contains_all_set_b():
            return None
        CSL = self.copy()
        CSL.make_irreducibles_reduction()
        meet_irr = set(CSL.meet_irreducibles())

        def label(c: Concept) -> Node:
            if c.has_set_b() and c.set_b and c in meet_irr:
                return Node(c.set_b.first())
            return Node()

        return CSL._relabel(label)

    def get_irreducibles_reduction(self) -> Optional[Lattice]:
        """Plain lattice labelling join irreducibles by set A, meet irreducibles by
        set B, and nodes that are both by the pair (set A element, set B element)."""
        if not self.contains_concepts():
            return None
        CSL = self.copy()
        if not CSL.make_irreducibles_reduction():
            return None
        join_irr = set(CSL.join_irreducibles())
        meet_irr = set(CSL.meet_irreducibles())

        def label(c: Concept) -> Node:
            is_join = c.has_set_a() and bool(c.set_a) and c in join_irr
            is_meet = c.has_set_b() and bool(c.set_b) and c in meet_irr
            if is_join and is_meet:
                return Node((c.set_a.first(), c.set_b.first()))
            if is_join:
                return Node(c.set_a.first())
            if is_meet:
                return Node(c.set_b.first())
            return Node()

        return CSL._relabel(label)

    # ----------------------------
    # canonical direct basis
    # ----------------------------

    def canonical_direct_basis(self) -> Optional[ImplicationalSystem]:
        """Implications read from the dependency graph, or None without one.

        Every valuation X of a dependency edge from -> to yields X + {to} -> from;
        only inclusion-minimal premises are kept for each conclusion, and the bottom
        closed set is given by an empty premise. Elements of the bottom closed set are
        implied by that empty premise, so they are dropped from every other premise.
        """
        dep = self.dependency_graph
        if dep is None:
            return None
        basis = ImplicationalSystem(elements=[n.content for n in dep.nodes()])
        bottom = self.bottom()
        always = ComparableSet()
        if bottom is not None and bottom.set_a:
            always = bottom.set_a
            basis.add_rule(ComparableSet(), always)
        premises: Dict[Hashable, Set[ComparableSet]] = {}
        for ed in dep.edges():
            for val in ed.content:
                premise = val.add(ed.to_node.content) - always
                premises.setdefault(ed.from_node.content, set()).add(premise)
        for conclusion in sorted(premises):
            found = premises[conclusion]
            for p in sorted(found):
                if not any(q != p and q.issubset(p) for q in found):
                    basis.add_rule(p, [conclusion])
        return basis

    # ----------------------------
    # generation
    # ----------------------------

    @staticmethod
    def complete_lattice(init: ClosureSystem) -> "ConceptLattice":
        """Transitively closed lattice of all closed sets of `init`.

        Closed sets come from init.all_closures(); then every pair is compared at
        once: with M the closed-set/element incidence matrix, M (1 - M)^T counts
        the elements of A_i missing from A_j, so zero entries are the inclusions.
        """
        L = ConceptLattice()
        for c in init.all_closures():
            L.add_node(c)
        concepts = L.nodes()
        universe = list(init.get_set())
        col = {x: j for j, x in enumerate(universe)}
        M = np.zeros((len(concepts), len(universe)), dtype=np.int64)
        for i, c in enumerate(concepts):
            for x in c.set_a:
                M[i, col[x]] = 1
        missing = M @ (1 - M).T
        for i, j in zip(*np.nonzero(missing == 0)):
            if i != j:
                # distinct closed sets: inclusion is strict, so no cycle can appear
                L._add_edge_unchecked(Edge(concepts[int(i)], concepts[int(j)]))
        logger.debug("complete lattice: %d concepts, %d edges", L.size(), L.number_of_edges())
        return L

    @staticmethod
    def diagram_lattice(init: ClosureSystem) -> "ConceptLattice":
        """Hasse diagram of the closed-set lattice of `init` (Bordat's algorithm).

        The dependency graph of the closure system is computed along the way and
        stored in `dependency_graph`.
        """
        L = ConceptLattice()
        dependency_graph = DGraph()
        for x in init.get_set():
            dependency_graph.add_node(Node(x))
        # non reduced closure systems have cyclic precedence: work on its components
        precedence = init.precedence_graph().strongly_connected_component()
        bottom = Concept(init.closure(ComparableSet()))
        L.add_node(bottom)
        L._recursive_diagram_lattice(bottom, init, dependency_graph, precedence)
        L.dependency_graph = dependency_graph
        logger.debug(
            "diagram lattice: %d concepts, %d edges, %d dependency edges",
            L.size(), L.number_of_edges(), dependency_graph.number_of_edges(),
        )
        return L

    def _recursive_diagram_lattice(
        self,
        n: Concept,
        init: ClosureSystem,
        dependency_graph: DGraph,
        precedence: DAGraph,
    ) -> None:
        for X in self.immediate_successors(n, init, dependency_graph, precedence):
            ns = self.get_concept(X)
            if ns is not None:
                self._add_edge_unchecked(Edge(n, ns))
                continue
            c = Concept(X)
            self.add_node(c)
            # X strictly contains the set A of n: edges always go upward
            self._add_edge_unchecked(Edge(n, c))
            self._recursive_diagram_lattice(c, init, dependency_graph, precedence)

    def immediate_successors(
        self,
        n: Concept,
        init: ClosureSystem,
        dependency_graph: Optional[DGraph] = None,
        precedence: Optional[DAGraph] = None,
    ) -> List[ComparableSet]:
        """Set A of each immediate successor of n in the closed-set lattice of `init`.

        Bordat: the immediate successors of a closed set F are in bijection with the
        minimal strongly connected components of the dependency subgraph on S \\ F,
        where from -> to whenever `from` lies in closure(F + to).

        `dependency_graph` (default: this lattice's) must hold one node per element
        of the universe; it is updated with the dependencies found here, each
        valuated by its inclusion-minimal witnesses.
        """
        if dependency_graph is None:
            dependency_graph = self.dependency_graph
        if dependency_graph is None:
            raise ValueError("immediate_successors requires a dependency graph over the whole universe.")
        known = {d.content for d in dependency_graph.nodes()}
        if not init.get_set().issubset(known):
            raise ValueError("Dependency graph does not cover the universe of the closure system.")
        if precedence is None:
            precedence = init.precedence_graph().strongly_connected_component()

        F = n.set_a

        # newVal = F minus the elements lying strictly below F in the precedence graph
        component_of: Dict[Hashable, Component] = {}
        for cc in precedence.nodes():
            for x in cc.contents():
                component_of[x] = cc
        below: Set[Hashable] = set()
        for x in F:
            cx = component_of.get(x)
            if cx is None:
                continue
            for cc in precedence.minorants(cx):
                below.update(cc.contents())
        new_val = F - below

        # dependency relation on S \ F
        N = [d for d in dependency_graph.nodes() if d.content not in F]
        E: List[Edge] = []
        for to in N:
            closed = init.closure(F.add(to.content))
            for frm in N:
                if frm is to or frm.content not in closed:
                    continue
                ed = dependency_graph.get_edge(frm, to)
                if ed is None:
                    ed = Edge(frm, to, set())
                    dependency_graph.add_edge_object(ed)
                E.append(ed)
                _add_minimal_valuation(ed.content, new_val)

        delta = dependency_graph.subgraph_by_nodes(N).subgraph_by_edges(E)
        CFC = delta.strongly_connected_component()
        # minimal components: nothing outside them is forced in
        return [F.union(cc.contents()) for cc in CFC.sources()]
