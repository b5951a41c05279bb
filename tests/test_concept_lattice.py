import itertools

import pytest

from lattice_lab.closure import ImplicationalSystem
from lattice_lab.concept_lattice import ConceptLattice
from lattice_lab.concepts import Concept
from lattice_lab.graphs import DGraph, Node
from lattice_lab.sets import ComparableSet


def _extents(L):
    return {c.set_a for c in L.nodes()}


def _extent_pairs(L):
    return {(ed.from_node.set_a, ed.to_node.set_a) for ed in L.edges()}


SYSTEMS = [
    ImplicationalSystem(elements=[1, 2, 3]),
    ImplicationalSystem(elements=[1, 2, 3], rules=[([1], [2])]),
    ImplicationalSystem(elements=[1, 2, 3, 4], rules=[([1], [2]), ([2], [1]), ([3], [4])]),
    ImplicationalSystem(elements=[1, 2, 3, 4], rules=[([], [1]), ([2, 3], [4]), ([4], [2])]),
    ImplicationalSystem(elements="abcde", rules=[("ab", "c"), ("c", "d"), ("de", "a"), ("b", "e")]),
]


def test_complete_lattice_of_b3(powerset_is):
    L = ConceptLattice.complete_lattice(powerset_is)
    assert L.size() == 8
    # every strict inclusion between subsets of a 3-element set
    assert L.number_of_edges() == 19
    assert L.is_concept_lattice()
    assert L.bottom().set_a == ComparableSet()
    assert L.top().set_a == ComparableSet([1, 2, 3])


def test_diagram_lattice_of_b3(powerset_is):
    L = ConceptLattice.diagram_lattice(powerset_is)
    assert L.size() == 8
    assert L.number_of_edges() == 12
    assert L.is_concept_lattice()
    assert {c.set_a for c in L.join_irreducibles()} == {ComparableSet([x]) for x in (1, 2, 3)}
    assert {c.set_a for c in L.meet_irreducibles()} == {
        ComparableSet([1, 2]), ComparableSet([1, 3]), ComparableSet([2, 3]),
    }


def test_single_implication_has_six_concepts(single_implication_is):
    expected = {ComparableSet(x) for x in ([], [2], [3], [1, 2], [2, 3], [1, 2, 3])}
    complete = ConceptLattice.complete_lattice(single_implication_is)
    diagram = ConceptLattice.diagram_lattice(single_implication_is)
    assert _extents(complete) == expected
    assert _extents(diagram) == expected
    assert diagram.number_of_edges() == 7


@pytest.mark.parametrize("init", SYSTEMS)
def test_generators_agree(init):
    complete = ConceptLattice.complete_lattice(init)
    diagram = ConceptLattice.diagram_lattice(init)
    assert _extents(complete) == _extents(diagram)
    reduced = complete.copy()
    reduced.transitive_reduction()
    assert _extent_pairs(reduced) == _extent_pairs(diagram)
    assert diagram.is_lattice()


@pytest.mark.parametrize("init", SYSTEMS)
def test_canonical_direct_basis_is_equivalent(init):
    basis = ConceptLattice.diagram_lattice(init).canonical_direct_basis()
    assert basis.is_equivalent_to(init)


def test_dependency_graph_of_single_implication(single_implication_is):
    L = ConceptLattice.diagram_lattice(single_implication_is)
    dep = L.dependency_graph
    assert sorted(n.content for n in dep.nodes()) == [1, 2, 3]
    edges = dep.edges()
    assert [(e.from_node.content, e.to_node.content) for e in edges] == [(2, 1)]
    # only the inclusion-minimal witness survives
    assert edges[0].content == {ComparableSet()}
    rules = [str(r) for r in L.canonical_direct_basis().rules()]
    assert rules == ["1 -> 2"]
    assert ConceptLattice.complete_lattice(single_implication_is).canonical_direct_basis() is None


def test_immediate_successors(single_implication_is):
    L = ConceptLattice()
    dep = DGraph(Node(x) for x in single_implication_is.get_set())
    bottom = Concept(single_implication_is.closure([]))
    L.add_node(bottom)
    succ = L.immediate_successors(bottom, single_implication_is, dep)
    assert set(succ) == {ComparableSet([2]), ComparableSet([3])}
    assert dep.number_of_edges() == 1


def test_immediate_successors_needs_dependency_graph(single_implication_is):
    L = ConceptLattice()
    bottom = Concept([])
    L.add_node(bottom)
    with pytest.raises(ValueError):
        L.immediate_successors(bottom, single_implication_is)
    partial = DGraph([Node(1)])
    with pytest.raises(ValueError):
        L.immediate_successors(bottom, single_implication_is, partial)


def test_only_concepts_are_accepted():
    L = ConceptLattice()
    c1, c2 = Concept([1]), Concept([1, 2])
    assert not L.add_node(Node(1))
    assert L.add_node(c1) and L.add_node(c2)
    assert L.add_edge(c1, c2)
    assert L.get_concept([1]) is c1
    assert L.get_concept([3]) is None


def test_copy_is_deep(single_implication_is):
    L = ConceptLattice.diagram_lattice(single_implication_is)
    CL = L.copy()
    assert _extent_pairs(CL) == _extent_pairs(L)
    assert not set(CL.nodes()) & set(L.nodes())
    CL.nodes()[0].put_set_a([9])
    assert ComparableSet([9]) not in _extents(L)


def test_inclusion_reduction_round_trip(single_implication_is):
    L = ConceptLattice.diagram_lattice(single_implication_is)
    original = {c: c.set_a for c in L.nodes()}
    assert L.make_inclusion_reduction()
    for c in L.nodes():
        rebuilt = ComparableSet()
        for d in L.ideal(c):
            rebuilt = rebuilt | d.set_a
        assert rebuilt == original[c]


def test_inclusion_reduction_of_intents(contranominal_context):
    L = contranominal_context.concept_lattice()
    original = {c: c.set_b for c in L.nodes()}
    assert L.make_inclusion_reduction()
    for c in L.nodes():
        rebuilt = ComparableSet()
        for d in L.filter(c):
            rebuilt = rebuilt | d.set_b
        assert rebuilt == original[c]


def test_reductions_need_sets(single_implication_is):
    L = ConceptLattice.diagram_lattice(single_implication_is)
    assert L.remove_all_set_a()
    assert not L.make_inclusion_reduction()
    assert not L.make_irreducibles_reduction()
    assert not L.make_edge_valuation()
    assert L.get_join_reduction() is None
    assert L.get_meet_reduction() is None
    assert all(not c.has_set_a() for c in L.nodes())


def test_initialize_sets_for_irreducibles(powerset_is):
    L = ConceptLattice.diagram_lattice(powerset_is)
    L.remove_all_set_a()
    assert L.initialize_set_a_for_join()
    assert L.initialize_set_b_for_meet()
    assert sum(c.has_set_a() for c in L.nodes()) == 3
    assert sum(c.has_set_b() for c in L.nodes()) == 3
    for c in L.join_irreducibles():
        assert c.set_a == ComparableSet([c.ident])


def test_edge_valuation(powerset_is):
    L = ConceptLattice.diagram_lattice(powerset_is)
    assert L.make_edge_valuation()
    for ed in L.edges():
        assert ed.content == ed.to_node.set_a - ed.from_node.set_a
        assert len(ed.content) == 1


def test_join_reduction_of_boolean_lattice(powerset_is):
    L = ConceptLattice.diagram_lattice(powerset_is)
    J = L.get_join_reduction()
    assert J.size() == 8
    assert J.number_of_edges() == 12
    assert J.is_lattice()
    assert sorted(n.content for n in J.join_irreducibles()) == [1, 2, 3]
    assert sum(n.content is None for n in J.nodes()) == 5
    # the source lattice is left untouched
    assert L.top().set_a == ComparableSet([1, 2, 3])


def test_meet_reduction(contranominal_context):
    L = contranominal_context.concept_lattice()
    M = L.get_meet_reduction()
    assert sorted(n.content for n in M.meet_irreducibles()) == ["a", "b", "c"]
    assert L.get_join_reduction() is not None


def test_irreducibles_reduction(contranominal_context, chain_context):
    L = contranominal_context.concept_lattice(diagram=False)
    R = L.get_irreducibles_reduction()
    labels = {n.content for n in R.nodes() if n.content is not None}
    assert labels == {1, 2, 3, "a", "b", "c"}

    C = chain_context.concept_lattice().get_irreducibles_reduction()
    bottom, middle, top = C.topological_sort()
    assert bottom.content == "a"
    assert middle.content == (2, "b")
    assert top.content == 3


def _proper_premises(IS):
    """Unit rules (P, x) with P minimal such that x lies in closure(P) and not in P."""
    S = list(IS.get_set())
    bottom = IS.closure([])
    found = {(ComparableSet(), x) for x in bottom}
    for r in range(len(S) + 1):
        for P in itertools.combinations(S, r):
            P = ComparableSet(P)
            for x in IS.closure(P) - P - bottom:
                if not any(x in IS.closure(P.remove(y)) for y in P):
                    found.add((P, x))
    return found


def _unit_rules(IS):
    return {(r.premise, x) for r in IS.rules() for x in r.conclusion}


@pytest.mark.parametrize(
    "init",
    [
        SYSTEMS[0],
        SYSTEMS[1],
        SYSTEMS[3],
        SYSTEMS[4],
        ImplicationalSystem(elements=[1, 2, 3], rules=[([], [1]), ([2], [3])]),
        ImplicationalSystem(elements="abcd", rules=[("", "a"), ("bc", "d"), ("ad", "b")]),
    ],
)
def test_canonical_direct_basis_has_minimal_premises(init):
    basis = ConceptLattice.diagram_lattice(init).canonical_direct_basis()
    assert _unit_rules(basis) == _proper_premises(init)


def test_basis_premises_skip_bottom_elements():
    init = ImplicationalSystem(elements=[1, 2, 3], rules=[([], [1]), ([2], [3])])
    basis = ConceptLattice.diagram_lattice(init).canonical_direct_basis()
    assert [str(r) for r in basis.rules()] == [" -> 1", "2 -> 3"]


def test_irreducibles_reduction_needs_a_complete_set(single_implication_is):
    L = ConceptLattice.diagram_lattice(single_implication_is)
    L.bottom().put_set_a(None)
    assert not L.contains_all_set_a() and not L.contains_all_set_b()
    assert L.get_irreducibles_reduction() is None
