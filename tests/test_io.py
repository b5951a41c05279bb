import io

import pytest

from lattice_lab import io as lio
from lattice_lab.concept_lattice import ConceptLattice
from lattice_lab.sets import ComparableSet


@pytest.fixture
def dot_registered():
    lio.DotWriter.register()
    yield
    lio.unregister("dot")


def test_parse_implications():
    IS = lio.parse_implications(
        """
        # a comment
        1 2 3 4
        1 -> 2
        2 3 -> 4   # trailing comment
        """
    )
    assert IS.get_set() == ComparableSet([1, 2, 3, 4])
    assert [str(r) for r in IS.rules()] == ["1 -> 2", "2 3 -> 4"]
    assert IS.closure([1, 3]) == ComparableSet([1, 2, 3, 4])


@pytest.mark.parametrize("bad", ["a -> b -> c", "a b ->"])
def test_parse_implications_rejects_malformed_lines(bad):
    with pytest.raises(ValueError):
        lio.parse_implications(bad)


def test_read_implications(tmp_path):
    path = tmp_path / "rules.txt"
    path.write_text("x -> y\nz\n")
    IS = lio.read_implications(path)
    assert IS.get_set() == ComparableSet(["x", "y", "z"])
    assert IS.closure(["x"]) == ComparableSet(["x", "y"])


def test_read_context_csv(tmp_path):
    path = tmp_path / "context.csv"
    path.write_text(",a,b,c\n1,x,x,x\n2,,x,x\n3,,,1\n")
    K = lio.read_context_csv(path)
    assert K.objects == [1, 2, 3]
    assert K.attributes == ["a", "b", "c"]
    assert K.intent([2]) == ComparableSet(["b", "c"])
    assert K.closure([]) == ComparableSet([1])
    assert K.concept_lattice().size() == 3


def test_writer_registry():
    lio.DotWriter.register()
    writer = lio.unregister("dot")
    assert isinstance(writer, lio.GraphWriter)
    assert lio.get("dot") is None
    assert lio.unregister("dot") is None
    assert not lio.write(ConceptLattice(), "dot", io.StringIO())


def test_dot_output(dot_registered, single_implication_is):
    L = ConceptLattice.diagram_lattice(single_implication_is)
    L.make_edge_valuation()
    out = io.StringIO()
    assert lio.write(L, "dot", out)
    text = out.getvalue()
    assert text.startswith("digraph G {")
    assert text.rstrip().endswith("}")
    assert text.count("->") == L.number_of_edges()
    assert text.count("rank=same") == 4
    bottom = L.bottom()
    assert f"{bottom.ident} [label=" in text


def test_dot_output_of_cyclic_graph(dot_registered, single_implication_is):
    prec = single_implication_is.precedence_graph()
    prec.add_edge(prec.get_node(1), prec.get_node(2))
    out = io.StringIO()
    lio.write(prec, "dot", out)
    assert "rank=same" not in out.getvalue()
    assert out.getvalue().count("->") == 2
