from __future__ import annotations

from pathlib import Path
from typing import Dict, Hashable, List, Optional, TextIO, Union

import logging

import pandas as pd

from .closure import Context, ImplicationalSystem
from .graphs import DGraph, longest_path_depth

logger = logging.getLogger(__name__)

TRUTHY = {"1", "x", "X", "true", "True", "TRUE"}


def _element(token: str) -> Hashable:
    try:
        return int(token)
    except ValueError:
        return token


# ----------------------------
# Readers
# ----------------------------

def parse_implications(text: str) -> ImplicationalSystem:
    """Parse one rule per line, `a b -> c d`.

    A line without `->` only declares elements. Blank lines and `#` comments are
    ignored. Tokens that look like integers become ints.
    """
    elements: List[Hashable] = []
    rules = []
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.split("#", 1)[0].strip()
        if not line:
            continue
        if "->" not in line:
            elements.extend(_element(t) for t in line.split())
            continue
        lhs, sep, rhs = line.partition("->")
        if "->" in rhs:
            raise ValueError(f"Line {lineno}: more than one '->' in rule: {raw!r}")
        premise = [_element(t) for t in lhs.split()]
        conclusion = [_element(t) for t in rhs.split()]
        if not conclusion:
            raise ValueError(f"Line {lineno}: empty conclusion: {raw!r}")
        elements.extend(premise)
        elements.extend(conclusion)
        rules.append((premise, conclusion))
    IS = ImplicationalSystem(elements=elements, rules=rules)
    logger.debug("parsed %d rules over %d elements", IS.size_rules(), len(IS.get_set()))
    return IS


def read_implications(path: Union[str, Path]) -> ImplicationalSystem:
    return parse_implications(Path(path).read_text())


def context_from_dataframe(df: pd.DataFrame) -> Context:
    """Context from a cross table: rows are objects, columns attributes."""
    cells = df.fillna("").astype(str).apply(lambda col: col.str.strip())
    incidence = cells.isin(TRUTHY).to_numpy()
    objects = [_element(str(o).strip()) for o in df.index]
    attributes = [_element(str(a).strip()) for a in df.columns]
    return Context(objects, attributes, incidence)


def read_context_csv(path: Union[str, Path]) -> Context:
    """Read a context table: object names in the first column, attributes as header."""
    df = pd.read_csv(path, index_col=0, dtype=str)
    return context_from_dataframe(df)


# ----------------------------
# Writers
# ----------------------------

class GraphWriter:
    """Abstract graph writer."""

    def write(self, graph: DGraph, stream: TextIO) -> None:  # pragma: no cover
        raise NotImplementedError


_WRITERS: Dict[str, GraphWriter] = {}


def register(name: str, writer: GraphWriter) -> None:
    _WRITERS[name] = writer


def unregister(name: str) -> Optional[GraphWriter]:
    """Remove the writer registered under `name` and return it (None if absent)."""
    return _WRITERS.pop(name, None)


def get(name: str) -> Optional[GraphWriter]:
    return _WRITERS.get(name)


def write(graph: DGraph, fmt: str, stream: TextIO) -> bool:
    writer = get(fmt)
    if writer is None:
        return False
    writer.write(graph, stream)
    return True


def _quote(s: str) -> str:
    return '"' + s.replace("\\", "\\\\").replace('"', '\\"') + '"'


class DotWriter(GraphWriter):
    """Graphviz DOT output, bottom-to-top; acyclic graphs get one rank per depth."""

    @classmethod
    def register(cls) -> None:
        register("dot", cls())

    def write(self, graph: DGraph, stream: TextIO) -> None:
        stream.write("digraph G {\n")
        stream.write("  rankdir=BT;\n")
        for n in graph.nodes():
            stream.write(f"  {n.ident} [label={_quote(n.label())}];\n")
        for ed in graph.edges():
            attrs = f" [label={_quote(str(ed.content))}]" if ed.has_content() else ""
            stream.write(f"  {ed.from_node.ident} -> {ed.to_node.ident}{attrs};\n")
        if graph.size() and graph.is_acyclic():
            slices: Dict[int, List[int]] = {}
            for ident, d in longest_path_depth(graph.G).items():
                slices.setdefault(d, []).append(ident)
            for d in sorted(slices):
                idents = " ".join(str(i) for i in sorted(slices[d]))
                stream.write(f"  {{rank=same; {idents}}}\n")
        stream.write("}\n")
