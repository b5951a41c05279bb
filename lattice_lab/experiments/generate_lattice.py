"""
Generate the closed-set lattice of a closure system read from a file.

Inputs:
- implications: one rule per line, `a b -> c` (lines without `->` declare elements)
- context: CSV cross table, objects in the first column, attributes as header

Prints a summary dict and optionally writes the lattice (and, for the diagram
generator, the dependency graph) in DOT.
"""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any, Dict

from ..closure import ClosureSystem, Context
from ..concept_lattice import ConceptLattice
from ..io import DotWriter, read_context_csv, read_implications, write


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Closed-set / concept lattice of a closure system.")
    p.add_argument("--input", type=str, required=True, help="Implications file or context CSV.")
    p.add_argument("--kind", choices=["implications", "context"], default="implications")
    p.add_argument("--generator", choices=["diagram", "complete"], default="diagram",
                   help="Hasse diagram (Bordat) or transitively closed lattice (Next Closure).")
    p.add_argument("--dot", type=str, default=None, help="Write the lattice in DOT to this path.")
    p.add_argument("--dependency_dot", type=str, default=None,
                   help="Write the dependency graph in DOT to this path (diagram generator only).")
    p.add_argument("--verbose", action="store_true")
    return p


def load_closure_system(path: str, kind: str) -> ClosureSystem:
    if kind == "context":
        return read_context_csv(path)
    return read_implications(path)


def summarize(L: ConceptLattice) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "concepts": L.size(),
        "edges": L.number_of_edges(),
        "join_irreducibles": len(L.join_irreducibles()),
        "meet_irreducibles": len(L.meet_irreducibles()),
    }
    basis = L.canonical_direct_basis()
    if basis is not None:
        out["basis_rules"] = basis.size_rules()
    return out


def main() -> None:
    args = build_argparser().parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    init = load_closure_system(args.input, args.kind)
    diagram = args.generator == "diagram"
    if isinstance(init, Context):
        L = init.concept_lattice(diagram=diagram)
    else:
        L = init.closed_set_lattice(diagram=diagram)

    print(summarize(L))

    DotWriter.register()
    if args.dot:
        with Path(args.dot).open("w") as fh:
            write(L, "dot", fh)
    if args.dependency_dot:
        if L.dependency_graph is None:
            raise SystemExit("--dependency_dot needs the diagram generator.")
        with Path(args.dependency_dot).open("w") as fh:
            write(L.dependency_graph, "dot", fh)


if __name__ == "__main__":
    main()
