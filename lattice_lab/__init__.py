"""Lattice Lab: closed-set and concept lattices of finite closure systems.

This package implements:
- Directed graphs, acyclic graphs and SCC condensation (networkx-backed)
- Lattices: bounds, joins/meets, join- and meet-irreducibles
- Closure systems: implicational systems and formal contexts, Next Closure enumeration
- Concept lattice generation: complete lattice and Hasse diagram (Bordat),
  with the dependency graph and the canonical direct basis
- Lattice reductions (inclusion, irreducibles, join/meet) and edge valuation
- Readers for implications and context tables, DOT output

Designed to support research workflows on closure systems and formal concept analysis.
"""

__all__ = [
    "sets",
    "graphs",
    "lattice",
    "concepts",
    "closure",
    "concept_lattice",
    "io",
]
