from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set, Tuple

import itertools
import logging

import networkx as nx
import numpy as np

from .graphs import DAGraph, DGraph, Node

logger = logging.getLogger(__name__)


@dataclass
class LatticeCheckConfig:
    # pair enumeration / sampling for join and meet checks
    max_enumerate_pairs: int = 250_000
    sample_pairs: int = 4096

    # random seed
    seed: Optional[int] = None


def _sample_or_enumerate_pairs(
    idents: Sequence[int],
    rng: np.random.Generator,
    max_enumerate: int,
    n_sample: int,
) -> List[Tuple[int, int]]:
    n = len(idents)
    total = n * (n - 1) // 2
    if total <= max_enumerate:
        return list(itertools.combinations(idents, 2))
    pairs = set()
    for _ in range(max(1, n_sample)):
        i, j = rng.choice(n, size=2, replace=False)
        pairs.add((idents[int(i)], idents[int(j)]))
    return list(pairs)


def _least(candidates: Set[int], up: Dict[int, Set[int]]) -> Optional[int]:
    """The element of `candidates` below all the others, if any."""
    for c in candidates:
        if candidates <= up[c]:
            return c
    return None


class Lattice(DAGraph):
    """Acyclic graph whose reachability order is a lattice.

    Works both on a transitively closed graph and on a Hasse diagram: bounds are
    computed on reachability, covers on the transitive reduction.
    """

    @classmethod
    def from_graph(cls, g: DGraph, cfg: Optional[LatticeCheckConfig] = None) -> "Lattice":
        """Copy of g sharing its nodes, or an empty lattice when g is not a lattice."""
        candidate = cls()
        candidate._fill_from(g)
        if candidate.is_lattice(cfg):
            return candidate
        return cls()

    def _up_sets(self) -> Dict[int, Set[int]]:
        return {i: nx.descendants(self.G, i) | {i} for i in self.G.nodes()}

    def _down_sets(self) -> Dict[int, Set[int]]:
        return {i: nx.ancestors(self.G, i) | {i} for i in self.G.nodes()}

    def is_lattice(self, cfg: Optional[LatticeCheckConfig] = None) -> bool:
        """Unique bottom and top, and every checked pair has a join and a meet."""
        if cfg is None:
            cfg = LatticeCheckConfig()
        if self.size() == 0 or not self.is_acyclic():
            return False
        if len(self.sources()) != 1 or len(self.sinks()) != 1:
            return False
        rng = np.random.default_rng(cfg.seed)
        up = self._up_sets()
        down = self._down_sets()
        pairs = _sample_or_enumerate_pairs(
            sorted(self.G.nodes()), rng=rng,
            max_enumerate=cfg.max_enumerate_pairs,
            n_sample=cfg.sample_pairs,
        )
        for a, b in pairs:
            if _least(up[a] & up[b], up) is None:
                logger.debug("no join for idents %d, %d", a, b)
                return False
            if _least(down[a] & down[b], down) is None:
                logger.debug("no meet for idents %d, %d", a, b)
                return False
        return True

    def top(self) -> Optional[Node]:
        sinks = self.sinks()
        return sinks[0] if len(sinks) == 1 else None

    def bottom(self) -> Optional[Node]:
        sources = self.sources()
        return sources[0] if len(sources) == 1 else None

    def join(self, a: Node, b: Node) -> Optional[Node]:
        """Least upper bound of a and b, or None."""
        if not (self.contains_node(a) and self.contains_node(b)):
            return None
        up = self._up_sets()
        j = _least(up[a.ident] & up[b.ident], up)
        return None if j is None else self._nodes[j]

    def meet(self, a: Node, b: Node) -> Optional[Node]:
        """Greatest lower bound of a and b, or None."""
        if not (self.contains_node(a) and self.contains_node(b)):
            return None
        down = self._down_sets()
        m = _least(down[a.ident] & down[b.ident], down)
        return None if m is None else self._nodes[m]

    def _covering(self) -> nx.DiGraph:
        return nx.transitive_reduction(self.G)

    def covering_predecessors(self, n: Node) -> List[Node]:
        if not self.contains_node(n):
            return []
        return [self._nodes[u] for u in sorted(self._covering().predecessors(n.ident))]

    def covering_successors(self, n: Node) -> List[Node]:
        if not self.contains_node(n):
            return []
        return [self._nodes[v] for v in sorted(self._covering().successors(n.ident))]

    def join_irreducibles(self) -> List[Node]:
        """Nodes with exactly one lower cover."""
        cover = self._covering()
        return [n for n in self.nodes() if cover.in_degree(n.ident) == 1]

    def meet_irreducibles(self) -> List[Node]:
        """Nodes with exactly one upper cover."""
        cover = self._covering()
        return [n for n in self.nodes() if cover.out_degree(n.ident) == 1]
