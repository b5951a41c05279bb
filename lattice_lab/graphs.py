from __future__ import annotations

from dataclasses import dataclass
from functools import total_ordering
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

import itertools
import logging

import networkx as nx

logger = logging.getLogger(__name__)

_IDENTS = itertools.count()


@total_ordering
class Node:
    """Graph vertex carrying an arbitrary content.

    Every node gets a unique integer ident at creation. Graphs key their underlying
    networkx graph by ident, so the same Node object can live in several graphs
    (subgraphs share nodes with their parent). Nodes order by ident.
    """

    def __init__(self, content: Any = None):
        self.content = content
        self.ident: int = next(_IDENTS)

    def __lt__(self, other: "Node") -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        return self.ident < other.ident

    def label(self) -> str:
        return "" if self.content is None else str(self.content)

    def __repr__(self) -> str:
        return f"Node({self.content!r})"


class Component(Node):
    """Node standing for a strongly connected component of another graph."""

    def __init__(self, members: Iterable[Node]):
        self.members: Tuple[Node, ...] = tuple(sorted(members))
        super().__init__(self.members)

    def contents(self) -> List[Any]:
        return [m.content for m in self.members]

    def label(self) -> str:
        return " ".join(m.label() for m in self.members)

    def __repr__(self) -> str:
        return f"Component({self.contents()!r})"


@total_ordering
class Edge:
    """Directed edge from_node -> to_node with an optional content (valuation)."""

    def __init__(self, from_node: Node, to_node: Node, content: Any = None):
        self.from_node = from_node
        self.to_node = to_node
        self.content = content

    def key(self) -> Tuple[int, int]:
        return (self.from_node.ident, self.to_node.ident)

    def has_content(self) -> bool:
        return self.content is not None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Edge):
            return NotImplemented
        return self.key() == other.key()

    def __hash__(self) -> int:
        return hash(self.key())

    def __lt__(self, other: "Edge") -> bool:
        if not isinstance(other, Edge):
            return NotImplemented
        return self.key() < other.key()

    def __repr__(self) -> str:
        if self.content is None:
            return f"Edge({self.from_node!r} -> {self.to_node!r})"
        return f"Edge({self.from_node!r} -> {self.to_node!r}, {self.content!r})"


@dataclass(frozen=True)
class Condensation:
    """Condensation information for a directed graph."""

    sccs: List[Set[int]]
    node_to_scc: Dict[int, int]
    dag: nx.DiGraph
    depth: Dict[int, int]


def compute_condensation(G: nx.DiGraph, with_depth: bool = True) -> Condensation:
    """Compute SCCs, condensation DAG, and (if with_depth) a longest-path depth label on the DAG."""
    scc_list = [set(c) for c in nx.strongly_connected_components(G)]
    # stable component numbering: order components by their smallest member
    scc_list.sort(key=min)
    node_to_scc: Dict[int, int] = {}
    for idx, comp in enumerate(scc_list):
        for node in comp:
            node_to_scc[node] = idx

    dag = nx.DiGraph()
    dag.add_nodes_from(range(len(scc_list)))
    for u, v in G.edges():
        su, sv = node_to_scc[u], node_to_scc[v]
        if su != sv:
            dag.add_edge(su, sv)

    if not nx.is_directed_acyclic_graph(dag):
        # condensation should be a DAG by construction; if it isn't, something is wrong
        raise RuntimeError("Condensation DAG is not acyclic (unexpected).")

    depth = longest_path_depth(dag) if with_depth else {}
    return Condensation(sccs=scc_list, node_to_scc=node_to_scc, dag=dag, depth=depth)


def longest_path_depth(dag: nx.DiGraph) -> Dict[int, int]:
    """Depth label = length of a longest directed path ending at node."""
    order = list(nx.topological_sort(dag))
    depth: Dict[int, int] = {v: 0 for v in dag.nodes()}
    for v in order:
        preds = list(dag.predecessors(v))
        depth[v] = 0 if not preds else 1 + max(depth[p] for p in preds)
    return depth


class DGraph:
    """Directed graph of Node objects.

    Storage is an nx.DiGraph over node idents plus a table ident -> Node. Each
    networkx edge holds its Edge object under the "edge" key; networkx shares one
    data dict between the successor and predecessor maps, so both sides always see
    the same Edge.
    """

    def __init__(self, nodes: Optional[Iterable[Node]] = None):
        self.G = nx.DiGraph()
        self._nodes: Dict[int, Node] = {}
        if nodes is not None:
            for n in nodes:
                self.add_node(n)

    # ----------------------------
    # nodes
    # ----------------------------

    def add_node(self, n: Node) -> bool:
        if n.ident in self._nodes:
            return False
        self._nodes[n.ident] = n
        self.G.add_node(n.ident)
        return True

    def remove_node(self, n: Node) -> bool:
        if not self.contains_node(n):
            return False
        self.G.remove_node(n.ident)
        del self._nodes[n.ident]
        return True

    def contains_node(self, n: Node) -> bool:
        return self._nodes.get(n.ident) is n

    def get_node(self, content: Any) -> Optional[Node]:
        """First node (in ident order) whose content equals `content`, or None."""
        for n in self.nodes():
            if n.content == content:
                return n
        return None

    def get_node_by_ident(self, ident: int) -> Optional[Node]:
        return self._nodes.get(ident)

    def nodes(self) -> List[Node]:
        return [self._nodes[i] for i in sorted(self._nodes)]

    def size(self) -> int:
        return len(self._nodes)

    # ----------------------------
    # edges
    # ----------------------------

    def add_edge(self, from_node: Node, to_node: Node, content: Any = None) -> bool:
        """Add from_node -> to_node. False when an endpoint is absent or the edge exists."""
        return self.add_edge_object(Edge(from_node, to_node, content))

    def add_edge_object(self, edge: Edge) -> bool:
        if not (self.contains_node(edge.from_node) and self.contains_node(edge.to_node)):
            return False
        if self.G.has_edge(*edge.key()):
            return False
        self._add_edge_unchecked(edge)
        return True

    def _add_edge_unchecked(self, edge: Edge) -> None:
        u, v = edge.key()
        self.G.add_edge(u, v, edge=edge)

    def remove_edge(self, from_node: Node, to_node: Node) -> bool:
        if not self.G.has_edge(from_node.ident, to_node.ident):
            return False
        self.G.remove_edge(from_node.ident, to_node.ident)
        return True

    def contains_edge(self, from_node: Node, to_node: Node) -> bool:
        return self.G.has_edge(from_node.ident, to_node.ident)

    def get_edge(self, from_node: Node, to_node: Node) -> Optional[Edge]:
        data = self.G.get_edge_data(from_node.ident, to_node.ident)
        return None if data is None else data["edge"]

    def edges(self) -> List[Edge]:
        return sorted(d["edge"] for _u, _v, d in self.G.edges(data=True))

    def number_of_edges(self) -> int:
        return self.G.number_of_edges()

    # ----------------------------
    # adjacency
    # ----------------------------

    def successors(self, n: Node) -> List[Node]:
        if not self.contains_node(n):
            return []
        return [self._nodes[v] for v in sorted(self.G.successors(n.ident))]

    def predecessors(self, n: Node) -> List[Node]:
        if not self.contains_node(n):
            return []
        return [self._nodes[u] for u in sorted(self.G.predecessors(n.ident))]

    def edges_succ(self, n: Node) -> List[Edge]:
        if not self.contains_node(n):
            return []
        return [self.G.edges[n.ident, v]["edge"] for v in sorted(self.G.successors(n.ident))]

    def edges_pred(self, n: Node) -> List[Edge]:
        if not self.contains_node(n):
            return []
        return [self.G.edges[u, n.ident]["edge"] for u in sorted(self.G.predecessors(n.ident))]

    def sinks(self) -> List[Node]:
        """Nodes without outgoing edges."""
        return [n for n in self.nodes() if self.G.out_degree(n.ident) == 0]

    def sources(self) -> List[Node]:
        """Nodes without incoming edges."""
        return [n for n in self.nodes() if self.G.in_degree(n.ident) == 0]

    # ----------------------------
    # copies, transpose, subgraphs
    # ----------------------------

    def _fill_from(self, other: "DGraph") -> None:
        for n in other.nodes():
            self.add_node(n)
        for ed in other.edges():
            self._add_edge_unchecked(Edge(ed.from_node, ed.to_node, ed.content))

    def copy(self) -> "DGraph":
        """Copy sharing the node objects; edges are fresh objects with the same content."""
        g = type(self)()
        g._fill_from(self)
        return g

    def transpose(self) -> None:
        """Reverse every edge in place."""
        edges = self.edges()
        self.G.remove_edges_from([ed.key() for ed in edges])
        for ed in edges:
            self._add_edge_unchecked(Edge(ed.to_node, ed.from_node, ed.content))

    def get_transpose(self) -> "DGraph":
        g = self.copy()
        g.transpose()
        return g

    def subgraph_by_nodes(self, nodes: Iterable[Node]) -> "DGraph":
        """Induced subgraph. Nodes and Edge objects are shared with this graph."""
        sub = DGraph(n for n in nodes if self.contains_node(n))
        for ed in self.edges():
            if sub.contains_node(ed.from_node) and sub.contains_node(ed.to_node):
                sub._add_edge_unchecked(ed)
        return sub

    def subgraph_by_edges(self, edges: Iterable[Edge]) -> "DGraph":
        """All nodes of this graph, restricted to the given edges that belong to it."""
        sub = DGraph(self.nodes())
        for ed in edges:
            own = self.get_edge(ed.from_node, ed.to_node)
            if own is not None:
                sub._add_edge_unchecked(own)
        return sub

    # ----------------------------
    # orders
    # ----------------------------

    def is_acyclic(self) -> bool:
        return nx.is_directed_acyclic_graph(self.G)

    def topological_sort(self) -> List[Node]:
        """All nodes ordered so that every edge goes forward (ties broken by ident)."""
        try:
            order = list(nx.lexicographical_topological_sort(self.G))
        except nx.NetworkXUnfeasible as exc:
            raise ValueError("Topological sort failed (graph has a cycle).") from exc
        return [self._nodes[i] for i in order]

    def transitive_closure(self) -> int:
        """Add a->b whenever b is reachable from a (a != b). Returns the number of edges added."""
        closure = nx.transitive_closure(self.G, reflexive=False)
        added = 0
        for u, v in closure.edges():
            if u != v and not self.G.has_edge(u, v):
                self._add_edge_unchecked(Edge(self._nodes[u], self._nodes[v]))
                added += 1
        return added

    def transitive_reduction(self) -> int:
        """Remove every edge bypassed by a longer path. Returns the number of edges removed."""
        if not self.is_acyclic():
            raise ValueError("Transitive reduction requires an acyclic graph.")
        reduced = nx.transitive_reduction(self.G)
        doomed = [(u, v) for u, v in self.G.edges() if not reduced.has_edge(u, v)]
        self.G.remove_edges_from(doomed)
        return len(doomed)

    def strongly_connected_component(self) -> "DAGraph":
        """Collapse every SCC into one Component node; the result is acyclic."""
        cond = compute_condensation(self.G, with_depth=False)
        dag = DAGraph()
        comps: List[Component] = []
        for members in cond.sccs:
            c = Component(self._nodes[i] for i in members)
            comps.append(c)
            dag.add_node(c)
        for su, sv in cond.dag.edges():
            dag._add_edge_unchecked(Edge(comps[su], comps[sv]))
        logger.debug("collapsed %d nodes into %d components", self.size(), len(comps))
        return dag

    def __repr__(self) -> str:
        return f"{type(self).__name__}(nodes={self.size()}, edges={self.number_of_edges()})"


class DAGraph(DGraph):
    """Directed acyclic graph: edges closing a cycle are refused."""

    @classmethod
    def from_graph(cls, g: DGraph) -> "DAGraph":
        """Copy of g sharing its nodes, or an empty graph when g has a cycle."""
        dag = cls()
        if g.is_acyclic():
            dag._fill_from(g)
        return dag

    def add_edge_object(self, edge: Edge) -> bool:
        if edge.from_node is edge.to_node:
            return False
        if self.contains_node(edge.from_node) and self.contains_node(edge.to_node):
            if nx.has_path(self.G, edge.to_node.ident, edge.from_node.ident):
                return False
        return super().add_edge_object(edge)

    def minimals(self) -> List[Node]:
        return self.sources()

    def maximals(self) -> List[Node]:
        return self.sinks()

    def minorants(self, n: Node) -> List[Node]:
        """Nodes strictly below n, i.e. with a path to n."""
        if not self.contains_node(n):
            return []
        return [self._nodes[i] for i in sorted(nx.ancestors(self.G, n.ident))]

    def majorants(self, n: Node) -> List[Node]:
        """Nodes strictly above n, i.e. reachable from n."""
        if not self.contains_node(n):
            return []
        return [self._nodes[i] for i in sorted(nx.descendants(self.G, n.ident))]

    def ideal(self, n: Node) -> List[Node]:
        return sorted(self.minorants(n) + [n]) if self.contains_node(n) else []

    def filter(self, n: Node) -> List[Node]:
        return sorted(self.majorants(n) + [n]) if self.contains_node(n) else []

    def depths(self) -> Dict[Node, int]:
        """Length of a longest path ending at each node."""
        return {self._nodes[i]: d for i, d in longest_path_depth(self.G).items()}
