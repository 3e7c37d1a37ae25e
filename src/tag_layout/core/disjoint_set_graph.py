"""
Union-find backed undirected graph for tag-layout.

This module implements the structure that turns a pile of pairwise tag
relations into a conflict-free set of transforms: an undirected weighted
graph over integer vertex ids whose vertices are tracked in a disjoint-set
(union-find) forest, solved with Kruskal's algorithm for a Minimum Spanning
Forest (MSF).

The Graph stores:
    - Vertices (one per tag id, deduplicated)
    - Edges (undirected, canonicalized so ``id_a <= id_b``)
    - Union-find state (parent and rank per vertex id)

Key Features
------------
• Arena-style union-find
    Vertices are plain values keyed by id. The graph owns separate
    ``parent`` and ``rank`` mappings; path compression rewrites the
    ``parent`` mapping instead of object references.

• Kruskal MSF
    Edges are kept sorted ascending by weight. ``solve_msf`` greedily keeps
    the cheapest edge that joins two different subsets and drops every edge
    that would close a cycle. When observations never connect all vertices
    the result is a forest rather than a tree.

Primary Methods
---------------
fill(vertices, edges)
    Replace the graph contents and reset union-find state.

find_root(vertex_id)
    Path-compressed find.

union(a, b)
    Union by rank.

solve_msf()
    Reduce the edge list to a Minimum Spanning Forest.

total_weight()
    Sum of current edge weights.

Notes
-----
Equal-weight edges keep their insertion order (Python's sort is stable),
which decides the tie-break during Kruskal's scan.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Generic, Iterable, List, Optional, Tuple, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Vertex(Generic[T]):
    """A graph vertex: an integer id plus an optional payload."""
    id: int
    data: Optional[T] = None


@dataclass(frozen=True)
class Edge(Generic[T]):
    """
    Undirected weighted edge.

    The endpoints are canonicalized on construction so that ``id_a`` is
    always the smaller id. ``data`` is interpreted relative to that order
    (e.g. a transform from ``id_a`` to ``id_b``).
    """
    id_a: int
    id_b: int
    weight: float
    data: Optional[T] = None

    def __post_init__(self) -> None:
        if self.id_b < self.id_a:
            a, b = self.id_a, self.id_b
            object.__setattr__(self, "id_a", b)
            object.__setattr__(self, "id_b", a)

    def other(self, vertex_id: int) -> int:
        """Endpoint opposite to ``vertex_id``."""
        return self.id_b if vertex_id == self.id_a else self.id_a


@dataclass
class Graph(Generic[T]):
    """
    Undirected weighted graph with union-find and Kruskal's MSF solver.

    - _vertices: mapping id -> Vertex
    - _edges: list of Edge, ascending by weight after ``fill``
    - _parent / _rank: union-find state keyed by vertex id
    """
    _vertices: Dict[int, Vertex[T]] = field(default_factory=dict, init=False)
    _edges: List[Edge[T]] = field(default_factory=list, init=False)
    _parent: Dict[int, int] = field(default_factory=dict, init=False)
    _rank: Dict[int, int] = field(default_factory=dict, init=False)
    is_spanning_tree: bool = field(default=False, init=False)

    @property
    def vertices(self) -> Dict[int, Vertex[T]]:
        return dict(self._vertices)

    @property
    def edges(self) -> Tuple[Edge[T], ...]:
        return tuple(self._edges)

    def copy(self) -> "Graph[T]":
        g: Graph[T] = Graph()
        g.fill(self._vertices.values(), self._edges)
        return g

    # --- Construction ---

    def fill(self, vertices: Iterable[Vertex[T] | int], edges: Iterable[Edge[T]]) -> None:
        """
        Replace all vertices and edges.

        Duplicate vertex ids keep their first occurrence. Every vertex starts
        as its own singleton subset. Edges are sorted ascending by weight.

        Raises:
            ValueError: if an edge references a vertex id that is not present.
        """
        self._vertices = {}
        for v in vertices:
            if not isinstance(v, Vertex):
                v = Vertex(int(v))
            self._vertices.setdefault(v.id, v)

        self._parent = {vid: vid for vid in self._vertices}
        self._rank = {vid: 0 for vid in self._vertices}

        new_edges = list(edges)
        for e in new_edges:
            if e.id_a not in self._vertices or e.id_b not in self._vertices:
                raise ValueError(
                    f"Edge ({e.id_a}, {e.id_b}) references a vertex not in the graph"
                )
        new_edges.sort(key=lambda e: e.weight)
        self._edges = new_edges
        self.is_spanning_tree = False

    # --- Union-find ---

    def find_root(self, vertex_id: int) -> int:
        """Return the subset representative of ``vertex_id``, compressing the path."""
        parent = self._parent[vertex_id]
        if parent != vertex_id:
            parent = self.find_root(parent)
            self._parent[vertex_id] = parent
        return parent

    def union(self, a: int, b: int) -> int:
        """
        Merge the subsets of ``a`` and ``b`` by rank and return the new root.

        On equal rank the root of ``a`` becomes the parent and its rank grows.
        """
        root_a = self.find_root(a)
        root_b = self.find_root(b)
        if root_a == root_b:
            return root_a
        if self._rank[root_a] < self._rank[root_b]:
            self._parent[root_a] = root_b
            return root_b
        if self._rank[root_a] > self._rank[root_b]:
            self._parent[root_b] = root_a
            return root_a
        self._parent[root_b] = root_a
        self._rank[root_a] += 1
        return root_a

    def rank(self, vertex_id: int) -> int:
        return self._rank[vertex_id]

    def components(self) -> List[FrozenSet[int]]:
        """Current subsets under the union-find relation, smallest id first."""
        groups: Dict[int, set] = {}
        for vid in sorted(self._vertices):
            groups.setdefault(self.find_root(vid), set()).add(vid)
        return [frozenset(g) for g in groups.values()]

    # --- Solving ---

    def solve_msf(self) -> bool:
        """
        Reduce the edges to a Minimum Spanning Forest (Kruskal's algorithm).

        Scans edges in ascending weight; an edge is kept when its endpoints
        lie in different subsets (the subsets are then merged) and dropped
        when it would close a cycle. The scan stops once ``|V| - 1`` edges
        are kept.

        Returns:
            True if the kept edges span all vertices (a Minimum Spanning
            Tree), False if the result is a forest of several components.
        """
        target = max(len(self._vertices) - 1, 0)
        result: List[Edge[T]] = []

        if target > 0:
            for edge in self._edges:
                root_a = self.find_root(edge.id_a)
                root_b = self.find_root(edge.id_b)
                if root_a != root_b:
                    result.append(edge)
                    self.union(root_a, root_b)
                    if len(result) >= target:
                        break

        self._edges = result
        self.is_spanning_tree = len(result) == target
        return self.is_spanning_tree

    def total_weight(self) -> float:
        return float(sum(edge.weight for edge in self._edges))


def edge_summary(edges: Iterable[Edge[Any]]) -> List[Tuple[int, int, float]]:
    """``(id_a, id_b, weight)`` triples, handy for logging and tests."""
    return [(e.id_a, e.id_b, e.weight) for e in edges]
