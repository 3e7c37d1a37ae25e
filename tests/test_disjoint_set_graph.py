from __future__ import annotations

import numpy as np
import pytest

from tag_layout.core.disjoint_set_graph import Edge, Graph, Vertex, edge_summary


def _naive_components(n: int, pairs) -> list[set[int]]:
    """Reference connectivity by repeated label merging."""
    label = list(range(n))
    for a, b in pairs:
        old, new = label[b], label[a]
        label = [new if x == old else x for x in label]
    groups: dict[int, set[int]] = {}
    for v, l in enumerate(label):
        groups.setdefault(l, set()).add(v)
    return list(groups.values())


def test_edge_is_canonicalized_low_to_high():
    e = Edge(7, 3, 1.5, "payload")
    assert (e.id_a, e.id_b) == (3, 7)
    assert e.other(3) == 7
    assert e.other(7) == 3


def test_union_find_state_is_not_a_constructor_argument():
    with pytest.raises(TypeError):
        Graph(_parent={1: 2})
    with pytest.raises(TypeError):
        Graph(_edges=[Edge(1, 2, 1.0)])
    g: Graph[str] = Graph()
    assert g.vertices == {} and g.edges == ()
    assert not g.is_spanning_tree


def test_fill_sorts_edges_by_weight():
    g: Graph[str] = Graph()
    g.fill(
        [1, 2, 3],
        [Edge(1, 2, 3.0), Edge(2, 3, 1.0), Edge(1, 3, 2.0)],
    )
    assert [e.weight for e in g.edges] == [1.0, 2.0, 3.0]


def test_fill_keeps_first_duplicate_vertex():
    g: Graph[str] = Graph()
    g.fill([Vertex(1, "first"), Vertex(1, "second"), Vertex(2)], [])
    assert g.vertices[1].data == "first"
    assert len(g.vertices) == 2


def test_fill_rejects_edges_to_unknown_vertices():
    g: Graph[str] = Graph()
    with pytest.raises(ValueError):
        g.fill([1, 2], [Edge(1, 5, 1.0)])


def test_fill_resets_union_find_state():
    g: Graph[str] = Graph()
    g.fill([1, 2], [])
    g.union(1, 2)
    assert g.find_root(1) == g.find_root(2)
    g.fill([1, 2], [])
    assert g.find_root(1) != g.find_root(2)


def test_union_by_rank():
    g: Graph[str] = Graph()
    g.fill([1, 2, 3], [])
    root = g.union(1, 2)
    assert root == 1
    assert g.rank(1) == 1
    # a rank-0 subset goes under the higher-rank root
    assert g.union(3, 2) == 1
    assert g.rank(1) == 1
    assert g.find_root(3) == 1


def test_union_of_same_subset_is_noop():
    g: Graph[str] = Graph()
    g.fill([1, 2], [])
    g.union(1, 2)
    g.union(2, 1)
    assert g.rank(g.find_root(1)) == 1


def test_find_root_unknown_vertex_raises():
    g: Graph[str] = Graph()
    g.fill([1], [])
    with pytest.raises(KeyError):
        g.find_root(2)


def test_union_find_matches_transitive_closure():
    rng = np.random.default_rng(0)
    n = 40
    pairs = [tuple(int(v) for v in rng.integers(0, n, size=2)) for _ in range(30)]

    g: Graph[str] = Graph()
    g.fill(range(n), [])
    for a, b in pairs:
        g.union(a, b)

    for group in _naive_components(n, pairs):
        roots = {g.find_root(v) for v in group}
        assert len(roots) == 1
    expected = sorted(sorted(c) for c in _naive_components(n, pairs))
    actual = sorted(sorted(c) for c in g.components())
    assert actual == expected


def test_solve_msf_spanning_tree():
    g: Graph[str] = Graph()
    g.fill(
        [1, 2, 3, 4],
        [Edge(1, 2, 1.0), Edge(2, 3, 2.0), Edge(1, 3, 3.0), Edge(3, 4, 0.5)],
    )
    assert g.solve_msf() is True
    assert g.is_spanning_tree
    assert edge_summary(g.edges) == [(3, 4, 0.5), (1, 2, 1.0), (2, 3, 2.0)]
    assert g.total_weight() == pytest.approx(3.5)


def test_solve_msf_forest():
    g: Graph[str] = Graph()
    g.fill([1, 2, 3, 4], [Edge(1, 2, 1.0), Edge(3, 4, 1.0)])
    assert g.solve_msf() is False
    assert len(g.edges) == 2
    assert sorted(sorted(c) for c in g.components()) == [[1, 2], [3, 4]]


@pytest.mark.parametrize("vertices", [[], [5]])
def test_solve_msf_trivial_graphs(vertices):
    g: Graph[str] = Graph()
    g.fill(vertices, [])
    assert g.solve_msf() is True
    assert g.edges == ()
    assert g.total_weight() == 0.0


def test_solve_msf_invariants_on_random_graph():
    rng = np.random.default_rng(7)
    n = 25
    edges = []
    for _ in range(80):
        a, b = (int(v) for v in rng.integers(0, n, size=2))
        if a != b:
            edges.append(Edge(a, b, float(rng.random())))

    g: Graph[str] = Graph()
    g.fill(range(n), edges)
    complete = g.solve_msf()
    kept = g.edges

    assert len(kept) <= n - 1
    assert complete == (len(kept) == n - 1)
    assert complete == (len(g.components()) == 1)
    assert [e.weight for e in kept] == sorted(e.weight for e in kept)

    # replay: every kept edge must join two different subsets
    replay: Graph[str] = Graph()
    replay.fill(range(n), [])
    for e in kept:
        assert replay.find_root(e.id_a) != replay.find_root(e.id_b)
        replay.union(e.id_a, e.id_b)

    # kept edges connect exactly what all edges connect
    expected = sorted(sorted(c) for c in _naive_components(n, [(e.id_a, e.id_b) for e in edges]))
    assert sorted(sorted(c) for c in replay.components()) == expected


def test_solve_msf_prefers_lighter_edge_in_cycle():
    g: Graph[str] = Graph()
    g.fill([1, 2, 3], [Edge(1, 2, 0.1, "a"), Edge(2, 3, 0.2, "b"), Edge(1, 3, 5.0, "conflict")])
    g.solve_msf()
    assert "conflict" not in [e.data for e in g.edges]


def test_copy_is_independent():
    g: Graph[str] = Graph()
    g.fill([1, 2, 3], [Edge(1, 2, 1.0), Edge(2, 3, 1.0), Edge(1, 3, 1.0)])
    h = g.copy()
    g.solve_msf()
    assert len(g.edges) == 2
    assert len(h.edges) == 3
    assert h.find_root(1) != h.find_root(2)
