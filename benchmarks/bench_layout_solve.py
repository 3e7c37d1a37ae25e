# Copyright (c) 2025.
# This file is part of tag-layout, released under the MIT License.

import time

import numpy as np

from tag_layout.core.disjoint_set_graph import Edge, Graph
from tag_layout.core.types import Pose3, Tag, TagId
from tag_layout.world.layout_estimator import LayoutEstimator


def build_random_graph(num_tags: int, num_edges: int, seed: int = 0):
    """
    Random weighted relation graph over ``num_tags`` vertices:

        - a chain 0 - 1 - ... - N-1 so everything is connected
        - ``num_edges`` extra random edges with random weights

    Edge payloads are random small transforms.
    """
    rng = np.random.default_rng(seed)
    edges = []
    for i in range(num_tags - 1):
        edges.append(Edge(i, i + 1, float(rng.random()), Pose3(x=1.0)))
    for _ in range(num_edges):
        a, b = (int(v) for v in rng.integers(0, num_tags, size=2))
        if a != b:
            edges.append(Edge(a, b, float(rng.random()), Pose3(*rng.normal(0.0, 0.1, size=6))))
    return list(range(num_tags)), edges


def run_benchmark(num_tags: int = 500, num_edges: int = 5000, repeats: int = 20):
    print("=== Kruskal MSF Benchmark ===")
    print(f"num_tags = {num_tags}, num_edges = {num_edges}, repeats = {repeats}")

    vertices, edges = build_random_graph(num_tags, num_edges)
    g: Graph[Pose3] = Graph()

    t0 = time.time()
    for _ in range(repeats):
        g.fill(vertices, edges)
        complete = g.solve_msf()
    t1 = time.time()

    elapsed = (t1 - t0) * 1000.0 / repeats
    print(f"fill + solve_msf: {elapsed:.3f} ms, spanning tree = {complete}, weight = {g.total_weight():.3f}")

    # Reconstruction through the estimator on the solved forest
    est = LayoutEstimator()
    est.graph.fill(vertices, g.edges)
    est.graph.solve_msf()

    t0 = time.time()
    layout = est.find_layout(Tag(TagId(0), Pose3()))
    t1 = time.time()
    print(f"find_layout: {(t1 - t0) * 1000.0:.3f} ms for {len(layout)} tags")


def run_update_benchmark(num_tags: int = 8, cycles: int = 20, dt: float = 0.02, seed: int = 0):
    """
    Per-cycle cost of ``LayoutEstimator.update`` once every pair holds a full
    window, i.e. every relation recomputes its trust on every call.
    """
    num_pairs = num_tags * (num_tags - 1) // 2
    print("=== Per-cycle update Benchmark ===")
    print(f"num_tags = {num_tags} ({num_pairs} pairs), cycles = {cycles}")

    rng = np.random.default_rng(seed)
    exact = [Pose3(float(rng.uniform(1.0, 4.0)), *rng.uniform(-1.0, 1.0, size=5)) for _ in range(num_tags)]

    def observations():
        return [
            Tag(TagId(i), Pose3.from_array(np.array(pose.to_array()) + rng.normal(0.0, 1e-3, size=6)))
            for i, pose in enumerate(exact)
        ]

    est = LayoutEstimator(update_delta=dt)
    now = 0.0
    while now < est.config.buffer_length + dt:
        est.update(observations(), now=now)
        now += dt

    batches = [observations() for _ in range(cycles)]
    t0 = time.time()
    for tags in batches:
        est.update(tags, now=now)
        now += dt
    t1 = time.time()

    per_cycle = (t1 - t0) * 1000.0 / cycles
    print(f"per-cycle update: {per_cycle:.3f} ms (control period {dt * 1000.0:.0f} ms)")


if __name__ == "__main__":
    # Example:
    #   python3 benchmarks/bench_layout_solve.py
    run_benchmark(num_tags=100, num_edges=1000)
    run_benchmark(num_tags=500, num_edges=5000)
    run_update_benchmark(num_tags=8)
    run_update_benchmark(num_tags=12)
