# Copyright (c) 2025.
# This file is part of tag-layout, released under the MIT License.
"""
Incremental tag layout estimation.

This module ties the lower layers together into the object a control loop
talks to. Each cycle the caller hands over the tags currently visible to
the sensor (all posed in one common frame, typically the camera frame):

    1. Every visible pair (low id, high id) feeds its relative pose into
       that pair's :class:`~tag_layout.slam.tag_relation.TagRelation`.
    2. The graph is rebuilt from every relation that has a best transform:
       one edge per pair, weighted by the relation's distrust.
    3. Kruskal's MSF drops the least trusted edges that would close cycles,
       so conflicting observations never meet during reconstruction.

On demand, :meth:`LayoutEstimator.find_layout` walks the solved forest
outward from an origin tag and returns absolute tag poses in the origin's
frame.

Typical usage
-------------

.. code-block:: python

    from tag_layout.world.layout_estimator import LayoutEstimator

    estimator = LayoutEstimator(update_delta=0.02)

    # once per control cycle
    estimator.update(visible_tags)

    # whenever a layout is needed
    layout = estimator.find_layout()

Notes
-----
The estimator is not thread-safe; all calls on one instance must be
serialized by the caller.
"""

from __future__ import annotations

from collections import deque
import logging
import time
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple

import numpy as np

from tag_layout.core.disjoint_set_graph import Edge, Graph, Vertex, edge_summary
from tag_layout.core.math3d import compose_pose, invert_pose, relative_pose_pairs_rpy
from tag_layout.core.types import Pose3, Tag, TagId
from tag_layout.slam.pose_statistics import pose_rows
from tag_layout.slam.tag_relation import TagRelation, TrackerConfig

logger = logging.getLogger(__name__)

#: Relations are keyed by (lower id, higher id).
PairKey = Tuple[int, int]


class LayoutEstimator:
    """Estimate a tag layout from repeated co-observations of tags.

    Parameters
    ----------
    update_delta:
        Expected seconds between calls to :meth:`update`. Ignored when
        ``config`` is given.
    config:
        Relation tracker configuration shared by every tag pair.
    clock:
        Monotonic time source in seconds, used when :meth:`update` is called
        without an explicit ``now``.
    """

    def __init__(
        self,
        update_delta: float = 0.02,
        config: Optional[TrackerConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if config is None:
            config = TrackerConfig(update_delta=update_delta)
        self.config = config
        self.clock = clock
        self._relations: Dict[PairKey, TagRelation] = {}
        self._graph: Graph[Pose3] = Graph()
        self.is_complete = False

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def relations(self) -> Mapping[PairKey, TagRelation]:
        return dict(self._relations)

    @property
    def graph(self) -> Graph[Pose3]:
        return self._graph

    def relation(self, a: int, b: int) -> Optional[TagRelation]:
        """Relation between two tag ids, in either order."""
        return self._relations.get((min(a, b), max(a, b)))

    def total_distrust(self) -> float:
        """Summed distrust of the solved spanning forest."""
        return self._graph.total_weight()

    # ------------------------------------------------------------------
    # Per-cycle update
    # ------------------------------------------------------------------

    def update(self, visible_tags: Iterable[Tag], now: Optional[float] = None) -> None:
        """Feed one cycle of visible tags and re-solve the relation graph.

        Parameters
        ----------
        visible_tags:
            Tags seen this cycle, all posed in one shared frame. If an id
            appears more than once the last occurrence is used.
        now:
            Timestamp of the observations in seconds. Defaults to
            ``self.clock()``.
        """
        by_id: Dict[int, Tag] = {}
        for tag in visible_tags:
            if tag.id in by_id:
                logger.warning("Duplicate tag id %d in one update; keeping the last", tag.id)
            by_id[tag.id] = tag
        if len(by_id) < 2:
            return

        if now is None:
            now = self.clock()

        tags = [by_id[tid] for tid in sorted(by_id)]
        base_idx, target_idx = np.triu_indices(len(tags), k=1)
        rows = relative_pose_pairs_rpy(pose_rows([tag.pose for tag in tags]), base_idx, target_idx).tolist()
        for i, j, row in zip(base_idx.tolist(), target_idx.tolist(), rows):
            key = (int(tags[i].id), int(tags[j].id))
            relation = self._relations.get(key)
            if relation is None:
                relation = TagRelation(config=self.config)
                self._relations[key] = relation
            relation.update(Pose3(*row), now)

        self._solve()

    def _solve(self) -> None:
        """Fill the graph with known relations and reduce it to an MSF."""
        vertices: Dict[int, Vertex[Pose3]] = {}
        edges: List[Edge[Pose3]] = []
        for (id_from, id_to), relation in self._relations.items():
            if relation.best_transform is None:
                continue
            edges.append(Edge(id_from, id_to, relation.best_distrust, relation.best_transform))
            vertices.setdefault(id_from, Vertex(id_from))
            vertices.setdefault(id_to, Vertex(id_to))

        self._graph.fill(vertices.values(), edges)
        self.is_complete = self._graph.solve_msf()
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "MSF over %d tags: %d edges, spanning=%s, edges=%s",
                len(vertices),
                len(self._graph.edges),
                self.is_complete,
                edge_summary(self._graph.edges),
            )

    # ------------------------------------------------------------------
    # Layout reconstruction
    # ------------------------------------------------------------------

    def _pick_origin(self, origin: Optional[Tag]) -> Optional[Tag]:
        vertex_ids = self._graph.vertices.keys()
        if origin is not None and (not vertex_ids or origin.id in vertex_ids):
            return origin
        if not vertex_ids:
            return None
        return Tag(TagId(min(vertex_ids)), Pose3.identity())

    def find_layout(self, origin: Optional[Tag] = None) -> List[Tag]:
        """Reconstruct absolute tag poses from the solved spanning forest.

        If ``origin`` is given and its id is part of the graph, the layout
        is built around it at its given pose. Otherwise the lowest tag id is
        placed at the identity pose. Only tags connected to the origin
        through the forest are returned; the order is unspecified.

        Parameters
        ----------
        origin:
            Optional known tag to anchor the layout.

        Returns
        -------
        list of Tag
            The origin plus every tag reachable from it.
        """
        origin = self._pick_origin(origin)
        if origin is None:
            return []

        adjacency: Dict[int, List[Edge[Pose3]]] = {}
        for edge in self._graph.edges:
            adjacency.setdefault(edge.id_a, []).append(edge)
            adjacency.setdefault(edge.id_b, []).append(edge)

        poses: Dict[int, Pose3] = {int(origin.id): origin.pose}
        frontier = deque([int(origin.id)])
        while frontier:
            current = frontier.popleft()
            for edge in adjacency.get(current, ()):
                neighbor = edge.other(current)
                if neighbor in poses:
                    continue
                if current == edge.id_a:
                    poses[neighbor] = compose_pose(poses[current], edge.data)
                else:
                    poses[neighbor] = compose_pose(poses[current], invert_pose(edge.data))
                frontier.append(neighbor)

        return [Tag(TagId(tid), pose) for tid, pose in poses.items()]
