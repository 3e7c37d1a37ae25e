# Copyright (c) 2025.
# This file is part of tag-layout, released under the MIT License.
"""Sensor localization against an estimated tag layout.

A downstream consumer of :meth:`LayoutEstimator.find_layout`: every tag the
sensor currently sees, and that is part of the layout, yields one estimate
of the sensor's pose in the layout frame,

    T_layout_sensor = T_layout_tag ∘ T_sensor_tag⁻¹
"""

from __future__ import annotations
from typing import Dict, Iterable, Optional

from tag_layout.core.math3d import compose_pose, invert_pose
from tag_layout.core.types import Pose3, Tag, TagId
from tag_layout.slam.pose_statistics import average_pose


def estimate_sensor_poses(layout: Iterable[Tag], observations: Iterable[Tag]) -> Dict[TagId, Pose3]:
    """Sensor pose implied by each observed tag that appears in ``layout``.

    :param layout: Tags posed in the layout frame.
    :param observations: Tags posed in the sensor frame (sensor-to-tag).
    :returns: Mapping from tag id to the sensor pose that tag implies.
    """
    known = {tag.id: tag.pose for tag in layout}
    estimates: Dict[TagId, Pose3] = {}
    for obs in observations:
        tag_pose = known.get(obs.id)
        if tag_pose is None:
            continue
        estimates[obs.id] = compose_pose(tag_pose, invert_pose(obs.pose))
    return estimates


def fuse_sensor_poses(estimates: Dict[TagId, Pose3]) -> Optional[Pose3]:
    """Average of per-tag sensor estimates, or None when there are none."""
    if not estimates:
        return None
    return average_pose(list(estimates.values()))
