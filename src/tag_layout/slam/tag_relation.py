# Copyright (c) 2025.
# This file is part of tag-layout, released under the MIT License.
"""
Time-windowed tracking of the relative transform between two tags.

A :class:`TagRelation` follows one unordered pair of tags. Every control
cycle in which both tags are visible, the observed relative pose is pushed
into a sliding buffer keyed by timestamp. Once the buffer holds a nearly
full window of *continuous* observations, the buffer's mean pose and
std-dev are computed and collapsed into a scalar "distrust" score. The
lowest-distrust mean ever seen is kept as the pair's best transform.

Tags are stationary, so a pair's true relative transform never changes;
the tracker is searching for the steadiest observation window over the
whole run and holds on to it.

Key Concepts
------------
TrackerConfig
    Buffer retention window, maximum gap between samples, expected cycle
    period, and the rotation weighting used by the distrust score.

estimate_distrust(std_devs, rot_scale, rot_pow)
    distrust = ‖σ_t‖ + Σ_axis ( rot_scale · σ_r + σ_r ** rot_pow )

TagRelation.update(pose, now)
    continuity check → insert → expire → (window full) trust update.

TagRelation.consider_candidate(distrust, transform)
    Monotonic "best so far" transition.
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
import logging
import math
from typing import Deque, Optional, Tuple

from tag_layout.core.jax_init import jax, jnp
from tag_layout.core.types import Pose3
from tag_layout.slam.pose_statistics import pad_window, pose_rows, window_statistics

logger = logging.getLogger(__name__)


@dataclass
class TrackerConfig:
    # seconds of observations kept per relation
    buffer_length: float = 3.0
    # larger gaps between samples break continuity and clear the buffer
    buffer_max_gap: float = 0.5
    # expected seconds between control cycles
    update_delta: float = 0.02
    # weighting of rotation radians relative to translation meters
    rot_scale: float = 5.0
    rot_pow: float = 2.0

    def __post_init__(self) -> None:
        if self.buffer_length <= 0.0:
            raise ValueError(f"buffer_length must be positive, got {self.buffer_length}")
        if self.buffer_max_gap <= 0.0:
            raise ValueError(f"buffer_max_gap must be positive, got {self.buffer_max_gap}")
        if not 0.0 < 2.0 * self.update_delta < self.buffer_length:
            raise ValueError(
                f"update_delta must satisfy 0 < 2 * update_delta < buffer_length, "
                f"got update_delta={self.update_delta}, buffer_length={self.buffer_length}"
            )

    @property
    def full_span(self) -> float:
        """Buffer span (seconds) at which the window counts as full."""
        return self.buffer_length - 2.0 * self.update_delta


def estimate_distrust(std_devs: Pose3, rot_scale: float = 5.0, rot_pow: float = 2.0) -> float:
    """
    Scalar "distrust" of a set of pose standard deviations (>= 0).

    Lower is more trustworthy. Translation contributes its Euclidean norm;
    each rotation axis contributes ``rot_scale * σ + σ ** rot_pow``.
    """
    distrust = math.sqrt(std_devs.x ** 2 + std_devs.y ** 2 + std_devs.z ** 2)
    for sigma in std_devs.rotation:
        distrust += rot_scale * sigma + sigma ** rot_pow
    return distrust


@jax.jit
def window_trust(arr: jnp.ndarray, mask: jnp.ndarray, rot_scale: float, rot_pow: float) -> jnp.ndarray:
    """
    ``[mean (6), distrust]`` of a padded, masked window as one 7-vector.

    The distrust term is :func:`estimate_distrust` applied to the window
    std-dev, evaluated inside the same compiled call.
    """
    mean, std = window_statistics(arr, mask)
    rot = std[3:]
    distrust = jnp.sqrt(jnp.sum(std[:3] ** 2)) + jnp.sum(rot_scale * rot + rot ** rot_pow)
    return jnp.concatenate([mean, distrust[None]])


@dataclass
class TagRelation:
    """Sliding-window estimate of the transform from one tag to another."""

    config: TrackerConfig = field(default_factory=TrackerConfig)
    best_transform: Optional[Pose3] = None
    best_distrust: float = math.inf
    _buffer: Deque[Tuple[float, Pose3]] = field(default_factory=deque, init=False, repr=False)

    @property
    def buffer(self) -> Tuple[Tuple[float, Pose3], ...]:
        return tuple(self._buffer)

    @property
    def buffer_span(self) -> float:
        """Seconds between the oldest and newest buffered sample."""
        if not self._buffer:
            return 0.0
        return self._buffer[-1][0] - self._buffer[0][0]

    @property
    def has_estimate(self) -> bool:
        return self.best_transform is not None

    def consider_candidate(self, distrust: float, transform: Pose3) -> bool:
        """
        Adopt ``transform`` if it is strictly more trustworthy than the best
        seen so far. Returns True when the best estimate changed.
        """
        if distrust < self.best_distrust:
            self.best_distrust = distrust
            self.best_transform = transform
            return True
        return False

    def _expire(self, now: float) -> None:
        while self._buffer and now - self._buffer[0][0] >= self.config.buffer_length:
            self._buffer.popleft()

    def update(self, relative_pose: Pose3, now: float) -> None:
        """Record one observation of the relative pose taken at time ``now``."""
        if self._buffer:
            last = self._buffer[-1][0]
            if now - last > self.config.buffer_max_gap:
                logger.debug("Gap of %.3fs broke continuity; clearing %d samples", now - last, len(self._buffer))
                self._buffer.clear()
            elif now == last:
                self._buffer.pop()
            elif now < last:
                logger.warning("Dropping out-of-order sample at t=%.3f (last t=%.3f)", now, last)
                return

        self._buffer.append((now, relative_pose))
        self._expire(now)

        if self.buffer_span >= self.config.full_span:
            self._update_trust()

    def _update_trust(self) -> None:
        padded, mask = pad_window(pose_rows([pose for _, pose in self._buffer]))
        *mean, distrust = window_trust(padded, mask, self.config.rot_scale, self.config.rot_pow).tolist()
        if self.consider_candidate(distrust, Pose3(*mean)):
            logger.debug("New best transform (distrust %.5f) from %d samples", distrust, len(self._buffer))
