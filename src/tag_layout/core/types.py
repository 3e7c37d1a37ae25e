# Copyright (c) 2025.
# This file is part of tag-layout, released under the MIT License.
"""
Core typed data structures for tag-layout.

This module defines the small immutable value types shared by every layer
of the layout engine. They carry no behavior beyond conversion to and from
flat JAX arrays: all pose algebra lives in :mod:`tag_layout.core.math3d`
and all statistics in :mod:`tag_layout.slam.pose_statistics`.

Classes
-------
Pose3
    A rigid-body transform stored as six scalars:
    - x, y, z: translation in meters
    - roll, pitch, yaw: extrinsic X-Y-Z rotation in radians

Tag
    A fiducial marker identified by an integer id, paired with a pose:
    - id: TagId
    - pose: Pose3 (meaning depends on the caller: camera-to-tag for raw
      observations, origin-to-tag for an estimated layout)

Notes
-----
Poses are frozen dataclasses so they can be stored in buffers and graph
edges without defensive copies. Converting to a 6-vector with
:meth:`Pose3.to_array` gives ``[x, y, z, roll, pitch, yaw]``, the layout
every array kernel in the package expects.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import NewType, Sequence

from .jax_init import jnp

TagId = NewType("TagId", int)


@dataclass(frozen=True)
class Pose3:
    """Rigid-body transform: translation plus roll/pitch/yaw."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    roll: float = 0.0
    pitch: float = 0.0
    yaw: float = 0.0

    @classmethod
    def identity(cls) -> "Pose3":
        return cls()

    @classmethod
    def from_array(cls, v: Sequence[float] | jnp.ndarray) -> "Pose3":
        """Build a pose from a 6-vector ``[x, y, z, roll, pitch, yaw]``."""
        return cls(*jnp.asarray(v, dtype=jnp.float64)[:6].tolist())

    def to_array(self) -> jnp.ndarray:
        return jnp.array(
            [self.x, self.y, self.z, self.roll, self.pitch, self.yaw],
            dtype=jnp.float64,
        )

    @property
    def translation(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    @property
    def rotation(self) -> tuple[float, float, float]:
        return (self.roll, self.pitch, self.yaw)


@dataclass(frozen=True)
class Tag:
    """A fiducial marker id with its pose."""
    id: TagId
    pose: Pose3
