# Copyright (c) 2025.
# This file is part of tag-layout, released under the MIT License.
"""
Mean and standard deviation of rigid-body poses.

Translation components are ordinary Euclidean quantities; orientation
components are angles and must be treated on the circle:

    • Mean angle: the direction of the averaged unit vector
          θ̄ = atan2( mean(sin θᵢ), mean(cos θᵢ) )
      so that samples at π − ε and −π + ε average to ±π, not 0.

    • Angular std-dev: residuals are wrapped into (−π, π] before
      squaring,
          σ = sqrt( mean( wrap(θᵢ − θ̄)² ) )

Both statistics are population (1/N) statistics. Empty inputs return the
identity pose (mean) or the zero pose (std-dev).

The ``*_array`` kernels work on ``(N, 6)`` arrays laid out as
``[x, y, z, roll, pitch, yaw]``; :func:`average_pose` and
:func:`std_dev_pose` are the :class:`Pose3` front-ends.
:func:`window_statistics` computes both over a zero-padded, masked window
in one jitted call; the relation tracker uses it once per cycle.
"""

from __future__ import annotations
from typing import Sequence, Tuple

import numpy as np

from tag_layout.core.jax_init import jax, jnp
from tag_layout.core.math3d import wrap_angle
from tag_layout.core.types import Pose3


MIN_WINDOW_CAPACITY = 64


def pose_rows(poses: Sequence[Pose3]) -> np.ndarray:
    """Host-side ``(N, 6)`` float64 array of poses."""
    if not poses:
        return np.zeros((0, 6), dtype=np.float64)
    return np.array(
        [(p.x, p.y, p.z, p.roll, p.pitch, p.yaw) for p in poses],
        dtype=np.float64,
    )


def pad_window(rows: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Zero-pad ``rows`` to a power-of-two capacity and return ``(padded, mask)``.

    Capacities grow in powers of two from ``MIN_WINDOW_CAPACITY``, so the
    jitted window kernel only compiles for a handful of shapes.
    """
    n = rows.shape[0]
    capacity = max(MIN_WINDOW_CAPACITY, 1 << max(n - 1, 0).bit_length())
    padded = np.zeros((capacity, 6), dtype=np.float64)
    padded[:n] = rows
    mask = np.zeros(capacity, dtype=bool)
    mask[:n] = True
    return padded, mask


@jax.jit
def window_statistics(arr: jnp.ndarray, mask: jnp.ndarray) -> Tuple[jnp.ndarray, jnp.ndarray]:
    """
    Mean and std-dev of the masked rows of a padded ``(C, 6)`` window.

    Same statistics as :func:`average_pose_array` and
    :func:`std_dev_pose_array`, fused into one compiled kernel. Padding rows
    (``mask == False``) carry no weight. An all-false mask yields zeros.
    """
    w = mask.astype(arr.dtype)[:, None]
    n = jnp.maximum(jnp.sum(w), 1.0)

    t_mean = jnp.sum(arr[:, :3] * w, axis=0) / n
    angles = arr[:, 3:6]
    r_mean = jnp.arctan2(
        jnp.sum(jnp.sin(angles) * w, axis=0) / n,
        jnp.sum(jnp.cos(angles) * w, axis=0) / n,
    )

    dt = (arr[:, :3] - t_mean) * w
    dr = wrap_angle(angles - r_mean) * w
    t_std = jnp.sqrt(jnp.sum(dt ** 2, axis=0) / n)
    r_std = jnp.sqrt(jnp.sum(dr ** 2, axis=0) / n)
    return jnp.concatenate([t_mean, r_mean]), jnp.concatenate([t_std, r_std])


def stack_poses(poses: Sequence[Pose3]) -> jnp.ndarray:
    """Stack poses into an ``(N, 6)`` array."""
    if not poses:
        return jnp.zeros((0, 6), dtype=jnp.float64)
    return jnp.asarray(pose_rows(poses))


def average_pose_array(arr: jnp.ndarray) -> jnp.ndarray:
    """Translation mean and circular rotation mean of an ``(N, 6)`` array."""
    arr = jnp.asarray(arr)
    if arr.shape[0] == 0:
        return jnp.zeros(6, dtype=jnp.float64)
    t_mean = jnp.mean(arr[:, :3], axis=0)
    angles = arr[:, 3:6]
    r_mean = jnp.arctan2(
        jnp.mean(jnp.sin(angles), axis=0),
        jnp.mean(jnp.cos(angles), axis=0),
    )
    return jnp.concatenate([t_mean, r_mean])


def std_dev_pose_array(mean: jnp.ndarray, arr: jnp.ndarray) -> jnp.ndarray:
    """Per-axis population std-dev about ``mean``, angles wrapped."""
    arr = jnp.asarray(arr)
    mean = jnp.asarray(mean)
    if arr.shape[0] == 0:
        return jnp.zeros(6, dtype=jnp.float64)
    dt = arr[:, :3] - mean[:3]
    dr = wrap_angle(arr[:, 3:6] - mean[3:6])
    t_std = jnp.sqrt(jnp.mean(dt ** 2, axis=0))
    r_std = jnp.sqrt(jnp.mean(dr ** 2, axis=0))
    return jnp.concatenate([t_std, r_std])


def average_pose(poses: Sequence[Pose3]) -> Pose3:
    """Mean pose; identity for no samples."""
    if not poses:
        return Pose3.identity()
    return Pose3.from_array(average_pose_array(stack_poses(poses)))


def std_dev_pose(mean_pose: Pose3, poses: Sequence[Pose3]) -> Pose3:
    """Standard deviation of ``poses`` about ``mean_pose``; zero pose for no samples."""
    if not poses:
        return Pose3()
    return Pose3.from_array(std_dev_pose_array(mean_pose.to_array(), stack_poses(poses)))
