"""
Rigid-body pose algebra for tag-layout.

Poses are handled in their roll/pitch/yaw form ``[x, y, z, roll, pitch,
yaw]``, the same layout used by :class:`tag_layout.core.types.Pose3`.
Rotations are extrinsic X-Y-Z, so the rotation matrix is

    R = Rz(yaw) · Ry(pitch) · Rx(roll)

and a pose maps points from its own frame into its parent frame:

    p_parent = R · p_local + t

Key Functions
-------------
wrap_angle(a)
    Wrap angles into (−π, π].

rpy_to_rot(rpy) / rot_to_rpy(R)
    Convert between roll/pitch/yaw and 3×3 rotation matrices.

compose_pose_rpy(a, b)
    a ∘ b: apply ``b`` in the frame of ``a``.

invert_pose_rpy(a)
    a⁻¹, so that ``compose(a, a⁻¹)`` is the identity.

relative_pose_rpy(base, target)
    base⁻¹ ∘ target: the pose of ``target`` expressed in ``base``'s frame.

The ``*_rpy`` kernels are JIT-compiled over 6-vectors; ``compose_pose``,
``invert_pose`` and ``relative_pose`` are the :class:`Pose3` front-ends
used by the rest of the package.
"""

from __future__ import annotations

import math

from .jax_init import jax, jnp
from .types import Pose3

TWO_PI = 2.0 * math.pi


def wrap_angle(a: jnp.ndarray) -> jnp.ndarray:
    """Wrap angle(s) into the half-open interval (−π, π]."""
    a = jnp.asarray(a)
    return jnp.pi - jnp.mod(jnp.pi - a, TWO_PI)


def pose_vec_to_rt(v: jnp.ndarray) -> tuple[jnp.ndarray, jnp.ndarray]:
    """
    Split a 6D pose vector into translation and roll/pitch/yaw.
    v: [x, y, z, roll, pitch, yaw]
    """
    v = jnp.asarray(v)
    return v[0:3], v[3:6]


def rpy_to_rot(rpy: jnp.ndarray) -> jnp.ndarray:
    """Rotation matrix Rz(yaw) · Ry(pitch) · Rx(roll)."""
    roll, pitch, yaw = rpy[0], rpy[1], rpy[2]
    cr, sr = jnp.cos(roll), jnp.sin(roll)
    cp, sp = jnp.cos(pitch), jnp.sin(pitch)
    cy, sy = jnp.cos(yaw), jnp.sin(yaw)
    return jnp.array(
        [
            [cy * cp, cy * sp * sr - sy * cr, cy * sp * cr + sy * sr],
            [sy * cp, sy * sp * sr + cy * cr, sy * sp * cr - cy * sr],
            [-sp, cp * sr, cp * cr],
        ]
    )


def rot_to_rpy(R: jnp.ndarray) -> jnp.ndarray:
    """
    Extract roll/pitch/yaw from a rotation matrix.

    Pitch is recovered with ``atan2`` against the column norm rather than
    ``asin`` so values stay finite when numerical error pushes ``R[2, 0]``
    slightly outside [-1, 1]. At gimbal lock (|pitch| = π/2) roll is set
    to zero and the remaining rotation is folded into yaw.
    """
    R = jnp.asarray(R)
    cos_pitch = jnp.sqrt(R[0, 0] ** 2 + R[1, 0] ** 2)
    pitch = jnp.arctan2(-R[2, 0], cos_pitch)

    def regular(_) -> jnp.ndarray:
        roll = jnp.arctan2(R[2, 1], R[2, 2])
        yaw = jnp.arctan2(R[1, 0], R[0, 0])
        return jnp.array([roll, pitch, yaw])

    def gimbal_lock(_) -> jnp.ndarray:
        yaw = jnp.arctan2(-R[0, 1], R[1, 1])
        return jnp.array([0.0, pitch, yaw])

    return jax.lax.cond(cos_pitch > 1e-9, regular, gimbal_lock, operand=None)


@jax.jit
def compose_pose_rpy(a: jnp.ndarray, b: jnp.ndarray) -> jnp.ndarray:
    """
    Compose two poses in 6D roll/pitch/yaw form.

    a, b: [x, y, z, roll, pitch, yaw]
    Returns: 6D vector for a ∘ b
    """
    ta, ra = pose_vec_to_rt(a)
    tb, rb = pose_vec_to_rt(b)

    Ra = rpy_to_rot(ra)
    Rb = rpy_to_rot(rb)

    R = Ra @ Rb
    t = Ra @ tb + ta
    return jnp.concatenate([t, rot_to_rpy(R)])


@jax.jit
def invert_pose_rpy(a: jnp.ndarray) -> jnp.ndarray:
    """
    Invert a pose in 6D roll/pitch/yaw form.

      R_inv = Rᵀ
      t_inv = −Rᵀ t
    """
    t, r = pose_vec_to_rt(a)
    Rt = rpy_to_rot(r).T
    return jnp.concatenate([-(Rt @ t), rot_to_rpy(Rt)])


@jax.jit
def relative_pose_rpy(base: jnp.ndarray, target: jnp.ndarray) -> jnp.ndarray:
    """
    Pose of ``target`` expressed in the frame of ``base``:

      T_rel = T_base⁻¹ T_target
      t_rel = R_baseᵀ (t_target − t_base)
      R_rel = R_baseᵀ R_target
    """
    tb, rb = pose_vec_to_rt(base)
    tt, rt = pose_vec_to_rt(target)

    Rb_t = rpy_to_rot(rb).T
    R_rel = Rb_t @ rpy_to_rot(rt)
    t_rel = Rb_t @ (tt - tb)
    return jnp.concatenate([t_rel, rot_to_rpy(R_rel)])


@jax.jit
def relative_pose_pairs_rpy(poses: jnp.ndarray, base_idx: jnp.ndarray, target_idx: jnp.ndarray) -> jnp.ndarray:
    """
    Batched :func:`relative_pose_rpy` over index pairs of an ``(N, 6)`` array.

    Row ``k`` of the result is ``poses[target_idx[k]]`` in the frame of
    ``poses[base_idx[k]]``.
    """
    return jax.vmap(relative_pose_rpy)(poses[base_idx], poses[target_idx])


def compose_pose(a: Pose3, b: Pose3) -> Pose3:
    """a ∘ b for :class:`Pose3` values."""
    return Pose3.from_array(compose_pose_rpy(a.to_array(), b.to_array()))


def invert_pose(a: Pose3) -> Pose3:
    return Pose3.from_array(invert_pose_rpy(a.to_array()))


def relative_pose(base: Pose3, target: Pose3) -> Pose3:
    """base⁻¹ ∘ target for :class:`Pose3` values."""
    return Pose3.from_array(relative_pose_rpy(base.to_array(), target.to_array()))


def pose_matrix(p: Pose3) -> jnp.ndarray:
    """4×4 homogeneous matrix of a pose."""
    t, r = pose_vec_to_rt(p.to_array())
    T = jnp.eye(4)
    T = T.at[:3, :3].set(rpy_to_rot(r))
    T = T.at[:3, 3].set(t)
    return T
