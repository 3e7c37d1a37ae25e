from __future__ import annotations

import math
from typing import Callable, Dict, Optional

import numpy as np
import pytest

from tag_layout.core.math3d import compose_pose, relative_pose, wrap_angle
from tag_layout.core.types import Pose3, Tag, TagId
from tag_layout.world.layout_estimator import LayoutEstimator


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, dt: float) -> None:
        self.now += dt


def pose_error(a: Pose3, b: Pose3) -> np.ndarray:
    """Per-component difference, angles wrapped."""
    d = np.array(a.to_array()) - np.array(b.to_array())
    d[3:] = np.array(wrap_angle(d[3:]))
    return d


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def assert_pose_close() -> Callable[..., None]:
    def _check(a: Pose3, b: Pose3, atol: float = 1e-6) -> None:
        np.testing.assert_allclose(pose_error(a, b), np.zeros(6), atol=atol)
    return _check


@pytest.fixture
def run_cycles() -> Callable[..., None]:
    """
    Drive an estimator with a static camera looking at ``world_tags``.

    Observations are the tag poses in the camera frame, optionally perturbed
    by ``jitter(tag_id, k)`` (composed onto the exact observation).
    """

    def _run(
        estimator: LayoutEstimator,
        clock: FakeClock,
        world_tags: Dict[int, Pose3],
        camera: Pose3,
        duration: float = 3.1,
        dt: float = 0.02,
        jitter: Optional[Callable[[int, int], Pose3]] = None,
    ) -> None:
        exact = {tid: relative_pose(camera, pose) for tid, pose in world_tags.items()}
        for k in range(int(math.ceil(duration / dt)) + 1):
            visible = []
            for tid, obs in exact.items():
                if jitter is not None:
                    obs = compose_pose(obs, jitter(tid, k))
                visible.append(Tag(TagId(tid), obs))
            estimator.update(visible)
            clock.advance(dt)

    return _run
