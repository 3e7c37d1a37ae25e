import math

from tag_layout.core.math3d import relative_pose
from tag_layout.core.types import Pose3, Tag, TagId
from tag_layout.world.localization import estimate_sensor_poses, fuse_sensor_poses


LAYOUT = [
    Tag(TagId(1), Pose3()),
    Tag(TagId(2), Pose3(2.0, 0.0, 0.0, 0.0, 0.0, math.pi / 2)),
]
CAMERA = Pose3(0.5, -1.0, 0.2, 0.0, 0.1, 0.3)


def _observe(tags):
    return [Tag(t.id, relative_pose(CAMERA, t.pose)) for t in tags]


def test_each_known_tag_recovers_camera(assert_pose_close):
    estimates = estimate_sensor_poses(LAYOUT, _observe(LAYOUT))
    assert set(estimates) == {1, 2}
    for pose in estimates.values():
        assert_pose_close(pose, CAMERA, atol=1e-9)


def test_unknown_tags_are_ignored():
    observations = _observe(LAYOUT) + [Tag(TagId(42), Pose3(x=1.0))]
    assert set(estimate_sensor_poses(LAYOUT, observations)) == {1, 2}


def test_fused_estimate(assert_pose_close):
    fused = fuse_sensor_poses(estimate_sensor_poses(LAYOUT, _observe(LAYOUT)))
    assert_pose_close(fused, CAMERA, atol=1e-9)


def test_fused_estimate_of_nothing_is_none():
    assert fuse_sensor_poses({}) is None
    assert estimate_sensor_poses(LAYOUT, []) == {}
