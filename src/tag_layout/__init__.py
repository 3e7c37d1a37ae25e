"""Incremental estimation of fiducial tag layouts from pairwise observations."""

from tag_layout.core.types import Pose3, Tag, TagId
from tag_layout.slam.tag_relation import TagRelation, TrackerConfig
from tag_layout.world.layout_estimator import LayoutEstimator

__all__ = ["Pose3", "Tag", "TagId", "TagRelation", "TrackerConfig", "LayoutEstimator"]

__version__ = "0.1.0"
