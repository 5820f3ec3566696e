"""Face capture: landmark detections to snap-target point clouds."""

from neuromask.scanner.capture import capture_point_cloud
from neuromask.scanner.normals import estimate_normals

__all__ = ["capture_point_cloud", "estimate_normals"]
