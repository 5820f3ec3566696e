"""Turn a single face detection into a snap-target point cloud."""

import logging
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from neuromask.core.mesh import BufferGeometry
from neuromask.scanner.normals import estimate_normals
from neuromask.constants import SCAN_FALLBACK_SCALE, SCAN_SCENE_SCALE

logger = logging.getLogger(__name__)

# Normalized image landmarks are wider than tall in scene units
FALLBACK_X_STRETCH = 1.5


def world_landmarks_to_scene(world_landmarks: NDArray) -> NDArray[np.float64]:
    """Metric landmarks -> scene units: centered, scaled, mirrored in x and y."""
    pts = np.asarray(world_landmarks, dtype=np.float64).reshape(-1, 3)
    centered = (pts - pts.mean(axis=0)) * SCAN_SCENE_SCALE
    return centered * np.array([-1.0, -1.0, 1.0])


def normalized_landmarks_to_scene(landmarks: NDArray) -> NDArray[np.float64]:
    """Normalized image landmarks -> approximate scene units."""
    lm = np.asarray(landmarks, dtype=np.float64).reshape(-1, 3)
    s = SCAN_FALLBACK_SCALE
    return np.column_stack([
        -(lm[:, 0] - 0.5) * s * FALLBACK_X_STRETCH,
        -(lm[:, 1] - 0.5) * s,
        -lm[:, 2] * s,
    ])


def capture_point_cloud(
    world_landmarks: Optional[NDArray] = None,
    normalized_landmarks: Optional[NDArray] = None,
) -> BufferGeometry:
    """Build a point-cloud geometry (positions + estimated normals).

    Metric world landmarks are preferred; normalized landmarks are the
    fallback.  Raises ``ValueError`` if neither holds any points.
    """
    if world_landmarks is not None and np.size(world_landmarks):
        points = world_landmarks_to_scene(world_landmarks)
        source = "world"
    elif normalized_landmarks is not None and np.size(normalized_landmarks):
        points = normalized_landmarks_to_scene(normalized_landmarks)
        source = "normalized"
    else:
        raise ValueError("No landmarks to capture")

    normals = estimate_normals(points)
    logger.info("Captured %d-point face cloud from %s landmarks", len(points), source)
    return BufferGeometry.from_points(points, normals)
