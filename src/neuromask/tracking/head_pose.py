"""Head pose estimation from normalized face landmarks.

A virtual perspective camera (``CAMERA_FOV_Y_DEG`` vertical field of view,
``CAMERA_DISTANCE`` units from the origin) lifts image-space landmarks into
scene units.  Depth comes from the apparent inter-pupillary distance,
rotation from the nose offset relative to the eye line, and scale from
the cheek-to-cheek width relative to the reference head.
"""

from dataclasses import dataclass, field
from typing import NamedTuple, Optional

import numpy as np
from numpy.typing import NDArray

from neuromask.core.math_utils import (
    Mat4, Quat, Vec3,
    clamp, deg_to_rad, lerp, lerp_vec3, mat4_compose, quat_from_euler,
    quat_identity, quat_slerp,
)
from neuromask.tracking.landmark_source import LandmarkFrame
from neuromask.constants import (
    CAMERA_DISTANCE, CAMERA_FOV_Y_DEG, IPD_UNITS,
    LEFT_CHEEK, LEFT_EYE_OUTER, MAX_HEAD_DISTANCE, MIN_HEAD_DISTANCE,
    NOSE_TIP, PITCH_GAIN, POSE_SMOOTHING, REF_HEAD_WIDTH,
    RIGHT_CHEEK, RIGHT_EYE_OUTER, YAW_GAIN,
)

DEFAULT_ASPECT = 16.0 / 9.0
_MIN_LANDMARKS = max(NOSE_TIP, LEFT_EYE_OUTER, RIGHT_EYE_OUTER) + 1


@dataclass
class HeadPose:
    position: Vec3 = field(default_factory=lambda: np.array([0.0, 0.0, 0.5]))
    quaternion: Quat = field(default_factory=quat_identity)
    scale: float = 1.0

    def matrix(self) -> Mat4:
        s = self.scale
        return mat4_compose(self.position, self.quaternion, np.array([s, s, s]))


class PoseEstimate(NamedTuple):
    """Raw (unsmoothed) pose plus the camera slice it was measured in."""
    pose: HeadPose
    distance: float
    visible_width: float
    visible_height: float


def estimate_head_pose(landmarks: NDArray, aspect: float = DEFAULT_ASPECT) -> PoseEstimate:
    """Estimate the head pose from (N, 3) normalized image landmarks.

    ``x`` and ``y`` are in [0, 1] image coordinates and ``z`` is the
    detector's relative depth.  At least the nose tip and both outer eye
    corners must be present; the cheek points refine the scale.
    """
    lm = np.asarray(landmarks, dtype=np.float64).reshape(-1, 3)
    if len(lm) < _MIN_LANDMARKS:
        raise ValueError(f"Need at least {_MIN_LANDMARKS} landmarks, got: {len(lm)}")

    nose = lm[NOSE_TIP]
    left = lm[LEFT_EYE_OUTER]
    right = lm[RIGHT_EYE_OUTER]

    dx = nose[0] - (left[0] + right[0]) / 2
    dy = nose[1] - (left[1] + right[1]) / 2
    yaw = dx * YAW_GAIN
    pitch = dy * PITCH_GAIN
    roll = np.arctan2(right[1] - left[1], right[0] - left[0])

    fov_y = deg_to_rad(CAMERA_FOV_Y_DEG)
    visible_width_at_origin = 2 * CAMERA_DISTANCE * np.tan(fov_y / 2) * aspect
    eye_dist = np.hypot(left[0] - right[0], left[1] - right[1])
    if eye_dist > 1e-9:
        distance = (IPD_UNITS * CAMERA_DISTANCE) / (eye_dist * visible_width_at_origin)
    else:
        distance = MAX_HEAD_DISTANCE
    distance = clamp(float(distance), MIN_HEAD_DISTANCE, MAX_HEAD_DISTANCE)

    visible_height = 2 * distance * np.tan(fov_y / 2)
    visible_width = visible_height * aspect

    position = np.array([
        -(nose[0] - 0.5) * visible_width,
        -(nose[1] - 0.5) * visible_height,
        CAMERA_DISTANCE - distance,
    ])

    scale = 1.0
    if len(lm) > max(LEFT_CHEEK, RIGHT_CHEEK):
        cheek_l, cheek_r = lm[LEFT_CHEEK], lm[RIGHT_CHEEK]
        cheek_dist = np.hypot(cheek_l[0] - cheek_r[0], cheek_l[1] - cheek_r[1])
        scale = float(cheek_dist * visible_width / REF_HEAD_WIDTH)

    quaternion = quat_from_euler(pitch, -yaw, -roll, "XYZ")
    pose = HeadPose(position, quaternion, scale)
    return PoseEstimate(pose, distance, float(visible_width), float(visible_height))


def landmarks_to_scene(landmarks: NDArray, estimate: PoseEstimate) -> NDArray[np.float64]:
    """Lift normalized landmarks to world-space scene points.

    Image x is mirrored so the scene reads like a mirror.
    """
    lm = np.asarray(landmarks, dtype=np.float64).reshape(-1, 3)
    target_z = CAMERA_DISTANCE - estimate.distance
    return np.column_stack([
        -(lm[:, 0] - 0.5) * estimate.visible_width,
        -(lm[:, 1] - 0.5) * estimate.visible_height,
        target_z - lm[:, 2] * estimate.visible_width,
    ])


class HeadPoseSmoother:
    """Exponential smoothing of successive head poses (lerp / slerp)."""

    def __init__(self, factor: float = POSE_SMOOTHING):
        if not 0.0 < factor <= 1.0:
            raise ValueError(f"factor must be in (0, 1], got: {factor}")
        self.factor = factor
        self.state = HeadPose()

    def reset(self) -> None:
        self.state = HeadPose()

    def update(self, target: HeadPose) -> HeadPose:
        t = self.factor
        self.state = HeadPose(
            position=lerp_vec3(self.state.position, target.position, t),
            quaternion=quat_slerp(self.state.quaternion, target.quaternion, t),
            scale=lerp(self.state.scale, target.scale, t),
        )
        return self.state


def frame_from_normalized(
    landmarks: NDArray,
    smoother: Optional[HeadPoseSmoother] = None,
    aspect: float = DEFAULT_ASPECT,
    timestamp: float = 0.0,
) -> LandmarkFrame:
    """Convert one detection into a head-local :class:`LandmarkFrame`.

    Landmarks are lifted into world space with the raw estimate, then
    brought into the head frame by the inverse of the (smoothed) head pose.
    """
    estimate = estimate_head_pose(landmarks, aspect)
    pose = smoother.update(estimate.pose) if smoother is not None else estimate.pose
    world = landmarks_to_scene(landmarks, estimate)
    return LandmarkFrame.from_world(world, pose.matrix(), timestamp)
