"""Tests for head pose estimation from normalized landmarks."""

import numpy as np
import pytest

from neuromask.core.math_utils import quat_identity
from neuromask.tracking.head_pose import (
    HeadPose, HeadPoseSmoother, estimate_head_pose, frame_from_normalized, landmarks_to_scene,
)
from neuromask.constants import (
    CAMERA_DISTANCE, LANDMARK_COUNT, LEFT_CHEEK, LEFT_EYE_OUTER, NOSE_TIP, RIGHT_CHEEK,
    RIGHT_EYE_OUTER,
)


def _face(nose=(0.5, 0.5), eye_y=0.5, eye_half_gap=0.1, count=LANDMARK_COUNT):
    """Synthetic normalized detection with the key points placed explicitly."""
    rng = np.random.default_rng(0)
    lm = np.column_stack([
        rng.uniform(0.4, 0.6, count),
        rng.uniform(0.4, 0.6, count),
        rng.uniform(-0.05, 0.05, count),
    ])
    lm[NOSE_TIP] = (nose[0], nose[1], 0.0)
    lm[LEFT_EYE_OUTER] = (0.5 - eye_half_gap, eye_y, 0.0)
    lm[RIGHT_EYE_OUTER] = (0.5 + eye_half_gap, eye_y, 0.0)
    if count > max(LEFT_CHEEK, RIGHT_CHEEK):
        lm[LEFT_CHEEK] = (0.35, 0.55, 0.0)
        lm[RIGHT_CHEEK] = (0.65, 0.55, 0.0)
    return lm


def test_frontal_face_has_no_rotation():
    estimate = estimate_head_pose(_face())
    np.testing.assert_array_almost_equal(estimate.pose.quaternion, quat_identity())
    np.testing.assert_array_almost_equal(estimate.pose.position[:2], [0, 0])


def test_depth_from_eye_distance():
    near = estimate_head_pose(_face(eye_half_gap=0.15))
    far = estimate_head_pose(_face(eye_half_gap=0.05))
    assert near.distance < far.distance
    assert near.pose.position[2] > far.pose.position[2]
    assert near.pose.position[2] == pytest.approx(CAMERA_DISTANCE - near.distance)


def test_distance_is_clamped():
    estimate = estimate_head_pose(_face(eye_half_gap=0.0))
    assert estimate.distance == 8.0


def test_image_x_is_mirrored():
    estimate = estimate_head_pose(_face(nose=(0.6, 0.5)))
    assert estimate.pose.position[0] < 0


def test_head_turn_produces_rotation():
    estimate = estimate_head_pose(_face(nose=(0.55, 0.5)))
    assert abs(estimate.pose.quaternion[1]) > 0.01


def test_scale_from_cheeks_only_when_present():
    full = estimate_head_pose(_face())
    assert full.pose.scale == pytest.approx(0.3 * full.visible_width / 1.45)
    partial = estimate_head_pose(_face(count=300))
    assert partial.pose.scale == 1.0


def test_too_few_landmarks():
    with pytest.raises(ValueError):
        estimate_head_pose(np.zeros((100, 3)))


def test_nose_lifts_to_head_position():
    lm = _face(nose=(0.45, 0.52))
    estimate = estimate_head_pose(lm)
    scene = landmarks_to_scene(lm, estimate)
    np.testing.assert_array_almost_equal(scene[NOSE_TIP], estimate.pose.position)


def test_frame_is_head_local():
    frame = frame_from_normalized(_face(nose=(0.45, 0.52)), timestamp=1.5)
    assert frame.head_detected
    assert frame.timestamp == 1.5
    assert len(frame) == LANDMARK_COUNT
    # The nose defines the head origin
    np.testing.assert_array_almost_equal(frame.landmarks[NOSE_TIP], [0, 0, 0])
    assert frame.head_pose.shape == (4, 4)


class TestSmoother:
    def test_rejects_bad_factor(self):
        with pytest.raises(ValueError):
            HeadPoseSmoother(0.0)
        with pytest.raises(ValueError):
            HeadPoseSmoother(1.5)

    def test_factor_one_tracks_exactly(self):
        target = HeadPose(np.array([1.0, 2.0, 3.0]), quat_identity(), 2.0)
        out = HeadPoseSmoother(1.0).update(target)
        np.testing.assert_array_almost_equal(out.position, target.position)
        assert out.scale == pytest.approx(2.0)

    def test_converges(self):
        smoother = HeadPoseSmoother(0.4)
        target = HeadPose(np.array([1.0, 0.0, 0.0]), quat_identity(), 1.5)
        first = smoother.update(target).position[0]
        for _ in range(30):
            smoother.update(target)
        assert 0 < first < 1.0
        assert smoother.state.position[0] == pytest.approx(1.0, abs=1e-5)

    def test_reset(self):
        smoother = HeadPoseSmoother()
        smoother.update(HeadPose(np.array([5.0, 5.0, 5.0])))
        smoother.reset()
        np.testing.assert_array_equal(smoother.state.position, [0.0, 0.0, 0.5])
