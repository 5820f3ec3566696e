"""Tests for recorded landmark playback."""

import numpy as np
import pytest

from neuromask.core.math_utils import mat4_compose, quat_identity
from neuromask.tracking.landmark_source import LandmarkFrame, LandmarkSourceError
from neuromask.tracking.replay_source import ReplayLandmarkSource, save_recording
from neuromask.constants import LANDMARK_COUNT, LEFT_EYE_OUTER, NOSE_TIP, RIGHT_EYE_OUTER


def _frames(n=3, points=10):
    rng = np.random.default_rng(11)
    return [
        LandmarkFrame(rng.uniform(-1, 1, (points, 3)), mat4_compose(np.array([0.0, 0.0, i]), quat_identity(), np.ones(3)), i * 0.04)
        for i in range(n)
    ]


def test_reads_in_order_then_empty():
    frames = _frames()
    source = ReplayLandmarkSource(frames)
    with source:
        for expected in frames:
            assert source.read() is expected
        assert source.exhausted
        tail = source.read()
    assert not tail.head_detected
    assert tail.timestamp == frames[-1].timestamp


def test_loop_restarts():
    frames = _frames(2)
    source = ReplayLandmarkSource(frames, loop=True)
    source.open()
    reads = [source.read() for _ in range(5)]
    assert reads[2] is frames[0]
    assert reads[4] is frames[0]
    assert not source.exhausted


def test_reopen_rewinds():
    frames = _frames(2)
    source = ReplayLandmarkSource(frames)
    source.open()
    source.read()
    source.close()
    source.open()
    assert source.read() is frames[0]


def test_read_before_open():
    with pytest.raises(LandmarkSourceError):
        ReplayLandmarkSource(_frames()).read()


def test_empty_sequence_reads_empty_frames():
    source = ReplayLandmarkSource([])
    source.open()
    assert not source.read().head_detected
    assert len(source) == 0


def test_recording_roundtrip(tmp_path):
    frames = _frames(3) + [LandmarkFrame.empty(0.2)]
    path = save_recording(tmp_path / "session", frames)
    assert path.suffix == ".npz"

    source = ReplayLandmarkSource.from_npz(path, normalized=False)
    assert len(source) == 4
    source.open()
    for original in frames[:3]:
        frame = source.read()
        np.testing.assert_array_almost_equal(frame.landmarks, original.landmarks)
        np.testing.assert_array_almost_equal(frame.head_pose, original.head_pose)
        assert frame.timestamp == pytest.approx(original.timestamp)
    last = source.read()
    assert not last.head_detected
    assert last.timestamp == pytest.approx(0.2)


def test_recording_rejects_ragged_frames(tmp_path):
    frames = [LandmarkFrame(np.zeros((4, 3))), LandmarkFrame(np.zeros((5, 3)))]
    with pytest.raises(ValueError):
        save_recording(tmp_path / "bad.npz", frames)


def test_missing_file(tmp_path):
    with pytest.raises(LandmarkSourceError, match="not found"):
        ReplayLandmarkSource.from_npz(tmp_path / "nope.npz")


def test_missing_arrays(tmp_path):
    path = tmp_path / "partial.npz"
    np.savez(path, landmarks_xyz=np.zeros((2, 5, 3)))
    with pytest.raises(LandmarkSourceError, match="presence"):
        ReplayLandmarkSource.from_npz(path)


def test_inconsistent_shapes(tmp_path):
    path = tmp_path / "ragged.npz"
    np.savez(path, landmarks_xyz=np.zeros((2, 5, 3)), presence=np.ones(3, dtype=bool))
    with pytest.raises(LandmarkSourceError, match="inconsistent"):
        ReplayLandmarkSource.from_npz(path)


def test_normalized_artifact_is_lifted(tmp_path):
    rng = np.random.default_rng(3)
    landmarks = rng.uniform(0.4, 0.6, (2, LANDMARK_COUNT, 3))
    landmarks[:, :, 2] = 0.0
    landmarks[:, NOSE_TIP] = (0.5, 0.5, 0.0)
    landmarks[:, LEFT_EYE_OUTER] = (0.4, 0.45, 0.0)
    landmarks[:, RIGHT_EYE_OUTER] = (0.6, 0.45, 0.0)
    path = tmp_path / "detections.npz"
    np.savez_compressed(
        path,
        landmarks_xyz=landmarks,
        presence=np.array([True, False]),
        timestamps_ms=np.array([0, 33]),
    )

    source = ReplayLandmarkSource.from_npz(path)
    source.open()
    first, second = source.read(), source.read()
    assert first.head_detected
    assert first.head_pose is not None
    assert len(first) == LANDMARK_COUNT
    assert np.isfinite(first.landmarks).all()
    assert not second.head_detected
    assert second.timestamp == pytest.approx(0.033)
