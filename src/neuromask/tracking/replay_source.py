"""Replay of recorded landmark frames, in memory or from ``.npz`` artifacts.

The ``.npz`` layout is the landmark artifact layout: ``landmarks_xyz``
(F, N, 3), ``presence`` (F,), and optionally ``timestamps_ms`` (F,) and
``transforms`` (F, 4, 4).  Artifacts written by a face landmarker hold
normalized image coordinates and are lifted through the head pose
estimator on load; recordings written by :func:`save_recording` already
hold head-local points.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

import numpy as np

from neuromask.tracking.head_pose import DEFAULT_ASPECT, HeadPoseSmoother, frame_from_normalized
from neuromask.tracking.landmark_source import LandmarkFrame, LandmarkSource, LandmarkSourceError

logger = logging.getLogger(__name__)


class ReplayLandmarkSource(LandmarkSource):
    """Plays back a fixed sequence of frames.

    After the last frame, :meth:`read` keeps returning empty frames (no
    face) unless *loop* is set.
    """

    def __init__(self, frames: Sequence[LandmarkFrame], loop: bool = False):
        super().__init__()
        self.frames = list(frames)
        self.loop = loop
        self._cursor = 0

    @classmethod
    def from_npz(
        cls,
        path: str | Path,
        normalized: bool = True,
        aspect: float = DEFAULT_ASPECT,
        loop: bool = False,
    ) -> "ReplayLandmarkSource":
        """Load frames from a landmark artifact.

        Args:
            path: ``.npz`` file.
            normalized: True if ``landmarks_xyz`` holds normalized image
                coordinates (detector output), False if it holds head-local
                points with ``transforms`` as head poses.
            aspect: Image aspect ratio used to lift normalized landmarks.
            loop: Restart from the first frame when exhausted.

        Raises:
            LandmarkSourceError: missing file or required arrays.
        """
        path = Path(path)
        if not path.is_file():
            raise LandmarkSourceError(f"Landmark recording not found: {path}")
        with np.load(path) as data:
            missing = {"landmarks_xyz", "presence"} - set(data.files)
            if missing:
                raise LandmarkSourceError(f"{path.name} is missing arrays: {sorted(missing)}")
            landmarks = np.asarray(data["landmarks_xyz"], dtype=np.float64)
            presence = np.asarray(data["presence"], dtype=bool)
            stamps = data["timestamps_ms"] if "timestamps_ms" in data.files else None
            transforms = data["transforms"] if "transforms" in data.files else None

        if landmarks.ndim != 3 or landmarks.shape[2] != 3 or len(presence) != len(landmarks):
            raise LandmarkSourceError(
                f"{path.name} has inconsistent shapes: landmarks {landmarks.shape}, "
                f"presence {presence.shape}"
            )

        smoother = HeadPoseSmoother() if normalized else None
        frames = []
        for i in range(len(landmarks)):
            t = float(stamps[i]) / 1000.0 if stamps is not None else float(i)
            if not presence[i] or np.isnan(landmarks[i]).any():
                frames.append(LandmarkFrame.empty(t))
            elif normalized:
                frames.append(frame_from_normalized(landmarks[i], smoother, aspect, t))
            else:
                pose = None
                if transforms is not None and not np.isnan(transforms[i]).any():
                    pose = transforms[i]
                frames.append(LandmarkFrame(landmarks[i], pose, t))

        logger.info("Loaded %d landmark frames (%d with a face) from %s",
                    len(frames), int(presence.sum()), path.name)
        return cls(frames, loop=loop)

    @property
    def exhausted(self) -> bool:
        return not self.loop and self._cursor >= len(self.frames)

    def open(self) -> None:
        self._cursor = 0
        self.is_open = True

    def read(self) -> LandmarkFrame:
        self._require_open()
        if not self.frames:
            return LandmarkFrame.empty()
        if self._cursor >= len(self.frames):
            if not self.loop:
                return LandmarkFrame.empty(self.frames[-1].timestamp)
            self._cursor = 0
        frame = self.frames[self._cursor]
        self._cursor += 1
        return frame

    def __len__(self) -> int:
        return len(self.frames)


def save_recording(path: str | Path, frames: Sequence[LandmarkFrame], landmark_count: Optional[int] = None) -> Path:
    """Write head-local frames to ``.npz`` (reload with ``normalized=False``).

    Frames without a face are stored as NaN rows with ``presence`` False.
    """
    if landmark_count is None:
        landmark_count = max((len(f) for f in frames), default=0)
    n = len(frames)
    landmarks = np.full((n, landmark_count, 3), np.nan, dtype=np.float64)
    presence = np.zeros(n, dtype=bool)
    transforms = np.full((n, 4, 4), np.nan, dtype=np.float64)
    stamps = np.zeros(n, dtype=np.int64)
    for i, frame in enumerate(frames):
        stamps[i] = int(round(frame.timestamp * 1000.0))
        if frame.head_detected:
            if len(frame) != landmark_count:
                raise ValueError(f"Frame {i} has {len(frame)} landmarks, expected {landmark_count}")
            landmarks[i] = frame.landmarks
            presence[i] = True
        if frame.head_pose is not None:
            transforms[i] = frame.head_pose

    path = Path(path)
    if path.suffix != ".npz":
        path = path.with_suffix(".npz")
    path.parent.mkdir(parents=True, exist_ok=True)
    np.savez_compressed(
        path,
        timestamps_ms=stamps,
        landmarks_xyz=landmarks,
        presence=presence,
        transforms=transforms,
    )
    return path
