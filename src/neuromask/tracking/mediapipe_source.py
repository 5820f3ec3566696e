"""Live landmark source backed by the MediaPipe FaceLandmarker task.

mediapipe is an optional dependency (``pip install neuromask[tracking]``)
and is imported only when the source is opened.  Camera capture stays
outside this module: the source consumes an iterable of RGB frames.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional, Tuple

import numpy as np

from neuromask.tracking.head_pose import HeadPoseSmoother, frame_from_normalized
from neuromask.tracking.landmark_source import LandmarkFrame, LandmarkSource, LandmarkSourceError
from neuromask.constants import LANDMARK_COUNT

logger = logging.getLogger(__name__)

OFFICIAL_FACE_LANDMARKER_MODEL_URL = (
    "https://storage.googleapis.com/mediapipe-models/face_landmarker/"
    "face_landmarker/float16/1/face_landmarker.task"
)
DEFAULT_MODEL_PATH = Path("models/face_landmarker.task")

# (rgb image as (H, W, 3) uint8, timestamp in milliseconds)
VideoFrame = Tuple[np.ndarray, int]


def _import_mediapipe() -> Any:
    try:
        import mediapipe as mp  # type: ignore
    except ImportError as exc:
        raise ImportError(
            "mediapipe is required for live tracking. Install with: pip install neuromask[tracking]"
        ) from exc
    return mp


def landmarks_from_result(result: Any) -> Optional[np.ndarray]:
    """First face of a FaceLandmarker result as (478, 3) normalized points."""
    faces = getattr(result, "face_landmarks", None)
    if not faces:
        return None
    points = np.full((LANDMARK_COUNT, 3), np.nan, dtype=np.float64)
    for idx, landmark in enumerate(faces[0]):
        if idx >= LANDMARK_COUNT:
            break
        points[idx] = (landmark.x, landmark.y, landmark.z)
    if np.isnan(points).any():
        return None
    return points


class MediaPipeLandmarkSource(LandmarkSource):
    """Runs FaceLandmarker in VIDEO mode over a stream of RGB frames.

    Each detection is lifted to a head-local :class:`LandmarkFrame` through
    the head pose estimator; frames without a face come back empty.
    """

    def __init__(
        self,
        frames: Iterable[VideoFrame],
        model_path: str | Path = DEFAULT_MODEL_PATH,
        use_gpu_delegate: bool = False,
        smoother: Optional[HeadPoseSmoother] = None,
    ):
        super().__init__()
        self._frames = frames
        self._iterator: Optional[Iterator[VideoFrame]] = None
        self.model_path = Path(model_path)
        self.use_gpu_delegate = use_gpu_delegate
        self.smoother = smoother or HeadPoseSmoother()
        self.exhausted = False
        self._landmarker: Any = None
        self._mp: Any = None

    def open(self) -> None:
        if self.is_open:
            return
        if not self.model_path.is_file():
            raise LandmarkSourceError(
                f"Model file not found: {self.model_path}\n"
                f"Official model URL: {OFFICIAL_FACE_LANDMARKER_MODEL_URL}"
            )
        try:
            mp = _import_mediapipe()
        except ImportError as exc:
            raise LandmarkSourceError(str(exc)) from exc

        base_options_kwargs: dict[str, Any] = {"model_asset_path": str(self.model_path)}
        if self.use_gpu_delegate:
            base_options_kwargs["delegate"] = mp.tasks.BaseOptions.Delegate.GPU
        options = mp.tasks.vision.FaceLandmarkerOptions(
            base_options=mp.tasks.BaseOptions(**base_options_kwargs),
            running_mode=mp.tasks.vision.RunningMode.VIDEO,
            num_faces=1,
        )
        try:
            self._landmarker = mp.tasks.vision.FaceLandmarker.create_from_options(options)
        except (RuntimeError, ValueError) as exc:
            raise LandmarkSourceError(f"FaceLandmarker initialization failed: {exc}") from exc

        self._mp = mp
        self._iterator = iter(self._frames)
        self.smoother.reset()
        self.exhausted = False
        self.is_open = True
        logger.info("FaceLandmarker ready (%s)", "GPU" if self.use_gpu_delegate else "CPU")

    def read(self) -> LandmarkFrame:
        self._require_open()
        try:
            image, timestamp_ms = next(self._iterator)
        except StopIteration:
            self.exhausted = True
            return LandmarkFrame.empty()

        timestamp = timestamp_ms / 1000.0
        mp_image = self._mp.Image(
            image_format=self._mp.ImageFormat.SRGB,
            data=np.ascontiguousarray(image),
        )
        try:
            result = self._landmarker.detect_for_video(mp_image, int(timestamp_ms))
        except (RuntimeError, ValueError) as exc:
            raise LandmarkSourceError(f"FaceLandmarker detection failed: {exc}") from exc

        points = landmarks_from_result(result)
        if points is None:
            self.last_normalized = None
            return LandmarkFrame.empty(timestamp)
        self.last_normalized = points
        height, width = image.shape[:2]
        aspect = width / height if height else 1.0
        return frame_from_normalized(points, self.smoother, aspect, timestamp)

    def close(self) -> None:
        if self._landmarker is not None:
            self._landmarker.close()
            self._landmarker = None
        self._iterator = None
        super().close()
