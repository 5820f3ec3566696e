"""Landmark frames and the landmark source interface.

Frame convention: ``LandmarkFrame.landmarks`` are always expressed in the
head-local frame, the same frame as ornament rest positions.  The head
pose, when present, describes the parent (head) frame only and must never
be applied to the landmarks a second time.  Sources that observe
landmarks in world space convert them with :meth:`LandmarkFrame.from_world`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from neuromask.core.math_utils import Mat4, mat4_inverse, transform_points


class LandmarkSourceError(RuntimeError):
    """A landmark source could not be opened or read."""


@dataclass(frozen=True)
class LandmarkFrame:
    """Immutable per-frame snapshot from a landmark source.

    Attributes:
        landmarks: (N, 3) head-local points; index ``i`` is the same
            anatomical point in every frame.  Empty when no face is seen.
        head_pose: Optional 4x4 head-to-world transform for the parent frame.
        timestamp: Seconds, source-defined origin.
    """
    landmarks: NDArray[np.float64]
    head_pose: Optional[Mat4] = None
    timestamp: float = 0.0

    def __post_init__(self):
        pts = np.array(self.landmarks, dtype=np.float64)
        if pts.size == 0:
            pts = pts.reshape(0, 3)
        if pts.ndim != 2 or pts.shape[1] != 3:
            raise ValueError(f"landmarks must have shape (N, 3), got: {pts.shape}")
        pts.flags.writeable = False
        object.__setattr__(self, "landmarks", pts)
        if self.head_pose is not None:
            pose = np.array(self.head_pose, dtype=np.float64).reshape(4, 4)
            pose.flags.writeable = False
            object.__setattr__(self, "head_pose", pose)

    @property
    def head_detected(self) -> bool:
        return len(self.landmarks) > 0

    def __len__(self) -> int:
        return len(self.landmarks)

    @classmethod
    def empty(cls, timestamp: float = 0.0) -> "LandmarkFrame":
        """A frame with no face detected."""
        return cls(np.zeros((0, 3)), None, timestamp)

    @classmethod
    def from_world(
        cls,
        points: NDArray,
        head_pose: Optional[Mat4],
        timestamp: float = 0.0,
    ) -> "LandmarkFrame":
        """Build a frame from world-space points by undoing *head_pose*."""
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        if head_pose is not None and len(pts):
            pts = transform_points(mat4_inverse(np.asarray(head_pose, dtype=np.float64)), pts)
        return cls(pts, head_pose, timestamp)


class LandmarkSource(ABC):
    """A producer of :class:`LandmarkFrame` snapshots.

    Sources hold external resources (models, devices, files), so they must
    be opened before reading and closed on every exit path; use them as
    context managers.
    """

    def __init__(self):
        self.is_open = False
        # Most recent detection in normalized image coordinates, if the
        # source has them (used for face capture).
        self.last_normalized: Optional[NDArray[np.float64]] = None

    @abstractmethod
    def open(self) -> None:
        """Acquire resources.  Raises :class:`LandmarkSourceError`."""

    @abstractmethod
    def read(self) -> LandmarkFrame:
        """Return the next frame (empty when no face is detected)."""

    def close(self) -> None:
        """Release resources.  Safe to call more than once."""
        self.is_open = False

    def _require_open(self) -> None:
        if not self.is_open:
            raise LandmarkSourceError(f"{type(self).__name__} is not open")

    def __enter__(self) -> "LandmarkSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
