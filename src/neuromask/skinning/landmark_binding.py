"""Rigid binding of ornament instances to a live landmark cloud.

The engine is a two-state machine:

  UNBOUND --(first frame with a face)--> BOUND
  BOUND --(face lost | instance set replaced)--> UNBOUND

The bind phase assigns every instance its nearest landmark in the rest
pose and stores the offset between them.  While bound, each frame moves
an instance to ``landmark[index] + offset``; orientation and scale stay at
their rest values (translation-only deformation).

Landmarks must be head-local (see :mod:`neuromask.tracking.landmark_source`).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from neuromask.core.events import EventBus, EventType
from neuromask.core.math_utils import Vec3, batch_mat4_compose
from neuromask.ornament.placement import InstanceSet
from neuromask.tracking.landmark_source import LandmarkFrame

logger = logging.getLogger(__name__)


class BindingState(Enum):
    UNBOUND = "unbound"
    BOUND = "bound"


@dataclass(frozen=True)
class AnchorBinding:
    """Persistent link from one instance to one landmark."""
    instance_index: int
    landmark_index: int
    offset: Vec3


class BindingEngine:
    """Binds an :class:`InstanceSet` to landmarks and re-poses it per frame.

    Holds a read-only reference to the instance set and exclusively owns
    the anchor table.  ``last_transforms`` keeps the most recent output so
    the renderer can hold the mask still while tracking is lost.
    """

    def __init__(self, event_bus: Optional[EventBus] = None):
        self.event_bus = event_bus
        self.state = BindingState.UNBOUND
        self.instances: Optional[InstanceSet] = None
        self.bind_count = 0
        self.last_transforms: Optional[NDArray[np.float64]] = None
        self._landmark_indices: Optional[NDArray[np.int64]] = None
        self._offsets: Optional[NDArray[np.float64]] = None

    @property
    def is_bound(self) -> bool:
        return self.state is BindingState.BOUND

    @property
    def bindings(self) -> list[AnchorBinding]:
        """Snapshot of the anchor table (empty while unbound)."""
        if not self.is_bound:
            return []
        return [
            AnchorBinding(i, int(lm), self._offsets[i].copy())
            for i, lm in enumerate(self._landmark_indices)
        ]

    @property
    def landmark_indices(self) -> Optional[NDArray[np.int64]]:
        return self._landmark_indices

    @property
    def offsets(self) -> Optional[NDArray[np.float64]]:
        return self._offsets

    def attach(self, instances: InstanceSet) -> None:
        """Use a newly generated instance set; drops any existing binding."""
        self.reset("instance set regenerated")
        self.instances = instances
        self.last_transforms = instances.rest_transforms

    def reset(self, reason: str = "reset") -> None:
        """Transition to UNBOUND, discarding the anchor table."""
        was_bound = self.is_bound
        self.state = BindingState.UNBOUND
        self._landmark_indices = None
        self._offsets = None
        if was_bound:
            logger.info("Binding released: %s", reason)
            if self.event_bus is not None:
                self.event_bus.publish(EventType.BINDING_RELEASED, reason=reason)

    def update(self, frame: LandmarkFrame) -> Optional[NDArray[np.float64]]:
        """Process one landmark frame.

        Binds on the first frame with a face after entering UNBOUND, then
        re-poses every instance in the same call.

        Returns:
            (N, 4, 4) instance transforms, or None when nothing changed
            (no instance set, or no face in this frame).
        """
        if self.instances is None:
            return None

        if not frame.head_detected:
            if self.is_bound:
                logger.warning("Face tracking lost; releasing binding")
                self.reset("tracking lost")
            return None

        landmarks = frame.landmarks
        if not self.is_bound:
            self._bind(landmarks)
        elif self.instances.count and len(landmarks) <= int(self._landmark_indices.max()):
            logger.warning(
                "Landmark cloud has %d points but binding needs index %d; releasing binding",
                len(landmarks), int(self._landmark_indices.max()),
            )
            self.reset("landmark cloud too short")
            return None

        positions = landmarks[self._landmark_indices] + self._offsets
        transforms = batch_mat4_compose(
            positions, self.instances.quaternions, self.instances.scales,
        )
        self.last_transforms = transforms
        return transforms

    def _bind(self, landmarks: NDArray[np.float64]) -> None:
        from scipy.spatial import cKDTree

        rest = self.instances.positions
        if len(rest):
            tree = cKDTree(landmarks)
            _, nearest = tree.query(rest, k=1)
            indices = np.asarray(nearest, dtype=np.int64).reshape(-1)
        else:
            indices = np.zeros(0, dtype=np.int64)

        self._landmark_indices = indices
        self._offsets = rest - landmarks[indices]
        self._landmark_indices.flags.writeable = False
        self._offsets.flags.writeable = False
        self.state = BindingState.BOUND
        self.bind_count += 1

        logger.info("Bound %d instances to %d landmarks", len(indices), len(landmarks))
        if self.event_bus is not None:
            self.event_bus.publish(EventType.BINDING_ESTABLISHED, count=len(indices))
