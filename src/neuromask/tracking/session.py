"""Scoped AR tracking session: a landmark source bound to a mask pipeline."""

import logging
from enum import Enum
from typing import Iterable, Iterator, Optional

from neuromask.coordination.mask_pipeline import FrameOutput, MaskPipeline
from neuromask.core.clock import DeltaClock
from neuromask.core.events import EventType
from neuromask.core.mesh import BufferGeometry
from neuromask.scanner.capture import capture_point_cloud
from neuromask.tracking.landmark_source import LandmarkSource, LandmarkSourceError

logger = logging.getLogger(__name__)


class SessionState(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    FAILED = "failed"
    CLOSED = "closed"


class TrackingSession:
    """Context manager that owns a landmark source for the session lifetime.

    Entering opens the source and switches the pipeline into AR mode.
    Leaving, on every exit path, drops the binding, switches AR mode off
    and closes the source.  A source that fails to open leaves the session
    FAILED and the pipeline untouched.

    Usage::

        with TrackingSession(pipeline, source) as session:
            for output in session.run(times):
                render(output)
    """

    def __init__(self, pipeline: MaskPipeline, source: LandmarkSource):
        self.pipeline = pipeline
        self.source = source
        self.state = SessionState.IDLE
        self.frames_processed = 0
        self.clock = DeltaClock()
        self._in_ar = False

    def __enter__(self) -> "TrackingSession":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def start(self) -> None:
        if self.state is SessionState.ACTIVE:
            return
        try:
            self.source.open()
        except LandmarkSourceError as e:
            self.source.close()
            self._fail(e)
            raise
        except Exception as e:
            self.source.close()
            self._fail(e)
            raise LandmarkSourceError(f"Landmark source failed to open: {e}") from e

        self.pipeline.enter_ar()
        self._in_ar = True
        self.state = SessionState.ACTIVE
        self.frames_processed = 0
        self.clock.reset()
        logger.info("Tracking session started (%s)", type(self.source).__name__)
        self.pipeline.event_bus.publish(EventType.TRACKING_STARTED)

    def stop(self) -> None:
        if not self._in_ar:
            return
        try:
            self.pipeline.leave_ar()
        finally:
            self._in_ar = False
            self.source.close()
            if self.state is SessionState.ACTIVE:
                self.state = SessionState.CLOSED
                logger.info("Tracking session stopped after %d frames", self.frames_processed)
            self.pipeline.event_bus.publish(EventType.TRACKING_STOPPED)

    def step(self, time: Optional[float] = None) -> FrameOutput:
        """Read one frame from the source and tick the pipeline with it.

        *time* defaults to the seconds elapsed since the session started.
        """
        if self.state is not SessionState.ACTIVE:
            raise LandmarkSourceError(f"Session is not active (state: {self.state.value})")
        try:
            frame = self.source.read()
        except LandmarkSourceError as e:
            self._fail(e)
            raise
        self.frames_processed += 1
        if time is None:
            time = self.clock.elapsed
        return self.pipeline.tick(time, frame)

    def run(self, times: Iterable[float]) -> Iterator[FrameOutput]:
        for t in times:
            yield self.step(t)

    def capture_target(self) -> Optional[BufferGeometry]:
        """Use the source's latest detection as the snap target (scan mode).

        Returns the captured point cloud, or None if no face has been seen.
        """
        landmarks = self.source.last_normalized
        if landmarks is None:
            return None
        cloud = capture_point_cloud(normalized_landmarks=landmarks)
        self.pipeline.set_target_mesh(cloud, normalize=False)
        return cloud

    def _fail(self, error: Exception) -> None:
        self.state = SessionState.FAILED
        logger.error("Tracking session failed: %s", error)
        self.pipeline.event_bus.publish(EventType.TRACKING_FAILED, error=error)
