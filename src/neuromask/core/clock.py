"""Delta clock for frame timing."""

import time

from neuromask.constants import MAX_DELTA_TIME


class DeltaClock:
    """Tracks elapsed time between frames and since start."""

    def __init__(self):
        self._start_time = time.perf_counter()
        self._last_time = self._start_time

    def get_delta(self) -> float:
        """Return seconds elapsed since last call, clamped to MAX_DELTA_TIME."""
        now = time.perf_counter()
        dt = now - self._last_time
        self._last_time = now
        return min(dt, MAX_DELTA_TIME)

    @property
    def elapsed(self) -> float:
        """Seconds since construction or the last reset (animation time)."""
        return time.perf_counter() - self._start_time

    def reset(self) -> None:
        self._start_time = time.perf_counter()
        self._last_time = self._start_time
