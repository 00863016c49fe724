"""
Politeness delay shared by every page fetch of a run.
"""

import time
from typing import Callable


class RateLimiter:
    """
    Keep at least `interval` seconds of idle time between operations.

    Call wait() before an operation and done() once it has finished. The
    delay is measured from the end of the previous operation, so a slow
    fetch is still followed by a full pause. The first wait() returns
    immediately. An interval of 0 disables limiting.
    """

    def __init__(self, interval: float,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        if interval < 0:
            raise ValueError("interval must be >= 0")
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._last_done = None

    def wait(self) -> float:
        """Block until the next operation may start. Returns the time slept."""
        if self._last_done is None or self.interval <= 0:
            return 0.0
        remaining = self.interval - (self._clock() - self._last_done)
        if remaining <= 0:
            return 0.0
        self._sleep(remaining)
        return remaining

    def done(self) -> None:
        """Record that the current operation has finished."""
        self._last_done = self._clock()
