"""Decision cycle rate limiting."""

import time
from typing import Callable, Optional


class CycleThrottle:
    """Admits at most one cycle per ``min_interval_s``.

    Requests arriving too early are dropped, never queued.
    """

    def __init__(self, min_interval_s: float = 0.5, clock: Callable[[], float] = time.monotonic):
        """
        Args:
            min_interval_s: minimum seconds between accepted cycles
            clock: monotonic time source in seconds
        """
        self.min_interval_s = min_interval_s
        self.clock = clock
        self._last: Optional[float] = None

    def try_acquire(self) -> bool:
        now = self.clock()
        if self._last is not None and now - self._last < self.min_interval_s:
            return False
        self._last = now
        return True

    def seconds_until_ready(self) -> float:
        if self._last is None:
            return 0.0
        return max(0.0, self.min_interval_s - (self.clock() - self._last))

    def reset(self) -> None:
        self._last = None
