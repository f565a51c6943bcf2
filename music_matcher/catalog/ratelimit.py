"""Process-wide request gate for the catalog web service."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)

# MusicBrainz allows one request per second per client
DEFAULT_INTERVAL = 1.0


class RateLimiter:
    """Spaces requests at least ``interval`` seconds apart across threads.

    Callers block in :meth:`wait` while holding the gate, so requests from
    any number of workers sharing one limiter are issued one at a time.

    Args:
        interval: Minimum seconds between two requests.
        clock: Monotonic time source.
        sleep: Sleep function.
    """

    def __init__(
        self,
        interval: float = DEFAULT_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._interval = interval
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._last_request: float | None = None

    @property
    def interval(self) -> float:
        return self._interval

    def wait(self) -> None:
        """Block until a request may be issued, then claim the slot."""
        with self._lock:
            if self._last_request is not None:
                delay = self._last_request + self._interval - self._clock()
                if delay > 0:
                    logger.debug("Rate limiter: waiting %.2fs", delay)
                    self._sleep(delay)
            self._last_request = self._clock()
