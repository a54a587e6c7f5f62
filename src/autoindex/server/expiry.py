"""
Time-based full clears for the server's caches.

The server is single-threaded, so instead of background timers each request
calls ``tick()`` on its ``ExpiringClear`` objects; once the interval has
elapsed the wrapped clear callback runs and the interval restarts.
"""

import time
from typing import Callable

import structlog

logger = structlog.get_logger()


class ExpiringClear:
    """Runs ``clear`` at most once per ``interval`` seconds, on demand."""

    def __init__(
        self,
        name: str,
        interval: float,
        clear: Callable[[], None],
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self.interval = interval
        self._clear = clear
        self._clock = clock
        self._last = clock()

    def tick(self) -> bool:
        """Clear if the interval has elapsed. Returns True when it cleared."""
        now = self._clock()
        if now - self._last < self.interval:
            return False
        self._clear()
        self._last = now
        logger.debug("cache.expired", cache=self.name, interval=self.interval)
        return True
