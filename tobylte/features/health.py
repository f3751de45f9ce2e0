"""
Link health counter.
"""

import logging
import threading

logger = logging.getLogger(__name__)


class HealthCounter:
    """
    Counts consecutive failed reachability probes.

    Probe callbacks arrive on the prober thread while the state machine
    reads the counter, so updates are locked.
    """

    def __init__(self, threshold: int = 3) -> None:
        self.threshold = threshold
        self._count = 0
        self._lock = threading.Lock()

    def record_success(self) -> None:
        """A probe got a reply: the link is healthy again."""
        with self._lock:
            if self._count:
                logger.debug(f"Probe succeeded after {self._count} failures")
            self._count = 0

    def record_idle(self) -> None:
        """A probe round ended without a reply."""
        with self._lock:
            self._count += 1
            count = self._count
        logger.debug(f"Probe unanswered ({count}/{self.threshold})")

    def reset(self) -> None:
        with self._lock:
            self._count = 0

    @property
    def value(self) -> int:
        with self._lock:
            return self._count

    @property
    def exhausted(self) -> bool:
        """True once the threshold of consecutive failures is reached."""
        return self.value >= self.threshold
