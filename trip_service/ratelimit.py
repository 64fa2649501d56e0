"""Rate limiting utilities."""

import logging
import threading
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)


class IntervalGate:
    """Fixed-interval rate gate shared by every caller that holds a reference.

    Enforces a minimum spacing between successive ``acquire()`` returns.
    The check-then-update of the last-call timestamp happens under one lock,
    so concurrent callers are serialized and each waits its turn.
    """

    def __init__(
        self,
        interval_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize gate.

        Args:
            interval_seconds: Minimum spacing between calls
            clock: Monotonic clock (injectable for tests)
            sleep: Sleep function (injectable for tests)
        """
        self._interval = interval_seconds
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._last_call: float | None = None

    @property
    def interval_seconds(self) -> float:
        return self._interval

    def acquire(self) -> float:
        """Block until the caller may proceed.

        An interrupted sleep is not an error: the caller proceeds immediately.

        Returns:
            Seconds actually requested from the sleep function (0.0 if none)
        """
        with self._lock:
            now = self._clock()
            waited = 0.0
            if self._last_call is not None:
                remaining = self._interval - (now - self._last_call)
                if remaining > 0:
                    waited = remaining
                    try:
                        self._sleep(remaining)
                    except InterruptedError:
                        logger.debug("Rate gate wait interrupted; proceeding")
            self._last_call = self._clock()
            return waited
