import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_REQUESTS_PER_SECOND = 10.0


class RateLimiter:
    """Thread-safe token bucket shared by all spider workers.

    Tokens refill continuously at `requests_per_second` up to `burst`. The
    spider's per-request `delay` only throttles a single worker; this caps the
    request rate of the whole pool.
    """

    def __init__(self, requests_per_second: float = DEFAULT_REQUESTS_PER_SECOND, burst: int = 0, *, clock: Callable[[], float] = time.monotonic):
        if requests_per_second is None or requests_per_second <= 0:
            requests_per_second = DEFAULT_REQUESTS_PER_SECOND
        if burst is None or burst <= 0:
            burst = max(1, int(requests_per_second))

        self._lock = threading.Lock()
        self._clock = clock
        self._rate = float(requests_per_second)
        self._burst = int(burst)
        self._tokens = float(self._burst)
        self._updated_at = clock()

    @property
    def rate(self) -> float:
        return self._rate

    @property
    def burst(self) -> int:
        return self._burst

    def _refill(self, now: float) -> None:
        elapsed = max(0.0, now - self._updated_at)
        self._tokens = min(float(self._burst), self._tokens + elapsed * self._rate)
        self._updated_at = now

    def allow(self) -> bool:
        """Take a token if one is available right now."""
        with self._lock:
            self._refill(self._clock())
            if self._tokens >= 1.0:
                self._tokens -= 1.0
                return True
            return False

    def _reserve_delay(self) -> float:
        """Return how long to wait for the next token; 0 means one was taken."""
        with self._lock:
            self._refill(self._clock())
            if self._tokens >= 1.0:
                self._tokens -= 1.0
                return 0.0
            return (1.0 - self._tokens) / self._rate

    def wait(self, timeout: Optional[float] = None, cancel_event=None) -> bool:
        """Block until a token is taken.

        Returns False if `timeout` elapses or `cancel_event` is set first.
        """
        deadline = None if timeout is None else self._clock() + timeout
        while True:
            delay = self._reserve_delay()
            if delay == 0.0:
                return True
            if deadline is not None:
                remaining = deadline - self._clock()
                if remaining <= 0:
                    return False
                delay = min(delay, remaining)
            if cancel_event is not None:
                if cancel_event.wait(delay):
                    return False
            else:
                time.sleep(delay)

    def set_limit(self, requests_per_second: float) -> None:
        if requests_per_second <= 0:
            raise ValueError("requests_per_second must be > 0")
        with self._lock:
            self._refill(self._clock())
            self._rate = float(requests_per_second)
        logger.info("Rate limit set to %.2f req/s", requests_per_second)

    def set_burst(self, burst: int) -> None:
        if burst <= 0:
            raise ValueError("burst must be > 0")
        with self._lock:
            self._refill(self._clock())
            self._burst = int(burst)
            self._tokens = min(self._tokens, float(self._burst))
