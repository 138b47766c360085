"""Request pacing for the Trello API."""

from __future__ import annotations

import time


class RequestThrottle:
    """Token bucket that keeps sequential requests under Trello's limits

    Trello allows 100 requests per 10 seconds per token. The sync issues one
    request at a time, so the bucket needs no locking: ``wait()`` simply sleeps
    until the next token is due.
    """

    def __init__(self, requests_per_second: float = 10.0, burst: int = 10):
        if requests_per_second <= 0:
            raise ValueError("requests_per_second must be positive")
        if burst < 1:
            raise ValueError("burst must be at least 1")
        self.rate = requests_per_second
        self.burst = burst
        self.tokens = float(burst)
        self.last_update = time.monotonic()

    def _refill(self) -> None:
        now = time.monotonic()
        self.tokens = min(self.burst, self.tokens + (now - self.last_update) * self.rate)
        self.last_update = now

    def wait(self) -> float:
        """Block until a request may be sent.

        Returns:
            Seconds spent sleeping (0.0 when a token was already available)
        """
        self._refill()
        slept = 0.0
        if self.tokens < 1.0:
            slept = (1.0 - self.tokens) / self.rate
            time.sleep(slept)
            self._refill()
            # Sleep granularity can leave us a hair short
            self.tokens = max(self.tokens, 1.0)
        self.tokens -= 1.0
        return slept
