"""Token bucket rate limiting for the API backend."""

import time
from typing import Callable


class TokenBucketRateLimiter:
    """Token bucket rate limiter admitting one request per token.

    Parameters
    ----------
    rate : float
        Tokens added per second.
    burst : int | None
        Bucket capacity. Defaults to ``rate`` so a full second of requests
        may go out back to back after an idle period.
    clock, sleep
        Time sources, replaceable in tests.
    """

    def __init__(
        self,
        rate: float,
        burst: int | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if rate <= 0:
            raise ValueError(f"rate must be positive, got {rate}")
        self.rate = rate
        self.burst = burst or max(1, int(rate))
        self.tokens = float(self.burst)
        self._clock = clock
        self._sleep = sleep
        self.last_refill = clock()

    def acquire(self) -> float:
        """Block until a token is available, then consume one.

        Returns
        -------
        float
            Seconds spent waiting.
        """
        waited = 0.0
        while True:
            now = self._clock()
            self.tokens = min(self.burst, self.tokens + (now - self.last_refill) * self.rate)
            self.last_refill = now
            if self.tokens >= 1.0:
                self.tokens -= 1.0
                return waited
            delay = (1.0 - self.tokens) / self.rate
            self._sleep(delay)
            waited += delay
