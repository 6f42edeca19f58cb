"""
Exponential backoff for the enrichment supervisor's restart loop.
"""

import random


class ExponentialBackoff:
    """
    Exponential backoff with jitter.

    Computes delays as: min(base * multiplier^attempt, max_delay) + jitter.
    Call reset() once the supervised task has been healthy for a while.

    Usage:
        backoff = ExponentialBackoff(base_delay=10.0, max_delay=300.0)
        while not backoff.exhausted(max_attempts=10):
            try:
                await worker.run_forever()
                break
            except Exception:
                await asyncio.sleep(backoff.next_delay())
    """

    def __init__(
        self,
        base_delay: float = 10.0,
        max_delay: float = 300.0,
        multiplier: float = 2.0,
        jitter_range: float = 0.2,
    ):
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.multiplier = multiplier
        self.jitter_range = jitter_range
        self._attempt = 0

    @property
    def attempt(self) -> int:
        """Number of delays handed out since the last reset."""
        return self._attempt

    def peek(self) -> float:
        """Un-jittered delay the next call to next_delay() is centred on."""
        return min(self.base_delay * (self.multiplier ** self._attempt), self.max_delay)

    def next_delay(self) -> float:
        """Calculate and return the next backoff delay, incrementing the attempt counter."""
        delay = self.peek()
        jitter = delay * random.uniform(-self.jitter_range, self.jitter_range)
        self._attempt += 1
        return max(0.0, delay + jitter)

    def exhausted(self, max_attempts: int) -> bool:
        return self._attempt >= max_attempts

    def reset(self) -> None:
        self._attempt = 0
