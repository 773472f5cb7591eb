"""Delay strategies between consecutive failed polls.

A failed "next invocation" call has no request id to report against, so the
loop simply polls again.  By default it does so at once (:class:`NoBackoff`);
an :class:`ExponentialBackoff` spaces the retries out while the control
plane stays unreachable.  Posts are never retried.

Example:
    >>> strategy = ExponentialBackoff(base_delay=0.5, max_delay=8.0, jitter=False)
    >>> [strategy.next_delay(a) for a in range(5)]
    [0.5, 1.0, 2.0, 4.0, 8.0]
"""

import random
from abc import ABC, abstractmethod
from dataclasses import dataclass


class BackoffStrategy(ABC):
    """Abstract base for poll backoff strategies."""

    @abstractmethod
    def next_delay(self, attempt: int) -> float:
        """Calculate delay before the next poll.

        Args:
            attempt: Number of consecutive failed polls before this one

        Returns:
            Delay in seconds
        """
        ...


@dataclass
class ExponentialBackoff(BackoffStrategy):
    """Exponential backoff with optional jitter.

    Delay = min(base_delay * (multiplier ** attempt), max_delay) ± jitter
    """

    base_delay: float = 0.1
    max_delay: float = 30.0
    multiplier: float = 2.0
    jitter: bool = True
    jitter_range: float = 0.25

    def next_delay(self, attempt: int) -> float:
        try:
            delay = min(
                self.base_delay * (self.multiplier ** attempt),
                self.max_delay,
            )
        except OverflowError:
            delay = self.max_delay

        if self.jitter:
            jitter_amount = delay * self.jitter_range
            delay += random.uniform(-jitter_amount, jitter_amount)
            delay = max(0, delay)

        return delay


@dataclass
class NoBackoff(BackoffStrategy):
    """Re-poll immediately."""

    def next_delay(self, attempt: int) -> float:
        return 0.0


def backoff_from_settings(base_delay: float, max_delay: float) -> BackoffStrategy:
    """``NoBackoff`` when *base_delay* is zero, else exponential."""
    if base_delay <= 0:
        return NoBackoff()
    return ExponentialBackoff(base_delay=base_delay, max_delay=max(base_delay, max_delay))


__all__ = ["BackoffStrategy", "ExponentialBackoff", "NoBackoff", "backoff_from_settings"]
