"""Exponential backoff for listener bind retries."""

from __future__ import annotations


class ExponentialBackoff:
    """Delay sequence ``initial * multiplier**n`` capped at ``maximum``.

    Example:
        >>> backoff = ExponentialBackoff(0.1, 0.5, 2.0)
        >>> [backoff.next_delay() for _ in range(4)]
        [0.1, 0.2, 0.4, 0.5]
        >>> backoff.reset()
        >>> backoff.next_delay()
        0.1
    """

    def __init__(self, initial: float, maximum: float, multiplier: float = 2.0) -> None:
        if initial <= 0:
            raise ValueError(f"initial must be > 0, got {initial}")
        if maximum < initial:
            raise ValueError(f"maximum must be >= initial, got {maximum}")
        if multiplier < 1.0:
            raise ValueError(f"multiplier must be >= 1.0, got {multiplier}")

        self.initial = initial
        self.maximum = maximum
        self.multiplier = multiplier
        self._attempts = 0
        self._exponent = 0

    @property
    def attempts(self) -> int:
        """Number of delays handed out since the last reset."""
        return self._attempts

    def next_delay(self) -> float:
        """Return the delay before the next attempt and advance the sequence."""
        delay = min(self.initial * (self.multiplier**self._exponent), self.maximum)
        self._attempts += 1
        # Stop growing once capped so the power never overflows
        if delay < self.maximum:
            self._exponent += 1
        return delay

    def reset(self) -> None:
        """Start over from the initial delay (after a success)."""
        self._attempts = 0
        self._exponent = 0
