"""Retry policy for provider calls."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry with a fixed backoff schedule.

    ``max_retries`` counts attempts after the first one; ``backoff`` lists the
    wait in seconds before each retry, the last value being reused once the
    schedule runs out. ``RetryPolicy(max_retries=0)`` never retries.
    """

    max_retries: int = 2
    backoff: Tuple[float, ...] = (1, 4, 9)

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries cannot be negative.")
        if any(delay < 0 for delay in self.backoff):
            raise ValueError("backoff delays cannot be negative.")

    def should_retry(self, attempt: int) -> bool:
        """Whether another attempt is allowed after ``attempt`` failures."""

        return attempt <= self.max_retries

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait before retry number ``attempt`` (1-based)."""

        if not self.backoff:
            return 0.0
        return float(self.backoff[min(attempt - 1, len(self.backoff) - 1)])


NO_RETRY = RetryPolicy(max_retries=0, backoff=())
