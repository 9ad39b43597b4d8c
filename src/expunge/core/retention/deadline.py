# src/expunge/core/retention/deadline.py
"""Run deadline, checked cooperatively between batches."""

import time
from collections.abc import Callable

from expunge.contracts.errors import ConfigurationError, DeadlineExceeded


class Deadline:
    """A time budget measured on a monotonic clock.

    Example:
        deadline = Deadline(600)
        while work_remains:
            deadline.check()  # raises DeadlineExceeded once the budget is spent
            do_one_batch()
    """

    def __init__(
        self,
        timeout_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Start the deadline now.

        Raises:
            ConfigurationError: If timeout_seconds is zero or negative
        """
        if timeout_seconds <= 0:
            raise ConfigurationError(f"Deadline timeout must be positive, got {timeout_seconds}")
        self._clock = clock
        self._timeout_seconds = timeout_seconds
        self._expires_at = clock() + timeout_seconds

    @property
    def timeout_seconds(self) -> float:
        return self._timeout_seconds

    @property
    def remaining(self) -> float:
        """Seconds left, never negative."""
        return max(0.0, self._expires_at - self._clock())

    @property
    def expired(self) -> bool:
        return self._clock() >= self._expires_at

    def check(self) -> None:
        """Raises DeadlineExceeded if the budget is spent."""
        if self.expired:
            raise DeadlineExceeded(f"run deadline of {self._timeout_seconds:g}s exceeded")
