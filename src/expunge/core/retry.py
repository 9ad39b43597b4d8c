# src/expunge/core/retry.py
"""Bounded in-process retry for StorageUnavailable, using tenacity.

The default is a single attempt: retry normally happens on the scheduler's
next invocation. Raising max_attempts adds exponential backoff with jitter
around individual storage calls. Every storage call is idempotent, so
retrying one cannot double-apply an effect.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

import structlog
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    stop_before_delay,
    wait_exponential_jitter,
)

from expunge.contracts.errors import StorageUnavailable

if TYPE_CHECKING:
    from tenacity import RetryCallState
    from tenacity.stop import stop_base

    from expunge.core.config import RetrySettings
    from expunge.core.retention.deadline import Deadline

T = TypeVar("T")

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior.

    max_attempts is the TOTAL number of tries, not the number of retries.
    So max_attempts=3 means: try, retry, retry (3 total).
    """

    max_attempts: int = 1
    base_delay: float = 0.5  # seconds
    max_delay: float = 10.0  # seconds
    jitter: float = 0.5  # seconds

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

    @classmethod
    def no_retry(cls) -> "RetryConfig":
        """Factory for no-retry configuration (single attempt)."""
        return cls(max_attempts=1)

    @classmethod
    def from_settings(cls, settings: "RetrySettings") -> "RetryConfig":
        return cls(
            max_attempts=settings.max_attempts,
            base_delay=settings.initial_delay_seconds,
            max_delay=settings.max_delay_seconds,
            jitter=settings.jitter_seconds,
        )


def _log_retry(retry_state: "RetryCallState") -> None:
    error = retry_state.outcome.exception() if retry_state.outcome is not None else None
    logger.warning(
        "storage_call_retry",
        attempt=retry_state.attempt_number,
        error=str(error),
    )


def call_with_retry(
    config: RetryConfig,
    operation: Callable[[], T],
    *,
    deadline: "Deadline | None" = None,
) -> T:
    """Run operation, retrying StorageUnavailable per config.

    Only StorageUnavailable is retried; every other exception propagates on
    the first occurrence. When attempts run out, the last StorageUnavailable
    is re-raised unchanged so callers see the same error type either way.

    With a deadline, no retry is started whose backoff sleep would end past
    the deadline's remaining time. The first attempt always runs.
    """
    if config.max_attempts == 1:
        return operation()

    stop: "stop_base" = stop_after_attempt(config.max_attempts)
    if deadline is not None:
        stop = stop | stop_before_delay(deadline.remaining)

    retrying = Retrying(
        stop=stop,
        wait=wait_exponential_jitter(
            initial=config.base_delay,
            max=config.max_delay,
            jitter=config.jitter,
        ),
        retry=retry_if_exception_type(StorageUnavailable),
        before_sleep=_log_retry,
        reraise=True,
    )
    return retrying(operation)
