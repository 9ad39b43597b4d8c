# src/expunge/contracts/errors.py
"""Error taxonomy for retention cleanup.

Propagation policy:
- ConfigurationError and StorageUnavailable are run-level failures.
- BlobDeleteError is a per-object failure, caught by BlobPurger.
- PartialPurgeFailure is recorded in CleanupOutcome, never raised out of a run.
- DeadlineExceeded is an expected stopping condition, not a failure.
"""

from collections.abc import Mapping
from typing import Literal


class ConfigurationError(Exception):
    """Raised when configuration is invalid.

    Always raised at startup (settings load, policy or orchestrator
    construction), before any run begins.
    """

    pass


class StorageUnavailable(Exception):
    """Raised when the database or blob store cannot be reached.

    Aborts the current run. Batches that already committed stay committed.

    Attributes:
        backend: Which substrate was unreachable ("database" or "blob")
    """

    def __init__(self, backend: Literal["database", "blob"], message: str) -> None:
        self.backend = backend
        super().__init__(f"{backend} unavailable: {message}")


class BlobDeleteError(Exception):
    """Raised by a BlobStore when deleting a single object fails."""

    pass


class PartialPurgeFailure(Exception):
    """Some blob deletions in a batch failed.

    The owning records are left intact so the next invocation retries them.

    Attributes:
        batch_index: Zero-based index of the batch within its run
        failed: Mapping of rendered blob reference to error message
    """

    def __init__(self, batch_index: int, failed: Mapping[str, str]) -> None:
        self.batch_index = batch_index
        self.failed = dict(failed)
        super().__init__(f"batch {batch_index}: {len(self.failed)} blob deletion(s) failed")


class DeadlineExceeded(Exception):
    """The run's time budget elapsed before the backlog was drained."""

    pass


class SecretNotFoundError(Exception):
    """Raised when a secret cannot be resolved. Secret lookups fail closed."""

    def __init__(self, name: str, reason: str = "not found") -> None:
        self.name = name
        super().__init__(f"Secret '{name}' could not be resolved: {reason}")
