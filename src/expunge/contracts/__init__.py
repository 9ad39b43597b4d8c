# src/expunge/contracts/__init__.py
"""Shared contracts: data types, protocols, and the error taxonomy."""

from expunge.contracts.blob_store import BlobStore
from expunge.contracts.enums import OutcomeStatus, RunState
from expunge.contracts.errors import (
    BlobDeleteError,
    ConfigurationError,
    DeadlineExceeded,
    PartialPurgeFailure,
    SecretNotFoundError,
    StorageUnavailable,
)
from expunge.contracts.records import BlobReference, ExposureRecord
from expunge.contracts.results import CleanupOutcome
from expunge.contracts.secrets import SecretManager

__all__ = [
    "BlobDeleteError",
    "BlobReference",
    "BlobStore",
    "CleanupOutcome",
    "ConfigurationError",
    "DeadlineExceeded",
    "ExposureRecord",
    "OutcomeStatus",
    "PartialPurgeFailure",
    "RunState",
    "SecretManager",
    "SecretNotFoundError",
    "StorageUnavailable",
]
