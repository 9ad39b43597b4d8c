# src/expunge/core/retention/__init__.py
"""Retention cleanup engine.

Provides CleanupOrchestrator, which drives batched locate -> purge-blob ->
purge-record cycles under a RetentionPolicy within a Deadline.
"""

from expunge.core.retention.blob_purger import BlobPurger, BlobPurgeResult
from expunge.core.retention.deadline import Deadline
from expunge.core.retention.locator import LocatedBatch, RecordLocator
from expunge.core.retention.orchestrator import CleanupOrchestrator, CleanupPreview, CleanupRunner
from expunge.core.retention.policy import RetentionPolicy
from expunge.core.retention.record_purger import RecordPurger

__all__ = [
    "BlobPurgeResult",
    "BlobPurger",
    "CleanupOrchestrator",
    "CleanupPreview",
    "CleanupRunner",
    "Deadline",
    "LocatedBatch",
    "RecordLocator",
    "RecordPurger",
    "RetentionPolicy",
]
