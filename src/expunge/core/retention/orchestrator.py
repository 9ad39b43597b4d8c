# src/expunge/core/retention/orchestrator.py
"""Cleanup orchestrator: batched locate -> purge blobs -> purge rows.

State machine per run:

    IDLE -> RUNNING -> COMPLETED          no stale records remain
                    -> DEADLINE_EXCEEDED  time budget spent between batches
                    -> FAILED             database or blob store unreachable

Batches run sequentially, oldest first. The deadline is only checked
after a batch that leaves more work; a batch in flight always finishes,
and storage retries never sleep past the deadline. No retries happen
across runs: failed blobs leave their records in place, and the next
scheduled invocation picks them up again.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from functools import partial
from time import perf_counter
from typing import Protocol, TypeVar
from uuid import uuid4

import structlog

from expunge.contracts.enums import RunState
from expunge.contracts.errors import (
    ConfigurationError,
    DeadlineExceeded,
    PartialPurgeFailure,
    StorageUnavailable,
)
from expunge.contracts.records import ExposureRecord
from expunge.contracts.results import CleanupOutcome
from expunge.core.retention.blob_purger import BlobPurger, BlobPurgeResult
from expunge.core.retention.deadline import Deadline
from expunge.core.retention.locator import Cursor, LocatedBatch, RecordLocator
from expunge.core.retention.policy import RetentionPolicy
from expunge.core.retention.record_purger import RecordPurger
from expunge.core.retry import RetryConfig, call_with_retry
from expunge.telemetry.exporters import NullMetricsExporter
from expunge.telemetry.protocols import MetricsExporter

T = TypeVar("T")

logger = structlog.get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class CleanupRunner(Protocol):
    """Anything the HTTP trigger can invoke to perform one cleanup run."""

    def run(self, deadline: Deadline) -> CleanupOutcome:
        """Run one cleanup within the deadline and return its outcome.

        Must not raise for DeadlineExceeded or StorageUnavailable; those are
        reported through the outcome's state.
        """
        ...


@dataclass(frozen=True)
class CleanupPreview:
    """What a run would delete right now, without deleting anything.

    Attributes:
        eligible: Number of stale records
        sample: Oldest stale records, up to the requested limit
    """

    eligible: int
    sample: tuple[ExposureRecord, ...]


class CleanupOrchestrator:
    """Production CleanupRunner.

    Holds no state between runs; every run() builds a fresh outcome, so one
    instance serves every invocation for the life of the process, including
    overlapping ones. Overlaps are safe because both purge steps are
    idempotent per identifier.
    """

    def __init__(
        self,
        policy: RetentionPolicy,
        locator: RecordLocator,
        blob_purger: BlobPurger,
        record_purger: RecordPurger,
        *,
        batch_size: int,
        metrics: MetricsExporter | None = None,
        retry: RetryConfig | None = None,
        now: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize orchestrator.

        Args:
            policy: Retention windows per class
            locator: Finds stale records
            blob_purger: Deletes blobs of a batch
            record_purger: Deletes rows of a batch
            batch_size: Maximum records per locate/purge cycle
            metrics: Receives the terminal outcome of every run
            retry: In-process retry of StorageUnavailable (default: none)
            now: Wall clock used for cutoff computation

        Raises:
            ConfigurationError: If batch_size < 1
        """
        if batch_size < 1:
            raise ConfigurationError(f"batch_size must be >= 1, got {batch_size}")
        self._policy = policy
        self._locator = locator
        self._blob_purger = blob_purger
        self._record_purger = record_purger
        self._batch_size = batch_size
        self._metrics = metrics if metrics is not None else NullMetricsExporter()
        self._retry = retry if retry is not None else RetryConfig.no_retry()
        self._now = now

    @property
    def batch_size(self) -> int:
        return self._batch_size

    def _storage_call(self, operation: Callable[[], T], deadline: Deadline | None = None) -> T:
        return call_with_retry(self._retry, operation, deadline=deadline)

    def run(self, deadline: Deadline) -> CleanupOutcome:
        """Run cleanup batches until done, out of time, or storage fails.

        The deadline is checked after each batch that reports more stale
        records, so a backlog that fits in one batch always completes.

        Args:
            deadline: Time budget for this run

        Returns:
            CleanupOutcome in a terminal state
        """
        outcome = CleanupOutcome(state=RunState.RUNNING)
        log = logger.bind(run_id=uuid4().hex[:12])
        started = perf_counter()
        log.info("cleanup_run_started", timeout_seconds=deadline.timeout_seconds, batch_size=self._batch_size)

        try:
            outcome.records_examined = self._storage_call(partial(self._locator.count_managed, self._policy.retention_classes), deadline)
            cursor: Cursor | None = None
            while True:
                cutoffs = self._policy.cutoffs(self._now())
                batch = self._storage_call(partial(self._locator.next_batch, cutoffs, self._batch_size, after=cursor), deadline)
                if batch.records or batch.skipped:
                    self._process_batch(batch, outcome, log, deadline)
                    cursor = batch.cursor
                if not batch.has_more:
                    outcome.state = RunState.COMPLETED
                    break
                deadline.check()
        except DeadlineExceeded:
            outcome.state = RunState.DEADLINE_EXCEEDED
        except StorageUnavailable as e:
            outcome.state = RunState.FAILED
            outcome.failure = str(e)
            log.error("cleanup_storage_unavailable", backend=e.backend, error=str(e))

        outcome.duration_seconds = perf_counter() - started
        log.info("cleanup_run_finished", **outcome.to_dict())
        self._export_metrics(outcome, log)
        return outcome

    def _process_batch(
        self,
        batch: LocatedBatch,
        outcome: CleanupOutcome,
        log: structlog.stdlib.BoundLogger,
        deadline: Deadline,
    ) -> None:
        """Purge one batch: blobs first, then rows whose blobs are confirmed gone."""
        records = batch.records
        batch_index = outcome.batches
        outcome.batches += 1
        outcome.records_eligible += len(records) + len(batch.skipped)

        refs = [ref for record in records for ref in record.blobs]
        blob_result: BlobPurgeResult = self._storage_call(partial(self._blob_purger.delete_blobs, refs), deadline)
        outcome.blobs_deleted += len(blob_result.deleted)
        outcome.blobs_missing += len(blob_result.missing)
        outcome.blobs_failed += len(blob_result.failed)

        # A record with no blobs is trivially confirmed
        purgeable = [record.record_id for record in records if all(blob_result.confirmed(ref) for ref in record.blobs)]
        retained = len(records) - len(purgeable) + len(batch.skipped)

        rows_deleted = self._storage_call(partial(self._record_purger.delete_records, purgeable), deadline)
        outcome.rows_deleted += rows_deleted
        outcome.rows_retained += retained

        if batch.skipped:
            log.warning("cleanup_records_skipped", batch=batch_index, records=len(batch.skipped))

        if blob_result.failed:
            failure = PartialPurgeFailure(batch_index, {str(ref): message for ref, message in blob_result.failed.items()})
            outcome.errors.append(failure)
            log.warning(
                "cleanup_partial_purge_failure",
                batch=batch_index,
                blobs_failed=len(blob_result.failed),
                rows_retained=retained,
            )

        log.info(
            "cleanup_batch_processed",
            batch=batch_index,
            records=len(records),
            oldest=records[0].created_at.isoformat() if records else None,
            newest=records[-1].created_at.isoformat() if records else None,
            blobs_deleted=len(blob_result.deleted),
            blobs_missing=len(blob_result.missing),
            rows_deleted=rows_deleted,
        )

    def _export_metrics(self, outcome: CleanupOutcome, log: structlog.stdlib.BoundLogger) -> None:
        try:
            self._metrics.export(outcome)
        except Exception as e:
            # Exporters must not raise; a misbehaving one cannot change the outcome
            log.error("metrics_export_failed", error=str(e), error_type=type(e).__name__)

    def preview(self, *, limit: int = 10) -> CleanupPreview:
        """Count stale records and sample the oldest, without deleting anything.

        Raises:
            StorageUnavailable: If the database cannot be reached
        """
        cutoffs = self._policy.cutoffs(self._now())
        eligible = 0
        sample: list[ExposureRecord] = []
        cursor: Cursor | None = None
        while True:
            batch = self._storage_call(partial(self._locator.next_batch, cutoffs, self._batch_size, after=cursor))
            eligible += len(batch.records) + len(batch.skipped)
            if len(sample) < limit:
                sample.extend(batch.records[: limit - len(sample)])
            if not batch.has_more:
                return CleanupPreview(eligible=eligible, sample=tuple(sample))
            cursor = batch.cursor
