# src/expunge/contracts/results.py
"""Aggregate result of one cleanup run."""

from dataclasses import dataclass, field
from typing import Any

from expunge.contracts.enums import OutcomeStatus, RunState
from expunge.contracts.errors import PartialPurgeFailure


@dataclass
class CleanupOutcome:
    """Aggregate result of one cleanup invocation.

    Created fresh per run, returned to the caller, never persisted.

    Attributes:
        state: Terminal RunState once the run has finished
        records_examined: Records in retention-managed classes at run start
        records_eligible: Stale records returned by the locator
        rows_deleted: Record rows actually removed from the database
        rows_retained: Eligible records kept because a blob delete failed
        blobs_deleted: Blobs removed from storage
        blobs_missing: Blobs already gone (counted as success)
        blobs_failed: Blobs whose deletion failed
        batches: Number of locate/purge cycles performed
        errors: Per-batch partial failures
        failure: Message of the error that failed the run, if any
        duration_seconds: Wall time of the run
    """

    state: RunState = RunState.IDLE
    records_examined: int = 0
    records_eligible: int = 0
    rows_deleted: int = 0
    rows_retained: int = 0
    blobs_deleted: int = 0
    blobs_missing: int = 0
    blobs_failed: int = 0
    batches: int = 0
    errors: list[PartialPurgeFailure] = field(default_factory=list)
    failure: str | None = None
    duration_seconds: float = 0.0

    @property
    def status(self) -> OutcomeStatus:
        if self.state == RunState.FAILED:
            return OutcomeStatus.FAILURE
        if self.state == RunState.COMPLETED and not self.errors:
            return OutcomeStatus.SUCCESS
        return OutcomeStatus.PARTIAL

    @property
    def http_status(self) -> int:
        """HTTP status code for the scheduler.

        2xx for COMPLETED (even with partial failures) and for a clean
        DEADLINE_EXCEEDED; 500 for FAILED and DEADLINE_EXCEEDED with errors.
        """
        if self.state == RunState.FAILED:
            return 500
        if self.state == RunState.DEADLINE_EXCEEDED and self.errors:
            return 500
        if not self.state.is_terminal:
            raise ValueError(f"Outcome has no HTTP status before the run finishes (state={self.state})")
        return 200

    def to_dict(self) -> dict[str, Any]:
        """Summary suitable for the HTTP response and CLI output.

        Only counts are exposed, never per-identifier detail.
        """
        return {
            "state": str(self.state),
            "status": str(self.status),
            "records_examined": self.records_examined,
            "records_eligible": self.records_eligible,
            "rows_deleted": self.rows_deleted,
            "rows_retained": self.rows_retained,
            "blobs_deleted": self.blobs_deleted,
            "blobs_missing": self.blobs_missing,
            "blobs_failed": self.blobs_failed,
            "batches": self.batches,
            "error_count": len(self.errors),
            "duration_seconds": round(self.duration_seconds, 3),
        }
