# src/expunge/telemetry/exporters.py
"""Metrics exporters.

LogsMetricsExporter writes one structured log event per run. Log-based
metrics pipelines (Cloud Logging, Loki, Datadog log metrics) derive
counters from the event's fields.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from expunge.contracts.results import CleanupOutcome

logger = structlog.get_logger(__name__)

METRICS_EVENT = "cleanup_metrics"


def outcome_metrics(outcome: CleanupOutcome) -> dict[str, Any]:
    """Flatten an outcome into metric name -> value."""
    return {
        "records_examined": outcome.records_examined,
        "records_deleted": outcome.rows_deleted,
        "records_retained": outcome.rows_retained,
        "blobs_deleted": outcome.blobs_deleted,
        "blobs_missing": outcome.blobs_missing,
        "blobs_failed": outcome.blobs_failed,
        "batches": outcome.batches,
        "run_duration_seconds": round(outcome.duration_seconds, 3),
        "terminal_state": str(outcome.state),
    }


class LogsMetricsExporter:
    """Export run metrics as a structured log event."""

    def __init__(self, *, metric_prefix: str = "expunge") -> None:
        self._metric_prefix = metric_prefix

    def export(self, outcome: CleanupOutcome) -> None:
        try:
            logger.info(METRICS_EVENT, metric_prefix=self._metric_prefix, **outcome_metrics(outcome))
        except Exception as e:
            # export() must not raise; a broken log handler cannot fail the run
            logger.error("metrics_export_failed", error=str(e), error_type=type(e).__name__)


class NullMetricsExporter:
    """Discard all metrics."""

    def export(self, outcome: CleanupOutcome) -> None:
        return None
