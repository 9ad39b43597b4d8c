# src/expunge/telemetry/__init__.py
"""Run metrics export."""

from expunge.telemetry.exporters import LogsMetricsExporter, NullMetricsExporter, outcome_metrics
from expunge.telemetry.protocols import MetricsExporter

__all__ = ["LogsMetricsExporter", "MetricsExporter", "NullMetricsExporter", "outcome_metrics"]
