# src/expunge/telemetry/protocols.py
"""Protocol definitions for metrics exporters."""

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from expunge.contracts.results import CleanupOutcome


@runtime_checkable
class MetricsExporter(Protocol):
    """Receives the terminal outcome of each cleanup run.

    Error handling:
        export() MUST NOT raise. Metrics failures must never change the
        outcome reported to the scheduler; log errors and continue.
    """

    def export(self, outcome: "CleanupOutcome") -> None:
        """Export counters for one finished run."""
        ...
