# src/expunge/contracts/enums.py
"""Enumerations shared across the cleanup engine."""

from enum import StrEnum


class RunState(StrEnum):
    """Lifecycle of a single cleanup run.

    IDLE -> RUNNING -> {COMPLETED, DEADLINE_EXCEEDED, FAILED}
    """

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    DEADLINE_EXCEEDED = "deadline_exceeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RunState.COMPLETED, RunState.DEADLINE_EXCEEDED, RunState.FAILED)


class OutcomeStatus(StrEnum):
    """Terse status reported to the scheduler."""

    SUCCESS = "success"
    PARTIAL = "partial"
    FAILURE = "failure"
