# src/expunge/core/retention/policy.py
"""Retention policy: cutoff timestamps from per-class retention windows.

Pure computation, no I/O. Invalid windows are rejected at construction,
which happens at startup.
"""

from collections.abc import Mapping
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import TYPE_CHECKING

from expunge.contracts.errors import ConfigurationError
from expunge.contracts.records import ExposureRecord

if TYPE_CHECKING:
    from expunge.core.config import RetentionSettings


class RetentionPolicy:
    """Maps retention classes to retention windows.

    A record is eligible for deletion iff
    ``now - record.created_at > windows[record.retention_class]``.
    Records in classes without a configured window are never eligible.
    """

    def __init__(
        self,
        windows: Mapping[str, timedelta],
        *,
        minimum_window: timedelta = timedelta(0),
    ) -> None:
        """Initialize policy.

        Args:
            windows: Retention window per retention class
            minimum_window: Smallest window accepted for any class

        Raises:
            ConfigurationError: If no windows are given, or a window is
                zero, negative, or below minimum_window
        """
        if not windows:
            raise ConfigurationError("RetentionPolicy requires at least one retention window")
        for retention_class, window in windows.items():
            if window <= timedelta(0):
                raise ConfigurationError(f"Retention window for {retention_class!r} must be positive, got {window}")
            if window < minimum_window:
                raise ConfigurationError(f"Retention window for {retention_class!r} ({window}) is below the minimum of {minimum_window}")
        self._windows: Mapping[str, timedelta] = MappingProxyType(dict(windows))

    @classmethod
    def from_settings(cls, settings: "RetentionSettings") -> "RetentionPolicy":
        return cls(settings.windows, minimum_window=settings.minimum_window)

    @property
    def retention_classes(self) -> tuple[str, ...]:
        return tuple(sorted(self._windows))

    def window_for(self, retention_class: str) -> timedelta:
        """Raises KeyError for an unconfigured retention class."""
        return self._windows[retention_class]

    def cutoff_for(self, retention_class: str, now: datetime) -> datetime:
        """Records of this class created strictly before the cutoff are stale.

        Raises:
            KeyError: If retention_class has no configured window
            ValueError: If now is a naive datetime
        """
        if now.tzinfo is None:
            raise ValueError("now must be timezone-aware")
        return now - self._windows[retention_class]

    def cutoffs(self, now: datetime) -> dict[str, datetime]:
        """Cutoff for every configured retention class."""
        return {retention_class: self.cutoff_for(retention_class, now) for retention_class in self.retention_classes}

    def is_eligible(self, record: ExposureRecord, now: datetime) -> bool:
        if record.retention_class not in self._windows:
            return False
        return record.created_at < self.cutoff_for(record.retention_class, now)
