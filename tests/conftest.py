"""Shared test fixtures.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

import logging
import os
from collections.abc import Iterator
from datetime import UTC, datetime, timedelta

import pytest
import structlog
from hypothesis import Phase, Verbosity, settings

from expunge.core.database import ExposureDB
from expunge.core.retention import (
    BlobPurger,
    CleanupOrchestrator,
    RecordLocator,
    RecordPurger,
    RetentionPolicy,
)
from tests.fixtures.database import make_db
from tests.fixtures.stores import MemoryBlobStore

# Fixed "now" for scenario tests
NOW = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def db() -> Iterator[ExposureDB]:
    """Fresh in-memory database per test."""
    database = make_db()
    yield database
    database.close()


@pytest.fixture
def blob_store() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def policy() -> RetentionPolicy:
    """30-day window for 'exposure', 14-day window for 'export'."""
    return RetentionPolicy({"exposure": timedelta(days=30), "export": timedelta(days=14)})


@pytest.fixture
def orchestrator(db: ExposureDB, blob_store: MemoryBlobStore, policy: RetentionPolicy) -> CleanupOrchestrator:
    return CleanupOrchestrator(
        policy=policy,
        locator=RecordLocator(db),
        blob_purger=BlobPurger(blob_store, max_concurrency=4),
        record_purger=RecordPurger(db),
        batch_size=2,
        now=lambda: NOW,
    )


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    """Keep logging configuration from leaking between tests.

    configure_logging() replaces root handlers with one bound to the
    current (possibly captured) sys.stdout.
    """
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    structlog.reset_defaults()
    root.handlers = handlers
    root.setLevel(level)


# =============================================================================
# Hypothesis Configuration
# =============================================================================

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))
