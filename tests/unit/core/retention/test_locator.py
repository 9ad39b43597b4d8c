"""Unit tests for RecordLocator batch selection."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from structlog.testing import capture_logs

from expunge.contracts.errors import ConfigurationError, StorageUnavailable
from expunge.contracts.records import BlobReference
from expunge.core.database import ExposureDB
from expunge.core.retention import RecordLocator
from tests.fixtures.database import seed_raw_blob_row, seed_record


def _cutoffs(now: datetime, days: int = 30) -> dict[str, datetime]:
    return {"exposure": now - timedelta(days=days)}


class TestNextBatch:
    """Selection, ordering and pagination."""

    def test_selects_only_stale_records(self, db: ExposureDB, now: datetime) -> None:
        seed_record(db, "old", created_at=now - timedelta(days=100))
        seed_record(db, "mid", created_at=now - timedelta(days=40))
        seed_record(db, "new", created_at=now - timedelta(days=5))

        batch = RecordLocator(db).next_batch(_cutoffs(now), 10)

        assert [r.record_id for r in batch.records] == ["old", "mid"]
        assert not batch.has_more

    def test_record_exactly_at_cutoff_is_not_selected(self, db: ExposureDB, now: datetime) -> None:
        seed_record(db, "edge", created_at=now - timedelta(days=30))

        batch = RecordLocator(db).next_batch(_cutoffs(now), 10)

        assert batch.records == ()

    def test_oldest_first_with_record_id_tiebreak(self, db: ExposureDB, now: datetime) -> None:
        same = now - timedelta(days=50)
        seed_record(db, "b", created_at=same)
        seed_record(db, "c", created_at=now - timedelta(days=60))
        seed_record(db, "a", created_at=same)

        batch = RecordLocator(db).next_batch(_cutoffs(now), 10)

        assert [r.record_id for r in batch.records] == ["c", "a", "b"]

    def test_respects_batch_size_and_reports_more(self, db: ExposureDB, now: datetime) -> None:
        for i in range(5):
            seed_record(db, f"r{i}", created_at=now - timedelta(days=100 - i))

        batch = RecordLocator(db).next_batch(_cutoffs(now), 2)

        assert [r.record_id for r in batch.records] == ["r0", "r1"]
        assert batch.has_more

    def test_exact_page_has_no_more(self, db: ExposureDB, now: datetime) -> None:
        seed_record(db, "r0", created_at=now - timedelta(days=90))
        seed_record(db, "r1", created_at=now - timedelta(days=80))

        batch = RecordLocator(db).next_batch(_cutoffs(now), 2)

        assert len(batch.records) == 2
        assert not batch.has_more

    def test_cursor_pages_through_without_repeats(self, db: ExposureDB, now: datetime) -> None:
        for i in range(5):
            seed_record(db, f"r{i}", created_at=now - timedelta(days=100 - i))
        locator = RecordLocator(db)

        seen: list[str] = []
        cursor = None
        while True:
            batch = locator.next_batch(_cutoffs(now), 2, after=cursor)
            seen.extend(r.record_id for r in batch.records)
            if not batch.has_more:
                break
            cursor = batch.cursor

        assert seen == ["r0", "r1", "r2", "r3", "r4"]

    def test_per_class_cutoffs(self, db: ExposureDB, now: datetime) -> None:
        seed_record(db, "exposure-20d", created_at=now - timedelta(days=20))
        seed_record(db, "export-20d", retention_class="export", created_at=now - timedelta(days=20))

        cutoffs = {"exposure": now - timedelta(days=30), "export": now - timedelta(days=14)}
        batch = RecordLocator(db).next_batch(cutoffs, 10)

        assert [r.record_id for r in batch.records] == ["export-20d"]

    def test_unmanaged_class_never_selected(self, db: ExposureDB, now: datetime) -> None:
        seed_record(db, "audit", retention_class="audit", created_at=now - timedelta(days=1000))

        batch = RecordLocator(db).next_batch(_cutoffs(now), 10)

        assert batch.records == ()

    def test_empty_cutoffs_select_nothing(self, db: ExposureDB, now: datetime) -> None:
        seed_record(db, "old", created_at=now - timedelta(days=100))

        batch = RecordLocator(db).next_batch({}, 10)

        assert batch.records == ()
        assert batch.cursor is None

    def test_loads_blobs_and_returns_utc(self, db: ExposureDB, now: datetime) -> None:
        blobs = (BlobReference("exposures", "old/1.json"), BlobReference("exposures", "old/2.json"))
        seed_record(db, "old", created_at=now - timedelta(days=100), blobs=blobs)
        seed_record(db, "bare", created_at=now - timedelta(days=90))

        batch = RecordLocator(db).next_batch(_cutoffs(now), 10)

        old, bare = batch.records
        assert old.blobs == blobs
        assert bare.blobs == ()
        assert old.created_at == now - timedelta(days=100)
        assert old.created_at.tzinfo is not None

    def test_record_with_malformed_blob_row_is_skipped(self, db: ExposureDB, now: datetime) -> None:
        seed_record(db, "a", created_at=now - timedelta(days=100))
        seed_record(db, "broken", created_at=now - timedelta(days=90))
        seed_raw_blob_row(db, "broken", bucket="", path="orphan.json")
        seed_record(db, "c", created_at=now - timedelta(days=80))

        with capture_logs() as logs:
            batch = RecordLocator(db).next_batch(_cutoffs(now), 10)

        assert [r.record_id for r in batch.records] == ["a", "c"]
        assert batch.skipped == ("broken",)
        assert [entry["record_id"] for entry in logs if entry["event"] == "malformed_blob_row"] == ["broken"]

    def test_cursor_advances_past_skipped_record(self, db: ExposureDB, now: datetime) -> None:
        seed_record(db, "a", created_at=now - timedelta(days=100))
        seed_record(db, "broken", created_at=now - timedelta(days=90))
        seed_raw_blob_row(db, "broken", bucket="exposures", path="")
        seed_record(db, "c", created_at=now - timedelta(days=80))
        locator = RecordLocator(db)

        first = locator.next_batch(_cutoffs(now), 2)
        second = locator.next_batch(_cutoffs(now), 2, after=first.cursor)

        assert [r.record_id for r in first.records] == ["a"]
        assert first.skipped == ("broken",)
        assert first.cursor is not None
        assert first.cursor[1] == "broken"
        assert first.has_more
        assert [r.record_id for r in second.records] == ["c"]
        assert second.skipped == ()
        assert not second.has_more

    def test_rejects_zero_batch_size(self, db: ExposureDB, now: datetime) -> None:
        with pytest.raises(ConfigurationError):
            RecordLocator(db).next_batch(_cutoffs(now), 0)

    def test_unreachable_database_raises_storage_unavailable(self, tmp_path, now: datetime) -> None:
        db = ExposureDB(f"sqlite:///{tmp_path / 'missing' / 'x.db'}", create_tables=False)
        try:
            with pytest.raises(StorageUnavailable) as exc_info:
                RecordLocator(db).next_batch(_cutoffs(now), 10)
        finally:
            db.close()
        assert exc_info.value.backend == "database"


class TestCountManaged:
    def test_counts_stale_and_fresh_in_managed_classes(self, db: ExposureDB, now: datetime) -> None:
        seed_record(db, "old", created_at=now - timedelta(days=100))
        seed_record(db, "new", created_at=now - timedelta(days=1))
        seed_record(db, "export", retention_class="export", created_at=now)
        seed_record(db, "audit", retention_class="audit", created_at=now - timedelta(days=100))

        assert RecordLocator(db).count_managed(["exposure"]) == 2
        assert RecordLocator(db).count_managed(["exposure", "export"]) == 3

    def test_no_classes_counts_zero(self, db: ExposureDB) -> None:
        assert RecordLocator(db).count_managed([]) == 0
