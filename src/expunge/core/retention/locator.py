# src/expunge/core/retention/locator.py
"""Record locator: batched, oldest-first selection of stale records."""

from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime

import structlog
from sqlalchemy import Connection, and_, func, or_, select

from expunge.contracts.errors import ConfigurationError
from expunge.contracts.records import BlobReference, ExposureRecord
from expunge.core.database import ExposureDB, storage_errors
from expunge.core.schema import exposure_blobs_table, exposures_table

logger = structlog.get_logger(__name__)

# (created_at, record_id) of the last row on a page
Cursor = tuple[datetime, str]


@dataclass(frozen=True)
class LocatedBatch:
    """One page of stale records.

    Attributes:
        records: Stale records ordered by (created_at, record_id) ascending
        has_more: True if further stale records exist past this page
        skipped: IDs of stale records on this page whose blob rows could
            not be read; they are never handed out for deletion
        cursor: Keyset position after the last row on this page, skipped
            rows included, or None if the page is empty
    """

    records: tuple[ExposureRecord, ...]
    has_more: bool
    skipped: tuple[str, ...] = ()
    cursor: Cursor | None = None


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back out; stored values are UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class RecordLocator:
    """Queries the database for records eligible for deletion.

    Pagination is keyset-based on (created_at, record_id). Passing the
    previous batch's cursor as ``after`` guarantees that a record is handed
    out at most once per run, including records that were retained because
    their blob could not be deleted.
    """

    def __init__(self, db: ExposureDB) -> None:
        self._db = db

    def next_batch(
        self,
        cutoffs: Mapping[str, datetime],
        max_batch_size: int,
        *,
        after: Cursor | None = None,
    ) -> LocatedBatch:
        """Select the next page of stale records, oldest first.

        A record is selected iff its retention class appears in cutoffs and
        its created_at is strictly before that class's cutoff.

        Args:
            cutoffs: Cutoff timestamp per retention class
            max_batch_size: Maximum records to return
            after: Cursor from the previous batch of the same run

        Returns:
            LocatedBatch with up to max_batch_size records and their blobs

        Raises:
            ConfigurationError: If max_batch_size < 1
            StorageUnavailable: If the database cannot be reached
        """
        if max_batch_size < 1:
            raise ConfigurationError(f"max_batch_size must be >= 1, got {max_batch_size}")
        if not cutoffs:
            return LocatedBatch(records=(), has_more=False)

        t = exposures_table
        eligible = or_(*(and_(t.c.retention_class == retention_class, t.c.created_at < cutoff) for retention_class, cutoff in cutoffs.items()))
        conditions = [eligible]
        if after is not None:
            after_created_at, after_record_id = after
            conditions.append(
                or_(
                    t.c.created_at > after_created_at,
                    and_(t.c.created_at == after_created_at, t.c.record_id > after_record_id),
                )
            )

        # One extra row tells us whether another page exists
        query = (
            select(t.c.record_id, t.c.retention_class, t.c.created_at)
            .where(and_(*conditions))
            .order_by(t.c.created_at.asc(), t.c.record_id.asc())
            .limit(max_batch_size + 1)
        )

        with storage_errors(), self._db.connection() as conn:
            rows = conn.execute(query).all()
            has_more = len(rows) > max_batch_size
            rows = rows[:max_batch_size]
            blobs, malformed = self._load_blobs(conn, [row.record_id for row in rows])

        records = tuple(
            ExposureRecord(
                record_id=row.record_id,
                retention_class=row.retention_class,
                created_at=_as_utc(row.created_at),
                blobs=tuple(blobs.get(row.record_id, ())),
            )
            for row in rows
            if row.record_id not in malformed
        )
        skipped = tuple(row.record_id for row in rows if row.record_id in malformed)
        cursor = (_as_utc(rows[-1].created_at), rows[-1].record_id) if rows else None
        return LocatedBatch(records=records, has_more=has_more, skipped=skipped, cursor=cursor)

    @staticmethod
    def _load_blobs(conn: Connection, record_ids: list[str]) -> tuple[dict[str, list[BlobReference]], set[str]]:
        """Load blob references for the given records.

        Returns:
            (blobs per record_id, record_ids with an unusable blob row)
        """
        if not record_ids:
            return {}, set()
        b = exposure_blobs_table
        query = select(b.c.record_id, b.c.blob_id, b.c.bucket, b.c.path).where(b.c.record_id.in_(record_ids)).order_by(b.c.record_id, b.c.blob_id)
        blobs: dict[str, list[BlobReference]] = defaultdict(list)
        malformed: set[str] = set()
        for row in conn.execute(query):
            try:
                blobs[row.record_id].append(BlobReference(bucket=row.bucket, path=row.path))
            except ValueError as e:
                malformed.add(row.record_id)
                logger.warning("malformed_blob_row", record_id=row.record_id, blob_id=row.blob_id, error=str(e))
        return blobs, malformed

    def count_managed(self, retention_classes: Iterable[str]) -> int:
        """Count all records in the given retention classes, stale or not.

        Raises:
            StorageUnavailable: If the database cannot be reached
        """
        classes = list(retention_classes)
        if not classes:
            return 0
        query = select(func.count()).select_from(exposures_table).where(exposures_table.c.retention_class.in_(classes))
        with storage_errors(), self._db.connection() as conn:
            return int(conn.execute(query).scalar_one())
