# src/expunge/core/retention/record_purger.py
"""Record purger: transactional deletion of record rows and their blob rows."""

from collections.abc import Iterable

from sqlalchemy import delete

from expunge.core.database import ExposureDB, storage_errors
from expunge.core.schema import exposure_blobs_table, exposures_table


class RecordPurger:
    """Deletes record rows for a batch of identifiers.

    Callers must only pass identifiers whose blobs have been confirmed
    deleted (or that own no blobs); this class does not touch blob storage.
    """

    def __init__(self, db: ExposureDB) -> None:
        self._db = db

    def delete_records(self, record_ids: Iterable[str]) -> int:
        """Delete the records and their dependent blob rows.

        Both deletes run in one transaction, so a crash leaves either all or
        none of the batch's rows deleted. Identifiers that no longer exist
        are ignored.

        Args:
            record_ids: Identifiers to delete

        Returns:
            Number of record rows actually removed

        Raises:
            StorageUnavailable: If the database cannot be reached (the
                transaction is rolled back)
        """
        ids = list(dict.fromkeys(record_ids))
        if not ids:
            return 0

        with storage_errors(), self._db.connection() as conn:
            # Explicit child delete; ON DELETE CASCADE is not enforced on every backend configuration
            conn.execute(delete(exposure_blobs_table).where(exposure_blobs_table.c.record_id.in_(ids)))
            result = conn.execute(delete(exposures_table).where(exposures_table.c.record_id.in_(ids)))
            return int(result.rowcount)
