# src/expunge/core/retention/blob_purger.py
"""Blob purger: deletes the object-storage artifacts of a batch.

Deletes for distinct references are issued concurrently, bounded by
max_concurrency to cap outbound connections and rate-limit pressure on the
store. A "not found" result counts as success because a prior partial run
may already have removed the blob.
"""

from collections.abc import Iterable
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field

import structlog

from expunge.contracts.blob_store import BlobStore
from expunge.contracts.errors import BlobDeleteError, ConfigurationError, StorageUnavailable
from expunge.contracts.records import BlobReference

logger = structlog.get_logger(__name__)


@dataclass
class BlobPurgeResult:
    """Result of deleting one batch of blobs.

    Attributes:
        deleted: Blobs that existed and were removed
        missing: Blobs that were already gone
        failed: Blobs whose deletion failed, mapped to the error message
    """

    deleted: set[BlobReference] = field(default_factory=set)
    missing: set[BlobReference] = field(default_factory=set)
    failed: dict[BlobReference, str] = field(default_factory=dict)

    def confirmed(self, ref: BlobReference) -> bool:
        """True if the blob is known to be gone (deleted now or already missing)."""
        return ref in self.deleted or ref in self.missing

    @property
    def total(self) -> int:
        return len(self.deleted) + len(self.missing) + len(self.failed)


class BlobPurger:
    """Deletes blobs from a BlobStore with bounded concurrency."""

    def __init__(self, store: BlobStore, *, max_concurrency: int = 8) -> None:
        """Initialize purger.

        Args:
            store: Blob storage backend
            max_concurrency: Maximum deletes in flight at once

        Raises:
            ConfigurationError: If max_concurrency < 1
        """
        if max_concurrency < 1:
            raise ConfigurationError(f"max_concurrency must be >= 1, got {max_concurrency}")
        self._store = store
        self._max_concurrency = max_concurrency

    @property
    def max_concurrency(self) -> int:
        return self._max_concurrency

    def _delete_one(self, ref: BlobReference) -> bool:
        return self._store.delete(ref)

    def delete_blobs(self, refs: Iterable[BlobReference]) -> BlobPurgeResult:
        """Delete every referenced blob.

        Per-blob failures are collected, never raised: the caller decides
        which records may proceed to row deletion.

        Returns:
            BlobPurgeResult partitioning refs into deleted, missing, failed

        Raises:
            StorageUnavailable: If every delete in a non-empty batch failed
                because the store could not be reached
        """
        unique_refs = list(dict.fromkeys(refs))
        result = BlobPurgeResult()
        if not unique_refs:
            return result

        unavailable: list[StorageUnavailable] = []
        workers = min(self._max_concurrency, len(unique_refs))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="blob-purge") as pool:
            futures: dict[Future[bool], BlobReference] = {pool.submit(self._delete_one, ref): ref for ref in unique_refs}
            for future in as_completed(futures):
                ref = futures[future]
                try:
                    deleted = future.result()
                except StorageUnavailable as e:
                    unavailable.append(e)
                    result.failed[ref] = str(e)
                except (BlobDeleteError, OSError, ValueError) as e:
                    result.failed[ref] = str(e)
                    logger.warning("blob_delete_failed", blob=str(ref), error=str(e))
                except Exception as e:
                    # Unmapped backend error; still confined to this blob
                    result.failed[ref] = f"{type(e).__name__}: {e}"
                    logger.warning("blob_delete_failed", blob=str(ref), error=str(e), error_type=type(e).__name__)
                else:
                    if deleted:
                        result.deleted.add(ref)
                    else:
                        result.missing.add(ref)

        if len(unavailable) == len(unique_refs):
            # Nothing got through; this is an outage, not a per-blob problem
            raise unavailable[0]
        if unavailable:
            logger.warning("blob_store_intermittent", failed=len(unavailable), attempted=len(unique_refs))
        return result
