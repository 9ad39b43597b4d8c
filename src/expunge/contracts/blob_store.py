# src/expunge/contracts/blob_store.py
"""BlobStore protocol for object storage backends.

This protocol defines the interface used by:
- core/blob_store.py (FilesystemBlobStore, AzureBlobStore)
- core/retention/blob_purger.py (BlobPurger)
"""

from typing import Protocol, runtime_checkable

from expunge.contracts.records import BlobReference


@runtime_checkable
class BlobStore(Protocol):
    """Protocol for blob storage backends.

    Implementations must be safe to call from multiple threads; BlobPurger
    issues deletes for distinct references concurrently.
    """

    def exists(self, ref: BlobReference) -> bool:
        """Check if the object exists.

        Raises:
            StorageUnavailable: If the store cannot be reached
        """
        ...

    def delete(self, ref: BlobReference) -> bool:
        """Delete the object.

        Returns:
            True if the object was deleted, False if it was not found

        Raises:
            BlobDeleteError: If this object could not be deleted
            StorageUnavailable: If the store cannot be reached
        """
        ...
