# src/expunge/core/blob_store.py
"""Blob store backends.

Both backends implement contracts.blob_store.BlobStore:
- FilesystemBlobStore: buckets are directories under a base path
- AzureBlobStore: buckets are Azure Storage containers

Error mapping is the important part of each backend. "Not found" is a
normal result (False), a single-object failure is BlobDeleteError, and an
unreachable store is StorageUnavailable.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from expunge.contracts.errors import BlobDeleteError, StorageUnavailable
from expunge.contracts.records import BlobReference

if TYPE_CHECKING:
    from azure.storage.blob import BlobServiceClient

__all__ = ["AzureBlobStore", "FilesystemBlobStore"]


class FilesystemBlobStore:
    """Filesystem-based blob store.

    Structure: base_path/<bucket>/<path>
    """

    def __init__(self, base_path: Path) -> None:
        """Initialize filesystem store.

        Args:
            base_path: Root directory holding one subdirectory per bucket

        Raises:
            StorageUnavailable: If base_path exists but is not a directory
        """
        self.base_path = base_path
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except FileExistsError:
            raise StorageUnavailable("blob", f"{self.base_path} is not a directory") from None
        except OSError as e:
            raise StorageUnavailable("blob", f"cannot create {self.base_path}: {e}") from e

    def _path_for(self, ref: BlobReference) -> Path:
        """Get filesystem path for a blob reference.

        Raises:
            ValueError: If the reference would resolve outside base_path
        """
        if "/" in ref.bucket or ref.bucket in (".", ".."):
            raise ValueError(f"Invalid bucket name: {ref.bucket!r}")

        path = self.base_path / ref.bucket / ref.path
        resolved = path.resolve()
        base_resolved = self.base_path.resolve()
        if not resolved.is_relative_to(base_resolved / ref.bucket):
            raise ValueError(f"Invalid blob reference: {str(ref)[:80]!r} resolves outside bucket directory")
        return path

    def put(self, ref: BlobReference, content: bytes) -> None:
        """Write content to the referenced object, creating parents."""
        path = self._path_for(ref)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)

    def exists(self, ref: BlobReference) -> bool:
        """Check if the object exists."""
        return self._path_for(ref).is_file()

    def delete(self, ref: BlobReference) -> bool:
        """Delete the object.

        Returns:
            True if deleted, False if not found
        """
        path = self._path_for(ref)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise BlobDeleteError(f"Failed to delete {ref}: {e}") from e
        return True


class AzureBlobStore:
    """Azure Blob Storage backend.

    BlobReference.bucket is the container name, BlobReference.path the blob
    name. The BlobServiceClient is shared across threads; the Azure SDK
    clients are thread-safe.
    """

    def __init__(self, service_client: BlobServiceClient) -> None:
        self._service_client = service_client

    def _blob_client(self, ref: BlobReference):  # type: ignore[no-untyped-def]  # azure BlobClient
        return self._service_client.get_blob_client(container=ref.bucket, blob=ref.path)

    def exists(self, ref: BlobReference) -> bool:
        """Check if the blob exists."""
        from azure.core.exceptions import AzureError, ServiceRequestError, ServiceResponseError

        try:
            return bool(self._blob_client(ref).exists())
        except (ServiceRequestError, ServiceResponseError) as e:
            raise StorageUnavailable("blob", str(e)) from e
        except AzureError as e:
            raise BlobDeleteError(f"Failed to check {ref}: {e.message}") from e

    def delete(self, ref: BlobReference) -> bool:
        """Delete the blob and its snapshots.

        Returns:
            True if deleted, False if not found
        """
        from azure.core.exceptions import (
            AzureError,
            HttpResponseError,
            ResourceNotFoundError,
            ServiceRequestError,
            ServiceResponseError,
        )

        try:
            self._blob_client(ref).delete_blob(delete_snapshots="include")
        except ResourceNotFoundError:
            return False
        except ServiceRequestError as e:
            # Request never reached the service: DNS, connection refused, TLS
            raise StorageUnavailable("blob", str(e)) from e
        except ServiceResponseError as e:
            # Request sent but no response: read timeout, connection reset
            raise StorageUnavailable("blob", str(e)) from e
        except HttpResponseError as e:
            raise BlobDeleteError(f"Failed to delete {ref}: HTTP {e.status_code} {e.message}") from e
        except AzureError as e:
            raise BlobDeleteError(f"Failed to delete {ref}: {e.message}") from e
        return True
