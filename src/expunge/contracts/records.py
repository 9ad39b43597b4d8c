# src/expunge/contracts/records.py
"""Record and blob reference types.

An ExposureRecord owns zero or more blobs. The database owns the record;
the cleanup engine only holds one for the duration of a batch.
"""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True, slots=True)
class BlobReference:
    """Handle to an object in blob storage.

    Attributes:
        bucket: Bucket or container name
        path: Object path within the bucket
    """

    bucket: str
    path: str

    def __post_init__(self) -> None:
        if not self.bucket:
            raise ValueError("BlobReference.bucket cannot be empty")
        if not self.path:
            raise ValueError("BlobReference.path cannot be empty")

    def __str__(self) -> str:
        return f"{self.bucket}/{self.path}"


@dataclass(frozen=True, slots=True)
class ExposureRecord:
    """A retention-managed record as seen by one cleanup batch.

    Attributes:
        record_id: Opaque primary key
        retention_class: Selects the retention window
        created_at: Creation time (timezone-aware UTC)
        blobs: Blobs owned by this record, possibly empty
    """

    record_id: str
    retention_class: str
    created_at: datetime
    blobs: tuple[BlobReference, ...] = field(default=())

    def __post_init__(self) -> None:
        if self.created_at.tzinfo is None:
            raise ValueError(f"ExposureRecord.created_at must be timezone-aware, got naive datetime for {self.record_id!r}")
