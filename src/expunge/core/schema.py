# src/expunge/core/schema.py
"""SQLAlchemy table definitions for retention-managed records.

Uses SQLAlchemy Core (not ORM) for explicit control over the batched
range queries and multi-row deletes the cleanup engine issues.
"""

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    UniqueConstraint,
)

metadata = MetaData()

# === Records ===

exposures_table = Table(
    "exposures",
    metadata,
    Column("record_id", String(64), primary_key=True),
    Column("retention_class", String(32), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    # Keyset pagination: ORDER BY created_at, record_id
    Index("ix_exposures_created_record", "created_at", "record_id"),
    Index("ix_exposures_class_created", "retention_class", "created_at"),
)

# === Blobs (1:N with exposures, possibly none) ===

exposure_blobs_table = Table(
    "exposure_blobs",
    metadata,
    Column("blob_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "record_id",
        String(64),
        ForeignKey("exposures.record_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("bucket", String(255), nullable=False),
    Column("path", String(1024), nullable=False),
    UniqueConstraint("record_id", "bucket", "path", name="uq_exposure_blobs_ref"),
    Index("ix_exposure_blobs_record", "record_id"),
)
