# tests/fixtures/stores.py
"""In-memory BlobStore with fault injection."""

from __future__ import annotations

import threading
import time

from expunge.contracts.errors import BlobDeleteError, StorageUnavailable
from expunge.contracts.records import BlobReference


class MemoryBlobStore:
    """Thread-safe in-memory BlobStore for testing.

    Fault injection:
        fail_refs: deletes of these refs raise BlobDeleteError
        unavailable: every call raises StorageUnavailable
        delay_seconds: sleep inside delete (to observe concurrency)
    """

    def __init__(self, *, delay_seconds: float = 0.0) -> None:
        self._objects: dict[BlobReference, bytes] = {}
        self._lock = threading.Lock()
        self.fail_refs: set[BlobReference] = set()
        self.unavailable = False
        self.delay_seconds = delay_seconds
        self.delete_calls: list[BlobReference] = []
        self._in_flight = 0
        self.max_in_flight = 0

    def put(self, ref: BlobReference, content: bytes = b"payload") -> None:
        with self._lock:
            self._objects[ref] = content

    def __contains__(self, ref: object) -> bool:
        with self._lock:
            return ref in self._objects

    def __len__(self) -> int:
        with self._lock:
            return len(self._objects)

    def exists(self, ref: BlobReference) -> bool:
        if self.unavailable:
            raise StorageUnavailable("blob", "injected outage")
        return ref in self

    def delete(self, ref: BlobReference) -> bool:
        with self._lock:
            self.delete_calls.append(ref)
            self._in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self._in_flight)
        try:
            if self.delay_seconds:
                time.sleep(self.delay_seconds)
            if self.unavailable:
                raise StorageUnavailable("blob", "injected outage")
            if ref in self.fail_refs:
                raise BlobDeleteError(f"injected failure for {ref}")
            with self._lock:
                return self._objects.pop(ref, None) is not None
        finally:
            with self._lock:
                self._in_flight -= 1
