"""Geometry record storage (in-memory cache, local filesystem or S3/MinIO)."""

from __future__ import annotations

from typing import Protocol

from roomlock.storage.records import StoredGeometryRecord


class RecordBackend(Protocol):
    def load(self, owner_id: str, record_id: str) -> StoredGeometryRecord | None:
        ...

    def find(self, owner_id: str, layout_hash: str) -> StoredGeometryRecord | None:
        ...

    def save(self, record: StoredGeometryRecord) -> None:  # single atomic write
        ...
