from __future__ import annotations

import time
from collections import OrderedDict
from typing import Callable

from loguru import logger

from roomlock.storage.records import StoredGeometryRecord


class InMemoryRecordBackend:
    """Process-local record cache with TTL and size-bound eviction.

    Create one and hand it to the store; nothing here is module-global.
    Expiry is checked lazily on access. When ``max_entries`` is exceeded the
    least recently written record is evicted.
    """

    def __init__(
        self,
        ttl_seconds: float | None = None,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[tuple[str, str], tuple[StoredGeometryRecord, float | None]] = OrderedDict()
        self._ids: dict[tuple[str, str], tuple[str, str]] = {}

    def __len__(self) -> int:
        self._purge_expired()
        return len(self._entries)

    def _expired(self, expires_at: float | None) -> bool:
        return expires_at is not None and self._clock() >= expires_at

    def _drop(self, key: tuple[str, str]) -> None:
        record, _ = self._entries.pop(key)
        self._ids.pop((record.owner_id, record.id), None)

    def _purge_expired(self) -> None:
        for key in [k for k, (_, exp) in self._entries.items() if self._expired(exp)]:
            self._drop(key)

    def _get(self, key: tuple[str, str]) -> StoredGeometryRecord | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        record, expires_at = entry
        if self._expired(expires_at):
            logger.debug("Evicting expired geometry record {record_id}", record_id=record.id)
            self._drop(key)
            return None
        return record

    def load(self, owner_id: str, record_id: str) -> StoredGeometryRecord | None:
        key = self._ids.get((owner_id, record_id))
        if key is None:
            return None
        return self._get(key)

    def find(self, owner_id: str, layout_hash: str) -> StoredGeometryRecord | None:
        return self._get((owner_id, layout_hash))

    def save(self, record: StoredGeometryRecord) -> None:
        key = (record.owner_id, record.layout_hash)
        expires_at = self._clock() + self.ttl_seconds if self.ttl_seconds is not None else None
        if key in self._entries:
            self._drop(key)
        self._entries[key] = (record, expires_at)
        self._ids[(record.owner_id, record.id)] = key
        if self.max_entries is not None:
            while len(self._entries) > self.max_entries:
                oldest = next(iter(self._entries))
                logger.debug("Evicting geometry record for {key} (cache full)", key=oldest)
                self._drop(oldest)


__all__ = ["InMemoryRecordBackend"]
