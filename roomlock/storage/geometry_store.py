"""
Geometry Store

Content-addressed persistence around canonical geometry. Records are keyed by
``(layout_hash(layout_reference), owner_id)``; storing the same reference again
replaces the record in full instead of creating a duplicate.

Every operation is one read and/or one write against a single record with no
version check, so concurrent writers to the same record are last-write-wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping
from uuid import uuid4

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from roomlock.control.signals import ControlSignals
from roomlock.exceptions import ConfigurationError, RecordNotFoundError, ValidationError
from roomlock.geometry.canonicalizer import normalize
from roomlock.geometry.models import GeometryAnalysis
from roomlock.metrics.store_metrics import StoreMetrics
from roomlock.settings import Settings
from roomlock.storage import RecordBackend
from roomlock.storage.hashing import layout_hash
from roomlock.storage.memory import InMemoryRecordBackend
from roomlock.storage.records import StoredGeometryRecord, utcnow


@dataclass(frozen=True)
class AnchorUpdate:
    anchor_id: str
    occupied: bool
    occupied_by: str | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "AnchorUpdate":
        """Build from client JSON (``anchorId``, ``occupied``, ``occupiedBy``)."""
        anchor_id = payload.get("anchorId", payload.get("anchor_id"))
        if not anchor_id:
            raise ValidationError("Anchor update is missing anchorId", {"update": str(dict(payload))})
        occupied = payload.get("occupied", False)
        if not isinstance(occupied, bool):
            raise ValidationError(
                "Anchor update occupied flag must be a boolean",
                {"anchorId": str(anchor_id), "occupied": repr(occupied)},
            )
        return cls(
            anchor_id=str(anchor_id),
            occupied=occupied,
            occupied_by=payload.get("occupiedBy", payload.get("occupied_by")),
        )


class GeometryStore:
    def __init__(self, backend: RecordBackend, metrics: StoreMetrics | None = None) -> None:
        self.backend = backend
        self.metrics = metrics or StoreMetrics()

    @staticmethod
    def hash(layout_reference: str) -> str:
        return layout_hash(layout_reference)

    def get(
        self,
        owner_id: str,
        *,
        record_id: str | None = None,
        layout_reference: str | None = None,
    ) -> StoredGeometryRecord | None:
        """Look up a record by id or by layout reference. A miss returns None."""
        if record_id is None and layout_reference is None:
            raise ValidationError("Either record_id or layout_reference is required")
        if record_id is not None:
            record = self.backend.load(owner_id, record_id)
        else:
            record = self.backend.find(owner_id, layout_hash(layout_reference))
        self.metrics.record_lookup(record is not None)
        return record

    def require(self, owner_id: str, record_id: str) -> StoredGeometryRecord:
        """Like ``get`` by id, but a miss raises ``RecordNotFoundError``."""
        record = self.backend.load(owner_id, record_id)
        if record is None:
            raise RecordNotFoundError(
                "Geometry record not found",
                {"owner_id": owner_id, "record_id": record_id},
            )
        return record

    def store(
        self,
        owner_id: str,
        layout_reference: str,
        analysis: GeometryAnalysis | Mapping[str, Any],
        *,
        project_id: str | None = None,
        room_id: str | None = None,
    ) -> StoredGeometryRecord:
        """Canonicalize an analysis and upsert it for this owner and reference.

        An existing record for the same key keeps its id and creation time;
        every other field, cached control signals included, is rebuilt.

        Raises:
            ValidationError: If the analysis fails canonicalization.
            PersistenceError: If the backend write fails.
        """
        if not owner_id:
            raise ValidationError("owner_id is required")
        if not layout_reference:
            raise ValidationError("layout_reference is required")

        geometry = normalize(analysis)
        key_hash = layout_hash(layout_reference)
        existing = self.backend.find(owner_id, key_hash)
        now = utcnow()
        record = StoredGeometryRecord(
            id=existing.id if existing else str(uuid4()),
            owner_id=owner_id,
            layout_hash=key_hash,
            layout_reference=layout_reference,
            project_id=project_id,
            room_id=room_id,
            geometry=geometry,
            control_signals=None,
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )
        self.backend.save(record)

        if existing:
            self.metrics.records_replaced += 1
        else:
            self.metrics.records_created += 1
        logger.info(
            "Geometry stored: {record_id} (hash={hash}, replaced={replaced})",
            record_id=record.id,
            hash=key_hash,
            replaced=existing is not None,
        )
        return record

    def update_anchor_occupancy(
        self,
        owner_id: str,
        record_id: str,
        updates: Iterable[AnchorUpdate | Mapping[str, Any]],
    ) -> StoredGeometryRecord:
        """Overwrite only ``occupied``/``occupied_by`` on the matching anchors.

        Updates naming an unknown anchor are skipped and counted in metrics.
        When several updates name the same anchor the last one wins.
        """
        parsed = [u if isinstance(u, AnchorUpdate) else AnchorUpdate.from_payload(u) for u in updates]
        record = self.require(owner_id, record_id)

        by_id = {update.anchor_id: update for update in parsed}
        known = {anchor.id for anchor in record.geometry.furniture_anchors}
        ignored = [anchor_id for anchor_id in by_id if anchor_id not in known]
        if ignored:
            logger.warning(
                "Ignoring occupancy updates for unknown anchors {anchors} on {record_id}",
                anchors=ignored,
                record_id=record_id,
            )
            self.metrics.anchor_updates_ignored += len(ignored)

        anchors = tuple(
            anchor.with_occupancy(by_id[anchor.id].occupied, by_id[anchor.id].occupied_by)
            if anchor.id in by_id
            else anchor
            for anchor in record.geometry.furniture_anchors
        )
        updated = record.model_copy(
            update={"geometry": record.geometry.with_anchors(anchors), "updated_at": utcnow()}
        )
        self.backend.save(updated)
        self.metrics.anchor_updates_applied += len(by_id) - len(ignored)
        return updated

    def attach_control_signals(
        self,
        owner_id: str,
        record_id: str,
        signals: ControlSignals | Mapping[str, Any],
    ) -> StoredGeometryRecord:
        """Cache compiler output on the record. It is never read back as geometry input."""
        if not isinstance(signals, ControlSignals):
            try:
                signals = ControlSignals.model_validate(signals)
            except PydanticValidationError as exc:
                raise ValidationError("Malformed control signals", {"signals": str(exc)}) from exc
        record = self.require(owner_id, record_id)
        updated = record.model_copy(update={"control_signals": signals, "updated_at": utcnow()})
        self.backend.save(updated)
        self.metrics.signals_attached += 1
        logger.debug("Control signals attached to {record_id}", record_id=record_id)
        return updated


def build_backend(settings: Settings) -> RecordBackend:
    store = settings.store
    if store.backend == "memory":
        return InMemoryRecordBackend(ttl_seconds=store.ttl_seconds, max_entries=store.max_entries)
    if store.backend == "file":
        from roomlock.storage.local import FileRecordBackend

        return FileRecordBackend(store.root)
    if store.backend == "s3":
        from roomlock.storage.s3 import S3RecordBackend

        return S3RecordBackend(bucket=store.bucket, prefix=store.prefix, region=store.region)
    raise ConfigurationError(f"Unknown store backend '{store.backend}'", {"backend": store.backend})


def build_store(settings: Settings) -> GeometryStore:
    return GeometryStore(build_backend(settings))


__all__ = ["AnchorUpdate", "GeometryStore", "build_backend", "build_store"]
