from __future__ import annotations

from datetime import datetime, timezone

from roomlock.control.signals import ControlSignals
from roomlock.exceptions import ValidationError
from roomlock.geometry.models import CanonicalGeometry, FrozenWireModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def safe_key_segment(value: str, field: str) -> str:
    """Return ``value`` if it can be used as one path or object-key segment."""
    if not value or value in {".", ".."} or "/" in value or "\\" in value or "\x00" in value:
        raise ValidationError(f"Invalid {field} for record storage", {field: value})
    return value


class StoredGeometryRecord(FrozenWireModel):
    """Persisted canonical geometry for one ``(layout_hash, owner_id)`` pair."""

    id: str
    owner_id: str
    layout_hash: str
    layout_reference: str
    project_id: str | None = None
    room_id: str | None = None
    geometry: CanonicalGeometry
    control_signals: ControlSignals | None = None
    created_at: datetime
    updated_at: datetime

    @property
    def key(self) -> tuple[str, str]:
        return (self.layout_hash, self.owner_id)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, data: str | bytes) -> "StoredGeometryRecord":
        return cls.model_validate_json(data)


__all__ = ["StoredGeometryRecord", "safe_key_segment", "utcnow"]
