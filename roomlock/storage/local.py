from __future__ import annotations

import os
import tempfile
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from roomlock.exceptions import PersistenceError
from roomlock.storage.records import StoredGeometryRecord, safe_key_segment

ID_INDEX_DIR = ".ids"


def _write_atomic(target: Path, text: str) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=".tmp-", suffix=".json")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fp:
            fp.write(text)
        os.replace(tmp_name, target)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class FileRecordBackend:
    """One JSON document per record at ``root/<owner>/<layout_hash>.json``.

    Lookups by record id go through a pointer file at
    ``root/<owner>/.ids/<record_id>`` holding the layout hash, so ``load``
    reads two small files instead of scanning the owner's directory.
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)

    def _owner_dir(self, owner_id: str) -> Path:
        return self.root / safe_key_segment(owner_id, "owner_id")

    def _record_path(self, owner_id: str, layout_hash: str) -> Path:
        return self._owner_dir(owner_id) / f"{safe_key_segment(layout_hash, 'layout_hash')}.json"

    def _id_path(self, owner_id: str, record_id: str) -> Path:
        return self._owner_dir(owner_id) / ID_INDEX_DIR / safe_key_segment(record_id, "record_id")

    def _read(self, path: Path) -> StoredGeometryRecord | None:
        try:
            data = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise PersistenceError(f"Failed to read geometry record: {exc}", {"path": str(path)}) from exc
        try:
            return StoredGeometryRecord.from_json(data)
        except PydanticValidationError as exc:
            raise PersistenceError("Corrupt geometry record", {"path": str(path)}) from exc

    def load(self, owner_id: str, record_id: str) -> StoredGeometryRecord | None:
        pointer = self._id_path(owner_id, record_id)
        try:
            layout_hash = pointer.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise PersistenceError(f"Failed to read record index: {exc}", {"path": str(pointer)}) from exc
        record = self._read(self._record_path(owner_id, layout_hash))
        # stale pointer: the hash slot now holds another record
        if record is None or record.id != record_id or record.owner_id != owner_id:
            return None
        return record

    def find(self, owner_id: str, layout_hash: str) -> StoredGeometryRecord | None:
        record = self._read(self._record_path(owner_id, layout_hash))
        if record is not None and record.owner_id != owner_id:
            return None
        return record

    def save(self, record: StoredGeometryRecord) -> None:
        target = self._record_path(record.owner_id, record.layout_hash)
        pointer = self._id_path(record.owner_id, record.id)
        try:
            _write_atomic(target, record.to_json())
            _write_atomic(pointer, record.layout_hash)
        except OSError as exc:
            raise PersistenceError(f"Failed to write geometry record: {exc}", {"path": str(target)}) from exc


__all__ = ["FileRecordBackend"]
