from __future__ import annotations

import json

import pytest

from roomlock.exceptions import PersistenceError, ValidationError
from roomlock.storage.geometry_store import AnchorUpdate, GeometryStore
from roomlock.storage.hashing import layout_hash
from roomlock.storage.local import FileRecordBackend
from tests.utils_geometry import sample_analysis

REF = "layouts/flat-3/bedroom.png"


def test_record_written_as_json(tmp_path) -> None:
    store = GeometryStore(FileRecordBackend(tmp_path))
    record = store.store("owner-1", REF, sample_analysis())

    path = tmp_path / "owner-1" / f"{layout_hash(REF)}.json"
    assert path.exists()
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["id"] == record.id
    assert payload["geometry"]["roomShape"] == "rectangular"
    assert payload["geometry"]["windows"][0]["id"] == "window_north_0"
    assert not list((tmp_path / "owner-1").glob(".tmp-*"))


def test_records_survive_new_store_instance(tmp_path) -> None:
    first = GeometryStore(FileRecordBackend(tmp_path))
    record = first.store("owner-1", REF, sample_analysis())
    first.update_anchor_occupancy("owner-1", record.id, [AnchorUpdate("anchor_sofa", True, "sku-1")])

    second = GeometryStore(FileRecordBackend(tmp_path))
    loaded = second.get("owner-1", record_id=record.id)

    assert loaded is not None
    assert loaded.geometry.structural_fields() == record.geometry.structural_fields()
    assert loaded.geometry.camera_matrix == record.geometry.camera_matrix
    assert loaded.geometry.anchor("anchor_sofa").occupied_by == "sku-1"


def test_restore_keeps_single_file(tmp_path) -> None:
    store = GeometryStore(FileRecordBackend(tmp_path))
    store.store("owner-1", REF, sample_analysis())
    store.store("owner-1", REF, sample_analysis())

    assert len(list((tmp_path / "owner-1").glob("*.json"))) == 1


def test_unknown_owner_directory_is_a_miss(tmp_path) -> None:
    store = GeometryStore(FileRecordBackend(tmp_path))
    assert store.get("nobody", record_id="x") is None
    assert store.get("nobody", layout_reference=REF) is None


def test_owner_id_cannot_escape_root(tmp_path) -> None:
    store = GeometryStore(FileRecordBackend(tmp_path / "root"))
    with pytest.raises(ValidationError):
        store.store("../elsewhere", REF, sample_analysis())


def test_corrupt_record_raises_persistence_error(tmp_path) -> None:
    backend = FileRecordBackend(tmp_path)
    owner_dir = tmp_path / "owner-1"
    owner_dir.mkdir()
    (owner_dir / f"{layout_hash(REF)}.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(PersistenceError):
        GeometryStore(backend).get("owner-1", layout_reference=REF)


def test_load_by_id_reads_index_not_directory(tmp_path) -> None:
    store = GeometryStore(FileRecordBackend(tmp_path))
    record = store.store("owner-1", REF, sample_analysis())
    # unrelated corrupt file in the owner's directory is never read by id lookups
    (tmp_path / "owner-1" / "zzz.json").write_text("{not json", encoding="utf-8")

    pointer = tmp_path / "owner-1" / ".ids" / record.id
    assert pointer.read_text(encoding="utf-8") == layout_hash(REF)
    assert store.get("owner-1", record_id=record.id) == record
    assert store.get("owner-1", record_id="missing") is None


def test_load_by_id_checks_owner_and_id(tmp_path) -> None:
    backend = FileRecordBackend(tmp_path)
    store = GeometryStore(backend)
    alice = store.store("alice", REF, sample_analysis())
    team_dir = tmp_path / "team"
    (team_dir / ".ids").mkdir(parents=True)
    (team_dir / f"{alice.layout_hash}.json").write_text(alice.to_json(), encoding="utf-8")
    (team_dir / ".ids" / alice.id).write_text(alice.layout_hash, encoding="utf-8")

    assert store.get("team", record_id=alice.id) is None
    assert store.get("team", layout_reference=REF) is None
