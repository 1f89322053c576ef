from __future__ import annotations

import pytest

from roomlock.exceptions import RecordNotFoundError
from roomlock.pipeline import prepare_render_controls
from roomlock.storage.geometry_store import AnchorUpdate, GeometryStore
from roomlock.storage.memory import InMemoryRecordBackend
from tests.utils_geometry import sample_analysis


def test_prepare_render_controls_caches_signals() -> None:
    store = GeometryStore(InMemoryRecordBackend())
    record = store.store("owner-1", "plan.png", sample_analysis())
    store.update_anchor_occupancy("owner-1", record.id, [AnchorUpdate("anchor_desk", True, "sku-desk")])

    signals = prepare_render_controls(
        store,
        "owner-1",
        record.id,
        placements=[{"anchorId": "anchor_sofa", "itemName": "Sofa"}],
    )

    cached = store.get("owner-1", record_id=record.id).control_signals
    assert cached == signals
    assert "Occupied anchors: 2" in signals.furniture_placement_guide
    assert "Item: Sofa" in signals.furniture_placement_guide
    assert "Item: sku-desk" in signals.furniture_placement_guide


def test_prepare_render_controls_edit_mode() -> None:
    store = GeometryStore(InMemoryRecordBackend())
    record = store.store("owner-1", "plan.png", sample_analysis())

    signals = prepare_render_controls(
        store, "owner-1", record.id, edit_region={"x": 20, "y": 30, "width": 10, "height": 10}
    )

    assert "ACTIVE EDIT REGION" in signals.region_mask_description


def test_prepare_render_controls_missing_record() -> None:
    with pytest.raises(RecordNotFoundError):
        prepare_render_controls(GeometryStore(InMemoryRecordBackend()), "owner-1", "missing")
