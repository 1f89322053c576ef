"""Render-control pipeline: stored geometry -> compiled signals -> cached on the record."""

from __future__ import annotations

from typing import Any, Mapping

from loguru import logger

from roomlock.control.compiler import PlacementsInput, compile_control_signals
from roomlock.control.signals import CompilerOptions, ControlSignals, EditRegion
from roomlock.storage.geometry_store import GeometryStore


def prepare_render_controls(
    store: GeometryStore,
    owner_id: str,
    record_id: str,
    placements: PlacementsInput = None,
    edit_region: EditRegion | Mapping[str, Any] | None = None,
    options: CompilerOptions | None = None,
) -> ControlSignals:
    """Compile signals from a record's current anchors and cache them on it.

    Raises:
        RecordNotFoundError: If the record does not exist for this owner.
        ValidationError: If placements or the edit region are malformed.
    """
    record = store.require(owner_id, record_id)
    signals = compile_control_signals(
        record.geometry,
        record.geometry.furniture_anchors,
        placements,
        edit_region,
        options=options,
    )
    store.attach_control_signals(owner_id, record_id, signals)
    logger.info(
        "Render controls prepared for {record_id} (edit_mode={edit})",
        record_id=record_id,
        edit=edit_region is not None,
    )
    return signals


__all__ = ["prepare_render_controls"]
