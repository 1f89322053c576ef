"""
Control Signal Compiler

Pure transform from canonical geometry, anchors and a placement manifest into
``ControlSignals`` and one banner-delimited prompt. The block order and header
text of the compiled prompt are relied on by the renderer; changing either is
a breaking change.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

from pydantic import ValidationError as PydanticValidationError

from roomlock.control.blocks import (
    AnchorState,
    depth_map_block,
    edge_map_block,
    furniture_placement_block,
    locking_directive_block,
    region_mask_block,
    structural_constraints_block,
)
from roomlock.control.signals import (
    CompilerOptions,
    ControlSignals,
    EditRegion,
    PlacementItem,
    PlacementManifest,
)
from roomlock.exceptions import ValidationError
from roomlock.geometry.models import CanonicalGeometry, FurnitureAnchor

BANNER_RULE = "═" * 63
OPENING_BANNER = (
    f"{BANNER_RULE}\n"
    "           CONTROL SIGNALS FOR CONSTRAINED GENERATION\n"
    f"{BANNER_RULE}"
)
CLOSING_BANNER = (
    f"{BANNER_RULE}\n"
    "                    END OF CONTROL SIGNALS\n"
    f"{BANNER_RULE}"
)

# Order of blocks inside the compiled prompt
COMPILED_BLOCK_ORDER = (
    "structural_constraints",
    "depth_map_description",
    "edge_map_description",
    "region_mask_description",
    "furniture_placement_guide",
    "locking_instructions",
)

PlacementsInput = PlacementManifest | Sequence[PlacementItem | Mapping[str, Any]] | None


def _coerce_placements(placements: PlacementsInput) -> tuple[PlacementItem, ...]:
    if placements is None:
        return ()
    if isinstance(placements, PlacementManifest):
        return placements.items
    items: list[PlacementItem] = []
    for idx, item in enumerate(placements):
        if isinstance(item, PlacementItem):
            items.append(item)
            continue
        try:
            items.append(PlacementItem.model_validate(item))
        except PydanticValidationError as exc:
            raise ValidationError("Malformed placement item", {f"placements[{idx}]": str(exc)}) from exc
    return tuple(items)


def _coerce_edit_region(edit_region: EditRegion | Mapping[str, Any] | None) -> EditRegion | None:
    if edit_region is None or isinstance(edit_region, EditRegion):
        return edit_region
    try:
        return EditRegion.model_validate(edit_region)
    except PydanticValidationError as exc:
        raise ValidationError("Malformed edit region", {"editRegion": str(exc)}) from exc


def resolve_anchor_states(
    anchors: Iterable[FurnitureAnchor],
    placements: Sequence[PlacementItem],
) -> tuple[AnchorState, ...]:
    """Pair every anchor with its placement. Placements for unknown anchors are dropped."""
    by_anchor: dict[str, PlacementItem] = {}
    for placement in placements:
        by_anchor.setdefault(placement.anchor_id, placement)
    return tuple(AnchorState(anchor=anchor, placement=by_anchor.get(anchor.id)) for anchor in anchors)


def compile_control_signals(
    geometry: CanonicalGeometry,
    anchors: Sequence[FurnitureAnchor] | None = None,
    placements: PlacementsInput = None,
    edit_region: EditRegion | Mapping[str, Any] | None = None,
    *,
    options: CompilerOptions | None = None,
) -> ControlSignals:
    """Compile the six control blocks and the full prompt.

    Args:
        geometry: Canonical geometry of the room.
        anchors: Anchor list to describe; defaults to the geometry's anchors.
        placements: Accepted anchor -> item assignments for this render pass.
        edit_region: Optional percent rectangle; switches the region mask to
            edit mode where only that rectangle is editable.
        options: Inpainting strength and placement tolerance.

    Returns:
        ControlSignals with ``compiled_prompt`` filled in.

    Raises:
        ValidationError: If placements or the edit region are malformed.
    """
    options = options or CompilerOptions()
    items = _coerce_placements(placements)
    region = _coerce_edit_region(edit_region)
    states = resolve_anchor_states(
        geometry.furniture_anchors if anchors is None else anchors,
        items,
    )

    signals = ControlSignals(
        depth_map_description=depth_map_block(geometry),
        edge_map_description=edge_map_block(geometry),
        region_mask_description=region_mask_block(geometry, states, region, options),
        structural_constraints=structural_constraints_block(geometry),
        furniture_placement_guide=furniture_placement_block(states, options),
        locking_instructions=locking_directive_block(geometry, region),
    )
    return signals.model_copy(update={"compiled_prompt": compile_full(signals)})


def compile_full(signals: ControlSignals) -> str:
    """Concatenate the blocks between the fixed banners."""
    parts = [OPENING_BANNER]
    parts += [getattr(signals, name) for name in COMPILED_BLOCK_ORDER]
    parts.append(CLOSING_BANNER)
    return "\n\n".join(part.rstrip("\n") for part in parts) + "\n"


__all__ = [
    "BANNER_RULE",
    "OPENING_BANNER",
    "CLOSING_BANNER",
    "COMPILED_BLOCK_ORDER",
    "resolve_anchor_states",
    "compile_control_signals",
    "compile_full",
]
