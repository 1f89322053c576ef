"""
Control Signal Blocks

Each function renders one text block of the control prompt. Output must be
byte-identical for identical input: iterate in input order, never over sets,
and format every number through ``fmt`` (derived values) or ``pct``
(percent inputs, printed exactly).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from shapely.geometry import box

from roomlock.control.signals import CompilerOptions, EditRegion, PlacementBounds, PlacementItem
from roomlock.geometry import contract
from roomlock.geometry.canonicalizer import floor_area
from roomlock.geometry.models import CanonicalGeometry, Door, FurnitureAnchor, Point2D, Window


def fmt(value: float) -> str:
    """Render a derived number without float noise: 10.0 -> '10', 7.6837 -> '7.68'."""
    number = float(value)
    if number.is_integer():
        return str(int(number))
    text = f"{number:.2f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def exact(value: float) -> str:
    """Render an input number exactly, as its shortest round-trip decimal: 33.3333 -> '33.3333'."""
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return format(Decimal(repr(number)), "f")


def pct(value: float) -> str:
    return f"{exact(value)}%"


@dataclass(frozen=True)
class AnchorState:
    """An anchor as seen by one render pass."""

    anchor: FurnitureAnchor
    placement: PlacementItem | None

    @property
    def occupied(self) -> bool:
        return self.placement is not None or self.anchor.occupied

    @property
    def center(self) -> Point2D:
        if self.placement is not None and self.placement.position is not None:
            return self.placement.position
        return self.anchor.position

    @property
    def bounds(self) -> PlacementBounds:
        if self.placement is not None and self.placement.bounding_box is not None:
            return self.placement.bounding_box
        half_w = self.anchor.bounding_box.width / 2
        half_h = self.anchor.bounding_box.height / 2
        return PlacementBounds(
            min_x=self.anchor.position.x - half_w,
            max_x=self.anchor.position.x + half_w,
            min_y=self.anchor.position.y - half_h,
            max_y=self.anchor.position.y + half_h,
        )

    @property
    def item_label(self) -> str | None:
        if self.placement is not None:
            return self.placement.item_name or self.placement.item_id or self.anchor.occupied_by
        return self.anchor.occupied_by


def _dims(geometry: CanonicalGeometry) -> str:
    d = geometry.dimensions
    return f"{fmt(d.width)}×{fmt(d.depth)}×{fmt(d.height)} {d.unit}"


def _openings_on(items: Sequence[Window] | Sequence[Door], wall: str) -> list:
    return [item for item in items if item.wall == wall]


def _walls_in_order(geometry: CanonicalGeometry) -> list[str]:
    """Reported walls first, then cardinal walls that only carry openings."""
    order = [wall.position for wall in geometry.walls]
    for wall in contract.CARDINAL_WALLS:
        if wall in order:
            continue
        if _openings_on(geometry.windows, wall) or _openings_on(geometry.doors, wall):
            order.append(wall)
    return order


def _wall_length(geometry: CanonicalGeometry, wall: str) -> str:
    for item in geometry.walls:
        if item.position == wall:
            return f"{fmt(item.length)}{geometry.dimensions.unit}"
    return "unreported length"


def depth_map_block(geometry: CanonicalGeometry) -> str:
    d = geometry.dimensions
    shape = "L-shaped polygon" if geometry.room_shape == contract.L_SHAPE else "Rectangle"
    elevation = fmt(abs(geometry.camera_matrix.rotation.pitch))
    lines = [
        "DEPTH MAP SPECIFICATION (Isometric View from Southeast Corner):",
        "",
        f"CAMERA: Elevated {elevation}° above ground, looking northwest into room",
        f"ROOM: {geometry.room_shape} shape, {_dims(geometry)}",
        "",
        "DEPTH LAYERS (front to back):",
        "",
        "LAYER 0 - FLOOR (Closest to camera):",
        "- Position: Bottom of frame",
        f"- Shape: {shape} ({len(geometry.floor_polygon)} corners)",
        f"- Dimensions: {fmt(d.width)}×{fmt(d.depth)} {d.unit}",
        "- Visible area: ~60% of frame (floor visible from above)",
        "",
        "LAYER 1 - NEAR WALLS (South & East walls, closest):",
    ]
    for wall in geometry.walls:
        if wall.position in contract.NEAR_WALLS:
            lines.append(
                f"- {wall.position.upper()} wall: {fmt(wall.length)}{d.unit} length, "
                "PARTIALLY visible (lower portion)"
            )
    lines += ["", "LAYER 2 - FAR WALLS (North & West walls, furthest):"]
    for wall in geometry.walls:
        if wall.position in contract.FAR_WALLS:
            lines.append(
                f"- {wall.position.upper()} wall: {fmt(wall.length)}{d.unit} length, FULLY visible"
            )
    lines += ["", "OPENINGS (local depth recesses):"]
    for window in geometry.windows:
        lines.append(
            f"- Window {window.id} on {window.wall} wall: Position {pct(window.position_percent)} "
            f"from left, width {pct(window.width_percent)}"
        )
        lines.append("  → Local depth recess (window set into wall, ~6 inches)")
    for door in geometry.doors:
        lines.append(
            f"- Door {door.id} on {door.wall} wall: Position {pct(door.position_percent)} "
            f"from left, width {pct(door.width_percent)}"
        )
        lines.append("  → Local depth recess (opening/archway into wall)")
    if not geometry.windows and not geometry.doors:
        lines.append("- None")
    return "\n".join(lines) + "\n"


def edge_map_block(geometry: CanonicalGeometry) -> str:
    lines = [
        "EDGE MAP - STRUCTURAL LINES TO PRESERVE:",
        "",
        "PRIMARY EDGES (MUST be visible in render):",
        "",
        "ROOM BOUNDARY (Bold edges):",
        "- Floor-wall intersection: Continuous line around entire room perimeter",
        "- Wall-ceiling intersection: Visible for north and west walls",
        f"- Corner vertices: {len(geometry.floor_polygon)} corner points ({geometry.room_shape})",
    ]
    for wall in _walls_in_order(geometry):
        windows = _openings_on(geometry.windows, wall)
        doors = _openings_on(geometry.doors, wall)
        if not windows and not doors:
            continue
        lines += ["", f"{wall.upper()} WALL EDGES ({_wall_length(geometry, wall)}):"]
        for window in windows:
            lines.append(
                f"- Window frame {window.id}: Rectangle at {pct(window.position_percent)} position, "
                f"{pct(window.width_percent)} width, {pct(window.height_percent)} height"
            )
        for door in doors:
            lines.append(
                f"- Door frame {door.id}: Rectangle at {pct(door.position_percent)} position, "
                f"{pct(door.width_percent)} width"
            )
    lines += [
        "",
        "SECONDARY EDGES:",
        "- Baseboard lines along floor-wall intersection",
        "- Crown molding along ceiling-wall intersection (if present)",
        "- Window sill and header lines",
    ]
    return "\n".join(lines) + "\n"


def _anchor_lines(state: AnchorState) -> list[str]:
    anchor = state.anchor
    center = state.center
    lines = [f"□ {anchor.id}: " + ("Furniture placement zone" if state.occupied else "Empty zone")]
    lines.append(f"  - Center: ({pct(center.x)}, {pct(center.y)})")
    if state.occupied:
        b = state.bounds
        lines.append(
            f"  - Bounds: X[{pct(b.min_x)}-{pct(b.max_x)}] Y[{pct(b.min_y)}-{pct(b.max_y)}]"
        )
        lines.append("  - Status: OCCUPIED - render furniture here")
    else:
        lines.append(f"  - Size: {pct(anchor.bounding_box.width)} × {pct(anchor.bounding_box.height)}")
        lines.append("  - Status: AVAILABLE - can add furniture or leave empty")
    return lines


def _overlapping_anchor_ids(states: Sequence[AnchorState], region: EditRegion) -> list[str]:
    target = box(region.x, region.y, region.x + region.width, region.y + region.height)
    overlapping = []
    for state in states:
        b = state.bounds
        footprint = box(b.min_x, b.min_y, b.max_x, b.max_y)
        if footprint.intersection(target).area > 0:
            overlapping.append(state.anchor.id)
    return overlapping


def region_mask_block(
    geometry: CanonicalGeometry,
    states: Sequence[AnchorState],
    edit_region: EditRegion | None,
    options: CompilerOptions,
) -> str:
    lines = [
        "REGION MASK - AREAS FOR GENERATION/PRESERVATION:",
        "",
        "LOCKED REGIONS (BLACK - DO NOT MODIFY):",
        "",
        "□ ALL WALLS - Structure is frozen",
    ]
    for wall in geometry.walls:
        lines.append(f"  - LOCK wall {wall.position}: {fmt(wall.length)}{geometry.dimensions.unit}")
    lines.append("□ ALL WINDOWS - Position/size fixed at:")
    for window in geometry.windows:
        lines.append(
            f"  - LOCK window {window.id}: {window.wall} wall, {pct(window.position_percent)} position, "
            f"{pct(window.width_percent)} width, {pct(window.height_percent)} height"
        )
    lines.append("□ ALL DOORS - Position/size fixed at:")
    for door in geometry.doors:
        lines.append(
            f"  - LOCK door {door.id}: {door.wall} wall, {pct(door.position_percent)} position, "
            f"{pct(door.width_percent)} width"
        )
    lines += [
        "□ FLOOR BOUNDARIES - Room perimeter locked",
        "□ CEILING - If visible, locked",
    ]

    if edit_region is None:
        lines += ["", "EDITABLE REGIONS (WHITE - CAN GENERATE):"]
        for state in states:
            lines.append("")
            lines += _anchor_lines(state)
        lines += [
            "",
            "□ FLOOR SURFACE (texture only) - Can apply materials/textures",
            "□ WALL SURFACES (texture only) - Can apply paint/wallpaper",
        ]
        return "\n".join(lines) + "\n"

    lines.append("□ FURNITURE ANCHORS - Preserved as rendered:")
    for state in states:
        status = "OCCUPIED" if state.occupied else "AVAILABLE"
        lines.append(f"  - LOCK anchor {state.anchor.id} ({status})")
    lines += [
        "□ FLOOR SURFACE - Texture preserved",
        "□ WALL SURFACES - Texture preserved",
        "",
        "EDITABLE REGIONS (WHITE - CAN GENERATE):",
        "",
        "ACTIVE EDIT REGION (sole editable region):",
        f"- Position: ({pct(edit_region.x)}, {pct(edit_region.y)})",
        f"- Size: {pct(edit_region.width)} × {pct(edit_region.height)}",
    ]
    overlapping = _overlapping_anchor_ids(states, edit_region)
    lines.append(f"- Overlapping anchors: {', '.join(overlapping) if overlapping else 'none'}")
    lines += [
        "- This region is WHITE (editable)",
        "- ALL other regions are BLACK (preserved)",
        f"- Use inpainting with low denoise ({fmt(options.inpaint_strength_min)}-"
        f"{fmt(options.inpaint_strength_max)})",
    ]
    return "\n".join(lines) + "\n"


def structural_constraints_block(geometry: CanonicalGeometry) -> str:
    d = geometry.dimensions
    cam = geometry.camera_matrix
    area = floor_area(geometry.floor_polygon)
    lines = [
        "IMMUTABLE STRUCTURAL CONSTRAINTS:",
        "",
        "ROOM GEOMETRY (FROZEN):",
        f"- Shape: {geometry.room_shape}",
        f"- Width: {fmt(d.width)} {d.unit}",
        f"- Depth: {fmt(d.depth)} {d.unit}",
        f"- Height: {fmt(d.height)} {d.unit}",
        f"- Aspect Ratio: {fmt(d.width)}:{fmt(d.depth)}",
        f"- Floor Area: {fmt(area)} sq {d.unit}",
        f"- Floor Corners: {len(geometry.floor_polygon)}",
        "",
        "OPENING COUNT (EXACT):",
        f"- Windows: EXACTLY {len(geometry.windows)} (no more, no less)",
        f"- Doors: EXACTLY {len(geometry.doors)} (no more, no less)",
        "",
        "CAMERA (LOCKED):",
        f"- Type: {cam.view_type.capitalize()}",
        f"- Position: ({fmt(cam.position.x)}, {fmt(cam.position.y)}, {fmt(cam.position.z)}) "
        "- southeast corner, elevated",
        f"- Rotation: pitch {fmt(cam.rotation.pitch)}°, yaw {fmt(cam.rotation.yaw)}°, "
        f"roll {fmt(cam.rotation.roll)}°",
        "- Direction: Looking northwest",
        f"- FOV: {fmt(cam.fov)}°",
        f"- Frame: {cam.aspect_ratio}",
        "",
        "ANY DEVIATION FROM THESE VALUES = RENDER REJECTION",
    ]
    return "\n".join(lines) + "\n"


def furniture_placement_block(states: Sequence[AnchorState], options: CompilerOptions) -> str:
    occupied = [state for state in states if state.occupied]
    lines = [
        "FURNITURE PLACEMENT MANIFEST:",
        "",
        f"Total anchors: {len(states)}",
        f"Occupied anchors: {len(occupied)}",
        "",
        "PLACEMENT COORDINATES (% of room dimensions):",
    ]
    for state in occupied:
        center = state.center
        b = state.bounds
        lines += ["", f"{state.anchor.id}:"]
        label = state.item_label
        if label:
            lines.append(f"  Item: {label}")
        lines += [
            f"  Center: ({pct(center.x)}, {pct(center.y)})",
            f"  Bounds: [{pct(b.min_x)}, {pct(b.min_y)}] to [{pct(b.max_x)}, {pct(b.max_y)}]",
            f"  Size: {pct(state.anchor.bounding_box.width)} × {pct(state.anchor.bounding_box.height)}",
        ]
    lines += [
        "",
        "PLACEMENT RULES:",
        f"1. Furniture centers MUST be within {pct(options.placement_tolerance_percent)} of specified coordinates",
        "2. Furniture CANNOT extend beyond specified bounds",
        "3. Furniture CANNOT overlap other placement zones",
        "4. Furniture MUST face room center (unless rotation specified)",
    ]
    return "\n".join(lines) + "\n"


def locking_directive_block(geometry: CanonicalGeometry, edit_region: EditRegion | None) -> str:
    d = geometry.dimensions
    window_positions = ", ".join(f"{w.wall}@{pct(w.position_percent)}" for w in geometry.windows) or "none"
    door_positions = ", ".join(f"{dr.wall}@{pct(dr.position_percent)}" for dr in geometry.doors) or "none"
    lines = [
        "LOCKING DIRECTIVE:",
        "",
        "LOCKED (CANNOT CHANGE):",
        f"✗ Room boundary shape ({geometry.room_shape})",
        f"✗ Window count: {len(geometry.windows)}",
        f"✗ Window positions: {window_positions}",
        f"✗ Door count: {len(geometry.doors)}",
        f"✗ Door positions: {door_positions}",
        "✗ Camera angle (isometric from southeast)",
        f"✗ Room proportions ({fmt(d.width)}:{fmt(d.depth)})",
    ]
    if edit_region is not None:
        lines += [
            "✗ Everything outside the active edit region",
            "",
            "UNLOCKED (CAN GENERATE):",
            f"✓ Active edit region only ({pct(edit_region.x)}, {pct(edit_region.y)}, "
            f"{pct(edit_region.width)} × {pct(edit_region.height)})",
        ]
    else:
        lines += [
            "",
            "UNLOCKED (CAN GENERATE):",
            "✓ Furniture within designated anchors",
            "✓ Wall textures/colors",
            "✓ Floor materials",
            "✓ Decorative elements within zones",
            "✓ Lighting fixtures",
            "✓ Window treatments (curtains, blinds)",
        ]
    return "\n".join(lines) + "\n"


__all__ = [
    "AnchorState",
    "fmt",
    "pct",
    "depth_map_block",
    "edge_map_block",
    "region_mask_block",
    "structural_constraints_block",
    "furniture_placement_block",
    "locking_directive_block",
]
