"""
Geometry Canonicalizer

Pure transform from a raw analyzer reading to ``CanonicalGeometry``: stable
opening ids, the fixed isometric camera, wall normals, the floor polygon and
furniture anchors. No I/O.
"""

from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from loguru import logger
from pydantic import ValidationError as PydanticValidationError
from shapely.geometry import Polygon

from roomlock.exceptions import GeometryError, ValidationError
from roomlock.geometry import contract
from roomlock.geometry.models import (
    BoxSize,
    CameraMatrix,
    CanonicalGeometry,
    Dimensions,
    Door,
    FurnitureAnchor,
    FurnitureZone,
    GeometryAnalysis,
    Point2D,
    Rotation,
    Vector3,
    Wall,
    WallNormal,
    Window,
)
from roomlock.validate.analysis_validation import find_duplicate_zone_names, validate_analysis


@dataclass(frozen=True)
class CanonicalizationResult:
    """Tagged result of canonicalizing untrusted input."""

    geometry: CanonicalGeometry | None = None
    error: ValidationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_analysis(payload: GeometryAnalysis | dict[str, Any]) -> GeometryAnalysis:
    """Parse analyzer JSON into a ``GeometryAnalysis``.

    Raises:
        ValidationError: If the payload does not have the expected shape.
    """
    if isinstance(payload, GeometryAnalysis):
        return payload
    try:
        return GeometryAnalysis.model_validate(payload)
    except PydanticValidationError as exc:
        details = {
            ".".join(str(part) for part in err["loc"]): err["msg"]
            for err in exc.errors()
        }
        raise ValidationError("Malformed layout analysis", details) from exc


def build_camera_matrix(dimensions: Dimensions) -> CameraMatrix:
    """Isometric camera at the southeast corner looking northwest."""
    width, depth = dimensions.width, dimensions.depth
    diagonal = math.sqrt(width * width + depth * depth)
    return CameraMatrix(
        position=Vector3(
            x=width * contract.CAMERA_POSITION_FACTOR_X,
            y=depth * contract.CAMERA_POSITION_FACTOR_Y,
            z=diagonal * contract.CAMERA_ELEVATION_FACTOR,
        ),
        rotation=Rotation(
            pitch=contract.CAMERA_PITCH_DEG,
            yaw=contract.CAMERA_YAW_DEG,
            roll=contract.CAMERA_ROLL_DEG,
        ),
        fov=contract.CAMERA_FOV_DEG,
        aspect_ratio=contract.CAMERA_ASPECT_RATIO,
        view_type=contract.CAMERA_VIEW_TYPE,
    )


def calculate_wall_normals(walls: Iterable[Wall]) -> dict[str, WallNormal]:
    normals: dict[str, WallNormal] = {}
    for wall in walls:
        vector = contract.WALL_NORMALS.get(wall.position)
        if vector is None:
            raise ValidationError(
                f"Unknown wall position '{wall.position}'",
                {"wall": wall.position},
            )
        x, y, z = vector
        normals[wall.position] = WallNormal(
            wall=wall.position,
            normal=Vector3(x=x, y=y, z=z),
            length=wall.length,
        )
    return normals


def _rectangle(width: float, depth: float) -> list[tuple[float, float]]:
    return [(0.0, 0.0), (width, 0.0), (width, depth), (0.0, depth)]


def generate_floor_polygon(room_shape: str, dimensions: Dimensions) -> tuple[Point2D, ...]:
    """Floor outline in room units, counter-clockwise from the origin.

    Rectangular and square rooms give four corners. L-shaped rooms give six,
    with both arms sized at 60% of the room and the notch at the far corner.
    Any other shape falls back to the rectangle.
    """
    width, depth = dimensions.width, dimensions.depth
    if room_shape in contract.RECTANGULAR_SHAPES:
        coords = _rectangle(width, depth)
    elif room_shape == contract.L_SHAPE:
        arm_w = width * contract.L_SHAPE_ARM_RATIO
        arm_d = depth * contract.L_SHAPE_ARM_RATIO
        coords = [
            (0.0, 0.0),
            (width, 0.0),
            (width, arm_d),
            (arm_w, arm_d),
            (arm_w, depth),
            (0.0, depth),
        ]
    else:
        logger.warning(
            "Room shape '{shape}' has no polygon form, using rectangular outline",
            shape=room_shape,
        )
        coords = _rectangle(width, depth)

    polygon = Polygon(coords)
    if polygon.is_empty or not polygon.is_valid or polygon.area <= 0:
        raise GeometryError(
            "Floor polygon is degenerate",
            {"room_shape": room_shape, "width": str(width), "depth": str(depth)},
        )
    return tuple(Point2D(x=x, y=y) for x, y in coords)


def floor_area(points: Sequence[Point2D]) -> float:
    if len(points) < 3:
        return 0.0
    return float(Polygon([(p.x, p.y) for p in points]).area)


def generate_furniture_anchors(zones: Sequence[FurnitureZone]) -> tuple[FurnitureAnchor, ...]:
    duplicates = find_duplicate_zone_names(zones)
    if duplicates:
        raise ValidationError(
            "Duplicate furniture zone names",
            {f"furnitureZones.{name}": "anchor id collision" for name in duplicates},
        )

    anchors: list[FurnitureAnchor] = []
    for zone in zones:
        anchors.append(
            FurnitureAnchor(
                id=contract.anchor_id(zone.name),
                name=zone.label or zone.name,
                position=Point2D(
                    x=(zone.x_start + zone.x_end) / 2,
                    y=(zone.y_start + zone.y_end) / 2,
                ),
                rotation=0.0,
                bounding_box=BoxSize(
                    width=zone.x_end - zone.x_start,
                    height=zone.y_end - zone.y_start,
                ),
                allowed_categories=tuple(zone.suggested_items),
                occupied=False,
            )
        )
    return tuple(anchors)


def _assign_ids(items: Sequence[Window] | Sequence[Door], kind: str) -> tuple:
    per_wall: dict[str, int] = defaultdict(int)
    result = []
    for item in items:
        index = per_wall[item.wall]
        per_wall[item.wall] += 1
        result.append(item.model_copy(update={"id": contract.opening_id(kind, item.wall, index)}))
    return tuple(result)


def normalize(analysis: GeometryAnalysis | dict[str, Any]) -> CanonicalGeometry:
    """Validate an analysis and derive its canonical geometry.

    Raises:
        ValidationError: On a non-cardinal wall reference, an out-of-range
            percent value, a duplicate zone name or unusable dimensions.
    """
    analysis = parse_analysis(analysis)
    report = validate_analysis(analysis)
    for warning in report.warnings:
        logger.debug("Layout analysis: {warning}", warning=warning)
    if not report.is_valid:
        raise ValidationError(f"Invalid layout analysis: {report.summary()}", report.errors)

    windows = _assign_ids(analysis.windows, "window")
    doors = _assign_ids(analysis.doors, "door")

    geometry = CanonicalGeometry(
        room_shape=analysis.room_shape,
        dimensions=analysis.dimensions,
        walls=analysis.walls,
        windows=windows,
        doors=doors,
        furniture_zones=analysis.furniture_zones,
        camera_matrix=build_camera_matrix(analysis.dimensions),
        wall_normals=calculate_wall_normals(analysis.walls),
        floor_polygon=generate_floor_polygon(analysis.room_shape, analysis.dimensions),
        furniture_anchors=generate_furniture_anchors(analysis.furniture_zones),
    )
    logger.debug(
        "Canonicalized {shape} room: {windows} window(s), {doors} door(s), {anchors} anchor(s)",
        shape=geometry.room_shape,
        windows=len(windows),
        doors=len(doors),
        anchors=len(geometry.furniture_anchors),
    )
    return geometry


def canonicalize(payload: GeometryAnalysis | dict[str, Any]) -> CanonicalizationResult:
    """Like ``normalize`` but returns the validation failure as a value."""
    try:
        return CanonicalizationResult(geometry=normalize(payload))
    except ValidationError as exc:
        return CanonicalizationResult(error=exc)


__all__ = [
    "CanonicalizationResult",
    "parse_analysis",
    "build_camera_matrix",
    "calculate_wall_normals",
    "generate_floor_polygon",
    "floor_area",
    "generate_furniture_anchors",
    "normalize",
    "canonicalize",
]
