"""Room geometry models.

Raw analyzer input (``GeometryAnalysis``) is mutable and untrusted. Everything
derived from it (``CanonicalGeometry`` and its parts) is frozen: occupancy
changes are expressed by building a new anchor with ``model_copy``.

JSON keys are camelCase on the wire; attributes are snake_case.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for models exchanged as camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class FrozenWireModel(WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# ---------------------------------------------------------------------------
# Raw analysis
# ---------------------------------------------------------------------------


class Dimensions(FrozenWireModel):
    width: float
    depth: float
    height: float = 0.0
    unit: str = "ft"


class WallFeature(FrozenWireModel):
    type: str = "feature"
    position_percent: float = 0.0
    width_percent: float = 0.0


class Wall(FrozenWireModel):
    position: str
    length: float = 0.0
    features: tuple[WallFeature, ...] = ()


class Window(FrozenWireModel):
    id: str | None = None
    wall: str
    position_percent: float
    width_percent: float
    height_percent: float = 0.0
    type: str = "standard"


class Door(FrozenWireModel):
    id: str | None = None
    wall: str
    position_percent: float
    width_percent: float
    type: str = "standard"
    swing_direction: str | None = None


class FurnitureZone(FrozenWireModel):
    name: str
    label: str = ""
    x_start: float
    x_end: float
    y_start: float
    y_end: float
    suggested_items: tuple[str, ...] = ()


class GeometryAnalysis(FrozenWireModel):
    """Loose reading of a floor plan as produced by the layout analyzer."""

    room_shape: str = "rectangular"
    dimensions: Dimensions
    walls: tuple[Wall, ...] = ()
    windows: tuple[Window, ...] = ()
    doors: tuple[Door, ...] = ()
    furniture_zones: tuple[FurnitureZone, ...] = ()


# ---------------------------------------------------------------------------
# Derived artifacts
# ---------------------------------------------------------------------------


class Vector3(FrozenWireModel):
    x: float
    y: float
    z: float


class Rotation(FrozenWireModel):
    pitch: float
    yaw: float
    roll: float


class CameraMatrix(FrozenWireModel):
    position: Vector3
    rotation: Rotation
    fov: float
    aspect_ratio: str
    view_type: Literal["isometric", "perspective", "orthographic"]


class WallNormal(FrozenWireModel):
    wall: str
    normal: Vector3
    length: float


class Point2D(FrozenWireModel):
    x: float
    y: float


class BoxSize(FrozenWireModel):
    width: float
    height: float


class FurnitureAnchor(FrozenWireModel):
    id: str
    name: str
    position: Point2D
    rotation: float = 0.0
    bounding_box: BoxSize
    allowed_categories: tuple[str, ...] = ()
    occupied: bool = False
    occupied_by: str | None = None

    def with_occupancy(self, occupied: bool, occupied_by: str | None = None) -> "FurnitureAnchor":
        """Copy of this anchor with only the occupancy fields replaced."""
        return self.model_copy(update={"occupied": occupied, "occupied_by": occupied_by or None})


class CanonicalGeometry(FrozenWireModel):
    """Validated room geometry with stable ids and derived artifacts."""

    room_shape: str
    dimensions: Dimensions
    walls: tuple[Wall, ...] = ()
    windows: tuple[Window, ...] = ()
    doors: tuple[Door, ...] = ()
    furniture_zones: tuple[FurnitureZone, ...] = ()
    camera_matrix: CameraMatrix
    wall_normals: dict[str, WallNormal] = Field(default_factory=dict)
    floor_polygon: tuple[Point2D, ...] = ()
    furniture_anchors: tuple[FurnitureAnchor, ...] = ()

    def structural_fields(self) -> dict:
        """Fields that must never change for the lifetime of a record."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            include={"room_shape", "dimensions", "walls", "windows", "doors"},
        )

    def anchor(self, anchor_id: str) -> FurnitureAnchor | None:
        for anchor in self.furniture_anchors:
            if anchor.id == anchor_id:
                return anchor
        return None

    def with_anchors(self, anchors: tuple[FurnitureAnchor, ...]) -> "CanonicalGeometry":
        return self.model_copy(update={"furniture_anchors": tuple(anchors)})


__all__ = [
    "WireModel",
    "FrozenWireModel",
    "Dimensions",
    "WallFeature",
    "Wall",
    "Window",
    "Door",
    "FurnitureZone",
    "GeometryAnalysis",
    "Vector3",
    "Rotation",
    "CameraMatrix",
    "WallNormal",
    "Point2D",
    "BoxSize",
    "FurnitureAnchor",
    "CanonicalGeometry",
]
