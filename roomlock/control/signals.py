"""Compiler input and output models."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import Field, model_validator

from roomlock.geometry import contract
from roomlock.geometry.models import FrozenWireModel, Point2D


class PlacementBounds(FrozenWireModel):
    min_x: float
    max_x: float
    min_y: float
    max_y: float


class PlacementItem(FrozenWireModel):
    """One accepted anchor -> item assignment for a render pass.

    Position and bounds default to the anchor's own center and box.
    """

    anchor_id: str
    item_id: str | None = None
    item_name: str | None = None
    position: Point2D | None = None
    bounding_box: PlacementBounds | None = None


class PlacementManifest(FrozenWireModel):
    items: tuple[PlacementItem, ...] = ()


class EditRegion(FrozenWireModel):
    """Rectangle in percent of the frame that may be regenerated."""

    x: float = Field(ge=contract.PERCENT_MIN, le=contract.PERCENT_MAX)
    y: float = Field(ge=contract.PERCENT_MIN, le=contract.PERCENT_MAX)
    width: float = Field(gt=contract.PERCENT_MIN, le=contract.PERCENT_MAX)
    height: float = Field(gt=contract.PERCENT_MIN, le=contract.PERCENT_MAX)

    @model_validator(mode="after")
    def _inside_frame(self) -> "EditRegion":
        if self.x + self.width > contract.PERCENT_MAX or self.y + self.height > contract.PERCENT_MAX:
            raise ValueError("edit region extends beyond the frame")
        return self


class ControlSignals(FrozenWireModel):
    """Text blocks handed to the renderer. Output only."""

    depth_map_description: str
    edge_map_description: str
    region_mask_description: str
    structural_constraints: str
    furniture_placement_guide: str
    locking_instructions: str
    compiled_prompt: str = ""


@dataclass(frozen=True)
class CompilerOptions:
    inpaint_strength_min: float = contract.INPAINT_STRENGTH_MIN
    inpaint_strength_max: float = contract.INPAINT_STRENGTH_MAX
    placement_tolerance_percent: float = contract.PLACEMENT_CENTER_TOLERANCE_PERCENT

    @classmethod
    def from_settings(cls, settings) -> "CompilerOptions":
        compiler = settings.compiler
        return cls(
            inpaint_strength_min=compiler.inpaint_strength_min,
            inpaint_strength_max=compiler.inpaint_strength_max,
            placement_tolerance_percent=compiler.placement_tolerance_percent,
        )


__all__ = [
    "PlacementBounds",
    "PlacementItem",
    "PlacementManifest",
    "EditRegion",
    "ControlSignals",
    "CompilerOptions",
]
