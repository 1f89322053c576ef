"""
Layout Analysis Validation

Checks an analyzer reading before any geometry is derived from it. Every
rule runs and reports independently so callers see all problems at once.
"""

from __future__ import annotations

import math
from collections import Counter
from typing import Any, Iterable

from loguru import logger
from pydantic.alias_generators import to_camel

from roomlock.geometry.contract import CARDINAL_WALLS, KNOWN_ROOM_SHAPES, PERCENT_MAX, PERCENT_MIN
from roomlock.geometry.models import FurnitureZone, GeometryAnalysis


class AnalysisValidationResult:
    """Result of analysis validation."""

    def __init__(
        self,
        errors: dict[str, str],
        warnings: list[str],
    ):
        self.errors = errors
        self.warnings = warnings

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def summary(self) -> str:
        if self.is_valid:
            return "analysis is valid"
        first = next(iter(self.errors.items()))
        more = len(self.errors) - 1
        suffix = f" (+{more} more)" if more else ""
        return f"{first[0]}: {first[1]}{suffix}"


def _check_wall(path: str, wall: str, errors: dict[str, str]) -> None:
    if wall not in CARDINAL_WALLS:
        errors[path] = f"unknown wall '{wall}', expected one of {', '.join(CARDINAL_WALLS)}"


def _check_measure(path: str, value: float, errors: dict[str, str], *, positive: bool = True) -> None:
    if not math.isfinite(value):
        errors[path] = f"{value} is not a finite number"
    elif positive and value <= 0:
        errors[path] = f"{value} must be positive"


def _check_percent(path: str, value: float, errors: dict[str, str]) -> None:
    if not math.isfinite(value):
        errors[path] = f"{value} is not a finite number"
    elif not PERCENT_MIN <= value <= PERCENT_MAX:
        errors[path] = f"{value} is outside [{PERCENT_MIN:g}, {PERCENT_MAX:g}]"


def _check_percents(prefix: str, item: Any, fields: Iterable[str], errors: dict[str, str]) -> None:
    for name in fields:
        _check_percent(f"{prefix}.{to_camel(name)}", getattr(item, name), errors)


def find_duplicate_zone_names(zones: Iterable[FurnitureZone]) -> list[str]:
    counts = Counter(zone.name for zone in zones)
    return sorted(name for name, count in counts.items() if count > 1)


def validate_analysis(analysis: GeometryAnalysis) -> AnalysisValidationResult:
    """Validate a parsed analysis.

    Checks:
    - finite numbers everywhere, positive room width and depth
    - cardinal wall references on walls, windows and doors
    - percent positions and sizes within [0, 100]
    - zone bounds ordered (start <= end)
    - unique furniture zone names (anchor ids derive from them)

    Unknown room shapes are reported as warnings; geometry falls back to the
    rectangular form for them.
    """
    errors: dict[str, str] = {}
    warnings: list[str] = []

    dims = analysis.dimensions
    _check_measure("dimensions.width", dims.width, errors)
    _check_measure("dimensions.depth", dims.depth, errors)
    _check_measure("dimensions.height", dims.height, errors, positive=False)

    if analysis.room_shape not in KNOWN_ROOM_SHAPES:
        warnings.append(f"unknown room shape '{analysis.room_shape}'")

    for idx, wall in enumerate(analysis.walls):
        _check_wall(f"walls[{idx}].position", wall.position, errors)
        _check_measure(f"walls[{idx}].length", wall.length, errors, positive=False)
        for f_idx, feature in enumerate(wall.features):
            _check_percents(f"walls[{idx}].features[{f_idx}]", feature, ("position_percent", "width_percent"), errors)

    for idx, window in enumerate(analysis.windows):
        _check_wall(f"windows[{idx}].wall", window.wall, errors)
        _check_percents(
            f"windows[{idx}]", window, ("position_percent", "width_percent", "height_percent"), errors
        )

    for idx, door in enumerate(analysis.doors):
        _check_wall(f"doors[{idx}].wall", door.wall, errors)
        _check_percents(f"doors[{idx}]", door, ("position_percent", "width_percent"), errors)

    for idx, zone in enumerate(analysis.furniture_zones):
        prefix = f"furnitureZones[{idx}]"
        _check_percents(prefix, zone, ("x_start", "x_end", "y_start", "y_end"), errors)
        if zone.x_end < zone.x_start:
            errors[f"{prefix}.xEnd"] = f"xEnd {zone.x_end} is before xStart {zone.x_start}"
        if zone.y_end < zone.y_start:
            errors[f"{prefix}.yEnd"] = f"yEnd {zone.y_end} is before yStart {zone.y_start}"

    for name in find_duplicate_zone_names(analysis.furniture_zones):
        errors[f"furnitureZones.{name}"] = f"duplicate zone name '{name}' (anchor id collision)"

    if errors:
        logger.debug("Analysis validation failed with {count} error(s)", count=len(errors))
    return AnalysisValidationResult(errors=errors, warnings=warnings)


__all__ = ["AnalysisValidationResult", "validate_analysis", "find_duplicate_zone_names"]
