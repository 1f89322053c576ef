"""Unit tests for the geometry canonicalizer."""

from __future__ import annotations

import math

import pytest
from pydantic import ValidationError as PydanticValidationError

from roomlock.exceptions import ValidationError
from roomlock.geometry.canonicalizer import (
    build_camera_matrix,
    calculate_wall_normals,
    canonicalize,
    floor_area,
    generate_floor_polygon,
    generate_furniture_anchors,
    normalize,
    parse_analysis,
)
from roomlock.geometry.models import Dimensions, FurnitureZone, Wall
from tests.utils_geometry import sample_analysis


def _coords(points):
    return [(p.x, p.y) for p in points]


def test_camera_matrix_is_fixed_isometric() -> None:
    camera = build_camera_matrix(Dimensions(width=10, depth=8, height=3))

    assert camera.position.x == pytest.approx(8.0)
    assert camera.position.y == pytest.approx(6.4)
    assert camera.position.z == pytest.approx(0.6 * math.sqrt(10**2 + 8**2))
    assert camera.position.z == pytest.approx(7.687, abs=0.01)
    assert (camera.rotation.pitch, camera.rotation.yaw, camera.rotation.roll) == (-45, 225, 0)
    assert camera.fov == 60
    assert camera.aspect_ratio == "16:9"
    assert camera.view_type == "isometric"


def test_camera_depends_on_footprint_only() -> None:
    low = build_camera_matrix(Dimensions(width=10, depth=8, height=2.4))
    high = build_camera_matrix(Dimensions(width=10, depth=8, height=4.0))
    assert low == high


def test_wall_normals_only_for_reported_walls() -> None:
    normals = calculate_wall_normals([Wall(position="north", length=10), Wall(position="east", length=8)])

    assert set(normals) == {"north", "east"}
    assert (normals["north"].normal.x, normals["north"].normal.y, normals["north"].normal.z) == (0, 1, 0)
    assert (normals["east"].normal.x, normals["east"].normal.y) == (-1, 0)
    assert normals["east"].length == 8


def test_all_cardinal_normals() -> None:
    walls = [Wall(position=p, length=5) for p in ("north", "south", "east", "west")]
    normals = calculate_wall_normals(walls)
    assert (normals["south"].normal.y, normals["west"].normal.x) == (-1, 1)


def test_rectangular_floor_polygon() -> None:
    points = generate_floor_polygon("rectangular", Dimensions(width=10, depth=8))
    assert _coords(points) == [(0, 0), (10, 0), (10, 8), (0, 8)]


def test_square_uses_rectangle() -> None:
    points = generate_floor_polygon("square", Dimensions(width=5, depth=5))
    assert len(points) == 4


def test_l_shaped_floor_polygon_has_notch_at_far_corner() -> None:
    points = generate_floor_polygon("L-shaped", Dimensions(width=10, depth=8))
    coords = _coords(points)

    assert len(coords) == 6
    assert coords[3] == (pytest.approx(6.0), pytest.approx(4.8))
    assert coords[2] == (10, pytest.approx(4.8))
    assert coords[4] == (pytest.approx(6.0), 8)
    # 80 minus the 4 x 3.2 notch
    assert floor_area(points) == pytest.approx(80 - 4 * 3.2)


def test_irregular_shape_falls_back_to_rectangle() -> None:
    points = generate_floor_polygon("irregular", Dimensions(width=10, depth=8))
    assert _coords(points) == [(0, 0), (10, 0), (10, 8), (0, 8)]


def test_furniture_anchors_from_zones() -> None:
    zones = [
        FurnitureZone(name="sofa", label="Seating", x_start=10, x_end=40, y_start=50, y_end=80, suggested_items=("sofa",)),
        FurnitureZone(name="rug", x_start=0, x_end=20, y_start=0, y_end=10),
    ]
    anchors = generate_furniture_anchors(zones)

    sofa, rug = anchors
    assert sofa.id == "anchor_sofa"
    assert sofa.name == "Seating"
    assert (sofa.position.x, sofa.position.y) == (25, 65)
    assert (sofa.bounding_box.width, sofa.bounding_box.height) == (30, 30)
    assert sofa.allowed_categories == ("sofa",)
    assert sofa.occupied is False
    assert sofa.occupied_by is None
    assert rug.name == "rug"


def test_duplicate_zone_names_rejected() -> None:
    zones = [
        FurnitureZone(name="sofa", x_start=0, x_end=10, y_start=0, y_end=10),
        FurnitureZone(name="sofa", x_start=20, x_end=30, y_start=0, y_end=10),
    ]
    with pytest.raises(ValidationError) as excinfo:
        generate_furniture_anchors(zones)
    assert "furnitureZones.sofa" in excinfo.value.details


def test_normalize_assigns_per_wall_ids() -> None:
    payload = sample_analysis()
    payload["windows"].append({"wall": "north", "positionPercent": 70, "widthPercent": 10, "heightPercent": 40})
    payload["windows"][0]["id"] = "from-the-model"

    geometry = normalize(payload)

    assert [w.id for w in geometry.windows] == ["window_north_0", "window_east_0", "window_north_1"]
    assert [d.id for d in geometry.doors] == ["door_south_0"]


def test_normalize_builds_all_artifacts() -> None:
    geometry = normalize(sample_analysis())

    assert geometry.room_shape == "rectangular"
    assert set(geometry.wall_normals) == {"north", "south", "east", "west"}
    assert len(geometry.floor_polygon) == 4
    assert [a.id for a in geometry.furniture_anchors] == ["anchor_sofa", "anchor_table", "anchor_desk"]
    assert geometry.camera_matrix.fov == 60


def test_normalize_is_deterministic() -> None:
    assert normalize(sample_analysis()) == normalize(sample_analysis())


def test_canonical_geometry_is_frozen() -> None:
    geometry = normalize(sample_analysis())
    with pytest.raises(PydanticValidationError):
        geometry.room_shape = "L-shaped"


def test_payload_uses_camel_case_keys() -> None:
    payload = normalize(sample_analysis()).to_payload()
    assert "roomShape" in payload
    assert "cameraMatrix" in payload
    assert payload["furnitureAnchors"][0]["boundingBox"] == {"width": 30.0, "height": 30.0}
    assert "occupiedBy" not in payload["furnitureAnchors"][0]


def test_unknown_wall_reference_rejected() -> None:
    payload = sample_analysis()
    payload["windows"][0]["wall"] = "ceiling"

    with pytest.raises(ValidationError) as excinfo:
        normalize(payload)
    assert "windows[0].wall" in excinfo.value.details


def test_percent_out_of_range_rejected() -> None:
    payload = sample_analysis()
    payload["doors"][0]["widthPercent"] = 120
    payload["furnitureZones"][1]["xStart"] = -5

    with pytest.raises(ValidationError) as excinfo:
        normalize(payload)
    details = excinfo.value.details
    assert "doors[0].widthPercent" in details
    assert "furnitureZones[1].xStart" in details


def test_duplicate_zone_names_rejected_by_normalize() -> None:
    payload = sample_analysis()
    payload["furnitureZones"][2]["name"] = "sofa"

    with pytest.raises(ValidationError) as excinfo:
        normalize(payload)
    assert "furnitureZones.sofa" in excinfo.value.details


def test_malformed_payload_rejected() -> None:
    payload = sample_analysis()
    del payload["dimensions"]

    with pytest.raises(ValidationError) as excinfo:
        parse_analysis(payload)
    assert "dimensions" in excinfo.value.details


def test_canonicalize_returns_tagged_result() -> None:
    ok = canonicalize(sample_analysis())
    assert ok.ok
    assert ok.geometry is not None

    bad_payload = sample_analysis()
    bad_payload["walls"][0]["position"] = "up"
    bad = canonicalize(bad_payload)
    assert not bad.ok
    assert bad.geometry is None
    assert "walls[0].position" in bad.error.details


@pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
@pytest.mark.parametrize("field", ["width", "depth", "height"])
def test_non_finite_dimensions_are_validation_errors(field, bad) -> None:
    payload = sample_analysis()
    payload["dimensions"][field] = bad

    result = canonicalize(payload)

    assert not result.ok
    assert isinstance(result.error, ValidationError)
    assert f"dimensions.{field}" in result.error.details


def test_non_finite_percents_are_validation_errors() -> None:
    payload = sample_analysis()
    payload["windows"][0]["positionPercent"] = math.nan
    payload["furnitureZones"][0]["xEnd"] = math.inf

    with pytest.raises(ValidationError) as excinfo:
        normalize(payload)
    details = excinfo.value.details
    assert details["windows[0].positionPercent"] == "nan is not a finite number"
    assert "furnitureZones[0].xEnd" in details
