from __future__ import annotations

"""
Room Geometry Contract

Single source of truth for the fixed camera convention, wall orientation and
shape constants shared by the canonicalizer and the control signal compiler.
All modules should import from here instead of hardcoding.
"""

# Cardinal walls in the order they are reported
CARDINAL_WALLS = ("north", "south", "east", "west")

# Near walls face the camera (partially visible), far walls are fully visible
NEAR_WALLS = ("south", "east")
FAR_WALLS = ("north", "west")

# Inward-facing unit normals (x, y, z)
WALL_NORMALS = {
    "north": (0.0, 1.0, 0.0),
    "south": (0.0, -1.0, 0.0),
    "east": (-1.0, 0.0, 0.0),
    "west": (1.0, 0.0, 0.0),
}

# Camera: isometric, southeast corner, looking northwest
CAMERA_POSITION_FACTOR_X = 0.8  # of width
CAMERA_POSITION_FACTOR_Y = 0.8  # of depth
CAMERA_ELEVATION_FACTOR = 0.6  # of floor diagonal
CAMERA_PITCH_DEG = -45.0
CAMERA_YAW_DEG = 225.0
CAMERA_ROLL_DEG = 0.0
CAMERA_FOV_DEG = 60.0
CAMERA_ASPECT_RATIO = "16:9"
CAMERA_VIEW_TYPE = "isometric"

# Room shapes
RECTANGULAR_SHAPES = ("rectangular", "square")
L_SHAPE = "L-shaped"
KNOWN_ROOM_SHAPES = ("rectangular", "square", "L-shaped", "irregular")
L_SHAPE_ARM_RATIO = 0.6  # of width / depth; notch sits at the far corner

# Percent-space bounds for openings, features, zones and edit regions
PERCENT_MIN = 0.0
PERCENT_MAX = 100.0

# Placement guide
PLACEMENT_CENTER_TOLERANCE_PERCENT = 2.0

# Edit-mode inpainting denoise range
INPAINT_STRENGTH_MIN = 0.15
INPAINT_STRENGTH_MAX = 0.3

ANCHOR_ID_PREFIX = "anchor_"


def opening_id(kind: str, wall: str, index: int) -> str:
    """Stable id for the index-th opening of a kind on one wall."""
    return f"{kind}_{wall}_{index}"


def anchor_id(zone_name: str) -> str:
    return f"{ANCHOR_ID_PREFIX}{zone_name}"
