from __future__ import annotations

import copy
from typing import Any


_SAMPLE_ANALYSIS: dict[str, Any] = {
    "roomShape": "rectangular",
    "dimensions": {"width": 10, "depth": 8, "height": 3, "unit": "m"},
    "walls": [
        {"position": "north", "length": 10, "features": [{"type": "window", "positionPercent": 30, "widthPercent": 20}]},
        {"position": "south", "length": 10, "features": []},
        {"position": "east", "length": 8, "features": []},
        {"position": "west", "length": 8, "features": []},
    ],
    "windows": [
        {"wall": "north", "positionPercent": 30, "widthPercent": 20, "heightPercent": 40, "type": "casement"},
        {"wall": "east", "positionPercent": 50, "widthPercent": 25, "heightPercent": 45, "type": "sliding"},
    ],
    "doors": [
        {"wall": "south", "positionPercent": 70, "widthPercent": 10, "type": "hinged", "swingDirection": "inward"},
    ],
    "furnitureZones": [
        {
            "name": "sofa",
            "label": "Seating",
            "xStart": 10,
            "xEnd": 40,
            "yStart": 50,
            "yEnd": 80,
            "suggestedItems": ["sofa", "armchair"],
        },
        {
            "name": "table",
            "label": "Dining",
            "xStart": 45,
            "xEnd": 65,
            "yStart": 40,
            "yEnd": 60,
            "suggestedItems": ["dining table"],
        },
        {
            "name": "desk",
            "label": "Work",
            "xStart": 70,
            "xEnd": 90,
            "yStart": 10,
            "yEnd": 30,
            "suggestedItems": ["desk", "chair"],
        },
    ],
}


def sample_analysis(**overrides: Any) -> dict[str, Any]:
    """Analyzer payload for a 10x8 m room: 2 windows, 1 door, 3 zones."""
    payload = copy.deepcopy(_SAMPLE_ANALYSIS)
    payload.update(overrides)
    return payload
