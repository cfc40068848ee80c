"""Display policy: units and distance colours.

Pure mapping functions kept outside the tracking core.
"""

import math
from typing import Optional

from .core.config import DisplayConfig

METRES_PER_FOOT = 0.3048

COLOUR_GREEN = (20, 100, 60)
COLOUR_YELLOW = (95, 91, 45)
COLOUR_RED = (95, 45, 49)
COLOUR_BLACK = (0, 0, 0)


def metres_to_feet(metres: int) -> int:
    """Whole feet, rounded down."""
    return int(math.floor(metres / METRES_PER_FOOT))


def format_distance(metres: Optional[int], imperial: bool) -> str:
    """Human-readable distance, empty when nothing is marked."""
    if metres is None:
        return ""
    if imperial:
        return f"{metres_to_feet(metres)} ft"
    return f"{metres} m"


def distance_colour(metres: Optional[int], display: DisplayConfig) -> tuple:
    """RGB colour for the distance text and direction arrow."""
    if metres is None or not display.distance_colours:
        return COLOUR_BLACK
    if metres > display.far_m:
        return COLOUR_RED
    if metres > display.near_m:
        return COLOUR_YELLOW
    return COLOUR_GREEN


def render_status(snapshot: dict, display: DisplayConfig) -> dict:
    """Add display fields to an engine snapshot."""
    distance = snapshot.get("distance_m")
    bearing = snapshot.get("relative_bearing")
    colour = distance_colour(distance, display)
    return {
        **snapshot,
        "distance_text": format_distance(distance, display.imperial),
        "arrow_rotation": bearing if bearing is not None else 0,
        "colour": "#{:02x}{:02x}{:02x}".format(*colour),
    }
