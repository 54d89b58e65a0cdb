"""
Distance formatting.

Output is deterministic and locale-independent (plain `format` specs, `.` as the
decimal separator) so it can be asserted in tests and shown as-is by renderers.
"""

from __future__ import annotations

import math
from typing import Literal

DistanceUnit = Literal["meters", "kilometers", "miles", "feet"]

METERS_PER_MILE = 1609.344
FEET_PER_METER = 3.28084


def format_distance(
    meters: float,
    unit: DistanceUnit = "kilometers",
    precision: int = 1,
    *,
    meters_to_kilometers: float = 1000.0,
    high_precision_meters: float = 10.0,
) -> str:
    """Render a distance with a unit picked by magnitude.

    - metric units switch from meters to kilometers at `meters_to_kilometers`
    - below `high_precision_meters` meters are shown with two decimals
    - `miles` falls back to whole feet under 0.1 mi
    """
    if not math.isfinite(meters) or meters < 0.01:
        return "0 m"

    if unit in ("meters", "kilometers"):
        if meters < meters_to_kilometers:
            if meters < high_precision_meters:
                return f"{meters:.2f} m"
            return f"{meters:.0f} m"
        return f"{meters / 1000.0:.{precision}f} km"

    if unit == "miles":
        miles = meters / METERS_PER_MILE
        if miles < 0.1:
            return f"{meters * FEET_PER_METER:.0f} ft"
        return f"{miles:.{precision}f} mi"

    if unit == "feet":
        return f"{meters * FEET_PER_METER:.{precision}f} ft"

    return f"{meters:.{precision}f} m"
