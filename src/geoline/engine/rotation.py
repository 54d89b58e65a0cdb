"""
Pointer-driven rotation of the target line.

A `RotationGesture` turns a stream of pointer positions into `set_bearing` calls
on a target `LineEngine`. The bearing from the anchor to the pointer is taken in
plain lat/lng space, which matches what the user sees on a Web-Mercator-like map
at interactive zoom levels. The engine still re-projects the end point
geodesically, so the line length never changes.
"""

from __future__ import annotations

import logging
from math import atan2, degrees

from geoline.core.geo import Coordinate, normalize_bearing
from geoline.domain.models import Line
from geoline.engine.line_engine import LineEngine

logger = logging.getLogger(__name__)


def bearing_from_pointer(anchor: Coordinate, pointer: Coordinate) -> float:
    """Screen-space bearing (0=N, 90=E) from `anchor` toward `pointer`."""
    dy = pointer.lat - anchor.lat
    dx = pointer.lng - anchor.lng
    if dx == 0 and dy == 0:
        return 0.0
    return normalize_bearing(degrees(atan2(dx, dy)))


class RotationGesture:
    def __init__(self, engine: LineEngine):
        self._engine = engine
        self._anchor: Coordinate | None = None
        self._initial_bearing: float | None = None

    @property
    def is_rotating(self) -> bool:
        return self._anchor is not None

    @property
    def anchor(self) -> Coordinate | None:
        return self._anchor

    def begin(self, anchor: Coordinate | None = None) -> bool:
        """Start rotating around `anchor` (defaults to the line start).

        Returns False when the engine has nothing rotatable.
        """
        line = self._engine.line
        if not self._engine.is_target or line is None or self._engine.is_zero_length:
            logger.debug("Rotation gesture not started on %s map.", self._engine.side.value)
            return False
        # Remember the starting bearing so `cancel` can put the line back.
        self._anchor = anchor or line.start
        self._initial_bearing = line.bearing_deg
        return True

    def update(self, pointer: Coordinate) -> Line | None:
        if self._anchor is None:
            return None
        # Pointer sitting on the anchor has no direction; keep the current line.
        if pointer == self._anchor:
            return self._engine.line
        return self._engine.set_bearing(bearing_from_pointer(self._anchor, pointer))

    def end(self) -> float | None:
        """Finish the gesture and return the final bearing."""
        self._anchor = None
        self._initial_bearing = None
        return self._engine.bearing_deg

    def cancel(self) -> None:
        """Abort the gesture, restoring the bearing held at `begin`."""
        if self._anchor is not None and self._initial_bearing is not None:
            self._engine.set_bearing(self._initial_bearing)
        self._anchor = None
        self._initial_bearing = None
