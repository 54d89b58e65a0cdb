from __future__ import annotations

# One `LineEngine` per map side. It exclusively owns that side's `Line` and is the
# only place where a line's fields change. Every mutation:
# - sanitizes incoming coordinates (clamp, never raise),
# - recomputes derived fields through `geoline.core.geo`,
# - publishes a new frozen `Line` snapshot to the renderer,
# - fires distance listeners synchronously (same call stack as the mutation).
#
# Source vs target semantics:
# - source: endpoints are free, distance is always re-measured.
# - target: distance is locked to the last synced value, bearing is owned here,
#   and `end` is always the direct-geodesic projection of `start`.

import logging
import math
import uuid
from typing import Callable

from geoline.config.settings import Settings, get_settings
from geoline.core.geo import (
    Coordinate,
    clamp_coordinate,
    destination_point,
    haversine_m,
    initial_bearing_deg,
    is_valid_coordinate,
    normalize_bearing,
)
from geoline.core.units import format_distance
from geoline.domain.models import Endpoint, Line, LineEvent, LineSide, LineStyle
from geoline.engine.ports import LineRenderer, MapSurface, NullRenderer

logger = logging.getLogger(__name__)

# Listeners receive the new distance in meters; they run inline, so a slow
# listener shows up directly in the coordinator's latency metrics.
DistanceListener = Callable[[float], None]


def sanitize_coordinate(point: Coordinate, *, label: str, side: LineSide) -> Coordinate:
    """Clamp an out-of-range coordinate and log what was changed.

    Shared by every entry point that accepts pointer coordinates (engine
    operations and the creation preview), so a clamp is never silent.
    """
    if is_valid_coordinate(point):
        return point
    clamped = clamp_coordinate(point)
    logger.warning(
        "Clamped invalid %s coordinate on %s map: (%s, %s) -> (%s, %s)",
        label,
        side.value,
        point.lat,
        point.lng,
        clamped.lat,
        clamped.lng,
    )
    return clamped


class LineEngine:
    """Create/move/rotate/sync/clear operations for a single side's line."""

    def __init__(
        self,
        side: LineSide | str,
        *,
        surface: MapSurface | None = None,
        renderer: LineRenderer | None = None,
        settings: Settings | None = None,
        style: LineStyle | None = None,
    ):
        self._side = LineSide.parse(side)
        self._surface = surface
        self._renderer: LineRenderer = renderer or NullRenderer()
        self._settings = settings or get_settings()
        self._style = style or self._settings.line_style
        self._line: Line | None = None
        self._listeners: list[DistanceListener] = []
        self._pending_distance_m: float | None = None

    # ------------------------------------------------------------------ queries

    @property
    def side(self) -> LineSide:
        return self._side

    @property
    def is_target(self) -> bool:
        return self._side is LineSide.TARGET

    @property
    def line(self) -> Line | None:
        return self._line

    @property
    def is_visible(self) -> bool:
        return self._line is not None

    @property
    def distance_m(self) -> float:
        return self._line.distance_m if self._line is not None else 0.0

    @property
    def distance_display(self) -> str:
        return self._line.distance_display if self._line is not None else ""

    @property
    def bearing_deg(self) -> float | None:
        return self._line.bearing_deg if self._line is not None else None

    @property
    def is_zero_length(self) -> bool:
        if self._line is None:
            return False
        return self._line.is_zero_length(self._settings.geodesy.zero_length_threshold_m)

    @property
    def pending_distance_m(self) -> float | None:
        return self._pending_distance_m

    def is_outside_viewport(self) -> bool:
        """True when both endpoints are outside the surface bounds (partial visibility is fine)."""
        if self._line is None or self._surface is None:
            return False
        bounds = self._surface.get_bounds()
        if bounds is None:
            return False
        return not bounds.contains(self._line.start) and not bounds.contains(self._line.end)

    def add_distance_listener(self, listener: DistanceListener) -> Callable[[], None]:
        """Register a "distance changed" callback; returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # --------------------------------------------------------------- operations

    def create_line(self, start: Coordinate, end: Coordinate) -> Line:
        """Replace any existing line on this side with a new one from `start` to `end`."""
        start = self._sanitize(start, "start")
        end = self._sanitize(end, "end")

        # Single-line invariant: the old line is erased before the new one is drawn.
        if self._line is not None:
            self.clear_line()

        # Only the target owns a bearing; source lines report direction via the view.
        distance = haversine_m(start, end)
        bearing = initial_bearing_deg(start, end) if self.is_target else None
        if distance < self._settings.geodesy.zero_length_threshold_m:
            logger.warning(
                "Creating zero-length line on %s map (%.3f m); rotation disabled.",
                self._side.value,
                distance,
            )

        line = Line(
            id=f"line-{self._side.value}-{uuid.uuid4().hex[:12]}",
            side=self._side,
            start=start,
            end=end,
            distance_m=distance,
            bearing_deg=bearing,
            distance_display=self._format(distance),
            style=self._style,
        )
        # A fresh line supersedes any sync that was waiting for the surface.
        self._pending_distance_m = None
        self._commit(line)
        self._notify_distance(distance)
        return line

    def move_endpoint(self, which: Endpoint, position: Coordinate) -> Line | None:
        """Move one endpoint; see module notes for how source and target differ."""
        if which not in ("start", "end"):
            raise ValueError(f"Unknown endpoint '{which}', expected 'start' or 'end'")
        line = self._line
        if line is None:
            return None
        position = self._sanitize(position, which)

        # Source endpoints are free; the distance follows them.
        if not self.is_target:
            start = position if which == "start" else line.start
            end = position if which == "end" else line.end
            distance = haversine_m(start, end)
            updated = line.model_copy(
                update={
                    "start": start,
                    "end": end,
                    "distance_m": distance,
                    "distance_display": self._format(distance),
                }
            )
            self._commit(updated)
            if distance != line.distance_m:
                self._notify_distance(distance)
            return updated

        # Target distance is locked: only sync_distance may change it.
        locked_distance = line.distance_m
        bearing = line.bearing_deg if line.bearing_deg is not None else 0.0
        if which == "start":
            # Parallel move: bearing held, end re-projected from the new start.
            updated = line.model_copy(
                update={
                    "start": position,
                    "end": destination_point(position, locked_distance, bearing),
                }
            )
        else:
            # The drag position only picks a direction; the end snaps back onto
            # the locked-distance circle around start.
            if self.is_zero_length:
                # End-drag is rotation-by-drag, and a zero-length line has no
                # direction to rotate. Keep the bearing for the next sync.
                logger.info("move_endpoint(end) kept bearing: line is zero-length, bearing is undefined.")
            elif position != line.start:
                bearing = initial_bearing_deg(line.start, position)
            updated = line.model_copy(
                update={
                    "bearing_deg": bearing,
                    "end": destination_point(line.start, locked_distance, bearing),
                }
            )
        self._commit(updated)
        return updated

    def rotate(self, delta_deg: float) -> Line | None:
        """Rotate the target line around its start by `delta_deg` (clockwise)."""
        line = self._rotatable_line("rotate")
        if line is None:
            return None
        if not math.isfinite(delta_deg):
            logger.warning("Ignoring non-finite rotation delta %r on %s map.", delta_deg, self._side.value)
            return None
        current = line.bearing_deg if line.bearing_deg is not None else 0.0
        return self._apply_bearing(line, normalize_bearing(current + delta_deg))

    def set_bearing(self, bearing_deg: float) -> Line | None:
        """Point the target line at an absolute bearing, keeping start and length."""
        line = self._rotatable_line("set_bearing")
        if line is None:
            return None
        if not math.isfinite(bearing_deg):
            logger.warning("Ignoring non-finite bearing %r on %s map.", bearing_deg, self._side.value)
            return None
        return self._apply_bearing(line, normalize_bearing(bearing_deg))

    def sync_distance(self, new_distance_m: float) -> Line | None:
        """Impose a distance on the target line, preserving its bearing and start.

        Without a line, one is created at the surface's viewport center pointing
        at the configured initial bearing (north by default). If the surface has
        no center yet the distance is kept as pending; see `apply_pending`.
        """
        if not self.is_target:
            logger.warning("sync_distance called on the %s map; ignored.", self._side.value)
            return None

        distance = float(new_distance_m)
        if not math.isfinite(distance) or distance < 0:
            logger.warning("Clamping invalid synced distance %r to 0 m.", new_distance_m)
            distance = 0.0

        # First sync on this side: start at whatever the user is currently looking at.
        line = self._line
        if line is None:
            center = self._surface.get_center() if self._surface is not None else None
            if center is None:
                self._pending_distance_m = distance
                logger.warning(
                    "Target map not ready; deferring sync of %.1f m until a viewport center is available.",
                    distance,
                )
                return None
            start = self._sanitize(center, "center")
            bearing = normalize_bearing(self._settings.target.initial_bearing_deg)
            updated = Line(
                id=f"line-{self._side.value}-{uuid.uuid4().hex[:12]}",
                side=self._side,
                start=start,
                end=destination_point(start, distance, bearing),
                distance_m=distance,
                bearing_deg=bearing,
                distance_display=self._format(distance),
                style=self._style,
            )
            previous = None
        else:
            # Existing line: keep where it sits and where it points, re-project the end.
            bearing = line.bearing_deg if line.bearing_deg is not None else 0.0
            updated = line.model_copy(
                update={
                    "end": destination_point(line.start, distance, bearing),
                    "distance_m": distance,
                    "distance_display": self._format(distance),
                    "bearing_deg": bearing,
                }
            )
            previous = line.distance_m

        # Idempotent: re-syncing the same distance redraws but does not notify.
        self._pending_distance_m = None
        self._commit(updated)
        if previous != distance:
            self._notify_distance(distance)
        return updated

    def apply_pending(self) -> Line | None:
        """Complete a sync that was deferred because the surface was not ready."""
        if self._pending_distance_m is None:
            return None
        return self.sync_distance(self._pending_distance_m)

    def clear_line(self) -> None:
        """Remove the line (idempotent)."""
        self._pending_distance_m = None
        if self._line is None:
            return
        self._line = None
        self._renderer.render(LineEvent(kind="erased", side=self._side))

    # ------------------------------------------------------------------ helpers

    def _rotatable_line(self, op: str) -> Line | None:
        if not self.is_target:
            logger.debug("%s rejected: the %s line cannot be rotated.", op, self._side.value)
            return None
        if self._line is None:
            return None
        if self.is_zero_length:
            logger.info("%s rejected: line is zero-length, bearing is undefined.", op)
            return None
        return self._line

    def _apply_bearing(self, line: Line, bearing: float) -> Line:
        updated = line.model_copy(
            update={
                "bearing_deg": bearing,
                "end": destination_point(line.start, line.distance_m, bearing),
            }
        )
        self._commit(updated)
        return updated

    def _sanitize(self, point: Coordinate, label: str) -> Coordinate:
        return sanitize_coordinate(point, label=label, side=self._side)

    def _format(self, distance_m: float) -> str:
        display = self._settings.display
        return format_distance(
            distance_m,
            display.unit,
            display.precision,
            meters_to_kilometers=display.meters_to_kilometers,
            high_precision_meters=display.high_precision_meters,
        )

    def _commit(self, line: Line) -> None:
        # Every state change goes through here so the renderer never misses a snapshot.
        self._line = line
        self._renderer.render(LineEvent(kind="drawn", side=self._side, line=line))

    def _notify_distance(self, distance_m: float) -> None:
        # Copy first: a listener may unsubscribe itself while being notified.
        for listener in list(self._listeners):
            listener(distance_m)
