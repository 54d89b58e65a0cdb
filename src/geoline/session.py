from __future__ import annotations

# `DualMapSession` is the orchestrator for the dual-map distance comparison.
# It wires together:
# - settings (+ optional per-session overrides)
# - one LineEngine per side (source = measuring map, target = comparison map)
# - the SyncCoordinator (source distance -> target, one way)
# - the CreationProtocol for the source map and a RotationGesture for the target map
#
# UI code calls the imperative entry points below and reads `snapshot()` to draw.

import logging
from typing import Any, Mapping

from geoline.config.overrides import apply_settings_overrides
from geoline.config.settings import Settings, get_settings
from geoline.core.geo import Coordinate, initial_bearing_deg
from geoline.domain.models import Endpoint, Line, LineSide, LineView, PreviewLine, SyncMetrics
from geoline.engine.creation import CreationProtocol
from geoline.engine.line_engine import LineEngine
from geoline.engine.ports import LineRenderer, MapSurface, NullRenderer, StaticMapSurface
from geoline.engine.rotation import RotationGesture
from geoline.sync.coordinator import SyncCoordinator

logger = logging.getLogger(__name__)


class DualMapSession:
    def __init__(
        self,
        *,
        source_surface: MapSurface | None = None,
        target_surface: MapSurface | None = None,
        renderer: LineRenderer | None = None,
        settings: Settings | None = None,
        settings_overrides: Mapping[str, Any] | None = None,
    ):
        self.settings = apply_settings_overrides(settings or get_settings(), settings_overrides)
        default_center = Coordinate(
            lat=self.settings.map.default_center_lat,
            lng=self.settings.map.default_center_lng,
        )
        self.source_surface = source_surface or StaticMapSurface(center=default_center)
        self.target_surface = target_surface or StaticMapSurface(center=default_center)
        self.renderer: LineRenderer = renderer or NullRenderer()

        self.source = LineEngine(
            LineSide.SOURCE, surface=self.source_surface, renderer=self.renderer, settings=self.settings
        )
        self.target = LineEngine(
            LineSide.TARGET, surface=self.target_surface, renderer=self.renderer, settings=self.settings
        )
        self.coordinator = SyncCoordinator(self.source, self.target, settings=self.settings)
        self.creation = CreationProtocol(self.source, renderer=self.renderer, settings=self.settings)
        self.rotation = RotationGesture(self.target)

    def engine(self, side: LineSide | str) -> LineEngine:
        return self.source if LineSide.parse(side) is LineSide.SOURCE else self.target

    # Creation (source map)

    def start_measurement(self) -> None:
        self.creation.activate()

    def cancel_measurement(self) -> None:
        self.creation.deactivate()

    def click(self, point: Coordinate) -> Line | None:
        return self.creation.handle_click(point)

    def pointer_move(self, point: Coordinate) -> PreviewLine | None:
        return self.creation.handle_pointer_move(point)

    # Editing

    def drag_endpoint(self, side: LineSide | str, which: Endpoint, position: Coordinate) -> Line | None:
        return self.engine(side).move_endpoint(which, position)

    def rotate_target(self, delta_deg: float | None = None) -> Line | None:
        """Rotate the target line; defaults to one configured step clockwise."""
        step = self.settings.target.rotation_step_deg if delta_deg is None else delta_deg
        return self.target.rotate(step)

    def map_ready(self, side: LineSide | str) -> Line | None:
        """Tell the session a map finished initializing; completes any deferred target sync."""
        engine = self.engine(side)
        if not engine.is_target:
            return None
        # Through the coordinator so the deferred sync shows up in metrics.
        line = self.coordinator.flush_pending()
        if line is not None:
            logger.info("Applied deferred target sync: %s", line.distance_display)
        return line

    def clear(self, side: LineSide | str) -> None:
        self.engine(side).clear_line()

    def reset(self) -> None:
        """Clear both lines and any in-progress creation or rotation."""
        self.creation.deactivate()
        if self.rotation.is_rotating:
            self.rotation.end()
        self.source.clear_line()
        self.target.clear_line()
        self.coordinator.reset()

    # Read side

    def metrics(self) -> SyncMetrics:
        return self.coordinator.get_metrics()

    def view(self, side: LineSide | str) -> LineView | None:
        engine = self.engine(side)
        line = engine.line
        if line is None:
            return None
        rotation = line.bearing_deg
        if rotation is None:
            rotation = initial_bearing_deg(line.start, line.end)
        return LineView(
            line_id=line.id,
            side=line.side,
            path=(line.start, line.end),
            start_marker=line.start,
            end_marker=line.end,
            end_marker_rotation_deg=rotation,
            distance_m=line.distance_m,
            distance_display=line.distance_display,
            bearing_deg=line.bearing_deg,
            zero_length=engine.is_zero_length,
            outside_viewport=engine.is_outside_viewport(),
            style=line.style,
        )

    def snapshot(self) -> dict[LineSide, LineView | None]:
        return {side: self.view(side) for side in LineSide}
